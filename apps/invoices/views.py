from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from core import operations
from .serializers import InvoiceSerializer


class JobInvoiceView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description=(
            "Generate (or fetch) the invoice for a completed job. Drafts are regenerated in place; "
            "once the payment has settled the invoice is frozen with status paid."
        ),
        responses={
            200: InvoiceSerializer,
            401: 'Unauthorized',
            403: 'NotAuthorized',
            404: 'NotFound',
            409: 'InvalidStateTransition',
        }
    )
    def post(self, request, job_id):
        return operations.respond(operations.generate_invoice(job_id, request.user))
