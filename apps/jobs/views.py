from rest_framework.views import APIView
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from core import operations
from core.constants import JOB_STATUS_CHOICES, ROLE_CHOICES
from core.utils import IsCustomer, IsProfessional
from .serializers import JobCreateSerializer, JobDetailSerializer, JobSerializer, JobStatusHistorySerializer

ENVELOPE_ERRORS = {
    400: 'ValidationError',
    401: 'Unauthorized',
    403: 'NotAuthorized',
    404: 'NotFound',
    409: 'InvalidStateTransition or StateConflict',
}

version_property = openapi.Schema(
    type=openapi.TYPE_INTEGER,
    description='Job version the client last saw; the change is refused with StateConflict if it moved on.',
)


class JobListCreateView(APIView):
    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsCustomer()]
        return [IsAuthenticated()]

    @swagger_auto_schema(
        operation_description="List jobs visible to you: your own as customer, assigned and open requests as professional.",
        manual_parameters=[
            openapi.Parameter(
                'status', openapi.IN_QUERY, type=openapi.TYPE_STRING,
                enum=[choice[0] for choice in JOB_STATUS_CHOICES], required=False,
            ),
        ],
        responses={200: JobSerializer(many=True), 401: 'Unauthorized'}
    )
    def get(self, request):
        result = operations.list_jobs(request.user, request.query_params.get('status'))
        return operations.respond(result)

    @swagger_auto_schema(
        operation_description="Request a service. Optionally address it to a specific professional.",
        request_body=JobCreateSerializer,
        responses={201: JobSerializer, **ENVELOPE_ERRORS}
    )
    def post(self, request):
        result = operations.create_job(request.user, request.data)
        return operations.respond(result, status.HTTP_201_CREATED)


class JobDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Job details including its status history.",
        responses={200: JobDetailSerializer, 401: 'Unauthorized', 403: 'NotAuthorized', 404: 'NotFound'}
    )
    def get(self, request, pk):
        return operations.respond(operations.get_job(pk, request.user))


class JobStatusHistoryView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Ordered status history of a job.",
        responses={200: JobStatusHistorySerializer(many=True), 401: 'Unauthorized', 403: 'NotAuthorized', 404: 'NotFound'}
    )
    def get(self, request, pk):
        return operations.respond(operations.get_status_history(pk, request.user))


class JobAcceptView(APIView):
    permission_classes = [IsAuthenticated, IsProfessional]

    @swagger_auto_schema(
        operation_description="Accept a pending job.",
        request_body=openapi.Schema(type=openapi.TYPE_OBJECT, properties={'version': version_property}),
        responses={200: JobSerializer, **ENVELOPE_ERRORS}
    )
    def post(self, request, pk):
        result = operations.accept_job(pk, request.user, request.data.get('version'))
        return operations.respond(result)


class JobStartView(APIView):
    permission_classes = [IsAuthenticated, IsProfessional]

    @swagger_auto_schema(
        operation_description="Start work on an accepted job.",
        request_body=openapi.Schema(type=openapi.TYPE_OBJECT, properties={'version': version_property}),
        responses={200: JobSerializer, **ENVELOPE_ERRORS}
    )
    def post(self, request, pk):
        result = operations.start_job(pk, request.user, request.data.get('version'))
        return operations.respond(result)


class JobCompleteView(APIView):
    permission_classes = [IsAuthenticated, IsProfessional]

    @swagger_auto_schema(
        operation_description="Complete an in-progress job with its final price. Computes the commission split and drafts the invoice.",
        request_body=openapi.Schema(
            type=openapi.TYPE_OBJECT,
            required=['final_price'],
            properties={
                'final_price': openapi.Schema(type=openapi.TYPE_STRING, description='Decimal, at most two places'),
                'notes': openapi.Schema(type=openapi.TYPE_STRING),
                'version': version_property,
            },
        ),
        responses={200: JobSerializer, **ENVELOPE_ERRORS}
    )
    def post(self, request, pk):
        result = operations.complete_job(
            pk,
            request.user,
            request.data.get('final_price'),
            request.data.get('notes', ''),
            request.data.get('version'),
        )
        return operations.respond(result)


class JobCancelView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Cancel a job. Customers may cancel pending or accepted jobs; the professional may also cancel in-progress work.",
        request_body=openapi.Schema(
            type=openapi.TYPE_OBJECT,
            properties={
                'role': openapi.Schema(type=openapi.TYPE_STRING, enum=[choice[0] for choice in ROLE_CHOICES]),
                'reason': openapi.Schema(type=openapi.TYPE_STRING),
                'version': version_property,
            },
        ),
        responses={200: JobSerializer, **ENVELOPE_ERRORS}
    )
    def post(self, request, pk):
        result = operations.cancel_job(
            pk,
            request.user,
            request.data.get('role'),
            request.data.get('reason', ''),
            request.data.get('version'),
        )
        return operations.respond(result)
