import logging

from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework.views import APIView
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from core import operations
from core.utils import IsAdmin, IsCustomer, IsProfessional
from .serializers import (
    ConfirmCashPaymentSerializer, DisputeSerializer, MarkCashReceivedSerializer,
    OnlineOrderRequestSerializer, PaymentSerializer, ReceiptPhotoSerializer,
    ReceiptUploadSerializer, ResolveDisputeSerializer, VerifyOnlinePaymentSerializer,
)

logger = logging.getLogger(__name__)

PAYMENT_ERRORS = {
    400: 'ValidationError or SignatureMismatch',
    401: 'Unauthorized',
    403: 'NotAuthorized',
    404: 'NotFound',
    409: 'InvalidStateTransition, StateConflict or DisputeOpen',
}


class PaymentStatusView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Payment method, status and details for a job.",
        responses={200: PaymentSerializer, 401: 'Unauthorized', 403: 'NotAuthorized', 404: 'NotFound'}
    )
    def get(self, request, job_id):
        return operations.respond(operations.get_payment_status(job_id, request.user))


class OnlineOrderView(APIView):
    permission_classes = [IsAuthenticated, IsCustomer]

    @swagger_auto_schema(
        operation_description=(
            "Open a Razorpay order for a completed job. If the gateway is unavailable the response "
            "carries fallback=true, the manual payment link and the exact amount to pay."
        ),
        request_body=OnlineOrderRequestSerializer,
        responses={
            200: openapi.Response(
                description='Order or manual fallback',
                schema=openapi.Schema(
                    type=openapi.TYPE_OBJECT,
                    properties={
                        'fallback': openapi.Schema(type=openapi.TYPE_BOOLEAN),
                        'order_id': openapi.Schema(type=openapi.TYPE_STRING),
                        'payment_link': openapi.Schema(type=openapi.TYPE_STRING),
                        'amount': openapi.Schema(type=openapi.TYPE_STRING),
                        'currency': openapi.Schema(type=openapi.TYPE_STRING),
                        'key_id': openapi.Schema(type=openapi.TYPE_STRING),
                    }
                )
            ),
            **PAYMENT_ERRORS
        }
    )
    def post(self, request, job_id):
        serializer = OnlineOrderRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return operations.invalid(serializer)
        result = operations.create_online_order(job_id, request.user, serializer.validated_data['amount'])
        return operations.respond(result)


class VerifyOnlinePaymentView(APIView):
    permission_classes = [IsAuthenticated, IsCustomer]

    @swagger_auto_schema(
        operation_description="Verify the checkout signature returned by Razorpay and mark the payment paid.",
        request_body=VerifyOnlinePaymentSerializer,
        responses={200: PaymentSerializer, **PAYMENT_ERRORS}
    )
    def post(self, request, job_id):
        serializer = VerifyOnlinePaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return operations.invalid(serializer)
        data = serializer.validated_data
        result = operations.verify_online_payment(
            job_id, request.user, data['order_id'], data['payment_id'], data['signature']
        )
        return operations.respond(result)


class ConfirmManualPaymentView(APIView):
    permission_classes = [IsAuthenticated, IsCustomer]

    @swagger_auto_schema(
        operation_description="Report paying through the manual payment link. The payment becomes confirmed_manually, not paid.",
        responses={200: PaymentSerializer, **PAYMENT_ERRORS}
    )
    def post(self, request, job_id):
        return operations.respond(operations.confirm_manual_payment(job_id, request.user))


@method_decorator(csrf_exempt, name='dispatch')
class GatewayWebhookView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @swagger_auto_schema(
        operation_description="Razorpay webhook. The raw body must be signed in the X-Razorpay-Signature header.",
        responses={200: 'Acknowledged', 400: 'SignatureMismatch or ValidationError'}
    )
    def post(self, request):
        signature = request.headers.get('X-Razorpay-Signature', '')
        logger.debug(f"Received webhook with signature present: {bool(signature)}")
        result = operations.handle_gateway_webhook(request.body, signature)
        return operations.respond(result)


class MarkCashReceivedView(APIView):
    permission_classes = [IsAuthenticated, IsProfessional]

    @swagger_auto_schema(
        operation_description="Professional marks the cash (or UPI/bank transfer) for a completed job as received.",
        request_body=MarkCashReceivedSerializer,
        responses={200: PaymentSerializer, **PAYMENT_ERRORS}
    )
    def post(self, request, job_id):
        serializer = MarkCashReceivedSerializer(data=request.data)
        if not serializer.is_valid():
            return operations.invalid(serializer)
        data = serializer.validated_data
        result = operations.mark_cash_received(job_id, request.user, data['amount'], data['method'])
        return operations.respond(result)


class ConfirmCashPaymentView(APIView):
    permission_classes = [IsAuthenticated, IsCustomer]

    @swagger_auto_schema(
        operation_description="Customer confirms the cash payment the professional marked as received.",
        request_body=ConfirmCashPaymentSerializer,
        responses={200: PaymentSerializer, **PAYMENT_ERRORS}
    )
    def post(self, request, job_id):
        serializer = ConfirmCashPaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return operations.invalid(serializer)
        data = serializer.validated_data
        result = operations.confirm_cash_payment(
            job_id, request.user, data.get('verification_code'), data.get('tip_amount')
        )
        return operations.respond(result)


class CashDisputeView(APIView):
    permission_classes = [IsAuthenticated, IsCustomer]

    @swagger_auto_schema(
        operation_description="Customer disputes the cash payment the professional marked as received.",
        request_body=DisputeSerializer,
        responses={200: PaymentSerializer, **PAYMENT_ERRORS}
    )
    def post(self, request, job_id):
        serializer = DisputeSerializer(data=request.data)
        if not serializer.is_valid():
            return operations.invalid(serializer)
        result = operations.raise_dispute(job_id, request.user, serializer.validated_data['reason'])
        return operations.respond(result)


class ResolveDisputeView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @swagger_auto_schema(
        operation_description="Admin resolves an open cash dispute; the customer can then confirm the payment.",
        request_body=ResolveDisputeSerializer,
        responses={200: PaymentSerializer, **PAYMENT_ERRORS}
    )
    def post(self, request, job_id):
        serializer = ResolveDisputeSerializer(data=request.data)
        if not serializer.is_valid():
            return operations.invalid(serializer)
        result = operations.resolve_dispute(job_id, request.user, serializer.validated_data['resolution'])
        return operations.respond(result)


class ReceiptUploadView(APIView):
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    @swagger_auto_schema(
        operation_description="Attach a receipt photo or PDF (max 5 MB) to a cash payment.",
        manual_parameters=[
            openapi.Parameter('file', openapi.IN_FORM, type=openapi.TYPE_FILE, required=True),
        ],
        consumes=['multipart/form-data'],
        responses={201: ReceiptPhotoSerializer, **PAYMENT_ERRORS}
    )
    def post(self, request, job_id):
        serializer = ReceiptUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return operations.invalid(serializer)
        result = operations.attach_receipt(job_id, request.user, serializer.validated_data['file'])
        return operations.respond(result, 201)
