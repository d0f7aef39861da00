"""
Operations exposed to clients.

Each operation dispatches into the job state machine, the payment engine or
the invoice generator and returns ``{"success": true, "data": ...}`` or the
error envelope of the ServiceError that stopped it. Invoices are drafted when
a job completes and finalized when its payment settles.
"""
import functools
import logging

from django.db import transaction
from rest_framework import status
from rest_framework.response import Response

from apps.invoices import services as invoices
from apps.invoices.serializers import InvoiceSerializer
from apps.jobs import services as jobs
from apps.jobs.serializers import (
    JobCreateSerializer, JobDetailSerializer, JobSerializer, JobStatusHistorySerializer,
)
from apps.payments import services as payments
from apps.payments.serializers import PaymentSerializer, ReceiptPhotoSerializer
from core.exceptions import ServiceError, ValidationError

logger = logging.getLogger(__name__)

ERROR_STATUS = {cls.kind: cls.status_code for cls in ServiceError.__subclasses__()}


def envelope(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            data = func(*args, **kwargs)
        except ServiceError as e:
            logger.info(f"{func.__name__} refused with {e.kind}: {e.message}")
            return e.to_envelope()
        return {'success': True, 'data': data}
    return wrapper


def status_for(result, success_status=status.HTTP_200_OK):
    if result.get('success'):
        return success_status
    return ERROR_STATUS.get(result.get('errorKind'), status.HTTP_400_BAD_REQUEST)


def respond(result, success_status=status.HTTP_200_OK):
    """Render an operation result as a DRF response with the matching HTTP status."""
    return Response(result, status=status_for(result, success_status))


def invalid(serializer):
    """Error response for a request serializer that failed validation."""
    return respond({
        'success': False,
        'errorKind': ValidationError.kind,
        'message': 'Invalid request',
        'details': serializer.errors,
    })


def _finalize_invoice(payment):
    if payment.is_settled:
        invoices.generate_invoice(payment.job_id)


# Jobs

@envelope
def create_job(actor, data):
    serializer = JobCreateSerializer(data=data)
    if not serializer.is_valid():
        raise ValidationError('Invalid job request', **serializer.errors)
    job = jobs.create_job(actor, serializer.validated_data)
    return JobSerializer(job).data


@envelope
def accept_job(job_id, actor, expected_version=None):
    return JobSerializer(jobs.accept_job(job_id, actor, expected_version)).data


@envelope
def start_job(job_id, actor, expected_version=None):
    return JobSerializer(jobs.start_job(job_id, actor, expected_version)).data


@envelope
def complete_job(job_id, actor, final_price, notes='', expected_version=None):
    with transaction.atomic():
        job = jobs.complete_job(job_id, actor, final_price, notes, expected_version)
        invoices.generate_invoice(job.id)
    return JobSerializer(job).data


@envelope
def cancel_job(job_id, actor, role=None, reason='', expected_version=None):
    return JobSerializer(jobs.cancel_job(job_id, actor, role, reason, expected_version)).data


@envelope
def get_job(job_id, actor):
    return JobDetailSerializer(jobs.get_job(job_id, actor)).data


@envelope
def get_status_history(job_id, actor):
    return JobStatusHistorySerializer(jobs.get_status_history(job_id, actor), many=True).data


@envelope
def list_jobs(actor, status=None):
    return JobSerializer(jobs.list_jobs(actor, status), many=True).data


# Payments

@envelope
def create_online_order(job_id, actor, amount, gateway=None):
    return payments.create_online_order(job_id, actor, amount, gateway=gateway)


@envelope
def verify_online_payment(job_id, actor, order_id, payment_id, signature):
    with transaction.atomic():
        payment = payments.verify_online_payment(job_id, actor, order_id, payment_id, signature)
        _finalize_invoice(payment)
    return PaymentSerializer(payment).data


@envelope
def confirm_manual_payment(job_id, actor):
    with transaction.atomic():
        payment = payments.confirm_manual_payment(job_id, actor)
        _finalize_invoice(payment)
    return PaymentSerializer(payment).data


@envelope
def handle_gateway_webhook(body, signature):
    with transaction.atomic():
        result = payments.handle_gateway_webhook(body, signature)
        if result['handled'] and result['event'] in payments.SETTLING_WEBHOOK_EVENTS:
            invoices.generate_invoice(result['job_id'])
    return result


@envelope
def mark_cash_received(job_id, actor, amount, method='cash'):
    return PaymentSerializer(payments.mark_cash_received(job_id, actor, amount, method)).data


@envelope
def confirm_cash_payment(job_id, actor, verification_code=None, tip_amount=None):
    with transaction.atomic():
        payment = payments.confirm_cash_payment(job_id, actor, verification_code, tip_amount)
        _finalize_invoice(payment)
    return PaymentSerializer(payment).data


@envelope
def raise_dispute(job_id, actor, reason):
    return PaymentSerializer(payments.raise_dispute(job_id, actor, reason)).data


@envelope
def resolve_dispute(job_id, actor, resolution):
    return PaymentSerializer(payments.resolve_dispute(job_id, actor, resolution)).data


@envelope
def attach_receipt(job_id, actor, upload):
    return ReceiptPhotoSerializer(payments.attach_receipt(job_id, actor, upload)).data


@envelope
def get_payment_status(job_id, actor):
    return PaymentSerializer(payments.get_payment_status(job_id, actor)).data


# Invoices

@envelope
def generate_invoice(job_id, actor):
    return InvoiceSerializer(invoices.generate_invoice(job_id, actor)).data
