"""
Payment reconciliation for completed jobs.

Online payments settle through a gateway order whose checkout signature (or
signed webhook) is verified locally; when the gateway cannot be reached the
customer is offered a fixed payment link and may report paying through it,
which leaves the payment ``confirmed_manually`` rather than ``paid``.

Cash payments settle in two phases: the professional marks the money as
received, then the customer either confirms or disputes that claim.
"""
import json
import logging
import os
import secrets

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from apps.jobs.models import Job
from apps.notifications.dispatcher import notify
from core.constants import (
    CASH_RECEIVED_METHOD_CHOICES, JOB_STATUS_COMPLETED, PAYMENT_METHOD_CASH,
    PAYMENT_METHOD_ONLINE, PAYMENT_STATUS_CONFIRMED_MANUALLY, PAYMENT_STATUS_DISPUTED,
    PAYMENT_STATUS_PAID, PAYMENT_STATUS_PENDING_VERIFICATION, ROLE_ADMIN,
    ROLE_CUSTOMER, ROLE_PROFESSIONAL,
)
from core.exceptions import (
    DisputeOpen, GatewayUnavailable, InvalidStateTransition, NotFound,
    SignatureMismatch, ValidationError,
)
from core.persistence import compare_and_set, lock_for_update
from core.utils import require_party, require_role
from .commission import to_money
from .gateway import RazorpayGateway
from .models import CashPaymentDetails, GatewayOrder, OnlinePaymentDetails, Payment, ReceiptPhoto
from .signatures import verify_checkout_signature, verify_webhook_signature
from .state import check_transition

logger = logging.getLogger(__name__)

RECEIPT_EXTENSIONS = ('jpg', 'jpeg', 'png', 'pdf')
SETTLING_WEBHOOK_EVENTS = ('payment.captured', 'order.paid')


def open_payment(job):
    """Create the unpaid payment record and the details variant for ``job``'s method."""
    payment = Payment.objects.create(job=job, method=job.payment_method)
    if payment.method == PAYMENT_METHOD_CASH:
        CashPaymentDetails.objects.create(payment=payment)
    else:
        OnlinePaymentDetails.objects.create(payment=payment)
    return payment


def _lock_payment(job_id, method=None):
    payment = lock_for_update(Payment, label=f"Payment for job {job_id}", job_id=job_id)
    job = payment.job
    if job.status != JOB_STATUS_COMPLETED:
        raise InvalidStateTransition(
            job.status,
            JOB_STATUS_COMPLETED,
            f"Job #{job.pk} is '{job.status}'; payments are only taken for completed jobs",
        )
    if method is not None and payment.method != method:
        raise ValidationError(
            f"Job #{job.pk} is paid by {payment.method}, not {method}",
            field='payment_method',
        )
    return payment, job


def _admin_ids():
    return list(get_user_model().objects.filter(is_superuser=True).values_list('pk', flat=True))


def get_payment_status(job_id, actor):
    try:
        payment = Payment.objects.select_related('job', 'job__professional').get(job_id=job_id)
    except Payment.DoesNotExist:
        raise NotFound(f"Payment for job {job_id} not found")
    require_party(payment.job, actor)
    return payment


# Online path

def create_online_order(job_id, actor, amount, gateway=None):
    """
    Open a gateway order for ``amount``.

    Returns the order details, or the manual payment link when the gateway
    call fails. The gateway is called outside the row lock; the write that
    follows only lands if the payment has not changed in the meantime.
    """
    amount = to_money(amount)
    with transaction.atomic():
        payment, job = _lock_payment(job_id, PAYMENT_METHOD_ONLINE)
        require_party(job, actor, ROLE_CUSTOMER)
        check_transition(payment.status, PAYMENT_STATUS_PENDING_VERIFICATION)
        seen_version = payment.version

    gateway = gateway or RazorpayGateway()
    currency = settings.PAYMENT_CURRENCY
    try:
        order_id = gateway.create_order(amount, currency, job_id)
    except GatewayUnavailable as e:
        logger.warning(f"Gateway unavailable for job {job_id}, offering manual link: {e.message}")
        with transaction.atomic():
            payment = lock_for_update(Payment, job_id=job_id)
            details = payment.online_details
            details.fallback_offered_at = timezone.now()
            details.order_amount = amount
            details.save(update_fields=['fallback_offered_at', 'order_amount'])
            compare_and_set(payment, expected_version=seen_version)
        return {
            'job_id': job_id,
            'fallback': True,
            'payment_link': settings.MANUAL_PAYMENT_LINK,
            'amount': str(amount),
            'currency': currency,
            'payment_status': payment.status,
        }

    with transaction.atomic():
        payment = lock_for_update(Payment, job_id=job_id)
        details = payment.online_details
        GatewayOrder.objects.create(payment=payment, order_id=order_id, amount=amount)
        details.order_id = order_id
        details.order_amount = amount
        details.save(update_fields=['order_id', 'order_amount'])
        compare_and_set(payment, expected_version=seen_version, status=PAYMENT_STATUS_PENDING_VERIFICATION)
    logger.info(f"Online order {order_id} opened for job {job_id}")
    return {
        'job_id': job_id,
        'fallback': False,
        'order_id': order_id,
        'amount': str(amount),
        'currency': currency,
        'key_id': gateway.key_id,
        'payment_status': payment.status,
    }


def _settle_online(payment, job, details, order, payment_id, signature=''):
    check_transition(payment.status, PAYMENT_STATUS_PAID)
    # The paid order becomes the current one, even if a later retry replaced it
    details.order_id = order.order_id
    details.order_amount = order.amount
    details.gateway_payment_id = payment_id
    details.signature = signature
    details.verified_at = timezone.now()
    details.save(update_fields=[
        'order_id', 'order_amount', 'gateway_payment_id', 'signature', 'verified_at',
    ])
    compare_and_set(payment, status=PAYMENT_STATUS_PAID)
    if job.professional_id is not None:
        notify(job.professional.user_id, 'payment_received', {
            'job_id': job.id,
            'provider_earnings': job.provider_earnings,
        })
    logger.info(f"Online payment {payment_id} verified for job {job.id}")


def verify_online_payment(job_id, actor, order_id, payment_id, signature):
    """
    Verify the checkout signature and mark the payment paid.

    A bad signature never changes anything. Repeating a successful
    verification returns the settled payment without further side effects.
    """
    if not (order_id and payment_id and signature):
        raise ValidationError("order_id, payment_id and signature are required")
    with transaction.atomic():
        payment, job = _lock_payment(job_id, PAYMENT_METHOD_ONLINE)
        require_party(job, actor, ROLE_CUSTOMER)
        details = payment.online_details

        if not verify_checkout_signature(order_id, payment_id, signature, settings.RAZORPAY_KEY_SECRET):
            logger.warning(f"Rejected payment signature for job {job_id}, order {order_id}")
            raise SignatureMismatch("Payment signature does not match", order_id=order_id)
        order = payment.gateway_orders.filter(order_id=order_id).first()
        if order is None:
            raise ValidationError(f"Order {order_id} does not belong to job #{job_id}", field='order_id')
        if payment.status == PAYMENT_STATUS_PAID:
            logger.info(f"Payment for job {job_id} already verified, ignoring repeat")
            return payment

        _settle_online(payment, job, details, order, payment_id, signature)
    return payment


def confirm_manual_payment(job_id, actor):
    """Record the customer's report of paying through the manual link; the payment stays unverified."""
    with transaction.atomic():
        payment, job = _lock_payment(job_id, PAYMENT_METHOD_ONLINE)
        require_party(job, actor, ROLE_CUSTOMER)
        if payment.status == PAYMENT_STATUS_CONFIRMED_MANUALLY:
            return payment
        details = payment.online_details
        if details.fallback_offered_at is None:
            raise ValidationError(
                f"No manual payment link was offered for job #{job_id}; create an online order first"
            )
        check_transition(payment.status, PAYMENT_STATUS_CONFIRMED_MANUALLY)
        details.manual_fallback_used = True
        details.manual_confirmed_at = timezone.now()
        details.save(update_fields=['manual_fallback_used', 'manual_confirmed_at'])
        compare_and_set(payment, status=PAYMENT_STATUS_CONFIRMED_MANUALLY)
        if job.professional_id is not None:
            notify(job.professional.user_id, 'payment_confirmed_manually', {
                'job_id': job.id,
                'amount': details.order_amount or job.final_price,
            })
    logger.info(f"Job {job_id} confirmed as paid through the manual link (unverified)")
    return payment


def handle_gateway_webhook(body, signature):
    """
    Apply a signed gateway event.

    ``payment.captured`` and ``order.paid`` settle the matching order through
    the same idempotent path as a client verification. ``payment.failed`` only
    notifies the customer. Anything else is acknowledged and ignored.
    """
    secret = settings.RAZORPAY_WEBHOOK_SECRET
    if not secret:
        logger.error("Webhook received but RAZORPAY_WEBHOOK_SECRET is not configured")
        raise SignatureMismatch("Webhook signature cannot be verified")
    if not verify_webhook_signature(body, signature, secret):
        logger.warning("Rejected webhook with invalid signature")
        raise SignatureMismatch("Invalid webhook signature")

    try:
        event = json.loads(body)
        name = event['event']
    except (ValueError, TypeError, KeyError):
        raise ValidationError("Malformed webhook body")

    entities = event.get('payload', {})
    entity = entities.get('payment', {}).get('entity', {})
    order_id = entity.get('order_id') or entities.get('order', {}).get('entity', {}).get('id')
    result = {'event': name, 'handled': False, 'job_id': None}

    if name not in SETTLING_WEBHOOK_EVENTS and name != 'payment.failed':
        logger.info(f"Ignoring webhook event {name}")
        return result

    order = GatewayOrder.objects.select_related('payment').filter(order_id=order_id).first() if order_id else None
    if order is None:
        logger.warning(f"Webhook {name} for unknown order {order_id}")
        return result
    job_id = order.payment.job_id
    result['job_id'] = job_id

    if name == 'payment.failed':
        job = Job.objects.get(pk=job_id)
        reason = entity.get('error_description') or ''
        logger.info(f"Payment failed for job {job_id}, order {order_id}: {reason}")
        notify(job.customer_id, 'payment_failed', {'job_id': job_id, 'reason': reason})
        result['handled'] = True
        return result

    with transaction.atomic():
        payment, job = _lock_payment(job_id, PAYMENT_METHOD_ONLINE)
        if payment.is_settled:
            logger.info(f"Webhook {name} for already settled payment on job {job_id}")
            return result
        _settle_online(payment, job, payment.online_details, order, entity.get('id') or '')
    result['handled'] = True
    return result


# Cash path

def mark_cash_received(job_id, actor, amount, method='cash'):
    """Phase one: the professional reports receiving ``amount``."""
    amount = to_money(amount)
    if method not in dict(CASH_RECEIVED_METHOD_CHOICES):
        raise ValidationError(f"Unknown payment method '{method}'", field='method')
    with transaction.atomic():
        payment, job = _lock_payment(job_id, PAYMENT_METHOD_CASH)
        require_party(job, actor, ROLE_PROFESSIONAL)
        details = payment.cash_details
        if details.professional_marked_received:
            return payment
        check_transition(payment.status, PAYMENT_STATUS_PENDING_VERIFICATION)

        details.verification_code = f"{100000 + secrets.randbelow(900000)}"
        details.professional_marked_received = True
        details.professional_received_at = timezone.now()
        details.amount = amount
        details.received_method = method
        details.save(update_fields=[
            'verification_code', 'professional_marked_received', 'professional_received_at',
            'amount', 'received_method',
        ])
        compare_and_set(payment, status=PAYMENT_STATUS_PENDING_VERIFICATION)
        notify(job.customer_id, 'payment_confirmation_required', {
            'job_id': job.id,
            'amount': str(amount),
            'verification_code': details.verification_code,
        })
    logger.info(f"Cash {amount} marked received for job {job_id} via {method}")
    return payment


def confirm_cash_payment(job_id, actor, verification_code=None, tip_amount=None):
    """
    Phase two: the customer confirms the professional's claim.

    The verification code is advisory; a mismatch is recorded and logged but
    does not block the confirmation.
    """
    tip = to_money(tip_amount, field='tip_amount', allow_zero=True) if tip_amount not in (None, '') else None
    with transaction.atomic():
        payment, job = _lock_payment(job_id, PAYMENT_METHOD_CASH)
        require_party(job, actor, ROLE_CUSTOMER)
        details = payment.cash_details
        if details.has_open_dispute:
            raise DisputeOpen(f"Job #{job_id} has an open payment dispute")
        if details.customer_confirmed and payment.status == PAYMENT_STATUS_PAID:
            return payment
        if not details.professional_marked_received:
            raise InvalidStateTransition(
                payment.status,
                PAYMENT_STATUS_PAID,
                "The professional has not marked this payment as received yet",
            )
        check_transition(payment.status, PAYMENT_STATUS_PAID)

        if verification_code:
            matched = secrets.compare_digest(str(verification_code), details.verification_code)
            if not matched:
                logger.warning(f"Verification code mismatch on cash confirmation for job {job_id}")
            details.verification_code_matched = matched
        details.customer_confirmed = True
        details.customer_confirmed_at = timezone.now()
        if tip is not None:
            details.tip_amount = tip
        details.save(update_fields=[
            'customer_confirmed', 'customer_confirmed_at', 'verification_code_matched', 'tip_amount',
        ])
        compare_and_set(payment, status=PAYMENT_STATUS_PAID)
        notify(job.professional.user_id, 'payment_confirmed', {'job_id': job.id})
    logger.info(f"Cash payment confirmed by customer for job {job_id}")
    return payment


def raise_dispute(job_id, actor, reason):
    reason = (reason or '').strip()
    if not reason:
        raise ValidationError("A dispute reason is required", field='reason')
    with transaction.atomic():
        payment, job = _lock_payment(job_id, PAYMENT_METHOD_CASH)
        require_party(job, actor, ROLE_CUSTOMER)
        details = payment.cash_details
        if details.has_open_dispute:
            raise DisputeOpen(f"Job #{job_id} already has an open payment dispute")
        if not details.professional_marked_received:
            raise InvalidStateTransition(
                payment.status,
                PAYMENT_STATUS_DISPUTED,
                "Nothing to dispute: the professional has not marked this payment as received",
            )
        if details.customer_confirmed:
            raise InvalidStateTransition(
                payment.status, PAYMENT_STATUS_DISPUTED, "The payment was already confirmed"
            )
        check_transition(payment.status, PAYMENT_STATUS_DISPUTED)

        details.dispute_reason = reason
        details.dispute_raised_at = timezone.now()
        details.dispute_status = 'pending'
        details.dispute_resolution = ''
        details.dispute_resolved_at = None
        details.save(update_fields=[
            'dispute_reason', 'dispute_raised_at', 'dispute_status',
            'dispute_resolution', 'dispute_resolved_at',
        ])
        compare_and_set(payment, status=PAYMENT_STATUS_DISPUTED)
        payload = {'job_id': job.id, 'reason': reason}
        notify(job.professional.user_id, 'payment_dispute', payload)
        for admin_id in _admin_ids():
            notify(admin_id, 'payment_dispute', payload)
    logger.info(f"Payment dispute raised for job {job_id}: {reason}")
    return payment


def resolve_dispute(job_id, actor, resolution):
    """Close an open dispute and reopen the payment for customer confirmation."""
    require_role(actor, ROLE_ADMIN)
    resolution = (resolution or '').strip()
    if not resolution:
        raise ValidationError("A resolution is required", field='resolution')
    with transaction.atomic():
        payment, job = _lock_payment(job_id, PAYMENT_METHOD_CASH)
        details = payment.cash_details
        if not details.has_open_dispute:
            raise InvalidStateTransition(
                payment.status, PAYMENT_STATUS_PENDING_VERIFICATION, f"Job #{job_id} has no open dispute"
            )
        check_transition(payment.status, PAYMENT_STATUS_PENDING_VERIFICATION)
        details.dispute_status = 'resolved'
        details.dispute_resolution = resolution
        details.dispute_resolved_at = timezone.now()
        details.save(update_fields=['dispute_status', 'dispute_resolution', 'dispute_resolved_at'])
        compare_and_set(payment, status=PAYMENT_STATUS_PENDING_VERIFICATION)
        payload = {'job_id': job.id, 'resolution': resolution}
        notify(job.customer_id, 'dispute_resolved', payload)
        notify(job.professional.user_id, 'dispute_resolved', payload)
    logger.info(f"Dispute on job {job_id} resolved by admin {actor.id}")
    return payment


def attach_receipt(job_id, actor, upload):
    """Store a receipt photo or PDF from either party as supporting evidence."""
    if upload is None:
        raise ValidationError("A receipt file is required", field='file')
    extension = os.path.splitext(upload.name)[1].lower().lstrip('.')
    if extension not in RECEIPT_EXTENSIONS:
        raise ValidationError(
            f"Receipts must be one of: {', '.join(RECEIPT_EXTENSIONS)}", field='file'
        )
    if upload.size > settings.RECEIPT_MAX_UPLOAD_BYTES:
        raise ValidationError(
            f"Receipts cannot exceed {settings.RECEIPT_MAX_UPLOAD_BYTES // (1024 * 1024)} MB", field='file'
        )
    with transaction.atomic():
        payment, job = _lock_payment(job_id, PAYMENT_METHOD_CASH)
        role = require_party(job, actor, ROLE_CUSTOMER, ROLE_PROFESSIONAL)
        receipt = ReceiptPhoto.objects.create(
            cash_details=payment.cash_details,
            file=upload,
            uploaded_by=actor,
            uploaded_by_role=role,
        )
    logger.info(f"Receipt {receipt.file.name} attached to job {job_id} by {role}")
    return receipt
