"""
Fire-and-forget notification dispatch.

``notify`` defers delivery until the surrounding transaction commits, so a
rolled-back transition never notifies anyone, and delivery failures are logged
without ever reaching the caller.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from .models import Notification
from .utils import send_notification

logger = logging.getLogger(__name__)

TEMPLATES = {
    'job_created': ("New Job Request", "A new {category} job has been requested for {scheduled_date}."),
    'job_accepted': ("Job Accepted", "Your job #{job_id} has been accepted by a professional."),
    'job_started': ("Job Started", "Work on your job #{job_id} has started."),
    'job_completed': ("Job Completed", "Job #{job_id} is complete. Amount due: {final_price}."),
    'job_cancelled': ("Job Cancelled", "Job #{job_id} has been cancelled by the {role}."),
    'payment_due': (
        "Payment Due",
        "Payment of {final_price} is due for job #{job_id}. Your provider receives {provider_earnings} after platform fees.",
    ),
    'payment_confirmation_required': (
        "Payment Confirmation Required",
        "Your professional marked {amount} as received for job #{job_id}. Verification code: {verification_code}.",
    ),
    'payment_received': (
        "Payment Received",
        "Payment for job #{job_id} is verified. You earned {provider_earnings} after platform fees.",
    ),
    'payment_confirmed': ("Payment Confirmed", "The customer confirmed the cash payment for job #{job_id}."),
    'payment_confirmed_manually': (
        "Payment Confirmed Manually",
        "The customer reports paying {amount} for job #{job_id} through the payment link. This payment is not yet verified.",
    ),
    'payment_failed': ("Payment Failed", "Payment for job #{job_id} failed. Please try again or contact support."),
    'payment_dispute': (
        "Payment Dispute Raised",
        "A payment dispute has been raised for job #{job_id}. Our support team will review this case.",
    ),
    'dispute_resolved': ("Dispute Resolved", "The payment dispute for job #{job_id} was resolved: {resolution}"),
}


def render(notification_type, payload):
    title, body = TEMPLATES[notification_type]
    try:
        return title, body.format(**payload)
    except KeyError as e:
        logger.warning(f"Notification '{notification_type}' missing variable {e}")
        return title, body


def deliver(recipient_id, notification_type, payload):
    try:
        recipient = get_user_model().objects.get(pk=recipient_id)
        title, message = render(notification_type, payload)
        notification = Notification.objects.create(
            recipient=recipient,
            type=notification_type,
            title=title,
            message=message,
            payload=payload,
            job_id=payload.get('job_id'),
        )
        email_sent, sms_sent = send_notification(recipient, title, message, message)
        Notification.objects.filter(pk=notification.pk).update(email_sent=email_sent, sms_sent=sms_sent)
        logger.info(f"Delivered {notification_type} notification to user {recipient_id}")
        return notification
    except Exception as e:
        logger.error(f"Failed to deliver {notification_type} notification to user {recipient_id}: {str(e)}")
        return None


def notify(actor_id, notification_type, payload):
    if actor_id is None:
        return
    if notification_type not in TEMPLATES:
        logger.error(f"Unknown notification type: {notification_type}")
        return
    payload = dict(payload)
    transaction.on_commit(lambda: deliver(actor_id, notification_type, payload))
