import logging
import re

from django.conf import settings
from django.core.mail import send_mail
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

logger = logging.getLogger(__name__)

PHONE_NUMBER_PATTERN = re.compile(r'^\+\d{9,15}$')


def send_email(user, subject, message):
    if not user.email:
        return False
    try:
        send_mail(
            subject=subject,
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[user.email],
            fail_silently=False,
        )
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {user.email}: {str(e)}")
        return False


def send_sms(user, message):
    if not (settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN):
        return False
    if not user.phone_number:
        return False
    if not PHONE_NUMBER_PATTERN.match(user.phone_number):
        logger.warning(f"Invalid phone number format for user {user.id}: {user.phone_number}")
        return False
    try:
        twilio_client = TwilioClient(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        twilio_client.messages.create(
            body=message,
            from_=settings.TWILIO_PHONE_NUMBER,
            to=user.phone_number
        )
        return True
    except TwilioRestException as e:
        logger.error(f"Failed to send SMS to {user.phone_number}: {str(e)}")
        return False


def send_notification(user, subject, email_message, sms_message):
    """
    Send a notification to a user via email and SMS.

    Returns (email_sent, sms_sent). Delivery problems are logged, never raised.
    """
    email_sent = send_email(user, subject, email_message)
    sms_sent = send_sms(user, sms_message)
    if not email_sent and not sms_sent:
        logger.info(f"No channel delivered notification '{subject}' to user {user.id}")
    return email_sent, sms_sent
