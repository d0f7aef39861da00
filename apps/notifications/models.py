from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from core.constants import NOTIFICATION_TYPE_CHOICES


class Notification(models.Model):
    """A message delivered to a customer or professional about one of their jobs."""
    recipient = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    type = models.CharField(max_length=50, choices=NOTIFICATION_TYPE_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    payload = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    job = models.ForeignKey('jobs.Job', on_delete=models.SET_NULL, null=True, blank=True, related_name='notifications')
    is_read = models.BooleanField(default=False)
    email_sent = models.BooleanField(default=False)
    sms_sent = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.type} to {self.recipient.username}"
