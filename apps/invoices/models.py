from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from core.constants import INVOICE_STATUS_CHOICES
from apps.jobs.models import Job


class Invoice(models.Model):
    job = models.OneToOneField(Job, on_delete=models.PROTECT, related_name='invoice')
    number = models.CharField(max_length=20, unique=True)
    date = models.DateField()
    items = models.JSONField(default=list, encoder=DjangoJSONEncoder)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=4)
    tax = models.DecimalField(max_digits=10, decimal_places=2)
    total = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=10, choices=INVOICE_STATUS_CHOICES, default='draft')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date', '-number']

    def __str__(self):
        return f"{self.number} for job #{self.job_id} ({self.status})"


class InvoiceCounter(models.Model):
    """Single row per sequence, locked while a number is handed out."""
    name = models.CharField(max_length=30, unique=True)
    last_number = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.name}: {self.last_number}"
