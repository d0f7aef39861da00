from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator
from core.constants import (
    JOB_STATUS_CHOICES, JOB_STATUS_PENDING, PAYMENT_METHOD_CHOICES,
    ROLE_CHOICES, SERVICE_CATEGORY_CHOICES,
)
from apps.users.models import Professional


class Job(models.Model):
    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='jobs')
    professional = models.ForeignKey(
        Professional, on_delete=models.PROTECT, null=True, blank=True, related_name='assigned_jobs'
    )
    category = models.CharField(max_length=30, choices=SERVICE_CATEGORY_CHOICES)
    title = models.CharField(max_length=100, blank=True, default='')
    description = models.TextField(max_length=1000, blank=True, default='')
    scheduled_date = models.DateField()
    scheduled_time = models.CharField(max_length=20)
    budget_min = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    budget_max = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    status = models.CharField(max_length=20, choices=JOB_STATUS_CHOICES, default=JOB_STATUS_PENDING)
    payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES)

    # Written together, once, by the transition into "completed"
    final_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    commission_rate = models.DecimalField(max_digits=5, decimal_places=4, null=True, blank=True)
    company_fee = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    provider_earnings = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['customer', 'status']),
            models.Index(fields=['professional', 'status']),
            models.Index(fields=['category', 'status']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(final_price__isnull=True, company_fee__isnull=True, provider_earnings__isnull=True)
                    | models.Q(final_price__isnull=False, company_fee__isnull=False, provider_earnings__isnull=False)
                ),
                name='job_price_and_commission_set_together',
            ),
        ]

    def __str__(self):
        return f"{self.get_category_display()} job #{self.pk} - {self.customer.username}"

    @property
    def commission(self):
        if self.final_price is None:
            return None
        return {
            'company_fee': self.company_fee,
            'provider_earnings': self.provider_earnings,
            'commission_rate': self.commission_rate,
        }

    def service_description(self):
        label = self.get_category_display()
        return f"{label} - {self.title}" if self.title else f"{label} service"


class JobStatusHistory(models.Model):
    """Append-only audit trail of job status changes."""
    job = models.ForeignKey(Job, on_delete=models.PROTECT, related_name='status_history')
    from_status = models.CharField(max_length=20, choices=JOB_STATUS_CHOICES, null=True, blank=True)
    status = models.CharField(max_length=20, choices=JOB_STATUS_CHOICES)
    changed_at = models.DateTimeField(auto_now_add=True)
    changed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='+')
    changed_by_role = models.CharField(max_length=20, choices=ROLE_CHOICES)
    notes = models.TextField(blank=True, default='')

    class Meta:
        ordering = ['changed_at', 'id']
        verbose_name_plural = 'job status history'

    def __str__(self):
        return f"Job #{self.job_id}: {self.from_status} -> {self.status}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError("Status history entries cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Status history entries cannot be deleted")
