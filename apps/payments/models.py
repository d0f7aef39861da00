from django.conf import settings
from django.db import models
from django.core.validators import FileExtensionValidator
from core.constants import (
    CASH_RECEIVED_METHOD_CHOICES, DISPUTE_STATUS_CHOICES, PAYMENT_METHOD_CASH,
    PAYMENT_METHOD_CHOICES, PAYMENT_METHOD_ONLINE, PAYMENT_STATUS_CHOICES,
    PAYMENT_STATUS_CONFIRMED_MANUALLY, PAYMENT_STATUS_PAID, PAYMENT_STATUS_UNPAID,
    ROLE_CHOICES,
)
from apps.jobs.models import Job


class Payment(models.Model):
    """Payment state for one job; the cash or online details hang off it by method."""
    job = models.OneToOneField(Job, on_delete=models.PROTECT, related_name='payment')
    method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES)
    status = models.CharField(max_length=30, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_STATUS_UNPAID)
    version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']

    def __str__(self):
        return f"{self.get_method_display()} payment for job #{self.job_id} ({self.status})"

    @property
    def details(self):
        if self.method == PAYMENT_METHOD_CASH:
            return self.cash_details
        return self.online_details

    @property
    def is_settled(self):
        return self.status in (PAYMENT_STATUS_PAID, PAYMENT_STATUS_CONFIRMED_MANUALLY)

    @property
    def is_verified(self):
        # confirmed_manually is settled but carries no proof
        return self.status == PAYMENT_STATUS_PAID


class PaymentDetails(models.Model):
    method = None

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self.payment.method != self.method:
            raise ValueError(
                f"{type(self).__name__} cannot be attached to a {self.payment.method} payment"
            )
        super().save(*args, **kwargs)


class CashPaymentDetails(PaymentDetails):
    method = PAYMENT_METHOD_CASH

    payment = models.OneToOneField(Payment, on_delete=models.PROTECT, related_name='cash_details')
    verification_code = models.CharField(max_length=6, blank=True, default='')
    professional_marked_received = models.BooleanField(default=False)
    professional_received_at = models.DateTimeField(null=True, blank=True)
    received_method = models.CharField(max_length=20, choices=CASH_RECEIVED_METHOD_CHOICES, blank=True, default='')
    amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    customer_confirmed = models.BooleanField(default=False)
    customer_confirmed_at = models.DateTimeField(null=True, blank=True)
    verification_code_matched = models.BooleanField(null=True, blank=True)
    tip_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    dispute_reason = models.TextField(blank=True, default='')
    dispute_raised_at = models.DateTimeField(null=True, blank=True)
    dispute_status = models.CharField(max_length=20, choices=DISPUTE_STATUS_CHOICES, blank=True, default='')
    dispute_resolution = models.TextField(blank=True, default='')
    dispute_resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name_plural = 'cash payment details'
        constraints = [
            models.CheckConstraint(
                condition=models.Q(customer_confirmed=False) | models.Q(professional_marked_received=True),
                name='cash_confirmation_requires_mark',
            ),
        ]

    def __str__(self):
        return f"Cash details for job #{self.payment.job_id}"

    @property
    def has_open_dispute(self):
        return self.dispute_status == 'pending'


class OnlinePaymentDetails(PaymentDetails):
    method = PAYMENT_METHOD_ONLINE

    payment = models.OneToOneField(Payment, on_delete=models.PROTECT, related_name='online_details')
    order_id = models.CharField(max_length=100, null=True, blank=True, unique=True)
    order_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    gateway_payment_id = models.CharField(max_length=100, null=True, blank=True)
    signature = models.CharField(max_length=128, blank=True, default='')
    verified_at = models.DateTimeField(null=True, blank=True)
    fallback_offered_at = models.DateTimeField(null=True, blank=True)
    manual_fallback_used = models.BooleanField(default=False)
    manual_confirmed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name_plural = 'online payment details'

    def __str__(self):
        return f"Online details for job #{self.payment.job_id}"


class GatewayOrder(models.Model):
    """Every order opened with the gateway for a payment; any of them may be the one the customer pays."""
    payment = models.ForeignKey(Payment, on_delete=models.PROTECT, related_name='gateway_orders')
    order_id = models.CharField(max_length=100, unique=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"Order {self.order_id} for job #{self.payment.job_id}"


class ReceiptPhoto(models.Model):
    cash_details = models.ForeignKey(CashPaymentDetails, on_delete=models.PROTECT, related_name='receipt_photos')
    file = models.FileField(
        upload_to='receipts/',
        validators=[FileExtensionValidator(allowed_extensions=['jpg', 'jpeg', 'png', 'pdf'])],
    )
    uploaded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='+')
    uploaded_by_role = models.CharField(max_length=20, choices=ROLE_CHOICES)
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['uploaded_at']

    def __str__(self):
        return f"Receipt {self.file.name} by {self.uploaded_by_role}"
