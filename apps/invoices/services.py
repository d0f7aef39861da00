import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.jobs.models import Job
from apps.payments.commission import round_money
from core.constants import JOB_STATUS_COMPLETED
from core.exceptions import InvalidStateTransition
from core.persistence import lock_for_update
from core.utils import require_party
from .models import Invoice, InvoiceCounter

logger = logging.getLogger(__name__)

INVOICE_SEQUENCE = 'invoice'


def next_invoice_number():
    """Hand out the next ``INV-000001`` style number. Must run inside transaction.atomic()."""
    counter, _ = InvoiceCounter.objects.select_for_update().get_or_create(name=INVOICE_SEQUENCE)
    counter.last_number += 1
    counter.save(update_fields=['last_number'])
    return f"{settings.INVOICE_NUMBER_PREFIX}-{counter.last_number:06d}"


def build_invoice_lines(job, tax_rate=None):
    """Line items and totals for ``job``; a pure function of its price and the tax rate."""
    rate = settings.INVOICE_TAX_RATE if tax_rate is None else tax_rate
    subtotal = job.final_price
    tax = round_money(subtotal * rate)
    items = [{
        'description': job.service_description(),
        'quantity': 1,
        'unit_price': str(subtotal),
        'amount': str(subtotal),
    }]
    return {
        'items': items,
        'subtotal': subtotal,
        'tax_rate': rate,
        'tax': tax,
        'total': subtotal + tax,
    }


def generate_invoice(job_id, actor=None):
    """
    Create or refresh the invoice for a completed job.

    A draft is rewritten in place and keeps its number. Once the payment has
    settled the invoice is marked paid and frozen; later calls return it as is.
    """
    with transaction.atomic():
        job = lock_for_update(Job, label='Job', pk=job_id)
        if actor is not None:
            require_party(job, actor)
        if job.status != JOB_STATUS_COMPLETED:
            raise InvalidStateTransition(
                job.status,
                JOB_STATUS_COMPLETED,
                f"Job #{job.pk} is '{job.status}'; invoices are only issued for completed jobs",
            )

        invoice = Invoice.objects.select_for_update().filter(job=job).first()
        if invoice is not None and invoice.status == 'paid':
            return invoice

        fields = build_invoice_lines(job)
        fields['status'] = 'paid' if job.payment.is_settled else 'draft'
        if invoice is None:
            invoice = Invoice.objects.create(
                job=job,
                number=next_invoice_number(),
                date=timezone.localdate(),
                **fields,
            )
            logger.info(f"Invoice {invoice.number} issued for job {job.id} ({invoice.status})")
        else:
            for name, value in fields.items():
                setattr(invoice, name, value)
            invoice.save()
            logger.info(f"Invoice {invoice.number} regenerated for job {job.id} ({invoice.status})")
    return invoice
