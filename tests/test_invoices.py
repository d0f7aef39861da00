"""Tests for invoice generation, numbering and freezing."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from apps.invoices.models import Invoice
from apps.invoices.services import build_invoice_lines, generate_invoice
from apps.payments import services as payments
from apps.payments.gateway import RazorpayGateway
from core import operations
from core.exceptions import GatewayUnavailable, InvalidStateTransition, NotAuthorized

pytestmark = pytest.mark.django_db


class TestGenerateInvoice:
    def test_requires_completed_job(self, make_job):
        job = make_job()
        with pytest.raises(InvalidStateTransition):
            generate_invoice(job.id)
        assert not Invoice.objects.exists()

    def test_totals(self, completed_job):
        job = completed_job(final_price='150.00')
        invoice = generate_invoice(job.id)
        assert invoice.number == 'INV-000001'
        assert invoice.status == 'draft'
        assert invoice.subtotal == Decimal('150.00')
        assert invoice.tax_rate == Decimal('0.18')
        assert invoice.tax == Decimal('27.00')
        assert invoice.total == Decimal('177.00')
        assert invoice.items == [{
            'description': 'Plumbing - Fix kitchen sink',
            'quantity': 1,
            'unit_price': '150.00',
            'amount': '150.00',
        }]

    def test_tax_rounds_half_up(self, completed_job):
        invoice = generate_invoice(completed_job(final_price='99.99').id)
        assert invoice.tax == Decimal('18.00')
        assert invoice.total == Decimal('117.99')

    def test_regeneration_is_deterministic(self, completed_job):
        job = completed_job()
        first = generate_invoice(job.id)
        second = generate_invoice(job.id)
        assert second.pk == first.pk
        assert second.number == first.number
        assert (second.items, second.subtotal, second.tax, second.total) == (
            first.items, first.subtotal, first.tax, first.total,
        )
        assert Invoice.objects.count() == 1

    def test_build_lines_is_pure(self, completed_job):
        job = completed_job()
        assert build_invoice_lines(job) == build_invoice_lines(job)

    def test_numbers_are_sequential(self, completed_job):
        numbers = [generate_invoice(completed_job().id).number for _ in range(3)]
        assert numbers == ['INV-000001', 'INV-000002', 'INV-000003']

    def test_draft_follows_tax_rate_until_paid(self, completed_job, professional, customer, settings):
        job = completed_job('cash')
        generate_invoice(job.id)
        settings.INVOICE_TAX_RATE = Decimal('0.05')
        draft = generate_invoice(job.id)
        assert draft.tax == Decimal('7.50')
        assert draft.number == 'INV-000001'

        payments.mark_cash_received(job.id, professional, '150.00')
        payments.confirm_cash_payment(job.id, customer)
        paid = generate_invoice(job.id)
        assert paid.status == 'paid'

        settings.INVOICE_TAX_RATE = Decimal('0.18')
        frozen = generate_invoice(job.id)
        assert frozen.status == 'paid'
        assert frozen.tax == Decimal('7.50')
        assert frozen.number == 'INV-000001'

    def test_strangers_cannot_generate(self, completed_job, other_customer):
        with pytest.raises(NotAuthorized):
            generate_invoice(completed_job().id, other_customer)


class TestInvoiceOrchestration:
    def test_completion_drafts_invoice(self, make_job, professional):
        job = make_job()
        operations.accept_job(job.id, professional)
        operations.start_job(job.id, professional)
        result = operations.complete_job(job.id, professional, '150.00')
        assert result['success'] is True
        invoice = Invoice.objects.get(job=job)
        assert invoice.status == 'draft'
        assert invoice.total == Decimal('177.00')

    def test_cash_settlement_finalizes_invoice(self, make_job, professional, customer):
        job = make_job('cash')
        operations.accept_job(job.id, professional)
        operations.start_job(job.id, professional)
        operations.complete_job(job.id, professional, '150.00')
        operations.mark_cash_received(job.id, professional, '150.00')
        result = operations.confirm_cash_payment(job.id, customer)
        assert result['success'] is True
        assert result['data']['status'] == 'paid'
        assert Invoice.objects.get(job=job).status == 'paid'

    def test_manual_confirmation_finalizes_invoice(self, make_job, professional, customer):
        job = make_job('online')
        operations.accept_job(job.id, professional)
        operations.start_job(job.id, professional)
        operations.complete_job(job.id, professional, '150.00')
        with patch.object(RazorpayGateway, 'create_order', side_effect=GatewayUnavailable('down')):
            offered = operations.create_online_order(job.id, customer, '150.00')
        assert offered['data']['fallback'] is True
        operations.confirm_manual_payment(job.id, customer)
        invoice = operations.generate_invoice(job.id, customer)
        assert invoice['data']['status'] == 'paid'
        assert invoice['data']['number'] == 'INV-000001'
