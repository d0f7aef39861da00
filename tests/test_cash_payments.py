"""Tests for the two-phase cash confirmation protocol."""

from decimal import Decimal
from itertools import permutations

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from apps.jobs import services as jobs
from apps.payments import services as payments
from apps.payments.models import Payment
from core.exceptions import (
    DisputeOpen, InvalidStateTransition, NotAuthorized, ValidationError,
)

pytestmark = pytest.mark.django_db


def reload(job):
    return Payment.objects.select_related('cash_details').get(job=job)


class TestMarkCashReceived:
    def test_requires_completed_job(self, make_job, professional):
        job = make_job('cash')
        jobs.accept_job(job.id, professional)
        with pytest.raises(InvalidStateTransition):
            payments.mark_cash_received(job.id, professional, '150.00')

    def test_refused_on_online_job(self, completed_job, professional):
        job = completed_job('online')
        with pytest.raises(ValidationError):
            payments.mark_cash_received(job.id, professional, '150.00')

    def test_only_assigned_professional(self, completed_job, other_professional, customer):
        job = completed_job('cash')
        with pytest.raises(NotAuthorized):
            payments.mark_cash_received(job.id, other_professional, '150.00')
        with pytest.raises(NotAuthorized):
            payments.mark_cash_received(job.id, customer, '150.00')

    @pytest.mark.parametrize('amount', ['0', '-1', '10.001'])
    def test_amount_must_be_positive_money(self, completed_job, professional, amount):
        job = completed_job('cash')
        with pytest.raises(ValidationError):
            payments.mark_cash_received(job.id, professional, amount)

    def test_unknown_receipt_method(self, completed_job, professional):
        job = completed_job('cash')
        with pytest.raises(ValidationError):
            payments.mark_cash_received(job.id, professional, '150.00', 'barter')

    def test_marks_and_generates_code(self, completed_job, professional):
        job = completed_job('cash')
        payments.mark_cash_received(job.id, professional, '150.00', 'upi')
        payment = reload(job)
        details = payment.cash_details
        assert payment.status == 'pending_verification'
        assert details.professional_marked_received
        assert details.professional_received_at is not None
        assert details.amount == Decimal('150.00')
        assert details.received_method == 'upi'
        assert len(details.verification_code) == 6
        assert 100000 <= int(details.verification_code) <= 999999
        assert not details.customer_confirmed

    def test_repeat_mark_is_a_no_op(self, completed_job, professional):
        job = completed_job('cash')
        payments.mark_cash_received(job.id, professional, '150.00')
        first = reload(job)
        payments.mark_cash_received(job.id, professional, '999.00')
        second = reload(job)
        assert second.cash_details.verification_code == first.cash_details.verification_code
        assert second.cash_details.amount == Decimal('150.00')
        assert second.version == first.version


class TestConfirmCashPayment:
    def test_confirm_before_mark_is_refused(self, completed_job, customer):
        job = completed_job('cash')
        with pytest.raises(InvalidStateTransition):
            payments.confirm_cash_payment(job.id, customer)
        payment = reload(job)
        assert payment.status == 'unpaid'
        assert not payment.cash_details.customer_confirmed

    def test_confirm_settles_payment(self, completed_job, professional, customer):
        job = completed_job('cash')
        payments.mark_cash_received(job.id, professional, '150.00')
        payments.confirm_cash_payment(job.id, customer)
        payment = reload(job)
        assert payment.status == 'paid'
        assert payment.is_verified
        assert payment.cash_details.customer_confirmed
        assert payment.cash_details.customer_confirmed_at is not None
        assert payment.cash_details.verification_code_matched is None

    def test_matching_code_is_recorded(self, completed_job, professional, customer):
        job = completed_job('cash')
        payments.mark_cash_received(job.id, professional, '150.00')
        code = reload(job).cash_details.verification_code
        payments.confirm_cash_payment(job.id, customer, verification_code=code)
        assert reload(job).cash_details.verification_code_matched is True

    def test_wrong_code_does_not_block(self, completed_job, professional, customer):
        job = completed_job('cash')
        payments.mark_cash_received(job.id, professional, '150.00')
        code = reload(job).cash_details.verification_code
        wrong = '000000' if code != '000000' else '111111'
        payments.confirm_cash_payment(job.id, customer, verification_code=wrong)
        payment = reload(job)
        assert payment.status == 'paid'
        assert payment.cash_details.verification_code_matched is False

    def test_tip_is_kept_apart_from_final_price(self, completed_job, professional, customer):
        job = completed_job('cash')
        payments.mark_cash_received(job.id, professional, '150.00')
        payments.confirm_cash_payment(job.id, customer, tip_amount='20.00')
        job.refresh_from_db()
        assert reload(job).cash_details.tip_amount == Decimal('20.00')
        assert job.final_price == Decimal('150.00')
        assert job.provider_earnings == Decimal('135.00')

    def test_negative_tip_is_refused(self, completed_job, professional, customer):
        job = completed_job('cash')
        payments.mark_cash_received(job.id, professional, '150.00')
        with pytest.raises(ValidationError):
            payments.confirm_cash_payment(job.id, customer, tip_amount='-5')
        assert reload(job).status == 'pending_verification'

    def test_repeat_confirm_is_a_no_op(self, completed_job, professional, customer):
        job = completed_job('cash')
        payments.mark_cash_received(job.id, professional, '150.00')
        payments.confirm_cash_payment(job.id, customer)
        version = reload(job).version
        payments.confirm_cash_payment(job.id, customer)
        assert reload(job).version == version

    def test_professional_cannot_confirm_own_claim(self, completed_job, professional):
        job = completed_job('cash')
        payments.mark_cash_received(job.id, professional, '150.00')
        with pytest.raises(NotAuthorized):
            payments.confirm_cash_payment(job.id, professional)


class TestDisputes:
    @pytest.fixture
    def marked_job(self, completed_job, professional):
        job = completed_job('cash')
        payments.mark_cash_received(job.id, professional, '100.00')
        return job

    def test_dispute_blocks_confirmation(self, marked_job, customer):
        payments.raise_dispute(marked_job.id, customer, 'short amount')
        payment = reload(marked_job)
        assert payment.status == 'disputed'
        assert not payment.cash_details.customer_confirmed
        assert payment.cash_details.dispute_reason == 'short amount'
        assert payment.cash_details.dispute_status == 'pending'
        assert payment.cash_details.dispute_raised_at is not None
        with pytest.raises(DisputeOpen):
            payments.confirm_cash_payment(marked_job.id, customer)

    def test_second_dispute_is_refused(self, marked_job, customer):
        payments.raise_dispute(marked_job.id, customer, 'short amount')
        with pytest.raises(DisputeOpen):
            payments.raise_dispute(marked_job.id, customer, 'still short')

    def test_reason_is_required(self, marked_job, customer):
        with pytest.raises(ValidationError):
            payments.raise_dispute(marked_job.id, customer, '   ')

    def test_dispute_requires_mark(self, completed_job, customer):
        job = completed_job('cash')
        with pytest.raises(InvalidStateTransition):
            payments.raise_dispute(job.id, customer, 'never paid anything')

    def test_no_dispute_after_confirmation(self, marked_job, customer):
        payments.confirm_cash_payment(marked_job.id, customer)
        with pytest.raises(InvalidStateTransition):
            payments.raise_dispute(marked_job.id, customer, 'second thoughts')

    def test_resolution_reopens_confirmation(self, marked_job, customer, admin_user):
        payments.raise_dispute(marked_job.id, customer, 'short amount')
        payments.resolve_dispute(marked_job.id, admin_user, 'Professional returned the balance')
        payment = reload(marked_job)
        assert payment.status == 'pending_verification'
        assert payment.cash_details.dispute_status == 'resolved'
        assert payment.cash_details.dispute_resolved_at is not None
        payments.confirm_cash_payment(marked_job.id, customer)
        assert reload(marked_job).status == 'paid'

    def test_only_admin_resolves(self, marked_job, customer, professional):
        payments.raise_dispute(marked_job.id, customer, 'short amount')
        with pytest.raises(NotAuthorized):
            payments.resolve_dispute(marked_job.id, professional, 'all good')

    def test_resolve_without_dispute(self, marked_job, admin_user):
        with pytest.raises(InvalidStateTransition):
            payments.resolve_dispute(marked_job.id, admin_user, 'nothing to resolve')


OPERATIONS = ('mark', 'confirm', 'dispute', 'confirm')


@pytest.mark.parametrize('order', sorted(set(permutations(OPERATIONS))))
def test_confirmation_never_precedes_mark(order, completed_job, professional, customer):
    job = completed_job('cash')
    calls = {
        'mark': lambda: payments.mark_cash_received(job.id, professional, '150.00'),
        'confirm': lambda: payments.confirm_cash_payment(job.id, customer),
        'dispute': lambda: payments.raise_dispute(job.id, customer, 'short amount'),
    }
    marked = False
    for name in order:
        try:
            calls[name]()
        except (InvalidStateTransition, DisputeOpen):
            continue
        if name == 'mark':
            marked = True
        if name == 'confirm':
            assert marked
        details = reload(job).cash_details
        assert not details.customer_confirmed or details.professional_marked_received


class TestReceipts:
    def test_either_party_may_attach(self, completed_job, professional, customer):
        job = completed_job('cash')
        receipt = payments.attach_receipt(
            job.id, professional, SimpleUploadedFile('receipt.png', b'\x89PNG fake', content_type='image/png')
        )
        assert receipt.uploaded_by_role == 'professional'
        receipt = payments.attach_receipt(
            job.id, customer, SimpleUploadedFile('bank.pdf', b'%PDF-1.4 fake', content_type='application/pdf')
        )
        assert receipt.uploaded_by_role == 'customer'
        assert reload(job).cash_details.receipt_photos.count() == 2

    def test_rejects_other_file_types(self, completed_job, customer):
        job = completed_job('cash')
        with pytest.raises(ValidationError):
            payments.attach_receipt(job.id, customer, SimpleUploadedFile('run.exe', b'MZ'))

    def test_rejects_oversized_files(self, completed_job, customer, settings):
        settings.RECEIPT_MAX_UPLOAD_BYTES = 8
        job = completed_job('cash')
        with pytest.raises(ValidationError):
            payments.attach_receipt(job.id, customer, SimpleUploadedFile('big.jpg', b'0123456789'))

    def test_strangers_cannot_attach(self, completed_job, other_customer):
        job = completed_job('cash')
        with pytest.raises(NotAuthorized):
            payments.attach_receipt(job.id, other_customer, SimpleUploadedFile('r.jpg', b'jpg'))
