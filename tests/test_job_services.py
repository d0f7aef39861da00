"""Tests for job lifecycle transitions against the database."""

from decimal import Decimal

import pytest

from apps.jobs import services as jobs
from apps.jobs.models import Job, JobStatusHistory
from apps.jobs.state import is_valid_path
from apps.payments.models import CashPaymentDetails, OnlinePaymentDetails
from core.exceptions import InvalidStateTransition, NotAuthorized, StateConflict, ValidationError
from core.persistence import compare_and_set

pytestmark = pytest.mark.django_db


def history_of(job):
    return list(JobStatusHistory.objects.filter(job=job).values_list('status', flat=True))


class TestCreateJob:
    def test_creates_pending_job_with_history(self, make_job, customer):
        job = make_job()
        assert job.status == 'pending'
        assert job.customer == customer
        entry = job.status_history.get()
        assert entry.from_status is None
        assert entry.status == 'pending'
        assert entry.changed_by == customer
        assert entry.changed_by_role == 'customer'

    def test_cash_job_gets_cash_details_only(self, make_job):
        job = make_job('cash')
        assert job.payment.status == 'unpaid'
        assert isinstance(job.payment.details, CashPaymentDetails)
        assert not OnlinePaymentDetails.objects.filter(payment=job.payment).exists()

    def test_online_job_gets_online_details_only(self, make_job):
        job = make_job('online')
        assert isinstance(job.payment.details, OnlinePaymentDetails)
        assert not CashPaymentDetails.objects.filter(payment=job.payment).exists()

    def test_wrong_details_variant_is_refused(self, make_job):
        job = make_job('online')
        with pytest.raises(ValueError):
            CashPaymentDetails.objects.create(payment=job.payment)

    def test_professional_cannot_post_jobs(self, professional):
        with pytest.raises(NotAuthorized):
            jobs.create_job(professional, {'category': 'plumbing'})

    def test_inverted_budget(self, make_job):
        with pytest.raises(ValidationError):
            make_job(budget_min=Decimal('300.00'), budget_max=Decimal('100.00'))
        assert Job.objects.count() == 0

    def test_addressed_to_professional(self, make_job, professional):
        job = make_job(professional=professional.professional)
        assert job.professional == professional.professional
        assert job.status == 'pending'


class TestLifecycle:
    def test_full_lifecycle_sets_commission(self, completed_job):
        job = completed_job(final_price='150.00')
        assert job.status == 'completed'
        assert job.final_price == Decimal('150.00')
        assert job.company_fee == Decimal('15.00')
        assert job.provider_earnings == Decimal('135.00')
        assert job.company_fee + job.provider_earnings == job.final_price
        assert job.completed_at is not None
        assert history_of(job) == ['pending', 'accepted', 'in_progress', 'completed']
        assert is_valid_path(history_of(job))

    def test_version_bumps_on_every_transition(self, completed_job):
        job = completed_job()
        assert job.version == 3

    def test_history_records_previous_status(self, completed_job):
        job = completed_job()
        pairs = list(job.status_history.values_list('from_status', 'status'))
        assert pairs == [
            (None, 'pending'),
            ('pending', 'accepted'),
            ('accepted', 'in_progress'),
            ('in_progress', 'completed'),
        ]

    def test_accept_assigns_professional(self, make_job, professional):
        job = jobs.accept_job(make_job().id, professional)
        assert job.professional == professional.professional

    def test_accept_twice_is_invalid(self, make_job, professional):
        job = make_job()
        jobs.accept_job(job.id, professional)
        with pytest.raises(InvalidStateTransition):
            jobs.accept_job(job.id, professional)

    def test_other_professional_cannot_take_addressed_job(self, make_job, professional, other_professional):
        job = make_job(professional=professional.professional)
        with pytest.raises(NotAuthorized):
            jobs.accept_job(job.id, other_professional)

    def test_only_assigned_professional_starts(self, make_job, professional, other_professional):
        job = make_job()
        jobs.accept_job(job.id, professional)
        with pytest.raises(NotAuthorized):
            jobs.start_job(job.id, other_professional)

    def test_customer_cannot_complete(self, make_job, professional, customer):
        job = make_job()
        jobs.accept_job(job.id, professional)
        jobs.start_job(job.id, professional)
        with pytest.raises(NotAuthorized):
            jobs.complete_job(job.id, customer, '100.00')

    def test_complete_requires_in_progress(self, make_job, professional):
        job = make_job()
        jobs.accept_job(job.id, professional)
        with pytest.raises(InvalidStateTransition):
            jobs.complete_job(job.id, professional, '100.00')


class TestCompleteJobValidation:
    @pytest.fixture
    def started_job(self, make_job, professional):
        job = make_job()
        jobs.accept_job(job.id, professional)
        return jobs.start_job(job.id, professional)

    @pytest.mark.parametrize('price', ['0', '-10', '100.123', 'lots'])
    def test_rejected_prices_leave_job_untouched(self, started_job, professional, price):
        with pytest.raises(ValidationError):
            jobs.complete_job(started_job.id, professional, price)
        job = Job.objects.get(pk=started_job.pk)
        assert job.status == 'in_progress'
        assert job.final_price is None
        assert job.company_fee is None
        assert history_of(job) == ['pending', 'accepted', 'in_progress']

    @pytest.mark.parametrize('price', ['10.00', '250.00'])
    def test_price_may_fall_outside_the_estimate(self, started_job, professional, price):
        job = jobs.complete_job(started_job.id, professional, price)
        assert job.status == 'completed'
        assert job.final_price == Decimal(price)
        assert job.company_fee + job.provider_earnings == Decimal(price)

    def test_job_without_budget(self, make_job, professional):
        job = make_job(budget_min=None, budget_max=None)
        jobs.accept_job(job.id, professional)
        jobs.start_job(job.id, professional)
        job = jobs.complete_job(job.id, professional, '5000.00')
        assert job.provider_earnings == Decimal('4500.00')


class TestCancelJob:
    def test_cancel_completed_job_is_refused(self, completed_job, customer):
        job = completed_job()
        with pytest.raises(InvalidStateTransition) as exc:
            jobs.cancel_job(job.id, customer, 'customer', 'changed my mind')
        assert exc.value.current == 'completed'
        job.refresh_from_db()
        assert job.status == 'completed'
        assert history_of(job)[-1] == 'completed'

    def test_customer_cancels_pending(self, make_job, customer):
        job = jobs.cancel_job(make_job().id, customer, reason='found someone else')
        assert job.status == 'cancelled'
        assert job.cancelled_at is not None
        last = job.status_history.last()
        assert last.changed_by_role == 'customer'
        assert last.notes == 'found someone else'

    def test_customer_cannot_cancel_in_progress(self, make_job, customer, professional):
        job = make_job()
        jobs.accept_job(job.id, professional)
        jobs.start_job(job.id, professional)
        with pytest.raises(InvalidStateTransition):
            jobs.cancel_job(job.id, customer)

    def test_professional_cancels_in_progress(self, make_job, professional):
        job = make_job()
        jobs.accept_job(job.id, professional)
        jobs.start_job(job.id, professional)
        job = jobs.cancel_job(job.id, professional, 'professional', 'parts unavailable')
        assert job.status == 'cancelled'
        assert is_valid_path(history_of(job))

    def test_stranger_cannot_cancel(self, make_job, other_customer):
        with pytest.raises(NotAuthorized):
            jobs.cancel_job(make_job().id, other_customer)

    def test_claimed_role_must_match(self, make_job, customer):
        with pytest.raises(NotAuthorized):
            jobs.cancel_job(make_job().id, customer, 'professional')


class TestConcurrency:
    def test_stale_expected_version_is_refused(self, make_job, professional):
        job = make_job()
        with pytest.raises(StateConflict):
            jobs.accept_job(job.id, professional, expected_version=job.version + 1)
        job.refresh_from_db()
        assert job.status == 'pending'
        assert history_of(job) == ['pending']

    def test_matching_expected_version_is_accepted(self, make_job, professional):
        job = make_job()
        job = jobs.accept_job(job.id, professional, expected_version=job.version)
        assert job.status == 'accepted'

    def test_compare_and_set_detects_lost_update(self, make_job):
        job = make_job()
        stale = Job.objects.get(pk=job.pk)
        compare_and_set(job, title='Fix bathroom sink')
        with pytest.raises(StateConflict):
            compare_and_set(stale, title='Fix garden tap')
        job.refresh_from_db()
        assert job.title == 'Fix bathroom sink'
        assert job.version == 1


class TestHistoryIsAppendOnly:
    def test_entries_cannot_be_modified(self, make_job):
        entry = make_job().status_history.get()
        entry.notes = 'rewritten'
        with pytest.raises(ValueError):
            entry.save()

    def test_entries_cannot_be_deleted(self, make_job):
        entry = make_job().status_history.get()
        with pytest.raises(ValueError):
            entry.delete()


class TestQueries:
    def test_professional_sees_open_and_assigned_jobs(self, make_job, professional, other_professional):
        open_job = make_job()
        addressed_elsewhere = make_job(professional=other_professional.professional)
        mine = make_job()
        jobs.accept_job(mine.id, professional)
        visible = set(jobs.list_jobs(professional).values_list('id', flat=True))
        assert visible == {open_job.id, mine.id}
        assert addressed_elsewhere.id not in visible

    def test_customer_sees_only_own_jobs(self, make_job, other_customer):
        make_job()
        assert list(jobs.list_jobs(other_customer)) == []

    def test_status_filter(self, make_job, customer):
        make_job()
        cancelled = jobs.cancel_job(make_job().id, customer)
        assert [j.id for j in jobs.list_jobs(customer, 'cancelled')] == [cancelled.id]

    def test_get_job_hides_others_jobs(self, make_job, other_customer):
        with pytest.raises(NotAuthorized):
            jobs.get_job(make_job().id, other_customer)

    def test_status_history_in_order(self, completed_job, customer):
        job = completed_job()
        entries = jobs.get_status_history(job.id, customer)
        assert [e.status for e in entries] == ['pending', 'accepted', 'in_progress', 'completed']
