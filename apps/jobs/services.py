"""
Job lifecycle transitions.

Every transition locks the job row, checks the move against the state graph,
writes it with a version compare-and-set and appends one history entry, all in
one transaction. Notifications are queued for after the commit.
"""
import logging

from django.db import transaction
from django.utils import timezone

from apps.notifications.dispatcher import notify
from apps.payments.commission import compute_commission, to_money
from apps.payments.services import open_payment
from apps.users.models import Professional
from core.constants import (
    JOB_STATUS_ACCEPTED, JOB_STATUS_CANCELLED, JOB_STATUS_COMPLETED,
    JOB_STATUS_IN_PROGRESS, JOB_STATUS_PENDING, ROLE_CUSTOMER, ROLE_PROFESSIONAL,
)
from core.exceptions import NotAuthorized, NotFound, ValidationError
from core.persistence import check_version, compare_and_set, lock_for_update
from core.utils import party_role, require_party, require_role
from .models import Job, JobStatusHistory
from .state import check_transition

logger = logging.getLogger(__name__)


def _record(job, from_status, actor, role, notes=''):
    return JobStatusHistory.objects.create(
        job=job,
        from_status=from_status,
        status=job.status,
        changed_by=actor,
        changed_by_role=role,
        notes=notes or '',
    )


def _lock_job(job_id, expected_version=None):
    job = lock_for_update(Job, label='Job', pk=job_id)
    check_version(job, expected_version)
    return job


def create_job(actor, data):
    """Create a pending job for ``actor`` from validated ``data``."""
    require_role(actor, ROLE_CUSTOMER)
    data = dict(data)
    professional = data.pop('professional', None)
    if professional is not None and not isinstance(professional, Professional):
        try:
            professional = Professional.objects.get(pk=professional)
        except Professional.DoesNotExist:
            raise NotFound(f"Professional {professional} not found")
    if professional is not None and professional.user_id == actor.pk:
        raise ValidationError("You cannot request a job from yourself", field='professional')

    budget_min, budget_max = data.get('budget_min'), data.get('budget_max')
    if budget_min is not None and budget_max is not None and budget_min > budget_max:
        raise ValidationError("budget_min cannot exceed budget_max", field='budget_min')

    with transaction.atomic():
        job = Job.objects.create(customer=actor, professional=professional, **data)
        open_payment(job)
        _record(job, None, actor, ROLE_CUSTOMER)
        if professional is not None:
            notify(professional.user_id, 'job_created', {
                'job_id': job.id,
                'category': job.get_category_display(),
                'scheduled_date': job.scheduled_date,
            })
    logger.info(f"Job {job.id} created by customer {actor.id} ({job.payment_method})")
    return job


def accept_job(job_id, actor, expected_version=None):
    require_role(actor, ROLE_PROFESSIONAL)
    professional = actor.professional
    with transaction.atomic():
        job = _lock_job(job_id, expected_version)
        if job.professional_id is not None and job.professional_id != professional.pk:
            raise NotAuthorized(f"Job #{job.pk} was requested from another professional")
        check_transition(job.status, JOB_STATUS_ACCEPTED, ROLE_PROFESSIONAL)
        previous = job.status
        compare_and_set(job, status=JOB_STATUS_ACCEPTED, professional=professional)
        _record(job, previous, actor, ROLE_PROFESSIONAL)
        notify(job.customer_id, 'job_accepted', {'job_id': job.id})
    logger.info(f"Job {job.id} accepted by professional {professional.id}")
    return job


def start_job(job_id, actor, expected_version=None):
    with transaction.atomic():
        job = _lock_job(job_id, expected_version)
        require_party(job, actor, ROLE_PROFESSIONAL)
        check_transition(job.status, JOB_STATUS_IN_PROGRESS, ROLE_PROFESSIONAL)
        previous = job.status
        compare_and_set(job, status=JOB_STATUS_IN_PROGRESS)
        _record(job, previous, actor, ROLE_PROFESSIONAL)
        notify(job.customer_id, 'job_started', {'job_id': job.id})
    logger.info(f"Job {job.id} started")
    return job


def complete_job(job_id, actor, final_price, notes='', expected_version=None):
    """
    Complete an in-progress job at ``final_price``.

    The price must be positive with at most two decimals. The budget is the
    customer's estimate and does not bound it. Price and commission split
    are written in the same update as the status change.
    """
    price = to_money(final_price, field='final_price')
    with transaction.atomic():
        job = _lock_job(job_id, expected_version)
        require_party(job, actor, ROLE_PROFESSIONAL)
        check_transition(job.status, JOB_STATUS_COMPLETED, ROLE_PROFESSIONAL)
        split = compute_commission(price)
        previous = job.status
        compare_and_set(
            job,
            status=JOB_STATUS_COMPLETED,
            final_price=price,
            completed_at=timezone.now(),
            **split,
        )
        _record(job, previous, actor, ROLE_PROFESSIONAL, notes)
        notify(job.customer_id, 'job_completed', {'job_id': job.id, 'final_price': job.final_price})
        notify(job.customer_id, 'payment_due', {
            'job_id': job.id,
            'final_price': job.final_price,
            'provider_earnings': job.provider_earnings,
        })
    logger.info(
        f"Job {job.id} completed at {job.final_price}: fee {job.company_fee}, earnings {job.provider_earnings}"
    )
    return job


def cancel_job(job_id, actor, role=None, reason='', expected_version=None):
    with transaction.atomic():
        job = _lock_job(job_id, expected_version)
        actual_role = require_party(job, actor, ROLE_CUSTOMER, ROLE_PROFESSIONAL)
        if role is not None and role != actual_role:
            raise NotAuthorized(f"User {actor.pk} is not the {role} on job #{job.pk}")
        check_transition(job.status, JOB_STATUS_CANCELLED, actual_role)
        previous = job.status
        compare_and_set(job, status=JOB_STATUS_CANCELLED, cancelled_at=timezone.now())
        _record(job, previous, actor, actual_role, reason)
        payload = {'job_id': job.id, 'role': actual_role, 'reason': reason or ''}
        if actual_role == ROLE_CUSTOMER:
            if job.professional_id is not None:
                notify(job.professional.user_id, 'job_cancelled', payload)
        else:
            notify(job.customer_id, 'job_cancelled', payload)
    logger.info(f"Job {job.id} cancelled by {actual_role} {actor.id} from '{previous}'")
    return job


def get_job(job_id, actor):
    try:
        job = Job.objects.select_related('customer', 'professional__user').get(pk=job_id)
    except Job.DoesNotExist:
        raise NotFound(f"Job {job_id} not found")
    if party_role(job, actor) is None and not _is_open_to(job, actor):
        raise NotAuthorized(f"User {actor.pk} cannot view job #{job.pk}")
    return job


def get_status_history(job_id, actor):
    job = get_job(job_id, actor)
    return list(job.status_history.select_related('changed_by'))


def list_jobs(actor, status=None):
    """Jobs visible to ``actor``: their own, plus open requests for professionals."""
    if actor.is_superuser:
        jobs = Job.objects.all()
    else:
        visible = Job.objects.none()
        if hasattr(actor, 'customer'):
            visible = visible | Job.objects.filter(customer=actor)
        if hasattr(actor, 'professional'):
            visible = (
                visible
                | Job.objects.filter(professional=actor.professional)
                | Job.objects.filter(status=JOB_STATUS_PENDING, professional__isnull=True)
            )
        jobs = visible
    if status:
        jobs = jobs.filter(status=status)
    return jobs.select_related('customer', 'professional__user').distinct()


def _is_open_to(job, user):
    return (
        job.status == JOB_STATUS_PENDING
        and job.professional_id is None
        and hasattr(user, 'professional')
    )
