"""
Job status state machine.

pending -> accepted -> in_progress -> completed, with cancelled reachable from
pending and accepted by either party and from in_progress by the professional.
completed and cancelled are terminal.
"""
from core.constants import (
    JOB_STATUS_ACCEPTED, JOB_STATUS_CANCELLED, JOB_STATUS_COMPLETED,
    JOB_STATUS_IN_PROGRESS, JOB_STATUS_PENDING, ROLE_CUSTOMER, ROLE_PROFESSIONAL,
)
from core.exceptions import InvalidStateTransition, NotAuthorized

VALID_JOB_TRANSITIONS = {
    JOB_STATUS_PENDING: {JOB_STATUS_ACCEPTED, JOB_STATUS_CANCELLED},
    JOB_STATUS_ACCEPTED: {JOB_STATUS_IN_PROGRESS, JOB_STATUS_CANCELLED},
    JOB_STATUS_IN_PROGRESS: {JOB_STATUS_COMPLETED, JOB_STATUS_CANCELLED},
    JOB_STATUS_COMPLETED: set(),
    JOB_STATUS_CANCELLED: set(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in VALID_JOB_TRANSITIONS.items() if not targets)

CANCELLABLE_BY_ROLE = {
    ROLE_CUSTOMER: frozenset({JOB_STATUS_PENDING, JOB_STATUS_ACCEPTED}),
    ROLE_PROFESSIONAL: frozenset({JOB_STATUS_PENDING, JOB_STATUS_ACCEPTED, JOB_STATUS_IN_PROGRESS}),
}

# Only the professional drives work forward
FORWARD_ROLE = {
    JOB_STATUS_ACCEPTED: ROLE_PROFESSIONAL,
    JOB_STATUS_IN_PROGRESS: ROLE_PROFESSIONAL,
    JOB_STATUS_COMPLETED: ROLE_PROFESSIONAL,
}


def can_transition(current, target):
    return target in VALID_JOB_TRANSITIONS.get(current, set())


def check_transition(current, target, role):
    """Raise unless ``role`` may move a job from ``current`` to ``target``."""
    if target == JOB_STATUS_CANCELLED:
        allowed = CANCELLABLE_BY_ROLE.get(role)
        if allowed is None:
            raise NotAuthorized(f"Role '{role}' cannot cancel jobs")
        if current not in allowed:
            raise InvalidStateTransition(
                current, target, f"A {role} cannot cancel a job that is '{current}'"
            )
        return

    if not can_transition(current, target):
        raise InvalidStateTransition(current, target)
    required_role = FORWARD_ROLE.get(target)
    if required_role and role != required_role:
        raise NotAuthorized(f"Only the {required_role} can move a job to '{target}'")


def is_valid_path(statuses):
    """True if ``statuses`` (starting at pending) walks the transition graph."""
    statuses = list(statuses)
    if not statuses or statuses[0] != JOB_STATUS_PENDING:
        return False
    return all(can_transition(a, b) for a, b in zip(statuses, statuses[1:]))
