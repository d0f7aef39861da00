"""
Payment status state machine, independent of the job status machine.

unpaid -> pending_verification     order created / cash marked received
pending_verification -> paid       signature verified / customer confirmed cash
pending_verification -> disputed   customer disputes a marked cash payment
disputed -> pending_verification   dispute resolved, confirmation reopened
unpaid | pending_verification -> confirmed_manually   manual link fallback
"""
from core.constants import (
    PAYMENT_STATUS_CONFIRMED_MANUALLY, PAYMENT_STATUS_DISPUTED, PAYMENT_STATUS_PAID,
    PAYMENT_STATUS_PENDING_VERIFICATION, PAYMENT_STATUS_UNPAID,
)
from core.exceptions import InvalidStateTransition

VALID_PAYMENT_TRANSITIONS = {
    PAYMENT_STATUS_UNPAID: {PAYMENT_STATUS_PENDING_VERIFICATION, PAYMENT_STATUS_CONFIRMED_MANUALLY},
    PAYMENT_STATUS_PENDING_VERIFICATION: {
        PAYMENT_STATUS_PENDING_VERIFICATION,
        PAYMENT_STATUS_PAID,
        PAYMENT_STATUS_DISPUTED,
        PAYMENT_STATUS_CONFIRMED_MANUALLY,
    },
    PAYMENT_STATUS_DISPUTED: {PAYMENT_STATUS_PENDING_VERIFICATION},
    PAYMENT_STATUS_CONFIRMED_MANUALLY: set(),
    PAYMENT_STATUS_PAID: set(),
}


def can_transition(current, target):
    return target in VALID_PAYMENT_TRANSITIONS.get(current, set())


def check_transition(current, target):
    if not can_transition(current, target):
        raise InvalidStateTransition(current, target, f"Payment cannot move from '{current}' to '{target}'")
