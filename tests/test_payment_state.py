"""Tests for the payment status graph."""

import pytest

from apps.payments.state import VALID_PAYMENT_TRANSITIONS, can_transition, check_transition
from core.exceptions import InvalidStateTransition


class TestPaymentGraph:
    @pytest.mark.parametrize('current,target', [
        ('unpaid', 'pending_verification'),
        ('unpaid', 'confirmed_manually'),
        ('pending_verification', 'paid'),
        ('pending_verification', 'disputed'),
        ('pending_verification', 'pending_verification'),
        ('disputed', 'pending_verification'),
    ])
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize('current,target', [
        ('unpaid', 'paid'),
        ('disputed', 'paid'),
        ('paid', 'pending_verification'),
        ('confirmed_manually', 'paid'),
        ('paid', 'disputed'),
    ])
    def test_rejected(self, current, target):
        assert not can_transition(current, target)
        with pytest.raises(InvalidStateTransition):
            check_transition(current, target)

    def test_settled_statuses_are_terminal(self):
        assert VALID_PAYMENT_TRANSITIONS['paid'] == set()
        assert VALID_PAYMENT_TRANSITIONS['confirmed_manually'] == set()
