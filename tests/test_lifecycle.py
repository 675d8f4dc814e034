from datetime import datetime, timedelta

import pytest

from storefront.domain.errors import (
    InvalidReturnTransition,
    InvalidTransition,
    ReturnNotEligible,
    ValidationError,
)
from storefront.domain.lifecycle import (
    OrderStatus,
    ReturnStatus,
    allowed_next_statuses,
    ensure_return_eligible,
    ensure_return_transition,
    ensure_status_transition,
    parse_status,
    return_deadline,
)

LEGAL = {
    (OrderStatus.PENDING, OrderStatus.PAID),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PAID, OrderStatus.COMPLETED),
    (OrderStatus.PAID, OrderStatus.CANCELLED),
}

COMPLETED_AT = datetime(2026, 3, 10, 12, 0, 0)
CREATED_AT = datetime(2026, 3, 1, 9, 0, 0)

def test_only_legal_status_pairs_pass():
    for current in OrderStatus:
        for target in OrderStatus:
            if (current, target) in LEGAL:
                ensure_status_transition(current, target)
            else:
                with pytest.raises(InvalidTransition):
                    ensure_status_transition(current, target)

def test_illegal_transition_message_names_both_states():
    with pytest.raises(InvalidTransition) as exc:
        ensure_status_transition("COMPLETED", "CANCELLED")
    assert exc.value.message == "COMPLETED → CANCELLED is not allowed"
    assert exc.value.code == "invalid_transition"

def test_allowed_next_statuses():
    assert allowed_next_statuses("PENDING") == (OrderStatus.PAID, OrderStatus.CANCELLED)
    assert allowed_next_statuses(OrderStatus.COMPLETED) == ()

def test_parse_status():
    assert parse_status(" paid ") == OrderStatus.PAID
    with pytest.raises(ValidationError) as exc:
        parse_status("SHIPPED")
    assert exc.value.code == "invalid_status"

def test_return_transitions():
    ensure_return_transition(ReturnStatus.NONE, ReturnStatus.REQUESTED)
    ensure_return_transition(ReturnStatus.REQUESTED, ReturnStatus.APPROVED)
    ensure_return_transition(ReturnStatus.REQUESTED, ReturnStatus.REJECTED)
    for current, target in [
        (ReturnStatus.NONE, ReturnStatus.APPROVED),
        (ReturnStatus.APPROVED, ReturnStatus.REJECTED),
        (ReturnStatus.REJECTED, ReturnStatus.REQUESTED),
        (ReturnStatus.APPROVED, ReturnStatus.APPROVED),
    ]:
        with pytest.raises(InvalidReturnTransition):
            ensure_return_transition(current, target)

def _eligible(now, status="COMPLETED", return_status="NONE", completed_at=COMPLETED_AT):
    ensure_return_eligible(status, return_status, completed_at, CREATED_AT, now, 7)

def test_return_window_boundary():
    deadline = COMPLETED_AT + timedelta(days=7)
    _eligible(deadline - timedelta(seconds=1))
    _eligible(deadline)
    with pytest.raises(ReturnNotEligible) as exc:
        _eligible(deadline + timedelta(seconds=1))
    assert exc.value.code == "return_window_expired"

def test_return_requires_completed_order():
    with pytest.raises(ReturnNotEligible) as exc:
        _eligible(COMPLETED_AT, status="PAID")
    assert exc.value.code == "order_not_completed"

def test_return_only_once():
    for return_status in ("REQUESTED", "APPROVED", "REJECTED"):
        with pytest.raises(ReturnNotEligible) as exc:
            _eligible(COMPLETED_AT, return_status=return_status)
        assert exc.value.code == "return_already_exists"

def test_window_falls_back_to_created_at():
    assert return_deadline(None, CREATED_AT, 7) == CREATED_AT + timedelta(days=7)
    with pytest.raises(ReturnNotEligible):
        _eligible(CREATED_AT + timedelta(days=7, seconds=1), completed_at=None)
