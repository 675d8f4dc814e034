"""Order status and return status state machines.

These tables are the single source of truth for legal transitions; every
mutating entry point goes through ``ensure_status_transition`` or
``ensure_return_transition``.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from .errors import InvalidReturnTransition, InvalidTransition, ReturnNotEligible, ValidationError


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ReturnStatus(str, Enum):
    NONE = "NONE"
    REQUESTED = "REQUESTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


ORDER_STATUS_TRANSITIONS: Dict[OrderStatus, Tuple[OrderStatus, ...]] = {
    OrderStatus.PENDING: (OrderStatus.PAID, OrderStatus.CANCELLED),
    OrderStatus.PAID: (OrderStatus.COMPLETED, OrderStatus.CANCELLED),
    OrderStatus.COMPLETED: (),
    OrderStatus.CANCELLED: (),
}

RETURN_STATUS_TRANSITIONS: Dict[ReturnStatus, Tuple[ReturnStatus, ...]] = {
    ReturnStatus.NONE: (ReturnStatus.REQUESTED,),
    ReturnStatus.REQUESTED: (ReturnStatus.APPROVED, ReturnStatus.REJECTED),
    ReturnStatus.APPROVED: (),
    ReturnStatus.REJECTED: (),
}


def utcnow() -> datetime:
    """Naive UTC, matching the naive DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    try:
        return OrderStatus((value or "").strip().upper() if isinstance(value, str) else value)
    except ValueError:
        valid = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"Invalid status. Valid statuses are: {valid}", code="invalid_status")


def allowed_next_statuses(current: Union[str, OrderStatus]) -> Tuple[OrderStatus, ...]:
    return ORDER_STATUS_TRANSITIONS[OrderStatus(current)]


def ensure_status_transition(current: Union[str, OrderStatus], target: Union[str, OrderStatus]) -> None:
    current = OrderStatus(current)
    target = OrderStatus(target)
    if target not in ORDER_STATUS_TRANSITIONS[current]:
        raise InvalidTransition(f"{current.value} → {target.value} is not allowed")


def ensure_return_transition(current: Union[str, ReturnStatus], target: Union[str, ReturnStatus]) -> None:
    current = ReturnStatus(current)
    target = ReturnStatus(target)
    if target not in RETURN_STATUS_TRANSITIONS[current]:
        raise InvalidReturnTransition(
            f"Return status must be REQUESTED to move to {target.value} (currently {current.value})"
        )


def return_deadline(completed_at: Optional[datetime], created_at: datetime, window_days: int) -> datetime:
    """Deadline counted from completion, falling back to placement time."""
    anchor = completed_at or created_at
    return anchor + timedelta(days=window_days)


def ensure_return_eligible(
    status: Union[str, OrderStatus],
    return_status: Union[str, ReturnStatus],
    completed_at: Optional[datetime],
    created_at: datetime,
    now: datetime,
    window_days: int,
) -> None:
    if OrderStatus(status) != OrderStatus.COMPLETED:
        raise ReturnNotEligible(
            "Return request is only allowed for completed orders",
            code="order_not_completed",
        )
    if ReturnStatus(return_status) != ReturnStatus.NONE:
        raise ReturnNotEligible(
            "Return request already exists or was processed",
            code="return_already_exists",
        )
    if now > return_deadline(completed_at, created_at, window_days):
        raise ReturnNotEligible(
            f"Return request must be submitted within {window_days} days of order completion",
            code="return_window_expired",
        )
