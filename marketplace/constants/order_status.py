from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: [OrderStatus.PAID, OrderStatus.CANCELLED],
    OrderStatus.PAID: [OrderStatus.COMPLETED, OrderStatus.REFUNDED],
    OrderStatus.COMPLETED: [],
    OrderStatus.CANCELLED: [],
    OrderStatus.REFUNDED: [],
}

# Every target is reachable from exactly one source, which is what the
# conditional update guards on.
SOURCE_STATUS = {
    target: source
    for source, targets in ALLOWED_TRANSITIONS.items()
    for target in targets
}

TERMINAL_STATUSES = {
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
}

# Column stamped alongside each transition
TRANSITION_TIMESTAMPS = {
    OrderStatus.PAID: "paid_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
    OrderStatus.REFUNDED: "refunded_at",
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, [])


def has_reached(current: OrderStatus, target: OrderStatus) -> bool:
    """True when ``current`` is ``target`` or lies further down its path."""
    status = current
    while status is not None:
        if status == target:
            return True
        status = SOURCE_STATUS.get(status)
    return False
