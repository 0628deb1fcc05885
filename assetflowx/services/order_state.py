"""Order lifecycle state machine.

    PENDING ──► PAID ──► SETTLED
       │          └────► REFUNDED
       └────► EXPIRED

SETTLED, REFUNDED and EXPIRED are terminal.  Nothing ever returns to
PENDING.  Every status change goes through ``transition``; callers check
the operation-specific preconditions first so they can report their own
messages, and the table catches anything they missed.
"""

from __future__ import annotations

import dataclasses
import datetime
import logging
from typing import Any

from assetflowx.core.errors import InvalidStateError
from assetflowx.core.metrics import ORDER_TRANSITIONS
from assetflowx.models.order import Order, OrderStatus

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.EXPIRED}),
    OrderStatus.PAID: frozenset({OrderStatus.SETTLED, OrderStatus.REFUNDED}),
    # Terminal
    OrderStatus.SETTLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
    OrderStatus.EXPIRED: frozenset(),
}


def allowed_transitions(status: OrderStatus) -> frozenset[OrderStatus]:
    return _TRANSITIONS[status]


def is_terminal(status: OrderStatus) -> bool:
    return not _TRANSITIONS[status]


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in _TRANSITIONS[current]


def transition(
    order: Order,
    target: OrderStatus,
    now: datetime.datetime,
    **changes: Any,
) -> Order:
    """Return a copy of ``order`` moved to ``target``; the input is untouched.

    Raises InvalidStateError when the table has no such edge.
    """
    if not can_transition(order.status, target):
        allowed = ", ".join(sorted(s.value for s in _TRANSITIONS[order.status]))
        raise InvalidStateError(
            f"Invalid order transition: {order.status} -> {target}",
            details={"allowed": allowed or "none (terminal)"},
        )

    updated = dataclasses.replace(order, status=target, updated_at=now, **changes)
    ORDER_TRANSITIONS.labels(from_status=order.status.value, to_status=target.value).inc()
    logger.info(
        "Order %s %s -> %s",
        order.id,
        order.status,
        target,
        extra={"order_id": order.id},
    )
    return updated
