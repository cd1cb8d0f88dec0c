# supplyhub/models/status.py
"""
Closed status enumerations and the transition rules consulted before every
status write.

Orders follow an explicit table. Delivery assignments move strictly forward
through their ranked flow; ``assigned`` is only reachable through acceptance
and ``completed`` only through completion.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet

from supplyhub.errors import InvalidTransition, ValidationFailed


class UserRole(str, Enum):
    STREET_VENDOR = "street_vendor"
    DELIVERY_AGENT = "delivery_agent"
    DISTRIBUTOR = "distributor"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PACKED = "packed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class DeliveryStatus(str, Enum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    DIGITAL_PAYMENT = "digital_payment"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({
        OrderStatus.CONFIRMED, OrderStatus.PACKED, OrderStatus.SHIPPED, OrderStatus.CANCELLED,
    }),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PACKED, OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.PACKED: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

DELIVERY_FLOW = (
    DeliveryStatus.AVAILABLE,
    DeliveryStatus.ASSIGNED,
    DeliveryStatus.PICKED_UP,
    DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.DELIVERED,
    DeliveryStatus.COMPLETED,
)

# targets accepted by the plain status-update endpoints
ADVANCEABLE = frozenset({DeliveryStatus.PICKED_UP, DeliveryStatus.IN_TRANSIT, DeliveryStatus.DELIVERED})

# while goods are with the agent
TRACKABLE = frozenset({
    DeliveryStatus.ASSIGNED,
    DeliveryStatus.PICKED_UP,
    DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.DELIVERED,
})

COMPLETABLE = frozenset({
    DeliveryStatus.ASSIGNED,
    DeliveryStatus.PICKED_UP,
    DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.DELIVERED,
})


def _rank(status: DeliveryStatus) -> int:
    return DELIVERY_FLOW.index(status)


def ensure_order_transition(current: str, target: str) -> OrderStatus:
    try:
        cur = OrderStatus(current)
    except ValueError:
        raise InvalidTransition("order", current, target)
    nxt = OrderStatus(target)
    if nxt not in ORDER_TRANSITIONS[cur]:
        raise InvalidTransition("order", cur.value, nxt.value)
    return nxt


def ensure_delivery_transition(current: str, target: str) -> DeliveryStatus:
    try:
        cur = DeliveryStatus(current)
    except ValueError:
        raise InvalidTransition("delivery", current, target)
    nxt = DeliveryStatus(target)
    if _rank(nxt) <= _rank(cur):
        raise InvalidTransition("delivery", cur.value, nxt.value)
    return nxt


def ensure_advanceable(target: DeliveryStatus) -> DeliveryStatus:
    if target not in ADVANCEABLE:
        raise ValidationFailed(
            f"Status '{target.value}' cannot be set directly; "
            "use accept-delivery or complete-delivery"
        )
    return target
