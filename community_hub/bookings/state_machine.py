"""
Booking status state machine.

One status vocabulary is shared by every service; each service type picks the
edges it allows from a per-service transition table. Terminal statuses have no
outgoing edges in any table.
"""

from enum import Enum
from typing import Dict, FrozenSet

from community_hub.resources.schemas import ServiceType


class BookingStatus(str, Enum):
    """Superset of booking statuses across services"""
    PENDING = "pending"
    APPROVED = "approved"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


TERMINAL_STATUSES: FrozenSet[BookingStatus] = frozenset({
    BookingStatus.COMPLETED,
    BookingStatus.DELIVERED,
    BookingStatus.CANCELLED,
    BookingStatus.REJECTED,
})

# Entering one of these awards loyalty points
COMPLETION_STATUSES: FrozenSet[BookingStatus] = frozenset({
    BookingStatus.COMPLETED,
    BookingStatus.DELIVERED,
})

# Entering one of these returns the reserved units to the pool
RELEASE_STATUSES: FrozenSet[BookingStatus] = frozenset({
    BookingStatus.CANCELLED,
    BookingStatus.REJECTED,
})

TransitionTable = Dict[BookingStatus, FrozenSet[BookingStatus]]

ORDER_TRANSITIONS: TransitionTable = {
    BookingStatus.PENDING: frozenset({BookingStatus.PREPARING, BookingStatus.CANCELLED}),
    BookingStatus.PREPARING: frozenset({BookingStatus.READY, BookingStatus.CANCELLED}),
    BookingStatus.READY: frozenset({BookingStatus.DELIVERED}),
}

RESERVATION_TRANSITIONS: TransitionTable = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.REJECTED
    }),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED}),
}

EVENT_TRANSITIONS: TransitionTable = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.APPROVED, BookingStatus.CANCELLED, BookingStatus.REJECTED
    }),
    BookingStatus.APPROVED: frozenset({BookingStatus.COMPLETED}),
}

TRANSITION_TABLES: Dict[ServiceType, TransitionTable] = {
    ServiceType.ORDER: ORDER_TRANSITIONS,
    ServiceType.RESERVATION: RESERVATION_TRANSITIONS,
    ServiceType.PARKING: RESERVATION_TRANSITIONS,
    ServiceType.BUS: RESERVATION_TRANSITIONS,
    ServiceType.EVENT: EVENT_TRANSITIONS,
}

def allowed_transitions(service_type: ServiceType, current: BookingStatus) -> FrozenSet[BookingStatus]:
    """Statuses reachable in one step from `current`"""
    return TRANSITION_TABLES[ServiceType(service_type)].get(BookingStatus(current), frozenset())


def can_transition(service_type: ServiceType, current: BookingStatus, new: BookingStatus) -> bool:
    return BookingStatus(new) in allowed_transitions(service_type, current)


def is_terminal(status: BookingStatus) -> bool:
    return BookingStatus(status) in TERMINAL_STATUSES
