"""
Booking Lifecycle Module

One booking engine serves every community service: restaurant orders, facility
reservations, parking registrations, shuttle-bus seats and event sign-ups.

- state_machine.py: shared status vocabulary and per-service transition tables
- booking_service.py: BookingEngine - create, transition, cancel, query, audit trail
- router.py: FastAPI endpoints used by the resident and manager consoles
- schemas.py: Pydantic models for booking requests and records

Creating a booking reserves units in the capacity pool. Cancelling or
rejecting it releases them. Completing or delivering it credits the net amount
to the user's loyalty account exactly once.
"""

from .booking_service import BookingEngine
from .state_machine import (
    BookingStatus, TERMINAL_STATUSES, COMPLETION_STATUSES, RELEASE_STATUSES,
    TRANSITION_TABLES, allowed_transitions, can_transition
)
from .schemas import (
    BookingRequest, BookingRecord, BookingList, BookingSearchFilters,
    StatusUpdateRequest, StatusChangeRecord
)

__all__ = [
    "BookingEngine",
    "BookingStatus",
    "TERMINAL_STATUSES",
    "COMPLETION_STATUSES",
    "RELEASE_STATUSES",
    "TRANSITION_TABLES",
    "allowed_transitions",
    "can_transition",
    "BookingRequest",
    "BookingRecord",
    "BookingList",
    "BookingSearchFilters",
    "StatusUpdateRequest",
    "StatusChangeRecord"
]
