from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from community_hub.bookings.booking_service import BookingEngine
from community_hub.bookings.schemas import (
    BookingList, BookingRecord, BookingRequest, BookingSearchFilters,
    CancellationRequest, StatusChangeRecord, StatusUpdateRequest
)
from community_hub.bookings.state_machine import BookingStatus
from community_hub.dependencies import get_booking_engine
from community_hub.resources.schemas import ServiceType

router = APIRouter()

# Booking Management Endpoints
@router.post("/", response_model=BookingRecord, status_code=status.HTTP_201_CREATED)
def submit_booking(
    request: BookingRequest,
    engine: BookingEngine = Depends(get_booking_engine)
):
    """Submit a booking: reserves capacity and opens the booking as pending"""
    return engine.submit(request)

@router.get("/", response_model=BookingList)
def list_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status", description="Filter by booking status"),
    service_type: Optional[ServiceType] = Query(None, description="Filter by service"),
    user_id: Optional[str] = Query(None, description="Filter by user"),
    resource_id: Optional[str] = Query(None, description="Filter by resource"),
    skip: int = Query(0, ge=0, description="Number of bookings to skip"),
    limit: int = Query(50, ge=1, le=200, description="Maximum results"),
    engine: BookingEngine = Depends(get_booking_engine)
):
    """List bookings, newest first"""
    filters = BookingSearchFilters(
        status=booking_status,
        service_type=service_type,
        user_id=user_id,
        resource_id=resource_id
    )
    bookings, total = engine.list_bookings(filters, skip=skip, limit=limit)
    return BookingList(bookings=bookings, total=total, skip=skip, limit=limit)

@router.get("/{booking_id}", response_model=BookingRecord)
def get_booking(
    booking_id: str,
    engine: BookingEngine = Depends(get_booking_engine)
):
    """Get booking details by ID"""
    return engine.get(booking_id)

@router.get("/{booking_id}/history", response_model=List[StatusChangeRecord])
def get_booking_history(
    booking_id: str,
    engine: BookingEngine = Depends(get_booking_engine)
):
    """Audit trail of every status change"""
    return engine.history(booking_id)

@router.patch("/{booking_id}/status", response_model=BookingRecord)
def set_booking_status(
    booking_id: str,
    update: StatusUpdateRequest,
    engine: BookingEngine = Depends(get_booking_engine)
):
    """Approve, reject, prepare, complete or cancel a booking"""
    return engine.transition(booking_id, update.status, actor=update.actor)

@router.post("/{booking_id}/cancel", response_model=BookingRecord)
def cancel_booking(
    booking_id: str,
    cancellation: Optional[CancellationRequest] = None,
    engine: BookingEngine = Depends(get_booking_engine)
):
    """Cancel a booking (requester or operator)"""
    actor = cancellation.actor if cancellation else None
    return engine.cancel(booking_id, actor=actor)
