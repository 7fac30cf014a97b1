from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from community_hub.bookings.state_machine import BookingStatus
from community_hub.resources.schemas import ServiceType

# Booking Request Models
class BookingRequest(BaseModel):
    """Submit a booking against a resource (order, reservation, parking, bus seat, event)"""
    user_id: str = Field(..., min_length=1, max_length=64)
    resource_id: str = Field(..., min_length=1, max_length=64)
    requested_units: int = Field(1, gt=0)
    amount: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    discount: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    apply_member_discount: bool = False
    actor: Optional[str] = Field(None, max_length=100)

    @validator('discount')
    def validate_discount(cls, v, values):
        amount = values.get('amount')
        if v is not None and amount is not None and v > amount:
            raise ValueError('Discount cannot exceed amount')
        return v

class StatusUpdateRequest(BaseModel):
    """Move a booking to a new status"""
    status: BookingStatus
    actor: Optional[str] = Field(None, max_length=100)

class CancellationRequest(BaseModel):
    actor: Optional[str] = Field(None, max_length=100)

class BookingSearchFilters(BaseModel):
    """Filters for booking search"""
    status: Optional[BookingStatus] = None
    service_type: Optional[ServiceType] = None
    user_id: Optional[str] = None
    resource_id: Optional[str] = None

# Booking Response Models
class BookingRecord(BaseModel):
    """Booking details"""
    booking_id: str
    user_id: str
    resource_id: str
    service_type: ServiceType
    requested_units: int
    amount: Decimal
    discount: Decimal
    final_amount: Decimal
    status: BookingStatus
    points_earned: int = 0
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    allowed_transitions: List[BookingStatus] = []

class BookingList(BaseModel):
    bookings: List[BookingRecord]
    total: int
    skip: int
    limit: int

class StatusChangeRecord(BaseModel):
    """One entry of a booking's audit trail"""
    booking_id: str
    from_status: Optional[BookingStatus] = None
    to_status: BookingStatus
    actor: Optional[str] = None
    changed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
