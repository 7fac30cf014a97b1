from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from enum import Enum

class ServiceType(str, Enum):
    """Community service a resource belongs to"""
    ORDER = "order"
    RESERVATION = "reservation"
    PARKING = "parking"
    BUS = "bus"
    EVENT = "event"

class ResourceCreate(BaseModel):
    """Register a bookable resource with a fixed number of units"""
    resource_id: str = Field(..., min_length=1, max_length=64)
    service_type: ServiceType
    name: str = Field(..., min_length=1, max_length=255)
    total_capacity: int = Field(..., gt=0)

    @validator('resource_id')
    def validate_resource_id(cls, v):
        if not v.strip():
            raise ValueError('resource_id must not be blank')
        return v.strip()

class CapacityUpdate(BaseModel):
    total_capacity: int = Field(..., gt=0)

class ResourceAvailability(BaseModel):
    """Capacity pool counters for one resource"""
    resource_id: str
    service_type: ServiceType
    name: str
    total_capacity: int
    reserved_count: int
    available_units: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ResourceList(BaseModel):
    resources: List[ResourceAvailability]
    total: int
