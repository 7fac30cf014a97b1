"""
Resources Module

Capacity pools for bookable resources: restaurant order slots, rooms and
fields, parking spots, shuttle seats and event places.
"""

from .capacity_pool import CapacityPool
from .schemas import ServiceType, ResourceAvailability, ResourceCreate

__all__ = [
    "CapacityPool",
    "ServiceType",
    "ResourceAvailability",
    "ResourceCreate"
]
