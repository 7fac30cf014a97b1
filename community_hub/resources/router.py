from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from community_hub.dependencies import get_capacity_pool
from community_hub.resources.capacity_pool import CapacityPool, to_availability
from community_hub.resources.schemas import (
    CapacityUpdate, ResourceAvailability, ResourceCreate, ResourceList, ServiceType
)

router = APIRouter()

@router.get("/", response_model=ResourceList)
def list_resources(
    service_type: Optional[ServiceType] = Query(None, description="Filter by service"),
    pool: CapacityPool = Depends(get_capacity_pool)
):
    """List resources with their current availability"""
    resources = [to_availability(resource) for resource in pool.list_resources(service_type)]
    return ResourceList(resources=resources, total=len(resources))

@router.post("/", response_model=ResourceAvailability, status_code=status.HTTP_201_CREATED)
def register_resource(
    resource: ResourceCreate,
    pool: CapacityPool = Depends(get_capacity_pool)
):
    """Register a new bookable resource"""
    created = pool.register(
        resource.resource_id,
        resource.service_type,
        resource.name,
        resource.total_capacity
    )
    return to_availability(created)

@router.get("/{resource_id}", response_model=ResourceAvailability)
def get_resource_availability(
    resource_id: str,
    pool: CapacityPool = Depends(get_capacity_pool)
):
    """Current reserved and available units for a resource"""
    return pool.availability(resource_id)

@router.put("/{resource_id}/capacity", response_model=ResourceAvailability)
def update_resource_capacity(
    resource_id: str,
    update: CapacityUpdate,
    pool: CapacityPool = Depends(get_capacity_pool)
):
    """Change a resource's total capacity"""
    return to_availability(pool.set_capacity(resource_id, update.total_capacity))
