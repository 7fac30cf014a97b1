import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from community_hub.exceptions import CapacityExceeded, InvalidInput, NotFound
from community_hub.locks import KeyedLockRegistry, RESOURCE
from community_hub.models import Resource
from community_hub.resources.schemas import ResourceAvailability, ServiceType

logger = logging.getLogger(__name__)


class CapacityPool:
    """Finite-unit counters per resource (seats, table slots, parking spots, room-hours).

    The pool only knows aggregate counts; it has no idea which booking holds
    which unit. Every mutation runs under the resource's lock and inside one
    database transaction, so `0 <= reserved_count <= total_capacity` holds
    after every call.
    """

    def __init__(self, db: Session, locks: KeyedLockRegistry):
        self.db = db
        self.locks = locks

    # Registry
    def register(
        self,
        resource_id: str,
        service_type,
        name: str,
        total_capacity: int,
        exist_ok: bool = False
    ) -> Resource:
        """Add a resource to the pool"""
        if not resource_id or not resource_id.strip():
            raise InvalidInput("resource_id is required")
        service_type = _service_type(service_type)
        _check_positive(total_capacity, "total_capacity")

        with self.locks.transaction(self.db, (RESOURCE, resource_id)):
            existing = self._get_for_update(resource_id)
            if existing is not None:
                if exist_ok:
                    return existing
                raise InvalidInput(f"Resource '{resource_id}' already exists")

            resource = Resource(
                id=resource_id,
                service_type=service_type.value,
                name=name,
                total_capacity=total_capacity,
                reserved_count=0
            )
            self.db.add(resource)
            self.db.flush()
            logger.info(
                "Registered %s resource %s with %d unit(s)",
                service_type.value, resource_id, total_capacity
            )
        return resource

    def get(self, resource_id: str) -> Resource:
        resource = self.db.query(Resource).filter(Resource.id == resource_id).first()
        if resource is None:
            raise NotFound("Resource", resource_id)
        return resource

    def list_resources(self, service_type=None) -> List[Resource]:
        query = self.db.query(Resource)
        if service_type is not None:
            query = query.filter(Resource.service_type == _service_type(service_type).value)
        return query.order_by(Resource.service_type, Resource.id).all()

    def set_capacity(self, resource_id: str, total_capacity: int) -> Resource:
        """Change total capacity; cannot drop below what is already reserved"""
        _check_positive(total_capacity, "total_capacity")
        with self.locks.transaction(self.db, (RESOURCE, resource_id)):
            resource = self._require_for_update(resource_id)
            if total_capacity < resource.reserved_count:
                raise InvalidInput(
                    f"Resource '{resource_id}' has {resource.reserved_count} unit(s) reserved; "
                    f"capacity cannot be set to {total_capacity}"
                )
            previous = resource.total_capacity
            resource.total_capacity = total_capacity
            self.db.flush()
            logger.info(
                "Capacity of %s changed from %d to %d", resource_id, previous, total_capacity
            )
        return resource

    # Allocation
    def reserve(self, resource_id: str, units: int) -> Resource:
        """Atomically take `units` from the resource, or fail without change"""
        _check_positive(units, "units")
        with self.locks.transaction(self.db, (RESOURCE, resource_id)):
            resource = self._require_for_update(resource_id)
            available = resource.total_capacity - resource.reserved_count
            if units > available:
                logger.warning(
                    "Capacity exceeded on %s: requested %d, available %d",
                    resource_id, units, available
                )
                raise CapacityExceeded(resource_id, units, available)
            resource.reserved_count += units
            self.db.flush()
            logger.info(
                "Reserved %d unit(s) on %s (%d/%d)",
                units, resource_id, resource.reserved_count, resource.total_capacity
            )
        return resource

    def release(self, resource_id: str, units: int) -> Resource:
        """Return `units` to the resource; the count is clamped at zero"""
        _check_positive(units, "units")
        with self.locks.transaction(self.db, (RESOURCE, resource_id)):
            resource = self._require_for_update(resource_id)
            if units > resource.reserved_count:
                logger.warning(
                    "Release of %d unit(s) on %s exceeds %d reserved; clamping to zero",
                    units, resource_id, resource.reserved_count
                )
            resource.reserved_count = max(resource.reserved_count - units, 0)
            self.db.flush()
            logger.info(
                "Released %d unit(s) on %s (%d/%d)",
                units, resource_id, resource.reserved_count, resource.total_capacity
            )
        return resource

    def available_units(self, resource_id: str) -> int:
        resource = self.get(resource_id)
        return max(resource.total_capacity - resource.reserved_count, 0)

    def availability(self, resource_id: str) -> ResourceAvailability:
        return to_availability(self.get(resource_id))

    # Internal helpers
    def _get_for_update(self, resource_id: str) -> Optional[Resource]:
        return self.db.query(Resource).filter(
            Resource.id == resource_id
        ).populate_existing().with_for_update().first()

    def _require_for_update(self, resource_id: str) -> Resource:
        resource = self._get_for_update(resource_id)
        if resource is None:
            raise NotFound("Resource", resource_id)
        return resource


def to_availability(resource: Resource) -> ResourceAvailability:
    return ResourceAvailability(
        resource_id=resource.id,
        service_type=resource.service_type,
        name=resource.name,
        total_capacity=resource.total_capacity,
        reserved_count=resource.reserved_count,
        available_units=max(resource.total_capacity - resource.reserved_count, 0),
        created_at=resource.created_at,
        updated_at=resource.updated_at
    )


def _check_positive(value, field: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInput(f"{field} must be a positive integer, got {value!r}")


def _service_type(value) -> ServiceType:
    try:
        return ServiceType(value)
    except ValueError:
        raise InvalidInput(f"Unknown service type '{value}'")
