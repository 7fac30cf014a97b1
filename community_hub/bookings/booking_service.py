import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from community_hub.bookings.schemas import (
    BookingRecord, BookingRequest, BookingSearchFilters, StatusChangeRecord
)
from community_hub.bookings.state_machine import (
    BookingStatus, COMPLETION_STATUSES, RELEASE_STATUSES,
    allowed_transitions, can_transition, is_terminal
)
from community_hub.exceptions import InvalidInput, InvalidTransition, NotFound
from community_hub.locks import KeyedLockRegistry, BOOKING, RESOURCE
from community_hub.loyalty.ledger import LoyaltyLedger
from community_hub.loyalty.tiers import to_decimal
from community_hub.models import Booking, BookingStatusChange
from community_hub.resources.capacity_pool import CapacityPool
from community_hub.resources.schemas import ServiceType

logger = logging.getLogger(__name__)

# Booking amounts are stored as Numeric(14, 2)
CENT = Decimal('0.01')
MAX_AMOUNT = Decimal('1000000000000')


class BookingEngine:
    """Booking lifecycle shared by orders, reservations, parking, bus seats and events.

    Creating a booking reserves units in the capacity pool; cancelling or
    rejecting it gives them back; completing or delivering it credits the net
    amount to the user's loyalty account. Bookings are never deleted. Each
    status change is appended to the booking's audit trail.
    """

    def __init__(
        self,
        db: Session,
        pool: CapacityPool,
        ledger: LoyaltyLedger,
        locks: KeyedLockRegistry
    ):
        self.db = db
        self.pool = pool
        self.ledger = ledger
        self.locks = locks

    def submit(self, request: BookingRequest) -> BookingRecord:
        """Create a booking from an inbound request, resolving the member discount"""
        discount = request.discount
        if discount is None:
            discount = Decimal('0')
            if request.apply_member_discount:
                discount = self.ledger.member_discount(request.user_id, request.amount).discount

        return self.create(
            user_id=request.user_id,
            resource_id=request.resource_id,
            requested_units=request.requested_units,
            amount=request.amount,
            discount=discount,
            actor=request.actor
        )

    def create(
        self,
        user_id: str,
        resource_id: str,
        requested_units: int,
        amount,
        discount=0,
        actor: Optional[str] = None
    ) -> BookingRecord:
        """Reserve capacity and open a booking in `pending`; all or nothing"""
        if not user_id or not str(user_id).strip():
            raise InvalidInput("user_id is required")
        if isinstance(requested_units, bool) or not isinstance(requested_units, int) or requested_units <= 0:
            raise InvalidInput(f"requested_units must be a positive integer, got {requested_units!r}")
        amount = _money(amount, "amount")
        discount = _money(discount, "discount")
        if discount > amount:
            raise InvalidInput(f"discount {discount} cannot exceed amount {amount}")

        with self.locks.transaction(self.db, (RESOURCE, resource_id)):
            resource = self.pool.reserve(resource_id, requested_units)

            now = datetime.now()
            booking = Booking(
                id=str(uuid.uuid4()),
                user_id=user_id,
                resource_id=resource_id,
                service_type=resource.service_type,
                requested_units=requested_units,
                amount=amount,
                discount=discount,
                status=BookingStatus.PENDING.value,
                points_earned=0,
                created_at=now,
                updated_at=now
            )
            self.db.add(booking)
            self.db.add(BookingStatusChange(
                booking_id=booking.id,
                from_status=None,
                to_status=BookingStatus.PENDING.value,
                actor=actor,
                changed_at=now
            ))
            self.db.flush()
            record = to_record(booking)

        logger.info(
            "Created %s booking %s for user %s on %s (%d unit(s), amount %s, discount %s)",
            record.service_type.value, record.booking_id, user_id, resource_id,
            requested_units, amount, discount
        )
        return record

    def transition(self, booking_id: str, new_status, actor: Optional[str] = None) -> BookingRecord:
        """Apply one status edge, releasing capacity or accruing points as required.

        The edge check, the status write, the pool release and the loyalty
        accrual commit together under the booking's lock, so a booking can
        reach a completion status, and be credited, at most once.
        """
        new_status = _status(new_status)

        with self.locks.transaction(self.db, (BOOKING, booking_id)):
            booking = self._require_for_update(booking_id)
            current = BookingStatus(booking.status)
            service_type = ServiceType(booking.service_type)

            if is_terminal(current):
                logger.warning(
                    "Booking %s is already %s; %s refused",
                    booking_id, current.value, new_status.value
                )
                raise InvalidTransition(booking_id, current.value, new_status.value)

            if not can_transition(service_type, current, new_status):
                logger.warning(
                    "Rejected transition of booking %s from %s to %s",
                    booking_id, current.value, new_status.value
                )
                raise InvalidTransition(booking_id, current.value, new_status.value)

            now = datetime.now()

            if new_status in RELEASE_STATUSES:
                self.pool.release(booking.resource_id, booking.requested_units)

            if new_status in COMPLETION_STATUSES:
                net_amount = Decimal(booking.amount) - Decimal(booking.discount)
                accrual = self.ledger.accrue(booking.user_id, net_amount, reference_id=booking.id)
                booking.points_earned = accrual.points_earned
                booking.completed_at = now

            booking.status = new_status.value
            booking.updated_at = now
            self.db.add(BookingStatusChange(
                booking_id=booking.id,
                from_status=current.value,
                to_status=new_status.value,
                actor=actor,
                changed_at=now
            ))
            self.db.flush()
            record = to_record(booking)

        logger.info(
            "Booking %s moved from %s to %s (actor=%s)",
            booking_id, current.value, new_status.value, actor
        )
        return record

    def cancel(self, booking_id: str, actor: Optional[str] = None) -> BookingRecord:
        """Cancel on behalf of the requester or an operator; same rule for both"""
        return self.transition(booking_id, BookingStatus.CANCELLED, actor=actor)

    def get(self, booking_id: str) -> BookingRecord:
        return to_record(self._require(booking_id))

    def list_bookings(
        self,
        filters: Optional[BookingSearchFilters] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[BookingRecord], int]:
        """Bookings matching the filters, newest first, with the total match count"""
        query = self.db.query(Booking)

        if filters:
            if filters.status:
                query = query.filter(Booking.status == filters.status.value)
            if filters.service_type:
                query = query.filter(Booking.service_type == filters.service_type.value)
            if filters.user_id:
                query = query.filter(Booking.user_id == filters.user_id)
            if filters.resource_id:
                query = query.filter(Booking.resource_id == filters.resource_id)

        total = query.count()
        bookings = query.order_by(
            Booking.created_at.desc(), Booking.id
        ).offset(skip).limit(limit).all()

        return [to_record(booking) for booking in bookings], total

    def history(self, booking_id: str) -> List[StatusChangeRecord]:
        booking = self._require(booking_id)
        return [StatusChangeRecord.from_orm(change) for change in booking.status_history]

    # Internal helpers
    def _require(self, booking_id: str) -> Booking:
        booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if booking is None:
            raise NotFound("Booking", booking_id)
        return booking

    def _require_for_update(self, booking_id: str) -> Booking:
        booking = self.db.query(Booking).filter(
            Booking.id == booking_id
        ).populate_existing().with_for_update().first()
        if booking is None:
            raise NotFound("Booking", booking_id)
        return booking


def to_record(booking: Booking) -> BookingRecord:
    amount = Decimal(booking.amount)
    discount = Decimal(booking.discount or 0)
    status = BookingStatus(booking.status)
    service_type = ServiceType(booking.service_type)
    return BookingRecord(
        booking_id=booking.id,
        user_id=booking.user_id,
        resource_id=booking.resource_id,
        service_type=service_type,
        requested_units=booking.requested_units,
        amount=amount,
        discount=discount,
        final_amount=amount - discount,
        status=status,
        points_earned=booking.points_earned or 0,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
        completed_at=booking.completed_at,
        allowed_transitions=sorted(allowed_transitions(service_type, status), key=lambda s: s.value)
    )


def _money(value, field: str) -> Decimal:
    """Non-negative amount that fits Numeric(14, 2) without rounding"""
    value = to_decimal(value, field)
    if value < 0:
        raise InvalidInput(f"{field} must be non-negative, got {value}")
    if value >= MAX_AMOUNT:
        raise InvalidInput(f"{field} must be below {MAX_AMOUNT}, got {value}")
    if value != value.quantize(CENT):
        raise InvalidInput(f"{field} allows at most 2 decimal places, got {value}")
    return value


def _status(value) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        raise InvalidInput(f"Unknown booking status '{value}'")
