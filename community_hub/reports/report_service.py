from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from community_hub.bookings.state_machine import COMPLETION_STATUSES, TERMINAL_STATUSES
from community_hub.models import Booking
from community_hub.reports.schemas import ReportSummary, ServiceRevenue, TransactionRecord
from community_hub.resources.schemas import ServiceType

_COMPLETED = [status.value for status in COMPLETION_STATUSES]
_TERMINAL = [status.value for status in TERMINAL_STATUSES]


class ReportAggregator:
    """Read-only rollups over completed bookings"""

    def __init__(self, db: Session):
        self.db = db

    def revenue_by_service(self) -> List[ServiceRevenue]:
        revenue = defaultdict(Decimal)
        counts = defaultdict(int)

        for booking in self._completed().all():
            revenue[booking.service_type] += _net(booking)
            counts[booking.service_type] += 1

        return [
            ServiceRevenue(
                service=service_type,
                revenue=revenue[service_type.value],
                transactions=counts[service_type.value]
            )
            for service_type in ServiceType
        ]

    def transactions(
        self,
        user_id: Optional[str] = None,
        service_type: Optional[ServiceType] = None,
        skip: int = 0,
        limit: int = 100
    ) -> Tuple[List[TransactionRecord], int]:
        query = self._completed()
        if user_id:
            query = query.filter(Booking.user_id == user_id)
        if service_type:
            query = query.filter(Booking.service_type == ServiceType(service_type).value)

        total = query.count()
        rows = query.order_by(Booking.completed_at.desc(), Booking.id).offset(skip).limit(limit).all()

        return [
            TransactionRecord(
                booking_id=booking.id,
                user_id=booking.user_id,
                service_type=booking.service_type,
                resource_id=booking.resource_id,
                amount=Decimal(booking.amount),
                discount=Decimal(booking.discount or 0),
                final_amount=_net(booking),
                points_earned=booking.points_earned or 0,
                completed_at=booking.completed_at
            )
            for booking in rows
        ], total

    def summary(self) -> ReportSummary:
        completed = self._completed().all()
        total_revenue = sum((_net(booking) for booking in completed), Decimal('0'))
        total_transactions = len(completed)
        average = Decimal('0')
        if total_transactions:
            average = (total_revenue / total_transactions).quantize(
                Decimal('0.01'), rounding=ROUND_HALF_UP
            )

        by_status = dict(
            self.db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
        )
        active = self.db.query(Booking).filter(~Booking.status.in_(_TERMINAL)).count()

        return ReportSummary(
            total_revenue=total_revenue,
            total_transactions=total_transactions,
            average_transaction_value=average,
            bookings_by_status=by_status,
            active_bookings=active
        )

    def _completed(self):
        return self.db.query(Booking).filter(Booking.status.in_(_COMPLETED))


def _net(booking: Booking) -> Decimal:
    return Decimal(booking.amount) - Decimal(booking.discount or 0)
