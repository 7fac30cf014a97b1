from fastapi import Depends, Request
from sqlalchemy.orm import Session

from community_hub.bookings.booking_service import BookingEngine
from community_hub.database import get_db
from community_hub.locks import KeyedLockRegistry
from community_hub.loyalty.ledger import LoyaltyLedger
from community_hub.loyalty.tiers import TierTable
from community_hub.reports.report_service import ReportAggregator
from community_hub.resources.capacity_pool import CapacityPool


def get_locks(request: Request) -> KeyedLockRegistry:
    """Lock registry shared by every request of this application"""
    return request.app.state.locks

def get_tier_table(request: Request) -> TierTable:
    return request.app.state.tier_table

def get_capacity_pool(
    db: Session = Depends(get_db),
    locks: KeyedLockRegistry = Depends(get_locks)
) -> CapacityPool:
    return CapacityPool(db, locks)

def get_loyalty_ledger(
    request: Request,
    db: Session = Depends(get_db),
    locks: KeyedLockRegistry = Depends(get_locks),
    tier_table: TierTable = Depends(get_tier_table)
) -> LoyaltyLedger:
    return LoyaltyLedger(
        db,
        tier_table,
        locks,
        spend_per_point=request.app.state.settings.SPEND_PER_POINT
    )

def get_booking_engine(
    db: Session = Depends(get_db),
    pool: CapacityPool = Depends(get_capacity_pool),
    ledger: LoyaltyLedger = Depends(get_loyalty_ledger),
    locks: KeyedLockRegistry = Depends(get_locks)
) -> BookingEngine:
    return BookingEngine(db, pool, ledger, locks)

def get_report_aggregator(db: Session = Depends(get_db)) -> ReportAggregator:
    return ReportAggregator(db)
