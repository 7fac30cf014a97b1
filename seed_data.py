#!/usr/bin/env python3

import sys
from decimal import Decimal

from community_hub.bookings.booking_service import BookingEngine
from community_hub.bookings.state_machine import BookingStatus
from community_hub.config import settings
from community_hub.database import SessionLocal, engine, init_db
from community_hub.locks import KeyedLockRegistry
from community_hub.loyalty.ledger import LoyaltyLedger
from community_hub.loyalty.tiers import TierTable
from community_hub.main import seed_resources
from community_hub.resources.capacity_pool import CapacityPool

# Demo bookings: (user, resource, units, amount, discount, path through the state machine)
DEMO_BOOKINGS = [
    ("resident-001", "restaurant-main", 1, Decimal('350000'), Decimal('0'),
     [BookingStatus.PREPARING, BookingStatus.READY, BookingStatus.DELIVERED]),
    ("resident-001", "football-field", 1, Decimal('1800000'), Decimal('100000'),
     [BookingStatus.CONFIRMED, BookingStatus.COMPLETED]),
    ("resident-002", "parking-b1", 1, Decimal('1200000'), Decimal('0'),
     [BookingStatus.CONFIRMED]),
    ("resident-002", "shuttle-route-1", 2, Decimal('60000'), Decimal('0'),
     [BookingStatus.CANCELLED]),
    ("resident-003", "community-hall", 1, Decimal('0'), Decimal('0'),
     [BookingStatus.APPROVED]),
    ("resident-003", "meeting-room-a", 1, Decimal('500000'), Decimal('50000'), []),
]

def create_seed_data(with_demo: bool = False):
    init_db(engine)
    locks = KeyedLockRegistry()

    print("Loading configured resources...")
    count = seed_resources(SessionLocal, locks, settings.RESOURCES)
    print(f"  - {count} resources")

    if not with_demo:
        return

    db = SessionLocal()
    try:
        print("Creating demo bookings...")
        tier_table = TierTable.from_config(settings.TIER_TABLE)
        ledger = LoyaltyLedger(db, tier_table, locks, spend_per_point=settings.SPEND_PER_POINT)
        booking_engine = BookingEngine(db, CapacityPool(db, locks), ledger, locks)

        # One transaction for the whole demo: a failure leaves no demo bookings behind
        with locks.transaction(db):
            for user_id, resource_id, units, amount, discount, path in DEMO_BOOKINGS:
                booking = booking_engine.create(user_id, resource_id, units, amount, discount, actor="seed")
                for next_status in path:
                    booking = booking_engine.transition(booking.booking_id, next_status, actor="seed")
                print(f"  - {booking.service_type.value} booking {booking.booking_id}: {booking.status.value}")

        print("✅ Successfully created demo data")
    except Exception as e:
        print(f"❌ Error creating seed data: {e}")
        raise
    finally:
        db.close()

if __name__ == "__main__":
    create_seed_data(with_demo="--demo" in sys.argv)
