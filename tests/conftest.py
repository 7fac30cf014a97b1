"""
Shared fixtures: an in-memory SQLite database per test, the core services
wired the same way the application wires them, and an HTTP client.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from community_hub.bookings.booking_service import BookingEngine
from community_hub.config import DEFAULT_TIER_TABLE, ResourceConfig, Settings
from community_hub.database import init_db
from community_hub.locks import KeyedLockRegistry
from community_hub.loyalty.ledger import LoyaltyLedger
from community_hub.loyalty.tiers import TierTable
from community_hub.main import create_app
from community_hub.reports.report_service import ReportAggregator
from community_hub.resources.capacity_pool import CapacityPool


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def locks():
    return KeyedLockRegistry()


@pytest.fixture
def tier_table():
    return TierTable.from_config(DEFAULT_TIER_TABLE)


@pytest.fixture
def pool(db, locks):
    return CapacityPool(db, locks)


@pytest.fixture
def ledger(db, tier_table, locks):
    return LoyaltyLedger(db, tier_table, locks, spend_per_point=20000)


@pytest.fixture
def bookings(db, pool, ledger, locks):
    return BookingEngine(db, pool, ledger, locks)


@pytest.fixture
def reports(db):
    return ReportAggregator(db)


@pytest.fixture
def seeded(pool):
    """One resource per service type"""
    pool.register("kitchen", "order", "Kitchen", 10)
    pool.register("room-a", "reservation", "Room A", 1)
    pool.register("parking-b1", "parking", "Parking B1", 3)
    pool.register("shuttle-1", "bus", "Shuttle 1", 4)
    pool.register("hall", "event", "Hall", 50)
    return pool


TEST_RESOURCES = [
    ResourceConfig(resource_id="kitchen", service_type="order", name="Kitchen", total_capacity=10),
    ResourceConfig(resource_id="room-a", service_type="reservation", name="Room A", total_capacity=1),
    ResourceConfig(resource_id="hall", service_type="event", name="Hall", total_capacity=50),
]


@pytest.fixture
def app_settings():
    return Settings(
        DATABASE_URL="sqlite://",
        RESOURCES=TEST_RESOURCES,
        TIER_TABLE=DEFAULT_TIER_TABLE,
        SPEND_PER_POINT=20000,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def client(app_settings, session_factory):
    app = create_app(app_settings, session_factory=session_factory)
    with TestClient(app) as test_client:
        yield test_client
