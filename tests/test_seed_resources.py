"""
Tests for loading configured resources into the capacity pool.
"""
import logging

from community_hub.config import ResourceConfig
from community_hub.main import seed_resources
from community_hub.resources.capacity_pool import CapacityPool


def _hall(capacity):
    return [ResourceConfig(resource_id="hall", service_type="event", name="Hall", total_capacity=capacity)]


def test_seeding_registers_resources(session_factory, locks, pool):
    assert seed_resources(session_factory, locks, _hall(10)) == 1
    assert pool.available_units("hall") == 10


def test_reseeding_applies_new_capacity(session_factory, locks, pool):
    seed_resources(session_factory, locks, _hall(1))

    seed_resources(session_factory, locks, _hall(50))

    assert pool.get("hall").total_capacity == 50
    assert pool.available_units("hall") == 50


def test_reseeding_can_shrink_capacity(session_factory, locks, pool):
    seed_resources(session_factory, locks, _hall(50))
    pool.reserve("hall", 5)

    seed_resources(session_factory, locks, _hall(20))

    assert pool.get("hall").total_capacity == 20
    assert pool.available_units("hall") == 15


def test_capacity_below_reserved_is_kept(session_factory, locks, pool, caplog):
    seed_resources(session_factory, locks, _hall(10))
    pool.reserve("hall", 8)

    with caplog.at_level(logging.WARNING, logger="community_hub.main"):
        seed_resources(session_factory, locks, _hall(5))

    assert pool.get("hall").total_capacity == 10
    assert pool.get("hall").reserved_count == 8
    assert "Keeping capacity 10 for hall" in caplog.text


def test_reseeding_same_capacity_changes_nothing(session_factory, locks):
    seed_resources(session_factory, locks, _hall(10))
    seed_resources(session_factory, locks, _hall(10))

    db = session_factory()
    try:
        assert len(CapacityPool(db, locks).list_resources()) == 1
    finally:
        db.close()
