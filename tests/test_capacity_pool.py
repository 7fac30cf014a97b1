"""
Tests for the capacity pool.
"""
import random

import pytest

from community_hub.exceptions import CapacityExceeded, InvalidInput, NotFound
from community_hub.models import Resource


class TestRegistry:
    def test_register_resource(self, pool):
        resource = pool.register("parking-b1", "parking", "Parking B1", 120)

        assert resource.id == "parking-b1"
        assert resource.service_type == "parking"
        assert resource.total_capacity == 120
        assert resource.reserved_count == 0
        assert pool.available_units("parking-b1") == 120

    def test_register_duplicate_fails(self, pool):
        pool.register("room-a", "reservation", "Room A", 1)
        with pytest.raises(InvalidInput):
            pool.register("room-a", "reservation", "Room A again", 2)

    def test_register_exist_ok_keeps_existing(self, pool):
        pool.register("room-a", "reservation", "Room A", 1)
        pool.reserve("room-a", 1)

        resource = pool.register("room-a", "reservation", "Room A", 5, exist_ok=True)

        assert resource.total_capacity == 1
        assert resource.reserved_count == 1

    @pytest.mark.parametrize("capacity", [0, -3, 1.5, True])
    def test_register_requires_positive_integer_capacity(self, pool, capacity):
        with pytest.raises(InvalidInput):
            pool.register("x", "order", "X", capacity)

    def test_register_unknown_service_type(self, pool):
        with pytest.raises(InvalidInput):
            pool.register("x", "spa", "X", 1)

    def test_list_resources_by_service(self, seeded):
        assert [r.id for r in seeded.list_resources("parking")] == ["parking-b1"]
        assert len(seeded.list_resources()) == 5

    def test_unknown_resource(self, pool):
        with pytest.raises(NotFound):
            pool.available_units("nope")
        with pytest.raises(NotFound):
            pool.reserve("nope", 1)
        with pytest.raises(NotFound):
            pool.release("nope", 1)


class TestReserveRelease:
    def test_reserve_until_full(self, pool):
        pool.register("shuttle-1", "bus", "Shuttle 1", 3)

        pool.reserve("shuttle-1", 2)
        pool.reserve("shuttle-1", 1)

        assert pool.available_units("shuttle-1") == 0

    def test_reserve_beyond_capacity_changes_nothing(self, pool):
        pool.register("shuttle-1", "bus", "Shuttle 1", 3)
        pool.reserve("shuttle-1", 2)

        with pytest.raises(CapacityExceeded) as excinfo:
            pool.reserve("shuttle-1", 2)

        assert excinfo.value.available == 1
        assert excinfo.value.requested == 2
        assert pool.get("shuttle-1").reserved_count == 2

    @pytest.mark.parametrize("units", [0, -1, 2.0, None])
    def test_units_must_be_positive_integers(self, pool, units):
        pool.register("shuttle-1", "bus", "Shuttle 1", 3)
        with pytest.raises(InvalidInput):
            pool.reserve("shuttle-1", units)
        with pytest.raises(InvalidInput):
            pool.release("shuttle-1", units)

    def test_release_returns_units(self, pool):
        pool.register("hall", "event", "Hall", 10)
        pool.reserve("hall", 4)

        pool.release("hall", 3)

        assert pool.available_units("hall") == 9

    def test_over_release_is_clamped_at_zero(self, pool):
        pool.register("hall", "event", "Hall", 10)
        pool.reserve("hall", 2)

        resource = pool.release("hall", 5)

        assert resource.reserved_count == 0
        assert pool.available_units("hall") == 10

    def test_release_on_empty_pool(self, pool):
        pool.register("hall", "event", "Hall", 10)
        assert pool.release("hall", 1).reserved_count == 0

    def test_capacity_invariant_over_random_sequences(self, pool, db):
        """0 <= reserved_count <= total_capacity after every reserve/release."""
        pool.register("kitchen", "order", "Kitchen", 7)
        rng = random.Random(20261019)

        for _ in range(300):
            units = rng.randint(1, 4)
            if rng.random() < 0.6:
                try:
                    pool.reserve("kitchen", units)
                except CapacityExceeded:
                    pass
            else:
                pool.release("kitchen", units)

            row = db.query(Resource).filter(Resource.id == "kitchen").one()
            assert 0 <= row.reserved_count <= row.total_capacity
            assert pool.available_units("kitchen") == row.total_capacity - row.reserved_count


class TestCapacityChanges:
    def test_raise_capacity(self, pool):
        pool.register("hall", "event", "Hall", 10)
        pool.reserve("hall", 10)

        pool.set_capacity("hall", 15)

        assert pool.available_units("hall") == 5

    def test_cannot_shrink_below_reserved(self, pool):
        pool.register("hall", "event", "Hall", 10)
        pool.reserve("hall", 8)

        with pytest.raises(InvalidInput):
            pool.set_capacity("hall", 5)
        assert pool.get("hall").total_capacity == 10

    def test_availability_read_model(self, pool):
        pool.register("hall", "event", "Hall", 10)
        pool.reserve("hall", 3)

        availability = pool.availability("hall")

        assert availability.reserved_count == 3
        assert availability.available_units == 7
        assert availability.service_type.value == "event"
