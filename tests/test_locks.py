"""
Tests for the keyed lock registry and its transaction scope.
"""
import threading

import pytest

from community_hub.locks import BOOKING, RESOURCE, USER, KeyedLockRegistry
from community_hub.models import Resource


def test_keys_are_held_until_outermost_scope_ends(db, locks):
    with locks.transaction(db, (BOOKING, "b-1")):
        with locks.transaction(db, (RESOURCE, "kitchen")):
            with locks.transaction(db, (USER, "resident-1"), (RESOURCE, "kitchen")):
                assert len(locks) == 3
        assert len(locks) == 3

    assert len(locks) == 0


def test_keys_are_dropped_after_rollback(db, locks):
    with pytest.raises(RuntimeError):
        with locks.transaction(db, (RESOURCE, "kitchen"), (USER, "resident-1")):
            raise RuntimeError("boom")

    assert len(locks) == 0


def test_outermost_scope_commits_nested_work(db, session_factory, locks):
    with locks.transaction(db, (RESOURCE, "hall")):
        with locks.transaction(db, (RESOURCE, "hall")):
            db.add(Resource(id="hall", service_type="event", name="Hall",
                            total_capacity=5, reserved_count=0))
            db.flush()

    other = session_factory()
    try:
        assert other.query(Resource).filter(Resource.id == "hall").count() == 1
    finally:
        other.close()


def test_nested_failure_rolls_back_everything(db, locks):
    with pytest.raises(ValueError):
        with locks.transaction(db, (RESOURCE, "hall")):
            db.add(Resource(id="hall", service_type="event", name="Hall",
                            total_capacity=5, reserved_count=0))
            db.flush()
            with locks.transaction(db, (USER, "resident-1")):
                raise ValueError("nested")

    assert db.query(Resource).count() == 0
    assert len(locks) == 0


def test_waiting_thread_keeps_key_registered(db, session_factory):
    locks = KeyedLockRegistry()
    entered = threading.Event()
    finished = threading.Event()

    def contend():
        session = session_factory()
        try:
            entered.set()
            with locks.transaction(session, (RESOURCE, "kitchen")):
                pass
            finished.set()
        finally:
            session.close()

    with locks.transaction(db, (RESOURCE, "kitchen")):
        worker = threading.Thread(target=contend)
        worker.start()
        entered.wait(timeout=5)
        assert not finished.wait(timeout=0.2)
        assert len(locks) == 1

    worker.join(timeout=5)
    assert finished.is_set()
    assert len(locks) == 0
