import threading
from contextlib import contextmanager
from typing import Dict, List, Tuple

from sqlalchemy.orm import Session

# Lock kinds, listed in acquisition order
BOOKING = "booking"
RESOURCE = "resource"
USER = "user"

_KIND_ORDER = {BOOKING: 0, RESOURCE: 1, USER: 2}

LockKey = Tuple[str, str]

_ACTIVE_KEY = "community_hub.tx_active"
_HELD_KEY = "community_hub.tx_locks"


class KeyedLockRegistry:
    """Per-entity mutual exclusion for bookings, resources and users.

    One registry is created per application and handed to every service that
    mutates shared state. Locks are re-entrant, so a booking transition can
    hold the booking lock while the capacity pool and the loyalty ledger take
    their own resource and user locks on the same thread.

    Nested acquisitions always follow booking -> resource -> user. A key is
    dropped from the registry once nobody holds or waits for its lock.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, number of holders and waiters]
        self._locks: Dict[LockKey, list] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: LockKey) -> threading.RLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.RLock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _release(self, key: LockKey) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[0].release()
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    def _acquire(self, keys) -> List[LockKey]:
        ordered = sorted(set(keys), key=lambda k: (_KIND_ORDER.get(k[0], 99), str(k[1])))
        acquired = []
        for key in ordered:
            self._checkout(key).acquire()
            acquired.append(key)
        return acquired

    @contextmanager
    def transaction(self, db: Session, *keys: LockKey):
        """Hold the locks for the duration of one database transaction.

        The outermost scope on a session commits on success and rolls back on
        any error. Nested scopes join the enclosing transaction; the locks they
        take stay held until the outermost scope has committed or rolled back.
        """
        held = db.info.setdefault(_HELD_KEY, [])
        held.extend(self._acquire(keys))

        if db.info.get(_ACTIVE_KEY):
            yield db
            return

        db.info[_ACTIVE_KEY] = True
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.info[_ACTIVE_KEY] = False
            while held:
                self._release(held.pop())
