"""Per-key mutual exclusion for booking and driver mutations."""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from cabdispatch.engine.errors import ConcurrentModification


class KeyedLocks:
    """
    Registry of one lock per key (``booking:<id>``, ``driver:<id>``).

    Keys are always acquired in sorted order so two holders of overlapping key
    sets cannot deadlock. A holder that cannot get a key within ``timeout``
    gets ``ConcurrentModification`` instead of waiting forever.
    """

    def __init__(self, timeout: Optional[float] = 5.0):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        acquired = []
        try:
            for key in sorted(set(k for k in keys if k)):
                lock = self._lock_for(key)
                ok = lock.acquire(timeout=self.timeout) if self.timeout is not None else lock.acquire()
                if not ok:
                    raise ConcurrentModification(key)
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


def booking_key(booking_id: str) -> str:
    return f"booking:{booking_id}"


def driver_key(driver_id: Optional[str]) -> Optional[str]:
    return f"driver:{driver_id}" if driver_id else None
