"""Per-location advisory locks for concurrent remediation."""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional


class RecordLocks:
    """Hands out one lock per location id.

    ``hold`` acquires several ids in sorted order so two fixers that touch
    overlapping ids cannot deadlock.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, location_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(location_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[location_id] = lock
            return lock

    @contextmanager
    def hold(self, *location_ids: Optional[str]) -> Iterator[None]:
        keys = sorted({key for key in location_ids if key})
        acquired = []
        try:
            for key in keys:
                lock = self._lock_for(key)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def is_held(self, location_id: str) -> bool:
        with self._guard:
            lock = self._locks.get(location_id)
        return lock is not None and lock.locked()
