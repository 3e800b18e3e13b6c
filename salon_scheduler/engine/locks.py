"""Per (worker, date) serialisation of matching and hold creation."""

import threading
from contextlib import contextmanager
from datetime import date
from typing import Iterator


class KeyedLocks:
    """One re-entrant lock per (worker, date) key, created on demand."""

    def __init__(self) -> None:
        self._locks: dict[tuple[str, date], threading.RLock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, worker_id: str, day: date) -> threading.RLock:
        with self._guard:
            lock = self._locks.get((worker_id, day))
            if lock is None:
                lock = threading.RLock()
                self._locks[(worker_id, day)] = lock
            return lock

    @contextmanager
    def hold(self, worker_id: str, day: date) -> Iterator[None]:
        lock = self._lock_for(worker_id, day)
        with lock:
            yield
