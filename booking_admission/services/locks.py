from __future__ import annotations

import threading
from contextlib import contextmanager
from time import monotonic
from typing import Iterable, Iterator, Optional

from booking_admission.core.exceptions import LockTimeout


class ResourceLocks:
    """Lazily created mutex per resource id.

    ``hold`` takes several locks in sorted id order so two callers can never
    wait on each other in a cycle.
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, resource_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(resource_id)
            if lock is None:
                lock = self._locks[resource_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, resource_ids: Iterable[str], timeout: Optional[float] = None) -> Iterator[None]:
        deadline = monotonic() + timeout if timeout is not None else None
        acquired: list[threading.Lock] = []
        try:
            for resource_id in sorted(set(resource_ids)):
                lock = self._lock_for(resource_id)
                if deadline is None:
                    lock.acquire()
                elif not lock.acquire(timeout=max(0.0, deadline - monotonic())):
                    raise LockTimeout(f"Timed out waiting for resource {resource_id}")
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
