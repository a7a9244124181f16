from __future__ import annotations

import threading
from bisect import bisect_left, bisect_right
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable, Optional

from booking_admission.services.intervals import Interval
from booking_admission.services.records import Reservation, ReservationStatus


class _Slots:
    """Active reservations of one resource, sorted by start.

    ``max_span`` is the longest duration ever stored, so a backwards scan from
    the last entry starting before the query end can stop as soon as
    ``start + max_span`` falls at or before the query start.
    """

    __slots__ = ("starts", "items", "max_span")

    def __init__(self) -> None:
        self.starts: list[datetime] = []
        self.items: list[Reservation] = []
        self.max_span = timedelta(0)

    def insert(self, reservation: Reservation) -> None:
        i = bisect_right(self.starts, reservation.interval.start)
        self.starts.insert(i, reservation.interval.start)
        self.items.insert(i, reservation)
        if reservation.interval.duration > self.max_span:
            self.max_span = reservation.interval.duration

    def remove(self, reservation_id: str) -> Optional[Reservation]:
        for i, item in enumerate(self.items):
            if item.id == reservation_id:
                del self.starts[i]
                return self.items.pop(i)
        return None

    def replace(self, reservation: Reservation) -> None:
        for i, item in enumerate(self.items):
            if item.id == reservation.id:
                self.items[i] = reservation
                return

    def overlapping(self, interval: Interval) -> list[Reservation]:
        hi = bisect_left(self.starts, interval.end)
        floor = interval.start - self.max_span
        out = []
        i = hi - 1
        while i >= 0 and self.starts[i] > floor:
            if self.items[i].interval.end > interval.start:
                out.append(self.items[i])
            i -= 1
        out.sort(key=lambda r: (r.interval.start, r.id))
        return out


class ConflictIndex:
    """Per-resource interval index over Pending/Confirmed reservations.

    Structure updates are guarded by an internal lock. Serializing
    check-then-reserve across requests is the job of ``ResourceLocks``.
    """

    def __init__(self) -> None:
        self._slots: dict[str, _Slots] = {}
        self._by_id: dict[str, Reservation] = {}
        self._warm: set[str] = set()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, reservation_id: object) -> bool:
        return reservation_id in self._by_id

    def is_warm(self, resource_id: str) -> bool:
        return resource_id in self._warm

    def warm(self, resource_id: str, reservations: Iterable[Reservation]) -> int:
        """Merge a repository snapshot for ``resource_id``; later calls are no-ops."""
        added = 0
        with self._lock:
            if resource_id in self._warm:
                return 0
            for reservation in reservations:
                if reservation.resource_id != resource_id or not reservation.is_active:
                    continue
                if reservation.id in self._by_id:
                    continue
                self._insert(reservation)
                added += 1
            self._warm.add(resource_id)
        return added

    def add(self, reservation: Reservation) -> None:
        with self._lock:
            if reservation.id in self._by_id:
                self._remove(reservation.id)
            if reservation.is_active:
                self._insert(reservation)

    def remove(self, reservation_id: str) -> Optional[Reservation]:
        with self._lock:
            return self._remove(reservation_id)

    def update_status(self, reservation_id: str, status: ReservationStatus) -> Optional[Reservation]:
        """Apply a status change. Returns the indexed reservation, or None if unknown."""
        with self._lock:
            current = self._by_id.get(reservation_id)
            if current is None:
                return None
            updated = replace(current, status=status)
            if updated.is_active:
                self._by_id[reservation_id] = updated
                self._slots[updated.resource_id].replace(updated)
            else:
                self._remove(reservation_id)
            return updated

    def get(self, reservation_id: str) -> Optional[Reservation]:
        return self._by_id.get(reservation_id)

    def any_overlap(self, resource_id: str, interval: Interval) -> Optional[Reservation]:
        """Earliest-starting active reservation on ``resource_id`` overlapping ``interval``."""
        with self._lock:
            slots = self._slots.get(resource_id)
            if slots is None:
                return None
            hits = slots.overlapping(interval)
            return hits[0] if hits else None

    def _insert(self, reservation: Reservation) -> None:
        self._slots.setdefault(reservation.resource_id, _Slots()).insert(reservation)
        self._by_id[reservation.id] = reservation

    def _remove(self, reservation_id: str) -> Optional[Reservation]:
        reservation = self._by_id.pop(reservation_id, None)
        if reservation is None:
            return None
        self._slots[reservation.resource_id].remove(reservation_id)
        return reservation
