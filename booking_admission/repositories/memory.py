"""Dict-backed repositories for tests and embedding without a database."""
from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Optional

from booking_admission.repositories.base import build_rule
from booking_admission.services.records import Reservation, ReservationStatus, Resource, Rule, Status


class InMemoryResourceRepository:
    def __init__(self, resources: Iterable[Resource] = ()) -> None:
        self._items: dict[str, Resource] = {}
        for r in resources:
            self.add(r)

    def add(self, resource: Resource) -> Resource:
        self._items[resource.id] = resource
        return resource

    def update(self, resource_id: str, **changes: Any) -> Resource:
        resource = replace(self._items[resource_id], **changes)
        self._items[resource_id] = resource
        return resource

    def get(self, resource_id: str) -> Optional[Resource]:
        return self._items.get(resource_id)

    def children(self, resource_id: str) -> list[Resource]:
        return sorted((r for r in self._items.values() if r.parent_id == resource_id), key=lambda r: r.id)


class InMemoryRuleRepository:
    """Keeps raw rule records and parses them on the way out."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}

    def add(self, **record: Any) -> None:
        record.setdefault("status", Status.ACTIVE.value)
        self._records[record["id"]] = record

    def remove(self, rule_id: str) -> None:
        self._records.pop(rule_id, None)

    def list_active_rules(self, resource_id: str) -> list[Rule]:
        rules = []
        for rec in self._records.values():
            if rec["resource_id"] != resource_id or rec["status"] != Status.ACTIVE.value:
                continue
            rules.append(build_rule(**rec))
        return rules


class InMemoryReservationRepository:
    def __init__(self, reservations: Iterable[Reservation] = ()) -> None:
        self._items: dict[str, Reservation] = {}
        for r in reservations:
            self.save(r)

    def save(self, reservation: Reservation) -> None:
        self._items[reservation.id] = reservation

    def get(self, reservation_id: str) -> Optional[Reservation]:
        return self._items.get(reservation_id)

    def set_status(self, reservation_id: str, status: ReservationStatus) -> Reservation:
        updated = replace(self._items[reservation_id], status=status)
        self._items[reservation_id] = updated
        return updated

    def active_reservations(self, resource_id: str) -> list[Reservation]:
        return [r for r in self._items.values() if r.resource_id == resource_id and r.is_active]

    def all(self) -> list[Reservation]:
        return list(self._items.values())
