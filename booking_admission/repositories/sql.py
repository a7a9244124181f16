"""Repositories over the SQLAlchemy record store."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from booking_admission.core.exceptions import ConfigurationError
from booking_admission.models.booking_rule import BookingRule
from booking_admission.models.reservation import Reservation as ReservationRow
from booking_admission.models.resource import Resource as ResourceRow
from booking_admission.repositories.base import build_rule
from booking_admission.services.intervals import Interval
from booking_admission.services.records import (
    ACTIVE_RESERVATION_STATUSES,
    Granularity,
    Level,
    Reservation,
    ReservationStatus,
    Resource,
    Rule,
    Status,
)


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def resource_from_row(row: ResourceRow) -> Resource:
    try:
        return Resource(
            id=row.id,
            level=Level(row.level),
            parent_id=row.parent_id,
            granularity=Granularity(row.granularity),
            capacity=row.capacity,
            status=Status(row.status),
            name=row.name,
            timezone=row.timezone,
        )
    except ValueError as exc:
        raise ConfigurationError(f"Resource {row.id} is malformed: {exc}") from None


def reservation_from_row(row: ReservationRow) -> Reservation:
    return Reservation(
        id=row.id,
        resource_id=row.resource_id,
        interval=Interval(_aware(row.start_at), _aware(row.end_at)),
        status=ReservationStatus(row.status),
        quantity=row.quantity,
        booking_type=row.booking_type,
        created_at=_aware(row.created_at) if row.created_at else None,
    )


class SqlResourceRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, resource_id: str) -> Optional[Resource]:
        row = self.db.get(ResourceRow, resource_id)
        return resource_from_row(row) if row else None

    def children(self, resource_id: str) -> list[Resource]:
        rows = self.db.execute(
            select(ResourceRow).where(ResourceRow.parent_id == resource_id).order_by(ResourceRow.id)
        ).scalars().all()
        return [resource_from_row(r) for r in rows]


class SqlRuleRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def list_active_rules(self, resource_id: str) -> list[Rule]:
        rows = self.db.execute(
            select(BookingRule)
            .where(BookingRule.resource_id == resource_id)
            .where(BookingRule.status == Status.ACTIVE.value)
            .order_by(BookingRule.id)
        ).scalars().all()
        return [
            build_rule(
                id=r.id,
                resource_id=r.resource_id,
                level=r.resource_level,
                rule_type=r.rule_type,
                value=r.value_json,
                start_date=r.start_date,
                end_date=r.end_date,
                status=r.status,
                name=r.name,
            )
            for r in rows
        ]


class SqlReservationRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def active_reservations(self, resource_id: str) -> list[Reservation]:
        rows = self.db.execute(
            select(ReservationRow)
            .where(ReservationRow.resource_id == resource_id)
            .where(ReservationRow.status.in_([s.value for s in ACTIVE_RESERVATION_STATUSES]))
            .order_by(ReservationRow.start_at)
        ).scalars().all()
        return [reservation_from_row(r) for r in rows]

    def all_active(self) -> list[Reservation]:
        rows = self.db.execute(
            select(ReservationRow).where(ReservationRow.status.in_([s.value for s in ACTIVE_RESERVATION_STATUSES]))
        ).scalars().all()
        return [reservation_from_row(r) for r in rows]

    def save(self, reservation: Reservation) -> None:
        row = self.db.get(ReservationRow, reservation.id)
        if row is None:
            row = ReservationRow(id=reservation.id)
            self.db.add(row)
        row.resource_id = reservation.resource_id
        row.booking_type = reservation.booking_type
        row.start_at = reservation.interval.start
        row.end_at = reservation.interval.end
        row.quantity = reservation.quantity
        row.status = reservation.status.value
        self.db.commit()
