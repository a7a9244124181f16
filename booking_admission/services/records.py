"""Domain records the admission engine works on.

These are plain immutable values. The SQLAlchemy models in
``booking_admission.models`` are translated into them by the repositories.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from booking_admission.core.exceptions import AdmissionError, Conflict, RuleViolation
from booking_admission.schemas.rule_value import RuleType, RuleValue
from booking_admission.services.intervals import Interval


class Level(str, Enum):
    PROPERTY = "property"
    BUILDING = "building"
    ROOM = "room"


PARENT_LEVEL: dict[Level, Optional[Level]] = {
    Level.ROOM: Level.BUILDING,
    Level.BUILDING: Level.PROPERTY,
    Level.PROPERTY: None,
}


class Granularity(str, Enum):
    WHOLE = "whole"  # the resource itself is the bookable unit
    SUBDIVIDED = "subdivided"  # only its children are bookable


class Status(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class ReservationStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"


ACTIVE_RESERVATION_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})


class Outcome(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


@dataclass(frozen=True)
class Resource:
    id: str
    level: Level
    parent_id: Optional[str] = None
    granularity: Granularity = Granularity.WHOLE
    capacity: Optional[int] = None
    status: Status = Status.ACTIVE
    name: str = ""
    timezone: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == Status.ACTIVE


@dataclass(frozen=True)
class Rule:
    id: str
    resource_id: str
    level: Level
    rule_type: RuleType
    value: RuleValue
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Status = Status.ACTIVE
    name: str = ""

    @property
    def is_active(self) -> bool:
        return self.status == Status.ACTIVE

    def applies_between(self, first: date, last: date) -> bool:
        """True if the rule's inclusive window intersects ``[first, last]``."""
        if self.start_date is not None and self.start_date > last:
            return False
        if self.end_date is not None and self.end_date < first:
            return False
        return True


@dataclass(frozen=True)
class Reservation:
    id: str
    resource_id: str
    interval: Interval
    status: ReservationStatus = ReservationStatus.PENDING
    quantity: int = 1
    booking_type: str = ""
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_RESERVATION_STATUSES


@dataclass(frozen=True)
class AdmissionRequest:
    resource_id: str
    interval: Interval
    quantity: int = 1

    @classmethod
    def create(cls, resource_id: str, start: datetime, end: datetime, quantity: int = 1) -> "AdmissionRequest":
        return cls(resource_id=resource_id, interval=Interval(start, end), quantity=quantity)


@dataclass(frozen=True)
class AdmissionDecision:
    outcome: Outcome
    reservation: Optional[Reservation] = None
    kind: Optional[str] = None
    reason: Optional[str] = None
    rule_type: Optional[str] = None
    rule_id: Optional[str] = None
    level: Optional[str] = None
    rule_resource_id: Optional[str] = None
    conflicting_reservation_id: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def accepted(self) -> bool:
        return self.outcome == Outcome.ACCEPT

    @classmethod
    def accept(cls, reservation: Reservation) -> "AdmissionDecision":
        return cls(outcome=Outcome.ACCEPT, reservation=reservation)

    @classmethod
    def reject(cls, error: AdmissionError) -> "AdmissionDecision":
        kwargs: dict[str, Any] = {"kind": error.kind, "reason": error.message, "details": error.to_dict()}
        if isinstance(error, RuleViolation):
            kwargs.update(
                rule_type=error.rule_type,
                rule_id=error.rule_id,
                level=error.level,
                rule_resource_id=error.resource_id,
            )
        elif isinstance(error, Conflict):
            kwargs.update(conflicting_reservation_id=error.reservation_id)
        return cls(outcome=Outcome.REJECT, **kwargs)
