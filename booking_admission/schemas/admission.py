from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from booking_admission.services.records import AdmissionDecision, Reservation


class AdmissionRequestIn(BaseModel):
    resource_id: str = Field(min_length=1)
    start_at: datetime
    end_at: datetime
    quantity: int = Field(default=1, ge=1, le=100000)
    as_of: datetime | None = None


class ReservationOut(BaseModel):
    id: str
    resource_id: str
    booking_type: str
    start_at: datetime
    end_at: datetime
    quantity: int
    status: str

    @classmethod
    def from_record(cls, r: Reservation) -> "ReservationOut":
        return cls(
            id=r.id,
            resource_id=r.resource_id,
            booking_type=r.booking_type,
            start_at=r.interval.start,
            end_at=r.interval.end,
            quantity=r.quantity,
            status=r.status.value,
        )


class AdmissionDecisionOut(BaseModel):
    outcome: Literal["accept", "reject"]
    reservation: ReservationOut | None = None
    kind: str | None = None
    reason: str | None = None
    rule_type: str | None = None
    rule_id: str | None = None
    level: str | None = None
    rule_resource_id: str | None = None
    conflicting_reservation_id: str | None = None

    @classmethod
    def from_decision(cls, d: AdmissionDecision) -> "AdmissionDecisionOut":
        return cls(
            outcome=d.outcome.value,
            reservation=ReservationOut.from_record(d.reservation) if d.reservation else None,
            kind=d.kind,
            reason=d.reason,
            rule_type=d.rule_type,
            rule_id=d.rule_id,
            level=d.level,
            rule_resource_id=d.rule_resource_id,
            conflicting_reservation_id=d.conflicting_reservation_id,
        )


class ReservationStatusUpdate(BaseModel):
    status: Literal["Confirmed", "Cancelled", "Rejected"]
    reason: str = Field(default="", max_length=255)


class StoredReservationOut(BaseModel):
    id: str
    resource_id: str
    booking_type: str
    start_at: datetime
    end_at: datetime
    quantity: int
    status: str
    cancel_reason: str

    class Config:
        from_attributes = True
