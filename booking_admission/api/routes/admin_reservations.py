from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from booking_admission.core.deps import get_admission_engine, get_db
from booking_admission.models.reservation import Reservation
from booking_admission.schemas.admission import ReservationStatusUpdate, StoredReservationOut
from booking_admission.services.admission_service import AdmissionEngine
from booking_admission.services.audit_service import record_event
from booking_admission.services.records import ReservationStatus

router = APIRouter()


@router.get("", response_model=list[StoredReservationOut])
def list_reservations(
    resource_id: str | None = None,
    status: str | None = None,
    db: Session = Depends(get_db),
):
    q = select(Reservation)
    if resource_id:
        q = q.where(Reservation.resource_id == resource_id)
    if status:
        q = q.where(Reservation.status == status)
    q = q.order_by(Reservation.start_at.asc())
    return db.execute(q.limit(1000)).scalars().all()


@router.get("/{reservation_id}", response_model=StoredReservationOut)
def get_reservation(reservation_id: str, db: Session = Depends(get_db)):
    r = db.get(Reservation, reservation_id)
    if not r:
        raise HTTPException(status_code=404, detail="Not found")
    return r


@router.post("/{reservation_id}/status", response_model=StoredReservationOut)
def update_status(
    reservation_id: str,
    payload: ReservationStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    engine: AdmissionEngine = Depends(get_admission_engine),
):
    r = db.get(Reservation, reservation_id)
    if not r:
        raise HTTPException(status_code=404, detail="Not found")
    if r.status in (ReservationStatus.CANCELLED.value, ReservationStatus.REJECTED.value):
        raise HTTPException(status_code=409, detail=f"Reservation is already {r.status}")

    previous = r.status
    r.status = payload.status
    if payload.status == ReservationStatus.CANCELLED.value:
        r.cancelled_at = datetime.now(timezone.utc)
        r.cancel_reason = payload.reason
    db.commit()
    db.refresh(r)
    engine.transition(reservation_id, ReservationStatus(payload.status))

    record_event(
        db,
        action="RESERVATION_STATUS",
        summary=f"{previous} -> {payload.status}",
        resource_id=r.resource_id,
        reservation_id=reservation_id,
        details={"from": previous, "to": payload.status, "reason": payload.reason},
        request=request,
    )
    return r
