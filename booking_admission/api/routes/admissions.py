from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from booking_admission.core.deps import get_admission_engine, get_db
from booking_admission.core.exceptions import ValidationError
from booking_admission.models.reservation import Reservation
from booking_admission.schemas.admission import AdmissionDecisionOut, AdmissionRequestIn
from booking_admission.services.admission_service import AdmissionEngine
from booking_admission.services.audit_service import record_decision, record_event
from booking_admission.services.records import AdmissionDecision, AdmissionRequest

router = APIRouter()


@router.post("/admissions", response_model=AdmissionDecisionOut)
def admit(
    payload: AdmissionRequestIn,
    request: Request,
    db: Session = Depends(get_db),
    engine: AdmissionEngine = Depends(get_admission_engine),
):
    try:
        candidate = AdmissionRequest.create(payload.resource_id, payload.start_at, payload.end_at, payload.quantity)
        decision = engine.admit(candidate, payload.as_of or datetime.now(timezone.utc))
    except ValidationError as exc:
        decision = AdmissionDecision.reject(exc)

    record_decision(db, payload.resource_id, decision, request=request)
    return AdmissionDecisionOut.from_decision(decision)


@router.post("/reservations/{reservation_id}/release")
def release(
    reservation_id: str,
    request: Request,
    db: Session = Depends(get_db),
    engine: AdmissionEngine = Depends(get_admission_engine),
):
    r = db.get(Reservation, reservation_id)
    if not r:
        raise HTTPException(status_code=404, detail="Not found")
    if r.status != "Cancelled":
        r.status = "Cancelled"
        r.cancelled_at = datetime.now(timezone.utc)
        db.commit()
    released = engine.release(reservation_id)

    record_event(
        db,
        action="RESERVATION_RELEASE",
        summary="Released reservation",
        resource_id=r.resource_id,
        reservation_id=reservation_id,
        details={"indexed": released},
        request=request,
    )
    return {"ok": True, "released": released}
