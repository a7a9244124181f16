from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from booking_admission.core.config import get_settings
from booking_admission.db.session import SessionLocal
from booking_admission.repositories.sql import SqlReservationRepository, SqlResourceRepository, SqlRuleRepository
from booking_admission.services.admission_service import AdmissionEngine
from booking_admission.services.settings_service import get_or_create_settings, policy_from_settings


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_admission_engine(request: Request, db: Session = Depends(get_db)) -> AdmissionEngine:
    """Engine bound to this request's session and the process-wide index and locks."""
    settings = get_settings()
    return AdmissionEngine(
        SqlResourceRepository(db),
        SqlRuleRepository(db),
        SqlReservationRepository(db),
        index=request.app.state.conflict_index,
        locks=request.app.state.resource_locks,
        policy=policy_from_settings(get_or_create_settings(db)),
        lock_timeout=settings.lock_timeout_seconds,
    )
