from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from booking_admission.core.deps import get_db
from booking_admission.schemas.settings import SettingsOut, SettingsUpdate
from booking_admission.services.audit_service import record_event
from booking_admission.services.settings_service import get_or_create_settings

router = APIRouter()


@router.get("", response_model=SettingsOut)
def get_settings(db: Session = Depends(get_db)):
    return get_or_create_settings(db)


@router.put("", response_model=SettingsOut)
def update_settings(payload: SettingsUpdate, request: Request, db: Session = Depends(get_db)):
    s = get_or_create_settings(db)
    data = payload.dict(exclude_unset=True)
    for k, v in data.items():
        if v is not None:
            setattr(s, k, v)
    db.commit()
    db.refresh(s)

    record_event(db, action="SETTINGS_UPDATE", summary="Updated admission settings", details=data, request=request)
    return s
