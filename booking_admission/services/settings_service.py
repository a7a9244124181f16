from __future__ import annotations

from sqlalchemy.orm import Session

from booking_admission.core.config import get_settings
from booking_admission.models.settings import AdmissionSettings
from booking_admission.services.admission_service import AdmissionPolicy


def get_or_create_settings(db: Session) -> AdmissionSettings:
    s = db.get(AdmissionSettings, 1)
    if s is None:
        s = AdmissionSettings(id=1, lead_time_hours=24, max_booking_duration_days=30, auto_confirm_bookings=False, booking_id_prefix="BK")
        db.add(s)
        db.commit()
        db.refresh(s)
    return s


def policy_from_settings(row: AdmissionSettings) -> AdmissionPolicy:
    return AdmissionPolicy(
        lead_time_hours=row.lead_time_hours,
        max_booking_duration_days=row.max_booking_duration_days,
        auto_confirm=row.auto_confirm_bookings,
        booking_id_prefix=row.booking_id_prefix,
        default_timezone=get_settings().timezone,
    )
