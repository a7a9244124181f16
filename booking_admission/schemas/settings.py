from __future__ import annotations

from pydantic import BaseModel, Field


class SettingsOut(BaseModel):
    lead_time_hours: float
    max_booking_duration_days: float
    auto_confirm_bookings: bool
    booking_id_prefix: str

    class Config:
        from_attributes = True


class SettingsUpdate(BaseModel):
    lead_time_hours: float | None = Field(default=None, ge=0, le=8760)
    max_booking_duration_days: float | None = Field(default=None, gt=0, le=3650)
    auto_confirm_bookings: bool | None = None
    booking_id_prefix: str | None = Field(default=None, min_length=1, max_length=8, pattern=r"^[A-Za-z0-9]+$")
