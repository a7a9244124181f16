from __future__ import annotations

from sqlalchemy import Boolean, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from booking_admission.db.base import Base


class AdmissionSettings(Base):
    __tablename__ = "admission_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)

    # Minimum hours between now and the requested start
    lead_time_hours: Mapped[float] = mapped_column(Float, nullable=False, default=24)

    # System-wide upper bound, composed with max_duration rules
    max_booking_duration_days: Mapped[float] = mapped_column(Float, nullable=False, default=30)

    # Accepted reservations start Confirmed instead of Pending
    auto_confirm_bookings: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    booking_id_prefix: Mapped[str] = mapped_column(String(16), nullable=False, default="BK")
