from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from booking_admission.db.base import Base
from booking_admission.models._mixins import TimestampMixin


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"

    # Assigned by the admission engine, e.g. BKMD2K1QXS4F7Q2
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    resource_id: Mapped[str] = mapped_column(String(36), ForeignKey("resources.id"), nullable=False, index=True)
    booking_type: Mapped[str] = mapped_column(String(16), nullable=False, default="room")  # property/building/room

    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Pending")  # Pending/Confirmed/Rejected/Cancelled

    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancel_reason: Mapped[str] = mapped_column(String(255), nullable=False, default="")
