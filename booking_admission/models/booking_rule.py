from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Date, ForeignKey, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from booking_admission.db.base import Base
from booking_admission.models._mixins import TimestampMixin


class BookingRule(Base, TimestampMixin):
    __tablename__ = "booking_rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # operating_hours, min_duration, max_duration, blackout_dates, days_of_week
    rule_type: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    resource_id: Mapped[str] = mapped_column(String(36), ForeignKey("resources.id"), nullable=False, index=True)
    resource_level: Mapped[str] = mapped_column(String(16), nullable=False)

    value_json: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # Inclusive window during which the rule itself is in force
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Active")
