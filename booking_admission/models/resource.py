from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from booking_admission.db.base import Base
from booking_admission.models._mixins import TimestampMixin


class Resource(Base, TimestampMixin):
    """Property, Building or Room, linked through ``parent_id``."""

    __tablename__ = "resources"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    level: Mapped[str] = mapped_column(String(16), nullable=False, index=True)  # property/building/room
    parent_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("resources.id"), nullable=True, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    granularity: Mapped[str] = mapped_column(String(16), nullable=False, default="whole")  # whole/subdivided
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Only meaningful on properties, e.g. America/New_York
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Active")  # Active/Inactive
