from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field


class BookingRuleCreate(BaseModel):
    id: str | None = Field(default=None, min_length=1, max_length=36)
    rule_type: str = Field(min_length=1, max_length=64)
    name: str = Field(default="", max_length=255)
    resource_id: str
    value_json: dict = Field(default_factory=dict)
    start_date: date | None = None
    end_date: date | None = None
    status: Literal["Active", "Inactive"] = "Active"


class BookingRuleUpdate(BaseModel):
    rule_type: str | None = Field(default=None, min_length=1, max_length=64)
    name: str | None = Field(default=None, max_length=255)
    value_json: dict | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: Literal["Active", "Inactive"] | None = None


class BookingRuleOut(BaseModel):
    id: str
    rule_type: str
    name: str
    resource_id: str
    resource_level: str
    value_json: dict
    start_date: date | None
    end_date: date | None
    status: str

    class Config:
        from_attributes = True
