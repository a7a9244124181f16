from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ResourceCreate(BaseModel):
    id: str | None = Field(default=None, min_length=1, max_length=36)
    level: Literal["property", "building", "room"]
    parent_id: str | None = None
    name: str = Field(default="", max_length=255)
    granularity: Literal["whole", "subdivided"] | None = None
    capacity: int | None = Field(default=None, ge=1)
    timezone: str | None = Field(default=None, max_length=64)
    status: Literal["Active", "Inactive"] = "Active"


class ResourceUpdate(BaseModel):
    parent_id: str | None = None
    name: str | None = Field(default=None, max_length=255)
    granularity: Literal["whole", "subdivided"] | None = None
    capacity: int | None = Field(default=None, ge=1)
    timezone: str | None = Field(default=None, max_length=64)
    status: Literal["Active", "Inactive"] | None = None


class ResourceOut(BaseModel):
    id: str
    level: str
    parent_id: str | None
    name: str
    granularity: str
    capacity: int | None
    timezone: str | None
    status: str

    class Config:
        from_attributes = True
