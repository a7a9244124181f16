from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class AuditLogOut(BaseModel):
    id: str
    created_at: datetime
    action: str
    resource_id: str | None
    reservation_id: str | None
    rule_id: str | None
    kind: str | None
    summary: str
    details: dict | None
    client_ip: str

    class Config:
        from_attributes = True
