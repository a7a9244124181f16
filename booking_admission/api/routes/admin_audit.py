from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from booking_admission.core.deps import get_db
from booking_admission.models.audit_log import AuditLog
from booking_admission.schemas.audit import AuditLogOut

router = APIRouter()


@router.get("", response_model=list[AuditLogOut])
def list_audit_logs(
    from_: datetime | None = Query(default=None, alias="from"),
    to: datetime | None = None,
    action: str | None = None,
    resource_id: str | None = None,
    reservation_id: str | None = None,
    kind: str | None = None,
    limit: int = Query(default=200, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    q = select(AuditLog).order_by(AuditLog.created_at.desc())
    if from_:
        q = q.where(AuditLog.created_at >= from_)
    if to:
        q = q.where(AuditLog.created_at <= to)
    if action:
        q = q.where(AuditLog.action == action)
    if resource_id:
        q = q.where(AuditLog.resource_id == resource_id)
    if reservation_id:
        q = q.where(AuditLog.reservation_id == reservation_id)
    if kind:
        q = q.where(AuditLog.kind == kind)

    return db.execute(q.limit(limit)).scalars().all()
