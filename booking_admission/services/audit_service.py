from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping

from fastapi import Request
from sqlalchemy.orm import Session

from booking_admission.models.audit_log import AuditLog
from booking_admission.services.records import AdmissionDecision


def _jsonable(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {str(k): _jsonable(v) for k, v in obj.items() if v is not None}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in obj]
    return obj


def record_event(
    db: Session,
    *,
    action: str,
    summary: str = "",
    resource_id: str | None = None,
    reservation_id: str | None = None,
    rule_id: str | None = None,
    kind: str | None = None,
    details: Mapping[str, Any] | None = None,
    request: Request | None = None,
) -> AuditLog:
    log = AuditLog(
        action=action,
        resource_id=resource_id,
        reservation_id=reservation_id,
        rule_id=rule_id,
        kind=kind,
        summary=summary[:255],
        details=_jsonable(dict(details)) if details else None,
        client_ip=request.client.host if request is not None and request.client else "",
    )
    db.add(log)
    db.commit()
    return log


def record_decision(db: Session, resource_id: str, decision: AdmissionDecision, *, request: Request | None = None) -> AuditLog:
    """Audit one admission outcome."""
    if decision.accepted:
        r = decision.reservation
        return record_event(
            db,
            action="ADMISSION_ACCEPT",
            summary=f"Accepted {r.booking_type} reservation on {r.resource_id}",
            resource_id=r.resource_id,
            reservation_id=r.id,
            details={"start_at": r.interval.start, "end_at": r.interval.end, "quantity": r.quantity, "status": r.status},
            request=request,
        )
    return record_event(
        db,
        action="ADMISSION_REJECT",
        summary=decision.reason or "Rejected",
        resource_id=resource_id,
        reservation_id=decision.conflicting_reservation_id,
        rule_id=decision.rule_id,
        kind=decision.kind,
        details=decision.details,
        request=request,
    )
