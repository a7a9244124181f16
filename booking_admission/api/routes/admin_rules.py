from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from booking_admission.core.deps import get_db
from booking_admission.core.exceptions import ConfigurationError
from booking_admission.models.booking_rule import BookingRule
from booking_admission.models.resource import Resource
from booking_admission.schemas.booking_rule import BookingRuleCreate, BookingRuleOut, BookingRuleUpdate
from booking_admission.schemas.rule_value import dump_rule_value, parse_rule_type, parse_rule_value
from booking_admission.services.audit_service import record_event

router = APIRouter()


def _validated(rule_id: str, rule_type: str, value: dict) -> tuple[str, dict]:
    try:
        rt = parse_rule_type(rule_type, rule_id=rule_id)
        parsed = parse_rule_value(rt, value, rule_id=rule_id)
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    return rt.value, dump_rule_value(parsed)


def _check_window(start_date, end_date) -> None:
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=400, detail="Invalid date range")


@router.get("", response_model=list[BookingRuleOut])
def list_rules(resource_id: str | None = None, db: Session = Depends(get_db)):
    q = select(BookingRule).order_by(BookingRule.created_at.desc())
    if resource_id:
        q = q.where(BookingRule.resource_id == resource_id)
    return db.execute(q).scalars().all()


@router.post("", response_model=BookingRuleOut)
def create_rule(payload: BookingRuleCreate, request: Request, db: Session = Depends(get_db)):
    target = db.get(Resource, payload.resource_id)
    if not target:
        raise HTTPException(status_code=400, detail="Unknown resource")
    rule_id = payload.id or str(uuid.uuid4())
    if db.get(BookingRule, rule_id):
        raise HTTPException(status_code=409, detail="Rule id already exists")
    rule_type, value = _validated(rule_id, payload.rule_type, payload.value_json)
    _check_window(payload.start_date, payload.end_date)

    r = BookingRule(
        id=rule_id,
        rule_type=rule_type,
        name=payload.name,
        resource_id=target.id,
        resource_level=target.level,
        value_json=value,
        start_date=payload.start_date,
        end_date=payload.end_date,
        status=payload.status,
    )
    db.add(r)
    db.commit()
    db.refresh(r)

    record_event(db, action="RULE_CREATE", summary=f"Created {r.rule_type} rule", resource_id=r.resource_id, rule_id=r.id, request=request)
    return r


@router.patch("/{rule_id}", response_model=BookingRuleOut)
def update_rule(rule_id: str, payload: BookingRuleUpdate, request: Request, db: Session = Depends(get_db)):
    r = db.get(BookingRule, rule_id)
    if not r:
        raise HTTPException(status_code=404, detail="Not found")
    data = payload.dict(exclude_unset=True)
    if "rule_type" in data or "value_json" in data:
        data["rule_type"], data["value_json"] = _validated(
            rule_id, data.get("rule_type", r.rule_type), data.get("value_json", r.value_json)
        )
    _check_window(data.get("start_date", r.start_date), data.get("end_date", r.end_date))
    for k, v in data.items():
        setattr(r, k, v)
    db.commit()
    db.refresh(r)

    record_event(db, action="RULE_UPDATE", summary="Updated booking rule", resource_id=r.resource_id, rule_id=r.id, details={"keys": sorted(data)}, request=request)
    return r


@router.delete("/{rule_id}")
def delete_rule(rule_id: str, request: Request, db: Session = Depends(get_db)):
    r = db.get(BookingRule, rule_id)
    if not r:
        raise HTTPException(status_code=404, detail="Not found")
    resource_id = r.resource_id
    db.delete(r)
    db.commit()

    record_event(db, action="RULE_DELETE", summary="Deleted booking rule", resource_id=resource_id, rule_id=rule_id, request=request)
    return {"ok": True}
