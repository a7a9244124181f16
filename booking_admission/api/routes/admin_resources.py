from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from booking_admission.core.deps import get_db
from booking_admission.core.exceptions import ConfigurationError
from booking_admission.models.resource import Resource
from booking_admission.repositories.sql import SqlResourceRepository
from booking_admission.schemas.resource import ResourceCreate, ResourceOut, ResourceUpdate
from booking_admission.services.audit_service import record_event
from booking_admission.services.hierarchy_service import check_parent_assignment, zone_for
from booking_admission.services.records import Level

router = APIRouter()


def _check_placement(db: Session, *, resource_id: str | None, level: str, parent_id: str | None) -> None:
    try:
        check_parent_assignment(SqlResourceRepository(db), resource_id=resource_id, level=Level(level), parent_id=parent_id)
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=exc.message)


def _check_timezone(name: str | None) -> None:
    if not name:
        return
    try:
        zone_for([], name)
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=exc.message)


@router.get("", response_model=list[ResourceOut])
def list_resources(parent_id: str | None = None, level: str | None = None, db: Session = Depends(get_db)):
    q = select(Resource).order_by(Resource.level, Resource.id)
    if parent_id:
        q = q.where(Resource.parent_id == parent_id)
    if level:
        q = q.where(Resource.level == level)
    return db.execute(q).scalars().all()


@router.post("", response_model=ResourceOut)
def create_resource(payload: ResourceCreate, request: Request, db: Session = Depends(get_db)):
    if payload.id and db.get(Resource, payload.id):
        raise HTTPException(status_code=409, detail="Resource id already exists")
    _check_placement(db, resource_id=payload.id, level=payload.level, parent_id=payload.parent_id)
    _check_timezone(payload.timezone)

    # Rooms are always the bookable unit; properties default to per-building booking
    granularity = payload.granularity or ("subdivided" if payload.level == "property" else "whole")
    if payload.level == "room" and granularity != "whole":
        raise HTTPException(status_code=400, detail="A room is always booked as a whole")

    r = Resource(
        id=payload.id or str(uuid.uuid4()),
        level=payload.level,
        parent_id=payload.parent_id,
        name=payload.name,
        granularity=granularity,
        capacity=payload.capacity,
        timezone=payload.timezone,
        status=payload.status,
    )
    db.add(r)
    db.commit()
    db.refresh(r)

    record_event(db, action="RESOURCE_CREATE", summary=f"Created {r.level} {r.name}".strip(), resource_id=r.id, request=request)
    return r


@router.patch("/{resource_id}", response_model=ResourceOut)
def update_resource(resource_id: str, payload: ResourceUpdate, request: Request, db: Session = Depends(get_db)):
    r = db.get(Resource, resource_id)
    if not r:
        raise HTTPException(status_code=404, detail="Not found")
    data = payload.dict(exclude_unset=True)
    for k in ("name", "granularity", "status"):
        if k in data and data[k] is None:
            data.pop(k)
    if "parent_id" in data:
        _check_placement(db, resource_id=resource_id, level=r.level, parent_id=data["parent_id"])
    if "timezone" in data:
        _check_timezone(data["timezone"])
    if r.level == "room" and data.get("granularity", "whole") != "whole":
        raise HTTPException(status_code=400, detail="A room is always booked as a whole")

    for k, v in data.items():
        setattr(r, k, v)
    db.commit()
    db.refresh(r)

    record_event(db, action="RESOURCE_UPDATE", summary="Updated resource", resource_id=r.id, details=data, request=request)
    return r
