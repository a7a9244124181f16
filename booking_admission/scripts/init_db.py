from __future__ import annotations

import argparse
from datetime import date

from booking_admission.db.base import Base
from booking_admission.db.session import SessionLocal, engine

# Import models to register with SQLAlchemy
import booking_admission.models  # noqa: F401
from booking_admission.models.booking_rule import BookingRule
from booking_admission.models.resource import Resource
from booking_admission.services.settings_service import get_or_create_settings

SAMPLE_RESOURCES = [
    # id, level, parent, name, granularity, capacity, timezone
    ("PROP001", "property", None, "Mountain Retreat Center", "subdivided", None, "America/New_York"),
    ("BLDG001", "building", "PROP001", "The Barn", "whole", 100, None),
    ("BLDG002", "building", "PROP001", "Community Center", "subdivided", 200, None),
    ("BLDG003", "building", "PROP001", "Guest Lodge", "subdivided", 50, None),
    ("ROOM001", "room", "BLDG002", "Room A", "whole", 8, None),
    ("ROOM002", "room", "BLDG002", "Room B", "whole", 15, None),
    ("ROOM003", "room", "BLDG002", "Room G", "whole", 50, None),
    ("ROOM004", "room", "BLDG003", "Suite 1", "whole", 4, None),
    ("ROOM005", "room", "BLDG003", "Suite 2", "whole", 2, None),
]

WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri"]
ALL_DAYS = WEEKDAYS + ["Sat", "Sun"]

SAMPLE_RULES = [
    # id, resource, level, type, name, value, start_date, end_date
    ("RULE001", "ROOM001", "room", "operating_hours", "Business Hours Only", {"start": "08:00", "end": "18:00", "days": WEEKDAYS}, None, None),
    ("RULE002", "ROOM003", "room", "operating_hours", "Extended Hours", {"start": "06:00", "end": "22:00", "days": ALL_DAYS}, None, None),
    ("RULE003", "BLDG001", "building", "min_duration", "Minimum 4 Hours", {"value": 4, "unit": "hours"}, None, None),
    ("RULE004", "ROOM004", "room", "min_duration", "Minimum 1 Night", {"value": 1, "unit": "days"}, None, None),
    (
        "RULE005",
        "PROP001",
        "property",
        "blackout_dates",
        "Annual Maintenance",
        {"dates": ["2025-12-24", "2025-12-25", "2025-12-31", "2026-01-01"]},
        date(2025, 12, 24),
        date(2026, 1, 1),
    ),
]


def seed_sample(db) -> int:
    created = 0
    for rid, level, parent, name, granularity, capacity, tz in SAMPLE_RESOURCES:
        if db.get(Resource, rid) is None:
            db.add(Resource(id=rid, level=level, parent_id=parent, name=name, granularity=granularity, capacity=capacity, timezone=tz, status="Active"))
            db.flush()
            created += 1
    for rule_id, resource_id, level, rule_type, name, value, start, end in SAMPLE_RULES:
        if db.get(BookingRule, rule_id) is None:
            db.add(
                BookingRule(
                    id=rule_id,
                    rule_type=rule_type,
                    name=name,
                    resource_id=resource_id,
                    resource_level=level,
                    value_json=value,
                    start_date=start,
                    end_date=end,
                    status="Active",
                )
            )
            created += 1
    db.commit()
    return created


def main() -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--sample", action="store_true", help="Load the sample property, buildings, rooms and rules")
    args = p.parse_args()

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        get_or_create_settings(db)
        created = seed_sample(db) if args.sample else 0
    finally:
        db.close()

    print(f"DB initialized (sample rows created={created})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
