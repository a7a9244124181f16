"""Typed rule payloads, one model per rule type.

Payloads are parsed when rules leave the repository. Anything that does not
fit its schema is a ``ConfigurationError``; it is never skipped.
"""
from __future__ import annotations

import json
from datetime import date, time
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from booking_admission.core.exceptions import ConfigurationError

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_FULL_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_DAY_LOOKUP = {name.lower(): i for i, name in enumerate(WEEKDAY_NAMES)}
_DAY_LOOKUP.update({name: i for i, name in enumerate(_FULL_NAMES)})
ALL_DAYS = frozenset(range(7))


class RuleType(str, Enum):
    OPERATING_HOURS = "operating_hours"
    MIN_DURATION = "min_duration"
    MAX_DURATION = "max_duration"
    BLACKOUT_DATES = "blackout_dates"
    DAYS_OF_WEEK = "days_of_week"


# Names used by the spreadsheet rule sheet
RULE_TYPE_ALIASES = {
    "minimum_booking": RuleType.MIN_DURATION,
    "maximum_booking": RuleType.MAX_DURATION,
}


def parse_weekday(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value <= 6:
            return value
        raise ValueError(f"weekday index out of range: {value}")
    if isinstance(value, str):
        key = value.strip().lower()
        if key in _DAY_LOOKUP:
            return _DAY_LOOKUP[key]
    raise ValueError(f"unknown weekday: {value!r}")


def parse_weekdays(value: Any) -> frozenset[int]:
    if isinstance(value, str):
        value = [part for part in value.split(",") if part.strip()]
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise ValueError("days must be a list of weekday names")
    return frozenset(parse_weekday(v) for v in value)


def format_weekdays(days: frozenset[int]) -> str:
    return ",".join(WEEKDAY_NAMES[d] for d in sorted(days))


class OperatingHoursValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: time
    # None means the window runs to the end of the day ("24:00")
    end: time | None
    days: frozenset[int] = ALL_DAYS

    @field_validator("end", mode="before")
    @classmethod
    def _end_of_day(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip() == "24:00":
            return None
        return v

    @field_validator("days", mode="before")
    @classmethod
    def _days(cls, v: Any) -> frozenset[int]:
        return parse_weekdays(v)

    @model_validator(mode="after")
    def _check_window(self) -> "OperatingHoursValue":
        if self.end is not None and self.end <= self.start:
            raise ValueError("operating hours end must be after start")
        if not self.days:
            raise ValueError("operating hours need at least one day")
        return self

    def opens_at(self, start: time) -> bool:
        return self.start <= start and (self.end is None or start < self.end)

    def closes_at(self, end: time | None) -> bool:
        """``end=None`` is the following midnight."""
        if end is None:
            return self.end is None
        return self.start < end and (self.end is None or end <= self.end)

    def admits(self, start: time | None, end: time | None, *, first_day: bool = True, last_day: bool = True) -> bool:
        """Whether a span starting at ``start`` and ending at ``end`` fits the window.

        Only the start is checked on the first day and only the end on the
        last; days in between just need the window to exist.
        """
        if first_day and (start is None or not self.opens_at(start)):
            return False
        if last_day and not self.closes_at(end):
            return False
        return True

    def describe(self) -> str:
        end = self.end.strftime("%H:%M") if self.end is not None else "24:00"
        return f"{self.start.strftime('%H:%M')}-{end} {format_weekdays(self.days)}"


class DurationValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: float = Field(gt=0)
    unit: Literal["hours", "days"] = "hours"

    @field_validator("unit", mode="before")
    @classmethod
    def _unit(cls, v: Any) -> Any:
        if isinstance(v, str):
            key = v.strip().lower()
            if key in ("hour", "h"):
                return "hours"
            if key in ("day", "d", "night", "nights"):
                return "days"
            return key
        return v

    @property
    def hours(self) -> float:
        return self.value * 24 if self.unit == "days" else self.value

    def describe(self) -> str:
        return f"{self.value:g} {self.unit}"


class BlackoutDatesValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    dates: frozenset[date]

    @model_validator(mode="after")
    def _non_empty(self) -> "BlackoutDatesValue":
        if not self.dates:
            raise ValueError("blackout dates cannot be empty")
        return self


class DaysOfWeekValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    days: frozenset[int]

    @field_validator("days", mode="before")
    @classmethod
    def _days(cls, v: Any) -> frozenset[int]:
        return parse_weekdays(v)

    @model_validator(mode="after")
    def _non_empty(self) -> "DaysOfWeekValue":
        if not self.days:
            raise ValueError("days of week cannot be empty")
        return self


RuleValue = Union[OperatingHoursValue, DurationValue, BlackoutDatesValue, DaysOfWeekValue]

RULE_VALUE_MODELS: dict[RuleType, type[BaseModel]] = {
    RuleType.OPERATING_HOURS: OperatingHoursValue,
    RuleType.MIN_DURATION: DurationValue,
    RuleType.MAX_DURATION: DurationValue,
    RuleType.BLACKOUT_DATES: BlackoutDatesValue,
    RuleType.DAYS_OF_WEEK: DaysOfWeekValue,
}


def parse_rule_type(raw: str | RuleType, *, rule_id: str | None = None) -> RuleType:
    if isinstance(raw, RuleType):
        return raw
    key = (raw or "").strip().lower()
    if key in RULE_TYPE_ALIASES:
        return RULE_TYPE_ALIASES[key]
    try:
        return RuleType(key)
    except ValueError:
        raise ConfigurationError(f"Rule {rule_id or '?'} has unknown rule type {raw!r}") from None


def _describe_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "value"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def parse_rule_value(rule_type: str | RuleType, payload: Any, *, rule_id: str | None = None) -> RuleValue:
    rt = parse_rule_type(rule_type, rule_id=rule_id)
    label = rule_id or "?"

    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except ValueError:
            raise ConfigurationError(f"Rule {label} ({rt.value}) payload is not valid JSON") from None
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Rule {label} ({rt.value}) payload must be an object")

    model = RULE_VALUE_MODELS[rt]
    try:
        return model.model_validate(payload)  # type: ignore[return-value]
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Rule {label} ({rt.value}) has an invalid payload: {_describe_errors(exc)}") from exc


def dump_rule_value(value: RuleValue) -> dict[str, Any]:
    """JSON-ready payload, inverse of ``parse_rule_value``."""
    if isinstance(value, OperatingHoursValue):
        return {
            "start": value.start.strftime("%H:%M"),
            "end": value.end.strftime("%H:%M") if value.end is not None else "24:00",
            "days": [WEEKDAY_NAMES[d] for d in sorted(value.days)],
        }
    if isinstance(value, DurationValue):
        return {"value": value.value, "unit": value.unit}
    if isinstance(value, BlackoutDatesValue):
        return {"dates": [d.isoformat() for d in sorted(value.dates)]}
    return {"days": [WEEKDAY_NAMES[d] for d in sorted(value.days)]}
