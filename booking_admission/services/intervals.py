from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from booking_admission.core.exceptions import ValidationError

UTC = timezone.utc


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValidationError(f"Datetime {value.isoformat()} has no time zone")
    return value.astimezone(UTC)


@dataclass(frozen=True)
class Interval:
    """Half-open ``[start, end)`` span of absolute time, stored in UTC."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        start = to_utc(self.start)
        end = to_utc(self.end)
        if end <= start:
            raise ValidationError("Invalid time range: end must be after start")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, instant: datetime) -> bool:
        return self.start <= to_utc(instant) < self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def duration_hours(self) -> float:
        return self.duration.total_seconds() / 3600

    def local_bounds(self, tz: ZoneInfo) -> tuple[datetime, datetime]:
        return self.start.astimezone(tz), self.end.astimezone(tz)

    def local_dates(self, tz: ZoneInfo) -> list[date]:
        """Calendar dates touched by the interval in ``tz``.

        The end is exclusive, so an interval ending exactly at local midnight
        does not touch the following date.
        """
        first = self.start.astimezone(tz).date()
        last = (self.end - timedelta(microseconds=1)).astimezone(tz).date()
        days = []
        cur = first
        while cur <= last:
            days.append(cur)
            cur = cur + timedelta(days=1)
        return days


def overlaps(a: Interval, b: Interval) -> bool:
    return a.overlaps(b)


def contains(interval: Interval, instant: datetime) -> bool:
    return interval.contains(instant)
