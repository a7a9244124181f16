"""One evaluation function per rule type.

Every function takes the candidate interval, the applicable rules ordered
nearest level first, and the local time zone, and returns a ``Verdict``.

Composition per rule type:

* ``operating_hours`` and ``days_of_week``: the nearest level that has a rule
  for the weekday in question wins and broader levels are ignored.
* ``min_duration`` / ``max_duration``: the tightest bound across all levels.
* ``blackout_dates``: union of all levels, any hit denies.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from booking_admission.core.exceptions import RuleViolation
from booking_admission.schemas.rule_value import WEEKDAY_NAMES, RuleType
from booking_admission.services.intervals import Interval
from booking_admission.services.records import Resource
from booking_admission.services.rule_view import ApplicableRule, RuleView

SYSTEM_LEVEL = "system"

# Structural checks first, date enumeration last
EVALUATION_ORDER = (
    RuleType.DAYS_OF_WEEK,
    RuleType.OPERATING_HOURS,
    RuleType.MIN_DURATION,
    RuleType.MAX_DURATION,
    RuleType.BLACKOUT_DATES,
)


@dataclass(frozen=True)
class Verdict:
    allowed: bool
    rule_type: Optional[RuleType] = None
    reason: str = ""
    applicable: Optional[ApplicableRule] = None
    level: Optional[str] = None

    @classmethod
    def deny(
        cls, rule_type: RuleType, reason: str, applicable: Optional[ApplicableRule] = None, level: Optional[str] = None
    ) -> "Verdict":
        if applicable is not None and level is None:
            level = applicable.resource.level.value
        return cls(allowed=False, rule_type=rule_type, reason=reason, applicable=applicable, level=level)

    def to_violation(self) -> RuleViolation:
        if self.allowed or self.rule_type is None:
            raise ValueError("only a denying verdict converts to a rule violation")
        return RuleViolation(
            f"{self.rule_type.value}: {self.reason}",
            rule_type=self.rule_type.value,
            rule_id=self.applicable.rule.id if self.applicable else None,
            level=self.level,
            resource_id=self.applicable.resource.id if self.applicable else None,
        )


ALLOW = Verdict(allowed=True)


def _clock(t: Optional[time]) -> str:
    return t.strftime("%H:%M") if t is not None else "24:00"


def _day_label(d: date) -> str:
    return f"{WEEKDAY_NAMES[d.weekday()]} {d.isoformat()}"


def _nearest(rules: list[ApplicableRule], accepts: Callable[[ApplicableRule], bool]) -> list[ApplicableRule]:
    """Rules at the nearest depth for which ``accepts`` holds."""
    depth = next((ar.depth for ar in rules if accepts(ar)), None)
    if depth is None:
        return []
    return [ar for ar in rules if ar.depth == depth and accepts(ar)]


def evaluate_operating_hours(interval: Interval, rules: list[ApplicableRule], tz: ZoneInfo) -> Verdict:
    if not rules:
        return ALLOW

    start_local, end_local = interval.local_bounds(tz)
    days = interval.local_dates(tz)
    first, last = days[0], days[-1]

    for d in days:
        weekday = d.weekday()
        governing = _nearest(rules, lambda ar: weekday in ar.rule.value.days)
        if not governing:
            return Verdict.deny(
                RuleType.OPERATING_HOURS,
                f"no operating hours on {_day_label(d)} ({rules[0].where})",
                rules[0],
            )

        check_start = start_local.time() if d == first else None
        check_end = d == last
        end_clock = end_local.time() if end_local.date() == d else None

        if not any(
            ar.rule.value.admits(check_start, end_clock, first_day=d == first, last_day=check_end) for ar in governing
        ):
            requested_start = _clock(check_start) if check_start is not None else "00:00"
            requested_end = _clock(end_clock) if check_end else "24:00"
            return Verdict.deny(
                RuleType.OPERATING_HOURS,
                f"requested {requested_start}-{requested_end} on {_day_label(d)} is outside "
                f"{governing[0].rule.value.describe()} ({governing[0].where})",
                governing[0],
            )
    return ALLOW


def evaluate_days_of_week(interval: Interval, rules: list[ApplicableRule], tz: ZoneInfo) -> Verdict:
    if not rules:
        return ALLOW

    # The nearest level with a days_of_week rule speaks for every weekday
    governing = _nearest(rules, lambda ar: True)
    allowed = set().union(*(ar.rule.value.days for ar in governing))
    for d in interval.local_dates(tz):
        if d.weekday() not in allowed:
            return Verdict.deny(
                RuleType.DAYS_OF_WEEK,
                f"{_day_label(d)} is not a bookable day ({governing[0].where})",
                governing[0],
            )
    return ALLOW


def evaluate_min_duration(interval: Interval, rules: list[ApplicableRule], tz: ZoneInfo) -> Verdict:
    if not rules:
        return ALLOW
    # Largest minimum wins; nearest level on a tie
    tightest = min(rules, key=lambda ar: (-ar.rule.value.hours, ar.depth))
    bound = timedelta(hours=tightest.rule.value.hours)
    if interval.duration < bound:
        return Verdict.deny(
            RuleType.MIN_DURATION,
            f"requested {interval.duration_hours():g}h is shorter than the minimum of "
            f"{tightest.rule.value.describe()} ({tightest.where})",
            tightest,
        )
    return ALLOW


def evaluate_max_duration(
    interval: Interval, rules: list[ApplicableRule], tz: ZoneInfo, system_max_hours: Optional[float] = None
) -> Verdict:
    tightest = min(rules, key=lambda ar: (ar.rule.value.hours, ar.depth)) if rules else None
    if system_max_hours is not None and (tightest is None or system_max_hours < tightest.rule.value.hours):
        if interval.duration > timedelta(hours=system_max_hours):
            return Verdict.deny(
                RuleType.MAX_DURATION,
                f"requested {interval.duration_hours():g}h exceeds the system maximum of {system_max_hours:g}h",
                level=SYSTEM_LEVEL,
            )
        return ALLOW
    if tightest is None:
        return ALLOW
    if interval.duration > timedelta(hours=tightest.rule.value.hours):
        return Verdict.deny(
            RuleType.MAX_DURATION,
            f"requested {interval.duration_hours():g}h exceeds the maximum of "
            f"{tightest.rule.value.describe()} ({tightest.where})",
            tightest,
        )
    return ALLOW


def evaluate_blackout_dates(interval: Interval, rules: list[ApplicableRule], tz: ZoneInfo) -> Verdict:
    if not rules:
        return ALLOW
    for d in interval.local_dates(tz):
        for ar in rules:
            if d in ar.rule.value.dates:
                return Verdict.deny(
                    RuleType.BLACKOUT_DATES,
                    f"{_day_label(d)} is a blackout date ({ar.where})",
                    ar,
                )
    return ALLOW


EVALUATORS: dict[RuleType, Callable[..., Verdict]] = {
    RuleType.OPERATING_HOURS: evaluate_operating_hours,
    RuleType.MIN_DURATION: evaluate_min_duration,
    RuleType.MAX_DURATION: evaluate_max_duration,
    RuleType.BLACKOUT_DATES: evaluate_blackout_dates,
    RuleType.DAYS_OF_WEEK: evaluate_days_of_week,
}


def evaluate_rules(
    interval: Interval,
    view: RuleView,
    chain: list[Resource],
    tz: ZoneInfo,
    *,
    system_max_hours: Optional[float] = None,
) -> Verdict:
    """Run every rule type in ``EVALUATION_ORDER`` and stop at the first deny."""
    days = interval.local_dates(tz)
    for rule_type in EVALUATION_ORDER:
        rules = view.rules_for(chain, rule_type, days[0], days[-1])
        if rule_type == RuleType.MAX_DURATION:
            verdict = evaluate_max_duration(interval, rules, tz, system_max_hours=system_max_hours)
        else:
            verdict = EVALUATORS[rule_type](interval, rules, tz)
        if not verdict.allowed:
            return verdict
    return ALLOW
