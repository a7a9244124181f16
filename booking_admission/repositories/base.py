from __future__ import annotations

from datetime import date
from typing import Any, Optional, Protocol

from booking_admission.core.exceptions import ConfigurationError
from booking_admission.schemas.rule_value import parse_rule_type, parse_rule_value
from booking_admission.services.records import Level, Reservation, Resource, Rule, Status


class ResourceRepository(Protocol):
    def get(self, resource_id: str) -> Optional[Resource]: ...

    def children(self, resource_id: str) -> list[Resource]: ...


class RuleRepository(Protocol):
    def list_active_rules(self, resource_id: str) -> list[Rule]: ...


class ReservationRepository(Protocol):
    def active_reservations(self, resource_id: str) -> list[Reservation]: ...

    def save(self, reservation: Reservation) -> None: ...


def build_rule(
    *,
    id: str,
    resource_id: str,
    level: str,
    rule_type: str,
    value: Any,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: str = Status.ACTIVE.value,
    name: str = "",
) -> Rule:
    """Turn a stored rule record into a typed ``Rule``.

    Raises ``ConfigurationError`` for anything that does not parse.
    """
    try:
        lvl = Level(level)
    except ValueError:
        raise ConfigurationError(f"Rule {id} targets unknown level {level!r}") from None
    try:
        st = Status(status)
    except ValueError:
        raise ConfigurationError(f"Rule {id} has unknown status {status!r}") from None
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ConfigurationError(f"Rule {id} applicability window ends before it starts")

    return Rule(
        id=id,
        resource_id=resource_id,
        level=lvl,
        rule_type=parse_rule_type(rule_type, rule_id=id),
        value=parse_rule_value(rule_type, value, rule_id=id),
        start_date=start_date,
        end_date=end_date,
        status=st,
        name=name,
    )
