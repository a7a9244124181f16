from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from booking_admission.core.exceptions import ConfigurationError
from booking_admission.repositories.base import RuleRepository
from booking_admission.schemas.rule_value import RuleType
from booking_admission.services.records import Resource, Rule


@dataclass(frozen=True)
class ApplicableRule:
    rule: Rule
    resource: Resource
    # 0 is the requested resource; grows towards the property
    depth: int

    @property
    def where(self) -> str:
        return f"{self.resource.level.value} {self.resource.id}"


class RuleView:
    """Read-only snapshot of rules indexed by ``(resource id, rule type)``."""

    def __init__(self, rules: Iterable[Rule]) -> None:
        self._index: dict[tuple[str, RuleType], list[Rule]] = {}
        for rule in rules:
            self._index.setdefault((rule.resource_id, rule.rule_type), []).append(rule)
        for bucket in self._index.values():
            bucket.sort(key=lambda r: r.id)

    @classmethod
    def load(cls, repository: RuleRepository, chain: list[Resource]) -> "RuleView":
        rules: list[Rule] = []
        for resource in chain:
            rules.extend(repository.list_active_rules(resource.id))
        return cls(rules)

    def __len__(self) -> int:
        return sum(len(b) for b in self._index.values())

    def rules_for(self, chain: list[Resource], rule_type: RuleType, first: date, last: date) -> list[ApplicableRule]:
        """Active rules of ``rule_type`` on the chain whose window touches ``[first, last]``.

        Results come nearest level first.
        """
        out: list[ApplicableRule] = []
        for depth, resource in enumerate(chain):
            for rule in self._index.get((resource.id, rule_type), ()):
                if rule.level != resource.level:
                    raise ConfigurationError(
                        f"Rule {rule.id} targets {resource.id} as a {rule.level.value}, "
                        f"but it is a {resource.level.value}"
                    )
                if rule.is_active and rule.applies_between(first, last):
                    out.append(ApplicableRule(rule=rule, resource=resource, depth=depth))
        return out
