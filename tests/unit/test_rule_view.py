from datetime import date

import pytest

from booking_admission.core.exceptions import ConfigurationError
from booking_admission.repositories.base import build_rule
from booking_admission.schemas.rule_value import RuleType
from booking_admission.services.hierarchy_service import HierarchyResolver
from booking_admission.services.rule_view import RuleView

JULY_15 = date(2025, 7, 15)


def hours_rule(rule_id, resource_id, level, start="08:00", end="18:00", **extra):
    return build_rule(
        id=rule_id,
        resource_id=resource_id,
        level=level,
        rule_type="operating_hours",
        value={"start": start, "end": end},
        **extra,
    )


@pytest.fixture()
def chain(resources):
    return HierarchyResolver(resources).resolve_chain("ROOM001")


def test_nearest_level_first(chain):
    view = RuleView(
        [
            hours_rule("RULE_P", "PROP001", "property", "06:00", "22:00"),
            hours_rule("RULE_R", "ROOM001", "room", "09:00", "17:00"),
            hours_rule("RULE_B", "BLDG002", "building"),
        ]
    )

    found = view.rules_for(chain, RuleType.OPERATING_HOURS, JULY_15, JULY_15)

    assert [(ar.rule.id, ar.depth) for ar in found] == [("RULE_R", 0), ("RULE_B", 1), ("RULE_P", 2)]
    assert found[0].where == "room ROOM001"


def test_rules_of_other_types_and_resources_are_ignored(chain):
    view = RuleView(
        [
            hours_rule("RULE_OTHER", "ROOM002", "room"),
            build_rule(id="RULE_MIN", resource_id="ROOM001", level="room", rule_type="min_duration", value={"value": 1}),
        ]
    )

    assert view.rules_for(chain, RuleType.OPERATING_HOURS, JULY_15, JULY_15) == []
    assert len(view.rules_for(chain, RuleType.MIN_DURATION, JULY_15, JULY_15)) == 1
    assert len(view) == 2


def test_inactive_rules_are_skipped(chain):
    view = RuleView([hours_rule("RULE_R", "ROOM001", "room", status="Inactive")])

    assert view.rules_for(chain, RuleType.OPERATING_HOURS, JULY_15, JULY_15) == []


def test_applicability_window_is_inclusive(chain):
    view = RuleView(
        [
            hours_rule("RULE_SUMMER", "ROOM001", "room", start_date=date(2025, 6, 1), end_date=date(2025, 7, 15)),
            hours_rule("RULE_LATER", "ROOM001", "room", start_date=date(2025, 7, 16)),
        ]
    )

    on_the_15th = view.rules_for(chain, RuleType.OPERATING_HOURS, JULY_15, JULY_15)
    spanning = view.rules_for(chain, RuleType.OPERATING_HOURS, JULY_15, date(2025, 7, 16))

    assert [ar.rule.id for ar in on_the_15th] == ["RULE_SUMMER"]
    assert [ar.rule.id for ar in spanning] == ["RULE_LATER", "RULE_SUMMER"]


def test_level_mismatch_is_a_configuration_error(chain):
    view = RuleView([hours_rule("RULE_BAD", "ROOM001", "building")])

    with pytest.raises(ConfigurationError):
        view.rules_for(chain, RuleType.OPERATING_HOURS, JULY_15, JULY_15)


def test_load_reads_every_level(chain, rules):
    rules.add(id="RULE_R", resource_id="ROOM001", level="room", rule_type="min_duration", value={"value": 1})
    rules.add(id="RULE_P", resource_id="PROP001", level="property", rule_type="blackout_dates", value={"dates": ["2025-12-25"]})
    rules.add(id="RULE_X", resource_id="ROOM002", level="room", rule_type="min_duration", value={"value": 8})

    view = RuleView.load(rules, chain)

    assert len(view) == 2


def test_load_surfaces_malformed_payloads(chain, rules):
    rules.add(id="RULE_BAD", resource_id="BLDG002", level="building", rule_type="min_duration", value={"value": "lots"})

    with pytest.raises(ConfigurationError) as exc:
        RuleView.load(rules, chain)

    assert "RULE_BAD" in exc.value.message
