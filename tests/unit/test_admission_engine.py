"""Unit tests for the admission engine over in-memory repositories."""
import itertools
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from booking_admission.core.exceptions import ConfigurationError, LockTimeout
from booking_admission.repositories.memory import (
    InMemoryReservationRepository,
    InMemoryResourceRepository,
    InMemoryRuleRepository,
)
from booking_admission.services.admission_service import AdmissionEngine, AdmissionPolicy, generate_reservation_id
from booking_admission.services.intervals import Interval
from booking_admission.services.records import (
    AdmissionRequest,
    Granularity,
    Level,
    Outcome,
    Reservation,
    ReservationStatus,
    Resource,
    Status,
)

NY = ZoneInfo("America/New_York")
AS_OF = datetime(2025, 7, 1, tzinfo=timezone.utc)
WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri"]


def at(day, hh, mm=0, month=7):
    return datetime(2025, month, day, hh, mm, tzinfo=NY)


def request(resource_id, start, end, quantity=1):
    return AdmissionRequest.create(resource_id, start, end, quantity)


def add_business_hours(rules):
    rules.add(
        id="RULE001",
        resource_id="ROOM001",
        level="room",
        rule_type="operating_hours",
        value={"start": "08:00", "end": "18:00", "days": WEEKDAYS},
    )
    rules.add(id="RULE006", resource_id="ROOM001", level="room", rule_type="min_duration", value={"value": 1, "unit": "hours"})


class FlakyReservationRepository(InMemoryReservationRepository):
    def __init__(self):
        super().__init__()
        self.fail = True

    def save(self, reservation):
        if self.fail:
            raise RuntimeError("database unavailable")
        super().save(reservation)


class TestAdmission:
    def test_accept_then_outside_hours_then_conflict(self, engine, rules, reservations):
        add_business_hours(rules)

        first = engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF)
        late = engine.admit(request("ROOM001", at(15, 19), at(15, 20)), AS_OF)
        repeat = engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF)

        assert first.outcome is Outcome.ACCEPT
        assert first.reservation.id == "BK0001"
        assert reservations.get("BK0001") == first.reservation

        assert late.outcome is Outcome.REJECT
        assert late.kind == "rule_violation"
        assert late.rule_type == "operating_hours"
        assert late.rule_id == "RULE001"
        assert late.level == "room"
        assert late.rule_resource_id == "ROOM001"

        assert repeat.kind == "conflict"
        assert repeat.conflicting_reservation_id == "BK0001"
        assert "BK0001" in repeat.reason

    def test_accepted_reservation_fields(self, engine):
        decision = engine.admit(request("ROOM002", at(15, 9), at(15, 11), quantity=6), AS_OF)

        reservation = decision.reservation
        assert reservation.resource_id == "ROOM002"
        assert reservation.booking_type == "room"
        assert reservation.status is ReservationStatus.PENDING
        assert reservation.quantity == 6
        assert reservation.interval == Interval(at(15, 9), at(15, 11))

    def test_auto_confirm(self, resources, rules, reservations, id_factory):
        engine = AdmissionEngine(resources, rules, reservations, policy=AdmissionPolicy(auto_confirm=True), id_factory=id_factory)

        decision = engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF)

        assert decision.reservation.status is ReservationStatus.CONFIRMED

    def test_adjacent_reservations_both_accepted(self, engine):
        assert engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF).accepted
        assert engine.admit(request("ROOM001", at(15, 11), at(15, 12)), AS_OF).accepted

    def test_sibling_rooms_do_not_conflict(self, engine):
        assert engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF).accepted
        assert engine.admit(request("ROOM002", at(15, 9), at(15, 11)), AS_OF).accepted


class TestRuleComposition:
    def test_room_hours_override_property_hours(self, engine, rules):
        rules.add(id="RULE_P", resource_id="PROP001", level="property", rule_type="operating_hours", value={"start": "06:00", "end": "22:00"})
        rules.add(id="RULE_R", resource_id="ROOM001", level="room", rule_type="operating_hours", value={"start": "09:00", "end": "17:00"})

        decision = engine.admit(request("ROOM001", at(15, 18), at(15, 19)), AS_OF)

        assert decision.rule_id == "RULE_R"
        assert decision.level == "room"
        assert engine.admit(request("ROOM002", at(15, 18), at(15, 19)), AS_OF).accepted

    def test_tightest_minimum_duration(self, engine, rules):
        rules.add(id="RULE_B", resource_id="BLDG002", level="building", rule_type="min_duration", value={"value": 4, "unit": "hours"})
        rules.add(id="RULE_R", resource_id="ROOM001", level="room", rule_type="min_duration", value={"value": 1, "unit": "hours"})

        decision = engine.admit(request("ROOM001", at(15, 10), at(15, 12)), AS_OF)

        assert decision.rule_type == "min_duration"
        assert decision.rule_id == "RULE_B"
        assert decision.level == "building"
        assert engine.admit(request("ROOM001", at(15, 10), at(15, 14)), AS_OF).accepted

    def test_blackout_dates_union(self, engine, rules):
        rules.add(id="RULE_P", resource_id="PROP001", level="property", rule_type="blackout_dates", value={"dates": ["2025-12-25"]})
        rules.add(id="RULE_R", resource_id="ROOM001", level="room", rule_type="blackout_dates", value={"dates": ["2025-12-26"]})

        assert engine.admit(request("ROOM001", at(25, 10, month=12), at(25, 11, month=12)), AS_OF).rule_id == "RULE_P"
        assert engine.admit(request("ROOM001", at(26, 10, month=12), at(26, 11, month=12)), AS_OF).rule_id == "RULE_R"
        assert engine.admit(request("ROOM002", at(26, 10, month=12), at(26, 11, month=12)), AS_OF).accepted

    def test_rule_outside_its_window_is_ignored(self, engine, rules):
        rules.add(
            id="RULE_R",
            resource_id="ROOM001",
            level="room",
            rule_type="days_of_week",
            value={"days": ["Sat"]},
            start_date=date(2025, 8, 1),
        )

        assert engine.admit(request("ROOM001", at(15, 10), at(15, 11)), AS_OF).accepted
        assert not engine.admit(request("ROOM001", at(4, 10, month=8), at(4, 11, month=8)), AS_OF).accepted

    def test_duration_uses_absolute_time_across_dst(self, engine, rules):
        rules.add(id="RULE_R", resource_id="ROOM001", level="room", rule_type="min_duration", value={"value": 3})

        # 01:00-04:00 on the spring-forward night is only two real hours
        decision = engine.admit(
            request("ROOM001", at(9, 1, month=3), at(9, 4, month=3)),
            datetime(2025, 3, 1, tzinfo=timezone.utc),
        )

        assert decision.rule_type == "min_duration"


class TestValidation:
    def test_unknown_resource(self, engine):
        decision = engine.admit(request("ROOM404", at(15, 9), at(15, 11)), AS_OF)

        assert decision.kind == "validation"
        assert "ROOM404" in decision.reason

    def test_subdivided_building_is_not_bookable(self, engine):
        decision = engine.admit(request("BLDG002", at(15, 9), at(15, 11)), AS_OF)

        assert decision.kind == "validation"

    def test_inactive_room(self, engine, resources):
        resources.update("ROOM001", status=Status.INACTIVE)

        assert engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF).kind == "validation"

    def test_capacity(self, engine):
        assert engine.admit(request("ROOM001", at(15, 9), at(15, 11), quantity=9), AS_OF).kind == "validation"
        assert engine.admit(request("ROOM001", at(15, 9), at(15, 11), quantity=0), AS_OF).kind == "validation"
        assert engine.admit(request("ROOM001", at(15, 9), at(15, 11), quantity=8), AS_OF).accepted

    def test_start_in_the_past(self, engine):
        decision = engine.admit(request("ROOM001", at(15, 9), at(15, 11)), at(15, 10))

        assert decision.kind == "validation"

    def test_lead_time(self, resources, rules, reservations, id_factory):
        engine = AdmissionEngine(resources, rules, reservations, policy=AdmissionPolicy(lead_time_hours=24), id_factory=id_factory)

        decision = engine.admit(request("ROOM001", at(15, 9), at(15, 11)), at(15, 7))

        assert decision.kind == "rule_violation"
        assert decision.rule_type == "lead_time"
        assert decision.level == "system"
        assert engine.admit(request("ROOM001", at(15, 9), at(15, 11)), at(14, 9)).accepted

    def test_system_maximum_duration(self, resources, rules, reservations, id_factory):
        policy = AdmissionPolicy(max_booking_duration_days=1)
        engine = AdmissionEngine(resources, rules, reservations, policy=policy, id_factory=id_factory)

        decision = engine.admit(request("ROOM001", at(15, 9), at(16, 15)), AS_OF)

        assert decision.rule_type == "max_duration"
        assert decision.level == "system"


class TestGranularity:
    def test_whole_building_blocks_its_rooms(self, engine, resources):
        resources.update("BLDG002", granularity=Granularity.WHOLE)

        building = engine.admit(request("BLDG002", at(15, 10), at(15, 12)), AS_OF)
        room = engine.admit(request("ROOM001", at(15, 10), at(15, 11)), AS_OF)

        assert building.accepted
        assert building.reservation.booking_type == "building"
        assert room.kind == "validation"

        # After switching back the building reservation still blocks its rooms
        resources.update("BLDG002", granularity=Granularity.SUBDIVIDED)
        room = engine.admit(request("ROOM001", at(15, 10, 30), at(15, 11)), AS_OF)

        assert room.kind == "conflict"
        assert room.conflicting_reservation_id == building.reservation.id

    def test_room_reservation_blocks_whole_building(self, engine, resources):
        room = engine.admit(request("ROOM002", at(15, 10), at(15, 11)), AS_OF)
        resources.update("BLDG002", granularity=Granularity.WHOLE)

        building = engine.admit(request("BLDG002", at(15, 9), at(15, 17)), AS_OF)

        assert building.kind == "conflict"
        assert building.conflicting_reservation_id == room.reservation.id
        assert "ROOM002" in building.reason
        assert engine.admit(request("BLDG002", at(15, 11), at(15, 17)), AS_OF).accepted


class TestLifecycle:
    def test_release_frees_the_slot(self, engine):
        first = engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF)

        assert engine.release(first.reservation.id) is True
        assert engine.release(first.reservation.id) is False
        assert engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF).accepted

    def test_release_unknown(self, engine):
        assert engine.release("BK9999") is False

    def test_confirmed_keeps_blocking(self, engine):
        first = engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF)

        engine.transition(first.reservation.id, ReservationStatus.CONFIRMED)

        assert engine.admit(request("ROOM001", at(15, 10), at(15, 12)), AS_OF).kind == "conflict"

    @pytest.mark.parametrize("status", [ReservationStatus.CANCELLED, ReservationStatus.REJECTED])
    def test_cancel_or_reject_frees_the_slot(self, engine, status):
        first = engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF)

        engine.transition(first.reservation.id, status)

        assert engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF).accepted

    def test_existing_reservations_are_loaded_on_demand(self, resources, rules, id_factory):
        stored = InMemoryReservationRepository(
            [
                Reservation("BKOLD1", "ROOM001", Interval(at(15, 9), at(15, 11)), ReservationStatus.CONFIRMED),
                Reservation("BKOLD2", "ROOM001", Interval(at(15, 12), at(15, 13)), ReservationStatus.CANCELLED),
            ]
        )
        engine = AdmissionEngine(resources, rules, stored, id_factory=id_factory)

        blocked = engine.admit(request("ROOM001", at(15, 10), at(15, 11)), AS_OF)

        assert blocked.conflicting_reservation_id == "BKOLD1"
        assert engine.admit(request("ROOM001", at(15, 12), at(15, 13)), AS_OF).accepted

    def test_warm(self, resources, rules, id_factory):
        stored = InMemoryReservationRepository(
            [Reservation("BKOLD1", "ROOM001", Interval(at(15, 9), at(15, 11)), ReservationStatus.PENDING)]
        )
        engine = AdmissionEngine(resources, rules, stored, id_factory=id_factory)

        assert engine.warm(["ROOM001", "ROOM002"]) == 1
        assert "BKOLD1" in engine.index


class TestFailures:
    def test_malformed_rule_raises(self, engine, rules):
        rules.add(id="RULE_BAD", resource_id="BLDG002", level="building", rule_type="operating_hours", value={"start": "18:00", "end": "08:00"})

        with pytest.raises(ConfigurationError) as exc:
            engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF)

        assert "RULE_BAD" in exc.value.message
        assert len(engine.index) == 0

    def test_unknown_rule_type_raises(self, engine, rules):
        rules.add(id="RULE_X", resource_id="ROOM001", level="room", rule_type="pricing_rules", value={})

        with pytest.raises(ConfigurationError):
            engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF)

    def test_broken_hierarchy_raises(self, engine, resources):
        resources.add(Resource("ROOM009", Level.ROOM, "BLDG404"))

        with pytest.raises(ConfigurationError):
            engine.admit(request("ROOM009", at(15, 9), at(15, 11)), AS_OF)

    def test_unknown_time_zone_raises(self, engine, resources):
        resources.update("PROP001", timezone="Nowhere/Special")

        with pytest.raises(ConfigurationError):
            engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF)

    def test_persistence_failure_frees_the_slot(self, resources, rules, id_factory):
        flaky = FlakyReservationRepository()
        engine = AdmissionEngine(resources, rules, flaky, id_factory=id_factory)

        with pytest.raises(RuntimeError):
            engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF)

        assert len(engine.index) == 0
        flaky.fail = False
        assert engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF).accepted

    def test_lock_timeout(self, engine):
        with engine.locks.hold(["ROOM001"]):
            with pytest.raises(LockTimeout):
                engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF, timeout=0.05)

        assert engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF).accepted


class TestDeterminism:
    def test_rejections_are_repeatable(self, engine, rules):
        add_business_hours(rules)
        engine.admit(request("ROOM001", at(15, 9), at(15, 11)), AS_OF)

        for candidate in (
            request("ROOM001", at(15, 19), at(15, 20)),
            request("ROOM001", at(15, 10), at(15, 12)),
            request("BLDG002", at(15, 10), at(15, 12)),
        ):
            assert engine.admit(candidate, AS_OF) == engine.admit(candidate, AS_OF)

    def test_same_snapshot_same_decisions(self):
        def run():
            counter = itertools.count(1)
            engine = AdmissionEngine(
                InMemoryResourceRepository(
                    [
                        Resource("PROP001", Level.PROPERTY, None, Granularity.SUBDIVIDED, timezone="America/New_York"),
                        Resource("BLDG002", Level.BUILDING, "PROP001", Granularity.SUBDIVIDED),
                        Resource("ROOM001", Level.ROOM, "BLDG002"),
                    ]
                ),
                InMemoryRuleRepository(),
                InMemoryReservationRepository(),
                id_factory=lambda: f"BK{next(counter)}",
            )
            out = []
            for hour in (9, 10, 11, 9, 14):
                d = engine.admit(request("ROOM001", at(15, hour), at(15, hour + 2)), AS_OF)
                out.append(replace(d, reservation=replace(d.reservation, created_at=None)) if d.accepted else d)
            return out

        assert run() == run()

    def test_accepted_reservations_never_overlap(self, engine, reservations):
        starts = [9, 10, 11, 12, 13, 9, 15, 14, 16, 10, 8, 17]
        for i, hour in enumerate(starts):
            room = "ROOM001" if i % 2 == 0 else "ROOM002"
            length = 1 + (i % 3)
            engine.admit(request(room, at(15, hour), at(15, hour) + timedelta(hours=length)), AS_OF)

        kept = [r for r in reservations.all() if r.is_active]
        assert kept
        for a, b in itertools.combinations(kept, 2):
            if a.resource_id == b.resource_id:
                assert not a.interval.overlaps(b.interval)


def test_generated_ids_carry_the_prefix():
    first = generate_reservation_id("BK")
    second = generate_reservation_id("BK")

    assert first.startswith("BK")
    assert first == first.upper()
    assert first != second
