"""Reservation admission: hierarchy, rules, then overlap, in one pass."""
from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from booking_admission.core.exceptions import (
    ConfigurationError,
    Conflict,
    LockTimeout,
    RuleViolation,
    ValidationError,
)
from booking_admission.repositories.base import ReservationRepository, ResourceRepository, RuleRepository
from booking_admission.services.conflict_index import ConflictIndex
from booking_admission.services.hierarchy_service import HierarchyResolver, check_bookable, zone_for
from booking_admission.services.intervals import Interval, to_utc
from booking_admission.services.locks import ResourceLocks
from booking_admission.services.records import (
    AdmissionDecision,
    AdmissionRequest,
    Reservation,
    ReservationStatus,
    Resource,
)
from booking_admission.services.rule_evaluator import SYSTEM_LEVEL, evaluate_rules
from booking_admission.services.rule_view import RuleView

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_BASE36[r])
    return "".join(reversed(out))


def generate_reservation_id(prefix: str = "BK") -> str:
    # Example: BKMD2K1QXS4F7Q2
    timestamp = _base36(int(time.time() * 1000))
    rand = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"{prefix}{timestamp}{rand}".upper()


@dataclass(frozen=True)
class AdmissionPolicy:
    lead_time_hours: float = 0
    max_booking_duration_days: Optional[float] = None
    auto_confirm: bool = False
    booking_id_prefix: str = "BK"
    default_timezone: str = "UTC"


@dataclass(frozen=True)
class _Prepared:
    chain: list[Resource]
    scope: list[str]
    lock_ids: list[str]


class AdmissionEngine:
    """Decides ACCEPT or REJECT for a candidate reservation.

    Repository reads and index warm-up happen before any lock is taken. The
    overlap check and the slot reservation in the conflict index run under
    the per-resource locks of the target and all of its descendants.
    """

    def __init__(
        self,
        resources: ResourceRepository,
        rules: RuleRepository,
        reservations: ReservationRepository,
        *,
        index: Optional[ConflictIndex] = None,
        locks: Optional[ResourceLocks] = None,
        policy: Optional[AdmissionPolicy] = None,
        id_factory: Optional[Callable[[], str]] = None,
        lock_timeout: Optional[float] = None,
    ) -> None:
        self.resources = resources
        self.rules = rules
        self.reservations = reservations
        self.hierarchy = HierarchyResolver(resources)
        self.index = index if index is not None else ConflictIndex()
        self.locks = locks if locks is not None else ResourceLocks()
        self.policy = policy or AdmissionPolicy()
        self.id_factory = id_factory or (lambda: generate_reservation_id(self.policy.booking_id_prefix))
        self.lock_timeout = lock_timeout

    def admit(self, request: AdmissionRequest, as_of: datetime, *, timeout: Optional[float] = None) -> AdmissionDecision:
        """Evaluate ``request`` against the snapshot as of ``as_of``.

        Validation problems, rule violations and overlaps come back as a
        Reject decision. ``ConfigurationError`` and ``LockTimeout`` are raised.
        """
        interval = request.interval
        try:
            prepared = self._prepare(request, to_utc(as_of))
        except (ValidationError, RuleViolation) as exc:
            return self._rejected(request, exc)
        except ConfigurationError as exc:
            logger.error("admission configuration error | resource=%s | %s", request.resource_id, exc.message)
            raise

        for resource_id in prepared.scope:
            if not self.index.is_warm(resource_id):
                self.index.warm(resource_id, self.reservations.active_reservations(resource_id))

        target = prepared.chain[0]
        wait = timeout if timeout is not None else self.lock_timeout
        try:
            with self.locks.hold(prepared.lock_ids, timeout=wait):
                blocking = self._find_conflict(prepared.scope, interval)
                if blocking is not None:
                    return self._rejected(request, blocking)
                reservation = Reservation(
                    id=self.id_factory(),
                    resource_id=target.id,
                    interval=interval,
                    status=ReservationStatus.CONFIRMED if self.policy.auto_confirm else ReservationStatus.PENDING,
                    quantity=request.quantity,
                    booking_type=target.level.value,
                    created_at=datetime.now(timezone.utc),
                )
                self.index.add(reservation)
        except LockTimeout:
            logger.warning("admission lock timeout | resource=%s", request.resource_id)
            raise

        try:
            self.reservations.save(reservation)
        except Exception:
            self.index.remove(reservation.id)
            logger.exception("admission persistence failed | reservation=%s", reservation.id)
            raise

        logger.info(
            "admission accepted | resource=%s | reservation=%s | %s - %s | status=%s",
            target.id,
            reservation.id,
            interval.start.isoformat(),
            interval.end.isoformat(),
            reservation.status.value,
        )
        return AdmissionDecision.accept(reservation)

    def release(self, reservation_id: str) -> bool:
        """Drop a previously accepted reservation from the conflict index."""
        removed = self.index.remove(reservation_id)
        if removed is None:
            logger.info("release ignored | reservation=%s not indexed", reservation_id)
            return False
        logger.info("released | reservation=%s | resource=%s", reservation_id, removed.resource_id)
        return True

    def transition(self, reservation_id: str, status: ReservationStatus) -> Optional[Reservation]:
        """Apply an external status change; Cancelled and Rejected free the slot."""
        updated = self.index.update_status(reservation_id, status)
        logger.info("status transition | reservation=%s | status=%s | indexed=%s", reservation_id, status.value, updated is not None)
        return updated

    def warm(self, resource_ids: list[str]) -> int:
        return sum(self.index.warm(rid, self.reservations.active_reservations(rid)) for rid in resource_ids)

    def _prepare(self, request: AdmissionRequest, as_of: datetime) -> _Prepared:
        if request.quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        chain = self.hierarchy.resolve_chain(request.resource_id)
        check_bookable(chain)
        target = chain[0]
        if target.capacity is not None and request.quantity > target.capacity:
            raise ValidationError(
                f"Requested quantity {request.quantity} exceeds capacity {target.capacity} of {target.level.value} {target.id}"
            )

        interval = request.interval
        if interval.start < as_of:
            raise ValidationError("Start time is in the past")

        tz = zone_for(chain, self.policy.default_timezone)
        view = RuleView.load(self.rules, chain)
        system_max_hours = (
            self.policy.max_booking_duration_days * 24 if self.policy.max_booking_duration_days is not None else None
        )
        verdict = evaluate_rules(interval, view, chain, tz, system_max_hours=system_max_hours)
        if not verdict.allowed:
            raise verdict.to_violation()

        if interval.start - as_of < timedelta(hours=self.policy.lead_time_hours):
            raise RuleViolation(
                f"lead_time: bookings must be made at least {self.policy.lead_time_hours:g}h in advance",
                rule_type="lead_time",
                level=SYSTEM_LEVEL,
            )

        descendants = [r.id for r in self.hierarchy.descendants(target.id)]
        scope = [r.id for r in chain] + descendants
        return _Prepared(chain=chain, scope=scope, lock_ids=[target.id] + descendants)

    def _find_conflict(self, scope: list[str], interval: Interval) -> Optional[Conflict]:
        for resource_id in scope:
            existing = self.index.any_overlap(resource_id, interval)
            if existing is not None:
                return Conflict(
                    f"conflict: overlaps reservation {existing.id} on {resource_id}",
                    reservation_id=existing.id,
                    resource_id=resource_id,
                )
        return None

    def _rejected(self, request: AdmissionRequest, error: ValidationError | RuleViolation | Conflict) -> AdmissionDecision:
        logger.info("admission rejected | resource=%s | kind=%s | %s", request.resource_id, error.kind, error.message)
        return AdmissionDecision.reject(error)
