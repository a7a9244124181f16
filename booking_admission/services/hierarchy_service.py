from __future__ import annotations

from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booking_admission.core.exceptions import ConfigurationError, ResourceNotFound, ValidationError
from booking_admission.repositories.base import ResourceRepository
from booking_admission.services.records import PARENT_LEVEL, Granularity, Level, Resource


class HierarchyResolver:
    """Walks the Property > Building > Room tree through a resource repository."""

    def __init__(self, resources: ResourceRepository) -> None:
        self.resources = resources

    def resolve_chain(self, resource_id: str) -> list[Resource]:
        """Return ``[self, parent, ..., property]``.

        A missing or inactive resource anywhere on the chain is
        ``ResourceNotFound``. A dangling parent reference, a cycle or a
        parent on the wrong level is a ``ConfigurationError``.
        """
        target = self.resources.get(resource_id)
        if target is None:
            raise ResourceNotFound(resource_id)
        if not target.is_active:
            raise ResourceNotFound(resource_id, f"Resource {resource_id} is inactive")

        chain = [target]
        seen = {target.id}
        cur = target
        while cur.parent_id is not None:
            if cur.parent_id in seen:
                raise ConfigurationError(f"Resource hierarchy has a cycle at {cur.parent_id}")
            parent = self.resources.get(cur.parent_id)
            if parent is None:
                raise ConfigurationError(f"Resource {cur.id} references missing parent {cur.parent_id}")
            expected = PARENT_LEVEL[cur.level]
            if parent.level != expected:
                raise ConfigurationError(
                    f"Resource {cur.id} ({cur.level.value}) has parent {parent.id} on level {parent.level.value}"
                )
            if not parent.is_active:
                raise ResourceNotFound(parent.id, f"Resource {resource_id} belongs to inactive {parent.level.value} {parent.id}")
            chain.append(parent)
            seen.add(parent.id)
            cur = parent

        if cur.level != Level.PROPERTY:
            raise ConfigurationError(f"Resource {cur.id} ({cur.level.value}) has no parent")
        return chain

    def bookable_unit(self, resource_id: str) -> Resource:
        chain = self.resolve_chain(resource_id)
        check_bookable(chain)
        return chain[0]

    def descendants(self, resource_id: str) -> list[Resource]:
        """Every resource below ``resource_id``, breadth-first, siblings by id."""
        out: list[Resource] = []
        seen = {resource_id}
        queue = [resource_id]
        while queue:
            current = queue.pop(0)
            for child in sorted(self.resources.children(current), key=lambda r: r.id):
                if child.id in seen:
                    raise ConfigurationError(f"Resource hierarchy has a cycle at {child.id}")
                seen.add(child.id)
                out.append(child)
                queue.append(child.id)
        return out


def check_bookable(chain: list[Resource]) -> None:
    """A reservation may only target a ``whole`` resource under ``subdivided`` ancestors."""
    target = chain[0]
    if target.granularity == Granularity.SUBDIVIDED:
        raise ValidationError(
            f"{target.level.value.capitalize()} {target.id} is subdivided and cannot be booked as a whole"
        )
    for ancestor in chain[1:]:
        if ancestor.granularity == Granularity.WHOLE:
            raise ValidationError(
                f"{target.level.value.capitalize()} {target.id} is not bookable: "
                f"{ancestor.level.value} {ancestor.id} is booked as a whole"
            )


def zone_for(chain: list[Resource], default: str) -> ZoneInfo:
    """Time zone of the nearest resource declaring one, else ``default``."""
    name = next((r.timezone for r in chain if r.timezone), None) or default
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(f"Unknown time zone {name!r}") from None


def check_parent_assignment(
    resources: ResourceRepository, *, resource_id: Optional[str], level: Level, parent_id: Optional[str]
) -> None:
    """Configuration-time checks for placing a resource under ``parent_id``."""
    expected = PARENT_LEVEL[level]
    if expected is None:
        if parent_id is not None:
            raise ConfigurationError("A property cannot have a parent")
        return
    if parent_id is None:
        raise ConfigurationError(f"A {level.value} needs a {expected.value} parent")

    parent = resources.get(parent_id)
    if parent is None:
        raise ConfigurationError(f"Parent {parent_id} not found")
    if parent.level != expected:
        raise ConfigurationError(f"Parent {parent_id} is a {parent.level.value}, expected a {expected.value}")

    seen = set()
    cur: Optional[Resource] = parent
    while cur is not None:
        if resource_id is not None and cur.id == resource_id:
            raise ConfigurationError(f"Placing {resource_id} under {parent_id} would create a cycle")
        if cur.id in seen:
            raise ConfigurationError(f"Resource hierarchy has a cycle at {cur.id}")
        seen.add(cur.id)
        cur = resources.get(cur.parent_id) if cur.parent_id else None
