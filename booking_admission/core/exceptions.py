"""Error taxonomy for reservation admission.

``ConfigurationError`` and ``LockTimeout`` are raised to the caller.
``ValidationError``, ``RuleViolation`` and ``Conflict`` are the normal
rejection paths: the engine converts them into a Reject decision.
"""
from __future__ import annotations

from typing import Any


class AdmissionError(Exception):
    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "reason": self.message}


class ConfigurationError(AdmissionError):
    """Malformed rule payload, missing ancestor or broken hierarchy."""

    kind = "configuration"


class ValidationError(AdmissionError):
    """The request itself is malformed or targets something unbookable."""

    kind = "validation"


class ResourceNotFound(ValidationError):
    def __init__(self, resource_id: str, message: str | None = None) -> None:
        super().__init__(message or f"Resource {resource_id} not found")
        self.resource_id = resource_id


class RuleViolation(AdmissionError):
    kind = "rule_violation"

    def __init__(
        self,
        message: str,
        *,
        rule_type: str,
        rule_id: str | None = None,
        level: str | None = None,
        resource_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.rule_type = rule_type
        self.rule_id = rule_id
        self.level = level
        self.resource_id = resource_id

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(rule_type=self.rule_type, rule_id=self.rule_id, level=self.level, resource_id=self.resource_id)
        return data


class Conflict(AdmissionError):
    kind = "conflict"

    def __init__(self, message: str, *, reservation_id: str, resource_id: str) -> None:
        super().__init__(message)
        self.reservation_id = reservation_id
        self.resource_id = resource_id

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(reservation_id=self.reservation_id, resource_id=self.resource_id)
        return data


class LockTimeout(AdmissionError):
    kind = "lock_timeout"
