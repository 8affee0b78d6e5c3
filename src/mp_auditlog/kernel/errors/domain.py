"""Domain errors: audit rules that cannot be honoured."""

from __future__ import annotations

from typing import Any

from mp_auditlog.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when an audit rule / invariant is violated."""

    default_code = "domain_error"


class ValidationError(DomainError):
    """A record does not meet validation rules.

    ``errors`` maps each failing field to its list of messages.
    """

    default_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        errors: dict[str, list[str]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors: dict[str, list[str]] = errors or {}

    def context(self) -> dict[str, Any]:
        return {"errors": self.errors}


class CaptureError(DomainError):
    """Computing the change set of an entity failed.

    Always fatal to the save/delete that triggered the capture: a broken
    configuration must never silently skip auditing.
    """

    default_code = "capture_error"

    def __init__(self, source: str, message: str, **kwargs: Any) -> None:
        super().__init__(f"[{source}] {message}", **kwargs)
        self.source = source

    def context(self) -> dict[str, Any]:
        return {"source": self.source}


class UnknownEventTypeError(DomainError):
    """A persisted record names an event type that does not exist."""

    default_code = "unknown_event_type"

    def __init__(self, event_type: Any, **kwargs: Any) -> None:
        super().__init__(f"Unknown audit event type {event_type!r}", **kwargs)
        self.event_type = event_type

    def context(self) -> dict[str, Any]:
        return {"event_type": self.event_type}


__all__ = [
    "CaptureError",
    "DomainError",
    "UnknownEventTypeError",
    "ValidationError",
]
