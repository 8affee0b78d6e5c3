"""Infrastructure errors: I/O failures, external integrations."""

from __future__ import annotations

from typing import Any

from mp_auditlog.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not an audit rule violation."""

    default_code = "infrastructure_error"


class SerializationError(InfrastructureError):
    """Failed to serialize or deserialize an audit record."""

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.payload_type = payload_type

    def context(self) -> dict[str, Any]:
        return {"payload_type": self.payload_type}


class PersistenceError(InfrastructureError):
    """A persister could not write a batch of audit events."""

    default_code = "persistence_error"

    def __init__(
        self,
        persister: str,
        message: str | None = None,
        *,
        batch_size: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"Persister '{persister}' failed to write batch", **kwargs)
        self.persister = persister
        self.batch_size = batch_size

    def context(self) -> dict[str, Any]:
        return {"persister": self.persister, "batch_size": self.batch_size}


__all__ = [
    "InfrastructureError",
    "PersistenceError",
    "SerializationError",
]
