"""Kernel – framework-agnostic building blocks."""

from mp_auditlog.kernel.errors import (
    ApplicationError,
    BaseError,
    CaptureError,
    ConfigurationError,
    DomainError,
    InfrastructureError,
    PersistenceError,
    SerializationError,
    UnknownEventTypeError,
    ValidationError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "CaptureError",
    "ConfigurationError",
    "DomainError",
    "InfrastructureError",
    "PersistenceError",
    "SerializationError",
    "UnknownEventTypeError",
    "ValidationError",
]
