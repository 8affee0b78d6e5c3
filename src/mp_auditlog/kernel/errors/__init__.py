"""Kernel error hierarchy: public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError              (domain.py)
    │   ├── ValidationError
    │   ├── CaptureError
    │   └── UnknownEventTypeError
    ├── ApplicationError         (application.py)
    │   └── ConfigurationError
    └── InfrastructureError      (infrastructure.py)
        ├── SerializationError
        └── PersistenceError
"""

from mp_auditlog.kernel.errors.application import ApplicationError, ConfigurationError
from mp_auditlog.kernel.errors.base import BaseError
from mp_auditlog.kernel.errors.domain import (
    CaptureError,
    DomainError,
    UnknownEventTypeError,
    ValidationError,
)
from mp_auditlog.kernel.errors.infrastructure import (
    InfrastructureError,
    PersistenceError,
    SerializationError,
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
