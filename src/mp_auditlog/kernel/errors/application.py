"""Application-layer errors: wiring and configuration."""

from __future__ import annotations

from mp_auditlog.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting application-layer concern."""

    default_code = "application_error"


class ConfigurationError(ApplicationError):
    """Audit configuration is invalid (bad mode, strategy, persister target…).

    Surfaced immediately and never retried.
    """

    default_code = "configuration_error"


__all__ = ["ApplicationError", "ConfigurationError"]
