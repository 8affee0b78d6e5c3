"""Root error class for the mp-auditlog error hierarchy."""

from __future__ import annotations

import json
from typing import Any


class BaseError(Exception):
    """Root of every error raised while capturing or persisting audit events.

    Errors end up in ``auditlog.*`` log records, so each one renders to a
    flat dict: the error class, a ``code`` slug, the message, free-form
    ``detail`` and whatever audit context the subclass carries (source
    table, persister name, batch size...) via :meth:`context`.

    Args:
        message: Human-readable description.
        code: Machine-readable slug (defaults to ``default_code``).
        detail: Extra JSON-safe context.
        cause: Exception that triggered this error; chained as ``__cause__``.
    """

    default_code: str = "base_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        detail: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail: dict[str, Any] = detail or {}
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"

    def context(self) -> dict[str, Any]:
        """Audit-specific attributes of the error; ``None`` values are omitted."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
        }
        payload.update({k: v for k, v in self.context().items() if v is not None})
        if self.cause is not None:
            payload["cause"] = repr(self.cause)
        return payload


__all__ = ["BaseError"]
