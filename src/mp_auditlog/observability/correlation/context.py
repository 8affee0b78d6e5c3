"""Observability – RequestContext, CorrelationContext.

The host application stores the request being served with
:meth:`CorrelationContext.set`; :class:`~mp_auditlog.meta.RequestMetadata`
and the logging processors read it back at the time they run.
"""
from __future__ import annotations

import dataclasses
from contextvars import ContextVar
from uuid import uuid4


@dataclasses.dataclass(frozen=True)
class RequestContext:
    """Ambient context for a single request/use-case execution."""
    correlation_id: str
    client_ip: str | None = None
    url: str | None = None
    user_id: str | int | None = None

    @classmethod
    def new(
        cls,
        client_ip: str | None = None,
        url: str | None = None,
        user_id: str | int | None = None,
    ) -> "RequestContext":
        return cls(correlation_id=str(uuid4()), client_ip=client_ip, url=url, user_id=user_id)


_CTX_VAR: ContextVar[RequestContext | None] = ContextVar("_mp_auditlog_request_ctx", default=None)


class CorrelationContext:
    """Ambient request context stored in a ``ContextVar``."""

    @staticmethod
    def set(ctx: RequestContext) -> None:
        _CTX_VAR.set(ctx)

    @staticmethod
    def get() -> RequestContext | None:
        return _CTX_VAR.get()

    @staticmethod
    def clear() -> None:
        _CTX_VAR.set(None)

    @staticmethod
    def set_from_headers(
        headers: dict[str, str],
        *,
        client_ip: str | None = None,
        url: str | None = None,
        user_id: str | int | None = None,
    ) -> RequestContext:
        """Build the context from HTTP headers and store it.

        Correlation id priority: ``X-Correlation-ID`` → ``X-Request-ID`` →
        generated UUID.  When *client_ip* is not given, the first address of
        ``X-Forwarded-For`` is used.  Header names match case-insensitively.
        """
        norm: dict[str, str] = {k.lower(): v for k, v in headers.items()}

        correlation_id = (
            norm.get("x-correlation-id")
            or norm.get("x-request-id")
            or str(uuid4())
        )
        if client_ip is None and norm.get("x-forwarded-for"):
            client_ip = norm["x-forwarded-for"].split(",")[0].strip()

        ctx = RequestContext(
            correlation_id=correlation_id,
            client_ip=client_ip,
            url=url,
            user_id=user_id,
        )
        _CTX_VAR.set(ctx)
        return ctx


__all__ = ["CorrelationContext", "RequestContext"]
