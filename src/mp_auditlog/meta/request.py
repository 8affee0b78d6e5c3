"""Metadata enrichers – RequestMetadata."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from mp_auditlog.meta.registry import MetadataEnricher
from mp_auditlog.observability.correlation import CorrelationContext, RequestContext


class RequestMetadata(MetadataEnricher):
    """Tags every event with the request during which it was captured.

    Values are read from the ambient :class:`RequestContext` each time the
    enricher runs.  With no active request nothing is added.

    Parameters
    ----------
    user:
        Acting user id or name.  Defaults to the context's ``user_id``.
    context:
        Callable returning the current request; defaults to
        :meth:`CorrelationContext.get`.
    """

    def __init__(
        self,
        user: str | int | None = None,
        context: Callable[[], RequestContext | None] = CorrelationContext.get,
    ) -> None:
        self._user = user
        self._context = context

    def contribution(self) -> Mapping[str, Any]:
        request = self._context()
        if request is None:
            return {}
        return {
            "ip": request.client_ip,
            "url": request.url,
            "user": self._user if self._user is not None else request.user_id,
        }


__all__ = ["RequestMetadata"]
