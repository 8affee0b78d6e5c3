"""Elasticsearch adapter – ElasticSearchPersister."""
from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any

from mp_auditlog.events import AuditEvent
from mp_auditlog.kernel.errors import ConfigurationError, PersistenceError
from mp_auditlog.observability.logging import get_logger
from mp_auditlog.persisters import Persister

logger = get_logger(__name__)


def _require_elasticsearch() -> Any:
    try:
        import elasticsearch  # type: ignore[import-untyped]
        import elasticsearch.helpers  # type: ignore[import-untyped]
        return elasticsearch
    except ImportError as exc:
        raise ImportError("Install 'mp-auditlog[elasticsearch]' to use the Elasticsearch persister") from exc


def _render(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, Mapping):
        return {k: _render(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_render(v) for v in value]
    return value


class ElasticSearchPersister(Persister):
    """Indexes each audit event as one document, in a single bulk request.

    Parameters
    ----------
    client:
        Ready ``elasticsearch.Elasticsearch`` client.  Built lazily from
        *hosts* on first use when omitted.
    hosts:
        Cluster URLs used when no *client* is given.
    index:
        Index receiving every document.  When ``None`` each event goes to
        ``indices[event.source]`` or, failing that, to an index named after
        its source.
    indices:
        Per-source index overrides.
    refresh:
        Passed to the bulk request; ``True`` makes documents searchable
        immediately (useful in tests).
    """

    def __init__(
        self,
        client: Any = None,
        hosts: Sequence[str] | None = None,
        index: str | None = None,
        indices: Mapping[str, str] | None = None,
        refresh: bool = False,
    ) -> None:
        if client is None and not hosts:
            raise ConfigurationError("ElasticSearchPersister needs a client or hosts")
        self._client = client
        self._hosts = list(hosts or [])
        self._index = index
        self._indices = dict(indices or {})
        self._refresh = refresh
        self._lock = threading.Lock()

    @property
    def client(self) -> Any:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    es = _require_elasticsearch()
                    self._client = es.Elasticsearch(hosts=self._hosts)
        return self._client

    def index_for(self, event: AuditEvent) -> str:
        if self._index:
            return self._index
        return self._indices.get(event.source, event.source)

    def document(self, event: AuditEvent) -> dict[str, Any]:
        """Search document of *event*; the display value is not indexed."""
        return {
            "@timestamp": event.timestamp,
            "transaction": event.transaction_id,
            "type": event.get_event_type(),
            "primary_key": event.entity_id,
            "source": event.source,
            "parent_source": event.parent_source,
            "original": _render(event.original),
            "changed": _render(event.changed),
            "meta": event.meta,
        }

    def log_events(self, events: Sequence[AuditEvent]) -> None:
        if not events:
            return
        es = _require_elasticsearch()
        actions = [
            {"_index": self.index_for(event), "_source": self.document(event)}
            for event in events
        ]
        try:
            indexed, _ = es.helpers.bulk(self.client, actions, refresh=self._refresh)
        except (es.helpers.BulkIndexError, es.ApiError, es.TransportError) as exc:
            logger.error("auditlog.persist_failed", persister="elasticsearch", events=len(events), error=str(exc))
            raise PersistenceError(
                "elasticsearch", f"Bulk indexing of {len(events)} audit events failed", batch_size=len(events), cause=exc
            ) from exc
        logger.debug("auditlog.indexed", documents=indexed)


__all__ = ["ElasticSearchPersister"]
