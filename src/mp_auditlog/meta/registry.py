"""Metadata enrichers – MetadataEnricher port and EnricherRegistry."""

from __future__ import annotations

import abc
from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Any

from mp_auditlog.events import AuditEvent
from mp_auditlog.observability.logging import get_logger

logger = get_logger(__name__)

EnricherCallable = Callable[[Sequence[AuditEvent]], None]


class MetadataEnricher(abc.ABC):
    """Port: adds contextual data to the ``meta`` of every event of a batch.

    Subclasses implement :meth:`contribution`; keys already present on an
    event (set by the event itself or by an earlier enricher) are kept.
    """

    @abc.abstractmethod
    def contribution(self) -> Mapping[str, Any]:
        """Return the key/value pairs to merge into each event."""

    def enrich(self, events: Sequence[AuditEvent]) -> None:
        data = self.contribution()
        if not data:
            return
        for event in events:
            event.merge_meta_info(data)

    def __call__(self, events: Sequence[AuditEvent]) -> None:
        self.enrich(events)


class EnricherRegistry:
    """Ordered chain of enrichers run over each batch before persistence.

    Both :class:`MetadataEnricher` instances and plain callables taking the
    batch are accepted.  They run in registration order.
    """

    def __init__(self, enrichers: Sequence[EnricherCallable] | None = None) -> None:
        self._enrichers: list[EnricherCallable] = list(enrichers or [])

    def register(self, enricher: EnricherCallable) -> EnricherCallable:
        self._enrichers.append(enricher)
        return enricher

    def unregister(self, enricher: EnricherCallable) -> None:
        self._enrichers.remove(enricher)

    def __iter__(self) -> Iterator[EnricherCallable]:
        return iter(list(self._enrichers))

    def __len__(self) -> int:
        return len(self._enrichers)

    def run(self, events: Sequence[AuditEvent]) -> None:
        for enricher in list(self._enrichers):
            enricher(events)
            logger.debug(
                "auditlog.enriched",
                enricher=type(enricher).__name__,
                events=len(events),
            )


__all__ = ["EnricherCallable", "EnricherRegistry", "MetadataEnricher"]
