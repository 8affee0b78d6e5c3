"""Persisters – Persister port, InMemoryPersister."""

from __future__ import annotations

import abc
from collections.abc import Sequence

from mp_auditlog.events import AuditEvent


class Persister(abc.ABC):
    """Port: durable sink for batches of audit events.

    Implementations live in ``adapters/``:
    :class:`~mp_auditlog.adapters.elasticsearch.ElasticSearchPersister`,
    :class:`~mp_auditlog.adapters.rabbitmq.RabbitMQPersister` and
    :class:`~mp_auditlog.adapters.sqlalchemy.TablePersister`.
    Use :class:`InMemoryPersister` in unit tests.

    One instance is shared by the whole process, so ``log_events`` must be
    safe to call repeatedly and from several threads.
    """

    @abc.abstractmethod
    def log_events(self, events: Sequence[AuditEvent]) -> None:
        """Persist all *events*, which belong to one unit of work, in order."""


class InMemoryPersister(Persister):
    """List-backed persister for unit tests and local development."""

    def __init__(self) -> None:
        self._batches: list[list[AuditEvent]] = []

    def log_events(self, events: Sequence[AuditEvent]) -> None:
        self._batches.append(list(events))

    @property
    def batches(self) -> list[list[AuditEvent]]:
        """Every batch received, oldest first."""
        return [list(batch) for batch in self._batches]

    def events(self) -> list[AuditEvent]:
        """All events of all batches, flattened (helper for test assertions)."""
        return [event for batch in self._batches for event in batch]

    def clear(self) -> None:
        self._batches.clear()


__all__ = ["InMemoryPersister", "Persister"]
