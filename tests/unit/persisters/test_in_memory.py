"""Unit tests for the Persister port and InMemoryPersister."""

from __future__ import annotations

import pytest

from mp_auditlog.events import AuditCreateEvent, AuditDeleteEvent
from mp_auditlog.persisters import InMemoryPersister, Persister


class TestPersisterPort:
    def test_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            Persister()  # type: ignore[abstract]


class TestInMemoryPersister:
    def test_keeps_batches_in_order(self) -> None:
        persister = InMemoryPersister()
        first = [AuditCreateEvent("t1", 1, "articles", {}, None)]
        second = [AuditDeleteEvent("t2", 1, "articles", None, {}), AuditCreateEvent("t2", 2, "articles", {}, None)]
        persister.log_events(first)
        persister.log_events(second)
        assert persister.batches == [first, second]
        assert persister.events() == first + second

    def test_batches_are_copies(self) -> None:
        persister = InMemoryPersister()
        batch = [AuditCreateEvent("t", 1, "articles", {}, None)]
        persister.log_events(batch)
        batch.clear()
        persister.batches[0].clear()
        assert len(persister.events()) == 1

    def test_clear(self) -> None:
        persister = InMemoryPersister()
        persister.log_events([AuditCreateEvent("t", 1, "articles", {}, None)])
        persister.clear()
        assert persister.batches == []
