"""Capture – UnitOfWorkContext and its states."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any, cast
from uuid import uuid4

from mp_auditlog.events import AuditEvent


class UnitOfWorkState(str, Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    FLUSHING = "flushing"


class UnitOfWorkContext:
    """Audit state of one save/delete operation and its cascades.

    Created by the caller and passed to every lifecycle notification of the
    operation.  It owns the transaction id and the ordered queue of pending
    events, keyed by a uid generated for each tracked entity instance so
    that saving the same instance twice replaces its queued event.

    A context belongs to exactly one unit of work at a time; after a flush
    or a rollback it is idle again and the next mutation starts a new
    transaction id.
    """

    def __init__(self, transaction_id: str | None = None) -> None:
        self._preset_transaction = transaction_id
        self.transaction_id: str | None = None
        self.state = UnitOfWorkState.IDLE
        self.origin_source: str | None = None
        self.origin: object | None = None
        self._queue: dict[str, AuditEvent] = {}
        self._keys: dict[int, tuple[object, str]] = {}
        self._sources: list[str] = []
        self._views: dict[int, tuple[object, Any]] = {}

    def __repr__(self) -> str:
        return (
            f"UnitOfWorkContext(transaction_id={self.transaction_id!r}, "
            f"state={self.state.value!r}, queued={len(self._queue)})"
        )

    def __len__(self) -> int:
        return len(self._queue)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def begin(self) -> str:
        """Start tracking if idle and return the transaction id."""
        if self.state is UnitOfWorkState.IDLE:
            self.transaction_id = self._preset_transaction or str(uuid4())
            self._preset_transaction = None
            self.state = UnitOfWorkState.TRACKING
        return cast(str, self.transaction_id)

    @property
    def is_tracking(self) -> bool:
        return self.state is UnitOfWorkState.TRACKING

    def start_flush(self) -> list[AuditEvent]:
        """Switch to ``flushing`` and return the queued events in order."""
        self.state = UnitOfWorkState.FLUSHING
        return list(self._queue.values())

    def reset(self) -> None:
        """Drop everything queued and go back to ``idle``."""
        self._queue.clear()
        self._keys.clear()
        self._sources.clear()
        self._views.clear()
        self.transaction_id = None
        self.origin_source = None
        self.origin = None
        self.state = UnitOfWorkState.IDLE

    # ------------------------------------------------------------------
    # Nesting of save/delete calls
    # ------------------------------------------------------------------

    def enter(self, source: str) -> None:
        self._sources.append(source)

    def leave(self) -> str | None:
        return self._sources.pop() if self._sources else None

    @property
    def parent_source(self) -> str | None:
        """Source of the save/delete enclosing the current one, if any."""
        if self._sources:
            return self._sources[-1]
        return None

    def mark_origin(self, source: str, entity: object) -> None:
        """Record the top-level entity of the unit of work.

        Other entities captured afterwards get *source* as ``parent_source``.
        """
        self.origin_source = source
        self.origin = entity

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------

    def key_for(self, entity: object) -> str:
        """Stable correlation key of *entity* for this unit of work."""
        entry = self._keys.get(id(entity))
        if entry is None or entry[0] is not entity:
            entry = (entity, uuid4().hex)
            self._keys[id(entity)] = entry
        return entry[1]

    def view(self, obj: object, factory: Callable[[object], Any]) -> Any:
        """Return the cached adapter of *obj*, building it with *factory* once."""
        entry = self._views.get(id(obj))
        if entry is None or entry[0] is not obj:
            entry = (obj, factory(obj))
            self._views[id(obj)] = entry
        return entry[1]

    def enqueue(self, entity: object, event: AuditEvent) -> None:
        self._queue[self.key_for(entity)] = event

    def queued(self, entity: object) -> AuditEvent | None:
        entry = self._keys.get(id(entity))
        if entry is None or entry[0] is not entity:
            return None
        return self._queue.get(entry[1])

    def events(self) -> list[AuditEvent]:
        return list(self._queue.values())


__all__ = ["UnitOfWorkContext", "UnitOfWorkState"]
