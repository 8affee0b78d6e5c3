"""Audit events – AuditEvent and its create/update/delete variants."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar
from uuid import UUID

from mp_auditlog.kernel.errors import SerializationError
from mp_auditlog.kernel.time import format_timestamp, utc_now


class EventType(str, Enum):
    """Discriminant of an audit event."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def json_default(obj: Any) -> Any:
    """``json.dumps`` hook for values commonly found in entity fields."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, (Decimal, UUID)):
        return str(obj)
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    if isinstance(obj, AuditEvent):
        return obj.to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _now() -> str:
    return format_timestamp(utc_now())


@dataclasses.dataclass
class AuditEvent:
    """A single change done to an entity, as recorded in the audit trail.

    Parameters
    ----------
    transaction_id:
        Correlation id shared by every event of one unit of work.
    entity_id:
        Primary key of the entity.  Single-column keys are stored as the
        scalar value, composite keys as a list.
    source:
        Name of the collection (table) the entity belongs to.
    changed:
        Field → new value.  Always ``None`` for deletes.
    original:
        Field → previous value.  Always ``None`` for creates.
    display_value:
        Human friendly label of the entity.
    parent_source:
        Collection of the entity whose save/delete caused this change.
    meta:
        Contextual information added by the metadata enrichers.
    timestamp:
        Capture time.  Only the deserialization path passes it explicitly.
    """

    event_type: ClassVar[EventType]

    transaction_id: Any
    entity_id: Any
    source: str
    changed: dict[str, Any] | None
    original: dict[str, Any] | None
    display_value: str | None = None
    _: dataclasses.KW_ONLY
    parent_source: str | None = None
    meta: dict[str, Any] | None = None
    timestamp: str = dataclasses.field(default_factory=_now)

    def __post_init__(self) -> None:
        if type(self) is AuditEvent:
            raise TypeError("AuditEvent is abstract; use one of its create/update/delete variants")
        if isinstance(self.entity_id, (list, tuple)):
            self.entity_id = self.entity_id[0] if len(self.entity_id) == 1 else list(self.entity_id)
        if self.event_type is EventType.DELETE:
            self.changed = None
        if self.event_type is EventType.CREATE:
            self.original = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_event_type(self) -> str:
        return self.event_type.value

    def get_transaction_id(self) -> Any:
        return self.transaction_id

    def get_id(self) -> Any:
        return self.entity_id

    def get_source_name(self) -> str:
        return self.source

    def get_parent_source_name(self) -> str | None:
        return self.parent_source

    def set_parent_source_name(self, source: str | None) -> None:
        self.parent_source = source

    def get_changed(self) -> dict[str, Any] | None:
        return self.changed

    def get_original(self) -> dict[str, Any] | None:
        return self.original

    def get_display_value(self) -> str | None:
        return self.display_value

    def get_timestamp(self) -> str:
        return self.timestamp

    def get_meta_info(self) -> dict[str, Any] | None:
        return self.meta

    def set_meta_info(self, meta: Mapping[str, Any] | None) -> None:
        self.meta = dict(meta) if meta is not None else None

    def merge_meta_info(self, contribution: Mapping[str, Any]) -> None:
        """Add *contribution* to ``meta`` without overwriting existing keys."""
        merged = dict(self.meta or {})
        for key, value in contribution.items():
            merged.setdefault(key, value)
        self.meta = merged

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Flat record understood by :class:`~mp_auditlog.events.factory.EventFactory`."""
        return {
            "type": self.event_type.value,
            "transaction": self.transaction_id,
            "primary_key": self.entity_id,
            "source": self.source,
            "parent_source": self.parent_source,
            "display_value": self.display_value,
            "original": self.original,
            "changed": self.changed,
            "meta": self.meta,
            "@timestamp": self.timestamp,
        }

    def to_json(self) -> str:
        try:
            return json.dumps(self.to_dict(), default=json_default)
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot encode {self.event_type.value} event for '{self.source}'",
                payload_type=type(self).__name__,
                cause=exc,
            ) from exc


@dataclasses.dataclass(eq=True)
class AuditCreateEvent(AuditEvent):
    """An entity was inserted."""

    event_type: ClassVar[EventType] = EventType.CREATE


@dataclasses.dataclass(eq=True)
class AuditUpdateEvent(AuditEvent):
    """An existing entity was modified."""

    event_type: ClassVar[EventType] = EventType.UPDATE


@dataclasses.dataclass(eq=True)
class AuditDeleteEvent(AuditEvent):
    """An entity was removed."""

    event_type: ClassVar[EventType] = EventType.DELETE


__all__ = [
    "AuditCreateEvent",
    "AuditDeleteEvent",
    "AuditEvent",
    "AuditUpdateEvent",
    "EventType",
    "json_default",
]
