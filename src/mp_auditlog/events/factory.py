"""Audit events – EventFactory."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mp_auditlog.events.base import (
    AuditCreateEvent,
    AuditDeleteEvent,
    AuditEvent,
    AuditUpdateEvent,
    EventType,
)
from mp_auditlog.kernel.errors import SerializationError, UnknownEventTypeError

_REQUIRED_KEYS = ("transaction", "primary_key", "source", "@timestamp")


class EventFactory:
    """Rebuild typed audit events from flat records.

    The records are the ones produced by :meth:`AuditEvent.to_dict`, as
    they come back from the search index, the message queue or JSON.  The
    persisted ``@timestamp`` is restored, never regenerated.
    """

    EVENT_CLASSES: dict[EventType, type[AuditEvent]] = {
        EventType.CREATE: AuditCreateEvent,
        EventType.UPDATE: AuditUpdateEvent,
        EventType.DELETE: AuditDeleteEvent,
    }

    def create(self, data: Mapping[str, Any]) -> AuditEvent:
        try:
            event_type = EventType(data.get("type"))
        except ValueError as exc:
            raise UnknownEventTypeError(data.get("type"), cause=exc) from exc

        missing = [key for key in _REQUIRED_KEYS if key not in data]
        if missing:
            raise SerializationError(
                f"Audit record is missing {', '.join(missing)}",
                payload_type=event_type.value,
            )

        return self.EVENT_CLASSES[event_type](
            data["transaction"],
            data["primary_key"],
            data["source"],
            data.get("changed"),
            data.get("original"),
            data.get("display_value"),
            parent_source=data.get("parent_source"),
            meta=data.get("meta"),
            timestamp=data["@timestamp"],
        )

    def create_many(self, records: list[Mapping[str, Any]]) -> list[AuditEvent]:
        return [self.create(record) for record in records]


__all__ = ["EventFactory"]
