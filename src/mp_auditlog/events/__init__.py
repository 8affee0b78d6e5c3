"""Audit events – the event model and its factory."""
from mp_auditlog.events.base import (
    AuditCreateEvent,
    AuditDeleteEvent,
    AuditEvent,
    AuditUpdateEvent,
    EventType,
    json_default,
)
from mp_auditlog.events.factory import EventFactory

__all__ = [
    "AuditCreateEvent",
    "AuditDeleteEvent",
    "AuditEvent",
    "AuditUpdateEvent",
    "EventFactory",
    "EventType",
    "json_default",
]
