"""Capture – turn entity saves and deletes into queued audit events."""
from mp_auditlog.capture.config import (
    ASSOCIATION_MODES,
    AUDIT_TRAIL,
    DEFAULT_BLACKLIST,
    REMOVE,
    AuditConfig,
    AuditedSource,
    ForeignKey,
)
from mp_auditlog.capture.context import UnitOfWorkContext, UnitOfWorkState
from mp_auditlog.capture.diff import ChangeSet, ForeignKeyResolver, diff_delete, diff_save
from mp_auditlog.capture.engine import AuditCapture
from mp_auditlog.capture.entity import Entity, EntityView, export_value

__all__ = [
    "ASSOCIATION_MODES",
    "AUDIT_TRAIL",
    "DEFAULT_BLACKLIST",
    "REMOVE",
    "AuditCapture",
    "AuditConfig",
    "AuditedSource",
    "ChangeSet",
    "Entity",
    "EntityView",
    "ForeignKey",
    "ForeignKeyResolver",
    "UnitOfWorkContext",
    "UnitOfWorkState",
    "diff_delete",
    "diff_save",
    "export_value",
]
