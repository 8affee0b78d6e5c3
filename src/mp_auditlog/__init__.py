"""
mp_auditlog – Audit trail capture and dispatch.

Import path convention::

    from mp_auditlog.events import AuditCreateEvent, EventFactory
    from mp_auditlog.capture import AuditCapture, AuditedSource, UnitOfWorkContext
    from mp_auditlog.meta import ApplicationMetadata, RequestMetadata
    from mp_auditlog.adapters.sqlalchemy import TablePersister
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
