"""SQLAlchemy adapter – relational persister, audit table, ORM capture binding."""
from mp_auditlog.adapters.sqlalchemy.entity import InstanceView
from mp_auditlog.adapters.sqlalchemy.listener import (
    SessionForeignKeyResolver,
    SqlAlchemyAuditLog,
    unit_of_work,
)
from mp_auditlog.adapters.sqlalchemy.persister import STRATEGIES, TablePersister
from mp_auditlog.adapters.sqlalchemy.table import TABLE_NAME, audit_logs_table

__all__ = [
    "STRATEGIES",
    "TABLE_NAME",
    "InstanceView",
    "SessionForeignKeyResolver",
    "SqlAlchemyAuditLog",
    "TablePersister",
    "audit_logs_table",
    "unit_of_work",
]
