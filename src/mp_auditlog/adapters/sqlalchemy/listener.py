"""SQLAlchemy adapter – ORM capture binding and foreign key resolver."""
from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, object_session

from mp_auditlog.adapters.sqlalchemy.entity import InstanceView
from mp_auditlog.capture import AuditCapture, AuditedSource, UnitOfWorkContext
from mp_auditlog.observability.logging import get_logger

logger = get_logger(__name__)

INFO_KEY = "mp_auditlog.uow"


def unit_of_work(session: Session) -> UnitOfWorkContext:
    """The audit context of *session*, created on first use."""
    uow = session.info.get(INFO_KEY)
    if uow is None:
        uow = session.info[INFO_KEY] = UnitOfWorkContext()
    return uow


class SqlAlchemyAuditLog:
    """Feeds SQLAlchemy ORM flushes into an :class:`AuditCapture`.

    Usage::

        audit = SqlAlchemyAuditLog(capture)
        audit.register(Article, display_field="title")
        audit.register(Comment)
        audit.attach(Session)          # a Session, sessionmaker or the class

    Rows written by one flush share the transaction id of the session's
    current transaction; events are handed to the persister when the
    session commits and dropped when it rolls back.
    """

    def __init__(self, capture: AuditCapture) -> None:
        self.capture = capture
        self._sources: dict[type, AuditedSource] = {}

    @property
    def models(self) -> dict[str, type]:
        """Registered models by table name."""
        return {source.name: model for model, source in self._sources.items()}

    def source_for(self, model: type) -> AuditedSource:
        for cls in model.__mro__:
            if cls in self._sources:
                return self._sources[cls]
        raise KeyError(model.__name__)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, model: type, **source_options: Any) -> AuditedSource:
        """Audit *model*; options are forwarded to :class:`AuditedSource`."""
        mapper = sa.inspect(model)
        options: dict[str, Any] = {
            "name": mapper.local_table.name,
            "columns": tuple(attr.key for attr in mapper.column_attrs),
            "primary_key": tuple(mapper.get_property_by_column(col).key for col in mapper.primary_key),
            "associations": tuple(rel.key for rel in mapper.relationships),
        }
        options.update(source_options)
        source = AuditedSource(**options)
        self._sources[model] = source

        event.listen(model, "before_insert", self._before_write, propagate=True)
        event.listen(model, "before_update", self._before_write, propagate=True)
        event.listen(model, "before_delete", self._before_write, propagate=True)
        event.listen(model, "after_insert", self._after_insert, propagate=True)
        event.listen(model, "after_update", self._after_update, propagate=True)
        event.listen(model, "after_delete", self._after_delete, propagate=True)
        logger.debug("auditlog.registered", model=model.__name__, source=source.name)
        return source

    def attach(self, session: Any) -> None:
        event.listen(session, "after_commit", self._after_commit)
        event.listen(session, "after_soft_rollback", self._after_soft_rollback)

    def mark_origin(self, session: Session, instance: Any) -> None:
        """Name *instance* as the entity this unit of work is about."""
        uow = unit_of_work(session)
        uow.mark_origin(self.source_for(type(instance)).name, self._view(uow, instance))

    # ------------------------------------------------------------------
    # Mapper events
    # ------------------------------------------------------------------

    @staticmethod
    def _view(uow: UnitOfWorkContext, instance: Any) -> InstanceView:
        return uow.view(instance, InstanceView)

    def _context(self, target: Any) -> UnitOfWorkContext | None:
        session = object_session(target)
        return unit_of_work(session) if session is not None else None

    def _before_write(self, mapper: Any, connection: Any, target: Any) -> None:
        uow = self._context(target)
        if uow is not None:
            uow.begin()

    def _after_insert(self, mapper: Any, connection: Any, target: Any) -> None:
        self._capture_save(target, new=True)

    def _after_update(self, mapper: Any, connection: Any, target: Any) -> None:
        self._capture_save(target, new=False)

    def _capture_save(self, target: Any, new: bool) -> None:
        uow = self._context(target)
        if uow is None:
            return
        view = self._view(uow, target)
        view.mark_new(new)
        self.capture.capture_save(self.source_for(type(target)), view, uow)

    def _after_delete(self, mapper: Any, connection: Any, target: Any) -> None:
        uow = self._context(target)
        if uow is None:
            return
        view = self._view(uow, target)
        view.mark_new(False)
        self.capture.capture_delete(self.source_for(type(target)), view, uow)

    # ------------------------------------------------------------------
    # Session events
    # ------------------------------------------------------------------

    def _after_commit(self, session: Session) -> None:
        self.capture.after_commit(unit_of_work(session))

    def _after_soft_rollback(self, session: Session, previous_transaction: Any) -> None:
        if getattr(previous_transaction, "nested", False):
            return
        self.capture.after_rollback(unit_of_work(session))


class SessionForeignKeyResolver:
    """Resolves foreign keys by loading the referenced row in a fresh session.

    *models* maps table names to mapped classes, for instance
    ``SqlAlchemyAuditLog.models``.
    """

    def __init__(self, session_factory: Callable[[], Session], models: Mapping[str, type]) -> None:
        self._session_factory = session_factory
        self._models = models

    def resolve(self, source: str, key: Any, field: str) -> Any:
        model = self._models.get(source)
        if model is None:
            raise LookupError(f"no model registered for '{source}'")
        try:
            with self._session_factory() as session:
                row = session.get(model, key)
                if row is None:
                    raise LookupError(f"{source} #{key!r} does not exist")
                return getattr(row, field)
        except SQLAlchemyError as exc:
            raise LookupError(f"cannot load {source} #{key!r}: {exc}") from exc


__all__ = ["INFO_KEY", "SessionForeignKeyResolver", "SqlAlchemyAuditLog", "unit_of_work"]
