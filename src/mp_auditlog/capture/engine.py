"""Capture – AuditCapture, the lifecycle-driven capture engine."""

from __future__ import annotations

from collections.abc import Sequence

from mp_auditlog.capture.config import AuditConfig, AuditedSource
from mp_auditlog.capture.context import UnitOfWorkContext
from mp_auditlog.capture.diff import ChangeSet, ForeignKeyResolver, diff_delete, diff_save
from mp_auditlog.capture.entity import EntityView
from mp_auditlog.events import AuditCreateEvent, AuditDeleteEvent, AuditEvent, AuditUpdateEvent
from mp_auditlog.kernel.errors import CaptureError
from mp_auditlog.kernel.time import Clock, SystemClock, format_timestamp
from mp_auditlog.meta import EnricherRegistry
from mp_auditlog.observability.logging import get_logger
from mp_auditlog.persisters import Persister

logger = get_logger(__name__)

_DIFF_ERRORS = (LookupError, AttributeError, TypeError, ValueError)


class AuditCapture:
    """Turns save/delete notifications into audit events and flushes them.

    The data-access layer calls the ``before_*`` / ``after_*`` hooks around
    every save and delete, passing the :class:`UnitOfWorkContext` of the
    operation, then :meth:`after_commit` or :meth:`after_rollback` once the
    surrounding transaction ends.  Saves and deletes nested inside another
    one (associations, cascades) share its transaction id and get its
    source as ``parent_source``.

    Example::

        capture = AuditCapture(InMemoryPersister())
        articles = AuditedSource("articles", columns=("id", "title"))
        uow = UnitOfWorkContext()

        capture.before_save(articles, article, uow)
        ...  # write the row
        capture.after_save(articles, article, uow)
        capture.after_commit(uow)
    """

    def __init__(
        self,
        persister: Persister,
        config: AuditConfig | None = None,
        enrichers: EnricherRegistry | None = None,
        foreign_key_resolver: ForeignKeyResolver | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.persister = persister
        self.config = config or AuditConfig()
        self.enrichers = enrichers if enrichers is not None else EnricherRegistry()
        self.foreign_key_resolver = foreign_key_resolver
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------------

    def before_save(self, source: AuditedSource, entity: EntityView, uow: UnitOfWorkContext) -> None:
        uow.begin()
        uow.enter(source.name)

    def after_save(
        self,
        source: AuditedSource,
        entity: EntityView,
        uow: UnitOfWorkContext,
        associated: Sequence[str] | None = None,
    ) -> AuditEvent | None:
        uow.leave()
        return self.capture_save(source, entity, uow, associated, parent_source=uow.parent_source)

    def before_delete(self, source: AuditedSource, entity: EntityView, uow: UnitOfWorkContext) -> None:
        uow.begin()
        uow.enter(source.name)

    def after_delete(self, source: AuditedSource, entity: EntityView, uow: UnitOfWorkContext) -> AuditEvent:
        uow.leave()
        return self.capture_delete(source, entity, uow, parent_source=uow.parent_source)

    def after_commit(self, uow: UnitOfWorkContext) -> list[AuditEvent]:
        """Enrich and persist everything queued in *uow*, then reset it.

        The queue is cleared even when the persister raises, so a second
        commit notification for the same unit of work never writes twice.
        """
        if not len(uow):
            uow.reset()
            return []
        transaction_id = uow.transaction_id
        events = uow.start_flush()
        try:
            self.enrichers.run(events)
            self.persister.log_events(events)
        finally:
            uow.reset()
        logger.info("auditlog.flushed", transaction_id=transaction_id, events=len(events))
        return events

    def after_rollback(self, uow: UnitOfWorkContext) -> None:
        if len(uow):
            logger.debug("auditlog.discarded", transaction_id=uow.transaction_id, events=len(uow))
        uow.reset()

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def capture_save(
        self,
        source: AuditedSource,
        entity: EntityView,
        uow: UnitOfWorkContext,
        associated: Sequence[str] | None = None,
        *,
        parent_source: str | None = None,
    ) -> AuditEvent | None:
        """Diff *entity* and queue a create/update event if anything changed."""
        transaction_id = uow.begin()
        try:
            change = diff_save(source, entity, self.config, associated, self.foreign_key_resolver)
        except _DIFF_ERRORS as exc:
            raise CaptureError(
                source.name, f"cannot compute changes: {exc}", detail={"source": source.name}, cause=exc
            ) from exc
        if change is None:
            return None
        event_class = AuditCreateEvent if change.is_new else AuditUpdateEvent
        event = self._build(event_class, transaction_id, source, change, self._parent(entity, uow, parent_source))
        uow.enqueue(entity, event)
        return event

    def capture_delete(
        self,
        source: AuditedSource,
        entity: EntityView,
        uow: UnitOfWorkContext,
        *,
        parent_source: str | None = None,
    ) -> AuditEvent:
        transaction_id = uow.begin()
        try:
            change = diff_delete(source, entity, self.config)
        except _DIFF_ERRORS as exc:
            raise CaptureError(
                source.name, f"cannot snapshot deleted entity: {exc}", detail={"source": source.name}, cause=exc
            ) from exc
        event = self._build(AuditDeleteEvent, transaction_id, source, change, self._parent(entity, uow, parent_source))
        uow.enqueue(entity, event)
        return event

    @staticmethod
    def _parent(entity: EntityView, uow: UnitOfWorkContext, parent_source: str | None) -> str | None:
        if parent_source is None and uow.origin is not None and entity is not uow.origin:
            return uow.origin_source
        return parent_source

    def _build(
        self,
        event_class: type[AuditEvent],
        transaction_id: str,
        source: AuditedSource,
        change: ChangeSet,
        parent_source: str | None,
    ) -> AuditEvent:
        return event_class(
            transaction_id,
            change.entity_id,
            source.name,
            change.changed,
            change.original,
            change.display_value,
            parent_source=parent_source,
            timestamp=format_timestamp(self._clock.now()),
        )


__all__ = ["AuditCapture"]
