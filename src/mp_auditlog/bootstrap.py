"""Bootstrap – wire a persister and a capture engine from settings."""
from __future__ import annotations

from mp_auditlog.capture import AuditCapture, AuditConfig
from mp_auditlog.config import AuditLogSettings, EnvSettingsLoader
from mp_auditlog.meta import ApplicationMetadata, EnricherRegistry, RequestMetadata
from mp_auditlog.observability.logging import get_logger
from mp_auditlog.persisters import InMemoryPersister, Persister

logger = get_logger(__name__)


def load_settings() -> AuditLogSettings:
    """Read :class:`AuditLogSettings` from ``AUDITLOG_*`` environment variables."""
    return EnvSettingsLoader().load(AuditLogSettings)


def build_persister(settings: AuditLogSettings) -> Persister:
    """Instantiate the persister selected by ``settings.persister``.

    Backend clients are imported here so that only the selected backend's
    library has to be installed.
    """
    if settings.persister == "elastic":
        from mp_auditlog.adapters.elasticsearch import ElasticSearchPersister

        persister: Persister = ElasticSearchPersister(hosts=settings.elastic_hosts, index=settings.elastic_index)
    elif settings.persister == "rabbitmq":
        from mp_auditlog.adapters.rabbitmq import RabbitMQPersister

        persister = RabbitMQPersister(
            settings.amqp_url,
            exchange=settings.amqp_exchange,
            routing=settings.amqp_routing,
            delivery_mode=settings.amqp_delivery_mode,
        )
    elif settings.persister == "table":
        from mp_auditlog.adapters.sqlalchemy import TablePersister

        persister = TablePersister(
            settings.database_url,
            table=settings.table_name,
            primary_key_strategy=settings.primary_key_strategy,
            log_errors=settings.log_errors,
        )
    else:
        persister = InMemoryPersister()
    logger.info("auditlog.persister_configured", persister=settings.persister)
    return persister


def build_capture(settings: AuditLogSettings, persister: Persister | None = None) -> AuditCapture:
    """Build an :class:`AuditCapture` with the standard enrichers.

    ``RequestMetadata`` is always registered; ``ApplicationMetadata`` only
    when ``settings.app_name`` is set.
    """
    enrichers = EnricherRegistry()
    if settings.app_name:
        enrichers.register(ApplicationMetadata(settings.app_name))
    enrichers.register(RequestMetadata())
    return AuditCapture(
        persister if persister is not None else build_persister(settings),
        config=AuditConfig(blacklist=tuple(settings.blacklist), associations_mode=settings.associations_mode),
        enrichers=enrichers,
    )


__all__ = ["build_capture", "build_persister", "load_settings"]
