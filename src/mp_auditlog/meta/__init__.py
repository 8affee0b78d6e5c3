"""Metadata enrichers – annotate a batch of audit events before it is persisted."""
from mp_auditlog.meta.application import ApplicationMetadata
from mp_auditlog.meta.registry import EnricherRegistry, MetadataEnricher
from mp_auditlog.meta.request import RequestMetadata

__all__ = ["ApplicationMetadata", "EnricherRegistry", "MetadataEnricher", "RequestMetadata"]
