"""Persisters – the batch-write port and its in-memory implementation."""
from mp_auditlog.persisters.port import InMemoryPersister, Persister

__all__ = ["InMemoryPersister", "Persister"]
