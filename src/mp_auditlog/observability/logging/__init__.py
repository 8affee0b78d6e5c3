"""Observability – structlog configuration and logger helper."""
from mp_auditlog.observability.logging.factory import JsonLoggerFactory
from mp_auditlog.observability.logging.processors import CorrelationProcessor, get_logger

__all__ = ["CorrelationProcessor", "JsonLoggerFactory", "get_logger"]
