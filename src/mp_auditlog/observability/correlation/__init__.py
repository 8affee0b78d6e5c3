"""Observability – ambient request context."""
from mp_auditlog.observability.correlation.context import CorrelationContext, RequestContext

__all__ = ["CorrelationContext", "RequestContext"]
