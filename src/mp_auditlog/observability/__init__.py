"""Observability – structured logging and ambient request context."""
