"""Adapters – storage backends for audit events and the SQLAlchemy capture binding."""
