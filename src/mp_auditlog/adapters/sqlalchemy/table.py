"""SQLAlchemy adapter – the ``audit_logs`` table."""
from __future__ import annotations

from typing import Any

import sqlalchemy as sa

TABLE_NAME = "audit_logs"


def audit_logs_table(
    metadata: sa.MetaData,
    name: str = TABLE_NAME,
    *extra_columns: sa.Column[Any],
    primary_key_type: sa.types.TypeEngine[Any] | None = None,
    data_type: sa.types.TypeEngine[Any] | None = None,
) -> sa.Table:
    """Declare the relational audit log table on *metadata*.

    ``primary_key`` is an integer column by default; pass a string type to
    store serialized composite keys, or ``sa.JSON()`` to store them raw.
    *data_type* is the type of ``original``, ``changed`` and ``meta``
    (``Text`` by default; use ``sa.JSON()`` with ``serialize_fields=False``).
    *extra_columns* hold extracted meta fields or the ``primary_key_<n>``
    columns of the ``properties`` key strategy.
    """
    return sa.Table(
        name,
        metadata,
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("transaction", sa.String(36), nullable=False, index=True),
        sa.Column("type", sa.String(7), nullable=False, index=True),
        sa.Column("primary_key", primary_key_type if primary_key_type is not None else sa.Integer(), index=True),
        sa.Column("display_value", sa.String(255), nullable=True, index=True),
        sa.Column("source", sa.String(255), nullable=False, index=True),
        sa.Column("parent_source", sa.String(255), nullable=True, index=True),
        sa.Column("username", sa.String(255), nullable=True, index=True),
        sa.Column("original", data_type if data_type is not None else sa.Text(), nullable=True),
        sa.Column("changed", data_type if data_type is not None else sa.Text(), nullable=True),
        sa.Column("meta", data_type if data_type is not None else sa.Text(), nullable=True),
        sa.Column("created", sa.DateTime, nullable=True, index=True),
        *extra_columns,
    )


__all__ = ["TABLE_NAME", "audit_logs_table"]
