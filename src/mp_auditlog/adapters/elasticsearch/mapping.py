"""Elasticsearch adapter – document mapping derived from a SQLAlchemy table."""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import sqlalchemy as sa

NULL_INTEGER = -(2**31)

_TIMESTAMP_FORMAT = (
    "basic_t_time_no_millis||dateOptionalTime||basic_date_time||ordinal_date_time_no_millis||yyyy-MM-dd HH:mm:ss"
)
_DATETIME_FORMAT = _TIMESTAMP_FORMAT + "||basic_date"
_DATE_FORMAT = "dateOptionalTime||basic_date||yyy-MM-dd"

_UNINDEXED_TEXT: dict[str, Any] = {"type": "text", "index": False}


def column_mapping(column: sa.Column[Any]) -> dict[str, Any]:
    """Mapping of one audited column inside ``original`` / ``changed``."""
    col_type = column.type
    if isinstance(col_type, sa.Uuid):
        return {"type": "text", "index": False, "null_value": "_null_"}
    if isinstance(col_type, sa.Boolean):
        return {"type": "boolean"}
    if isinstance(col_type, sa.Integer):
        return {"type": "integer", "null_value": NULL_INTEGER}
    if isinstance(col_type, sa.DateTime):
        return {"type": "date", "format": _DATETIME_FORMAT, "null_value": "0001-01-01 00:00:00"}
    if isinstance(col_type, sa.Date):
        return {"type": "date", "format": _DATE_FORMAT, "null_value": "0001-01-01"}
    if isinstance(col_type, sa.Numeric):
        return {"type": "float", "null_value": NULL_INTEGER}
    return {
        "type": "text",
        "fields": {
            column.name: {"type": "text"},
            "raw": dict(_UNINDEXED_TEXT),
        },
    }


def build_index_mapping(
    table: sa.Table,
    whitelist: Iterable[str] = (),
    blacklist: Iterable[str] = (),
) -> dict[str, Any]:
    """Build the audit document mapping for the rows of *table*.

    ``original`` and ``changed`` get one property per column, restricted to
    *whitelist* when given and never including *blacklist*.  Nothing is sent
    to a cluster: pass the result to ``indices.create`` or
    ``indices.put_mapping`` yourself.
    """
    allowed = set(whitelist)
    denied = set(blacklist)
    properties = {
        column.name: column_mapping(column)
        for column in table.columns
        if (not allowed or column.name in allowed) and column.name not in denied
    }
    return {
        "properties": {
            "@timestamp": {"type": "date", "format": _TIMESTAMP_FORMAT},
            "transaction": dict(_UNINDEXED_TEXT),
            "type": dict(_UNINDEXED_TEXT),
            "primary_key": dict(_UNINDEXED_TEXT),
            "source": dict(_UNINDEXED_TEXT),
            "parent_source": dict(_UNINDEXED_TEXT),
            "original": {"properties": dict(properties)},
            "changed": {"properties": dict(properties)},
            "meta": {
                "properties": {
                    "ip": dict(_UNINDEXED_TEXT),
                    "url": dict(_UNINDEXED_TEXT),
                    "user": dict(_UNINDEXED_TEXT),
                    "app_name": dict(_UNINDEXED_TEXT),
                }
            },
        }
    }


__all__ = ["NULL_INTEGER", "build_index_mapping", "column_mapping"]
