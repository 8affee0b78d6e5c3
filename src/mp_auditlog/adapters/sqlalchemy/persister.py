"""SQLAlchemy adapter – TablePersister."""
from __future__ import annotations

import copy
import json
import threading
from collections.abc import Mapping, Sequence
from datetime import UTC
from typing import Any

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError

from mp_auditlog.adapters.sqlalchemy.table import audit_logs_table
from mp_auditlog.events import AuditEvent, EventType, json_default
from mp_auditlog.kernel.errors import ConfigurationError, SerializationError, ValidationError
from mp_auditlog.kernel.time import parse_timestamp
from mp_auditlog.observability.logging import get_logger
from mp_auditlog.persisters import Persister

logger = get_logger(__name__)

STRATEGY_AUTOMATIC = "automatic"
STRATEGY_PROPERTIES = "properties"
STRATEGY_RAW = "raw"
STRATEGY_SERIALIZED = "serialized"
STRATEGIES = (STRATEGY_AUTOMATIC, STRATEGY_PROPERTIES, STRATEGY_RAW, STRATEGY_SERIALIZED)

_MAX_LENGTHS = {"type": 7, "display_value": 255, "source": 255, "parent_source": 255}

MetaFields = bool | Sequence[str] | Mapping[str, str]


def _dumps(value: Any) -> str:
    return json.dumps(value, default=json_default, separators=(",", ":"))


class TablePersister(Persister):
    """Stores each audit event as one row of a relational table.

    Every row is inserted in its own transaction.  A row that cannot be
    encoded, fails validation or is rejected by the database is logged
    (when *log_errors* is set) and skipped; the rest of the batch is still
    written and no exception reaches the caller.

    Parameters
    ----------
    bind:
        ``Engine``/``Connection`` or a database URL (engine created lazily).
    table:
        Target ``Table`` or the name of an :func:`audit_logs_table`.
    extract_meta_fields:
        ``True`` copies every meta key into a column of the same name; a
        list of dotted paths (``"baz.nested"``) copies those, stored under
        their last segment; a mapping ``{path: column}`` names the columns.
        Values for columns the table lacks are dropped.
    unset_extracted_meta_fields:
        Remove extracted values from the ``meta`` column.
    primary_key_strategy:
        ``raw`` stores the key as is, ``serialized`` as JSON text,
        ``properties`` as ``primary_key`` (scalar keys) or
        ``primary_key_0``..``primary_key_<n>`` columns (composite keys).
        ``automatic`` (the default) serializes composite keys unless the
        ``primary_key`` column is JSON, and stores scalar keys raw.
    serialize_fields:
        JSON-encode ``original``, ``changed`` and ``meta``.
    log_errors:
        Log rows that could not be stored.
    """

    def __init__(
        self,
        bind: Any,
        table: sa.Table | str | None = None,
        extract_meta_fields: MetaFields = False,
        unset_extracted_meta_fields: bool = True,
        primary_key_strategy: str = STRATEGY_AUTOMATIC,
        serialize_fields: bool = True,
        log_errors: bool = True,
    ) -> None:
        if primary_key_strategy not in STRATEGIES:
            raise ConfigurationError(
                f"Unknown primary key extraction strategy {primary_key_strategy!r}",
                detail={"allowed": list(STRATEGIES)},
            )
        if isinstance(table, sa.Table):
            self.table = table
        else:
            self.table = audit_logs_table(sa.MetaData(), table) if table else audit_logs_table(sa.MetaData())
        self._bind = bind
        self._lock = threading.Lock()
        self.extract_meta_fields = extract_meta_fields
        self.unset_extracted_meta_fields = unset_extracted_meta_fields
        self.primary_key_strategy = primary_key_strategy
        self.serialize_fields = serialize_fields
        self.log_errors = log_errors

    @property
    def bind(self) -> Any:
        if isinstance(self._bind, (str, sa.URL)):
            with self._lock:
                if isinstance(self._bind, (str, sa.URL)):
                    self._bind = sa.create_engine(self._bind)
        return self._bind

    def create_table(self) -> None:
        """Create the audit table if it does not exist (tests, local setups)."""
        self.table.create(self.bind, checkfirst=True)

    # ------------------------------------------------------------------
    # Row building
    # ------------------------------------------------------------------

    def build_row(self, event: AuditEvent) -> dict[str, Any]:
        try:
            created = parse_timestamp(event.timestamp).astimezone(UTC).replace(tzinfo=None)
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Invalid audit timestamp {event.timestamp!r}", payload_type="timestamp", cause=exc
            ) from exc
        row: dict[str, Any] = {
            "transaction": event.transaction_id,
            "type": event.get_event_type(),
            "source": event.source,
            "parent_source": event.parent_source,
            "display_value": event.display_value,
            "original": event.original,
            "changed": event.changed,
            "created": created,
        }
        row.update(self._primary_key_columns(event.entity_id))

        meta = event.meta
        if self.extract_meta_fields and meta is not None:
            extracted, meta = self._extract_meta(meta)
            row.update({k: v for k, v in extracted.items() if k in self.table.c})
        row["meta"] = meta

        if self.serialize_fields:
            for field in ("original", "changed", "meta"):
                if row[field] is None:
                    continue
                try:
                    row[field] = _dumps(row[field])
                except (TypeError, ValueError) as exc:
                    raise SerializationError(
                        f"Cannot encode audit field {field!r}", payload_type=field, cause=exc
                    ) from exc
        return row

    def _primary_key_columns(self, key: Any) -> dict[str, Any]:
        strategy = self.primary_key_strategy
        composite = isinstance(key, (list, tuple))
        if strategy == STRATEGY_AUTOMATIC:
            column = self.table.c.get("primary_key")
            if composite and not (column is not None and isinstance(column.type, sa.JSON)):
                strategy = STRATEGY_SERIALIZED
            else:
                strategy = STRATEGY_RAW
        if strategy == STRATEGY_RAW:
            return {"primary_key": list(key) if composite else key}
        if strategy == STRATEGY_SERIALIZED:
            try:
                return {"primary_key": _dumps(list(key) if composite else key)}
            except (TypeError, ValueError) as exc:
                raise SerializationError(
                    f"Cannot encode primary key {key!r}", payload_type="primary_key", cause=exc
                ) from exc
        if composite:
            return {f"primary_key_{i}": value for i, value in enumerate(key)}
        return {"primary_key": key}

    def _extract_meta(self, meta: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        remaining = copy.deepcopy(dict(meta))
        if self.extract_meta_fields is True:
            extracted = dict(meta)
            return extracted, ({} if self.unset_extracted_meta_fields else remaining)

        if isinstance(self.extract_meta_fields, Mapping):
            paths = dict(self.extract_meta_fields)
        else:
            paths = {path: path.rsplit(".", 1)[-1] for path in self.extract_meta_fields}

        extracted = {}
        for path, column in paths.items():
            extracted[column] = _get_path(meta, path)
            if self.unset_extracted_meta_fields:
                _remove_path(remaining, path)
        return extracted, remaining

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, row: Mapping[str, Any]) -> None:
        errors: dict[str, list[str]] = {}
        for field in ("transaction", "type", "source"):
            if row.get(field) in (None, ""):
                errors.setdefault(field, []).append("This field cannot be left empty")
        if row.get("type") and row["type"] not in {t.value for t in EventType}:
            errors.setdefault("type", []).append(f"Unknown event type {row['type']!r}")
        for field, limit in _MAX_LENGTHS.items():
            value = row.get(field)
            if isinstance(value, str) and len(value) > limit:
                errors.setdefault(field, []).append(f"Must be at most {limit} characters long")
        if errors:
            raise ValidationError("Audit log row failed validation", errors=errors)

    # ------------------------------------------------------------------
    # Persister
    # ------------------------------------------------------------------

    def log_events(self, events: Sequence[AuditEvent]) -> None:
        stored = 0
        for event in events:
            row: dict[str, Any] | None = None
            try:
                row = self.build_row(event)
                self.validate(row)
                with self.bind.begin() as conn:
                    conn.execute(sa.insert(self.table).values(**row))
            except (SerializationError, ValidationError, SQLAlchemyError) as exc:
                if self.log_errors:
                    logger.error(
                        "auditlog.persist_failed",
                        persister="table",
                        table=self.table.name,
                        row=row if row is not None else event.to_dict(),
                        error=exc.to_dict() if isinstance(exc, (SerializationError, ValidationError)) else str(exc),
                    )
                continue
            stored += 1
        logger.debug("auditlog.stored", table=self.table.name, rows=stored, events=len(events))


def _get_path(data: Mapping[str, Any], path: str) -> Any:
    value: Any = data
    for part in path.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return None
        value = value[part]
    return value


def _remove_path(data: dict[str, Any], path: str) -> None:
    *parents, leaf = path.split(".")
    node: Any = data
    for part in parents:
        node = node.get(part) if isinstance(node, dict) else None
        if node is None:
            return
    if isinstance(node, dict):
        node.pop(leaf, None)


__all__ = [
    "STRATEGIES",
    "STRATEGY_AUTOMATIC",
    "STRATEGY_PROPERTIES",
    "STRATEGY_RAW",
    "STRATEGY_SERIALIZED",
    "TablePersister",
]
