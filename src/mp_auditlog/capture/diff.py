"""Capture – change-set computation for saves and deletes."""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from typing import Any, Protocol

from mp_auditlog.capture.config import REMOVE, AuditConfig, AuditedSource
from mp_auditlog.capture.entity import EntityView, export_value


class ForeignKeyResolver(Protocol):
    """Looks up the label of the row *key* of collection *source*."""

    def resolve(self, source: str, key: Any, field: str) -> Any: ...


@dataclasses.dataclass(frozen=True)
class ChangeSet:
    """Result of diffing one entity, ready to become an event."""

    entity_id: Any
    changed: dict[str, Any] | None
    original: dict[str, Any] | None
    display_value: str | None
    is_new: bool = False


def primary_key_of(source: AuditedSource, entity: EntityView) -> list[Any]:
    return [entity.get(name) for name in source.primary_key]


def display_value_of(source: AuditedSource, entity: EntityView) -> str | None:
    field = source.effective_display_field()
    if isinstance(field, tuple):
        value: Any = ";".join("" if entity.get(f) is None else str(entity.get(f)) for f in field)
    else:
        value = entity.get(field)
    return None if value is None else str(value)


# ---------------------------------------------------------------------------
# Save
# ---------------------------------------------------------------------------


def diff_save(
    source: AuditedSource,
    entity: EntityView,
    config: AuditConfig,
    associated: Sequence[str] | None = None,
    resolver: ForeignKeyResolver | None = None,
) -> ChangeSet | None:
    """Compute what a save changed, or ``None`` when nothing audit-worthy did."""
    tracked = source.tracked_fields(config, associated)
    properties = source.association_properties(associated)
    is_new = entity.is_new()

    if is_new:
        changed = {f: entity.get(f) for f in tracked if entity.has(f)}
    else:
        dirty = set(entity.dirty_fields())
        changed = {f: entity.get(f) for f in tracked if f in dirty}
    if not changed:
        return None

    original: dict[str, Any] | None = None
    if not is_new:
        original = {f: entity.get_original(f) for f in changed}
        for field in list(changed):
            if field not in properties and changed[field] == original[field]:
                del changed[field]
                del original[field]

    if source.effective_mode(config) == REMOVE:
        for prop in properties:
            changed.pop(prop, None)
            if original is not None:
                original.pop(prop, None)
    else:
        _audit_trail(source, properties, changed, original)

    if not is_new and changed == original:
        return None

    if source.foreign_keys:
        if resolver is None:
            raise LookupError(f"no foreign key resolver configured for {sorted(source.foreign_keys)}")
        _resolve_foreign_keys(source, resolver, changed, original)

    return ChangeSet(
        entity_id=primary_key_of(source, entity),
        changed=changed,
        original=original,
        display_value=display_value_of(source, entity),
        is_new=is_new,
    )


def _audit_trail(
    source: AuditedSource,
    properties: Sequence[str],
    changed: dict[str, Any],
    original: dict[str, Any] | None,
) -> None:
    """Keep associated data as plain dicts, minus what did not change."""
    for prop in properties:
        if prop not in changed:
            continue
        if original is None:
            changed[prop] = export_value(changed[prop])
            continue

        before = original.get(prop)
        if isinstance(before, (list, tuple)) and before and isinstance(before[0], EntityView):
            remaining = list(changed[prop] or [])
            kept: list[Any] = []
            compare = source.compare_fields.get(prop)
            for row in before:
                if not row.is_dirty():
                    if compare is not None:
                        match = next(
                            (i for i, other in enumerate(remaining) if _field(other, compare) == row.get(compare)),
                            None,
                        )
                        if match is not None:
                            del remaining[match]
                            continue
                    kept.append(row.to_dict())
                else:
                    kept.append(_with_original_values(row))
            changed[prop] = export_value(remaining)
            original[prop] = kept
        elif isinstance(before, EntityView):
            if not before.is_dirty():
                del changed[prop]
                del original[prop]
            else:
                changed[prop] = export_value(changed[prop])
                original[prop] = _with_original_values(before)
        else:
            changed[prop] = export_value(changed[prop])
            original[prop] = export_value(before)


def _with_original_values(row: EntityView) -> dict[str, Any]:
    data = row.to_dict()
    for field in row.dirty_fields():
        data[field] = export_value(row.get_original(field))
    return data


def _field(row: Any, name: str) -> Any:
    if isinstance(row, EntityView):
        return row.get(name)
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name)


def _resolve_foreign_keys(
    source: AuditedSource,
    resolver: ForeignKeyResolver,
    changed: dict[str, Any],
    original: dict[str, Any] | None,
) -> None:
    for fk_field, target in source.foreign_keys.items():
        label_key = fk_field[:-3] if fk_field.endswith("_id") else f"{fk_field}_label"
        for side in (changed, original):
            if side is not None and side.get(fk_field) is not None:
                side[label_key] = resolver.resolve(target.source, side[fk_field], target.field)


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


def diff_delete(source: AuditedSource, entity: EntityView, config: AuditConfig) -> ChangeSet:
    """Snapshot of a deleted entity: every tracked prior value, no associations."""
    excluded = set(source.effective_blacklist(config)) | set(source.associations)
    original = {
        name: value
        for name, value in entity.original_values().items()
        if name not in excluded
    }
    return ChangeSet(
        entity_id=primary_key_of(source, entity),
        changed=None,
        original=original,
        display_value=display_value_of(source, entity),
    )


__all__ = [
    "ChangeSet",
    "ForeignKeyResolver",
    "diff_delete",
    "diff_save",
    "display_value_of",
    "primary_key_of",
]
