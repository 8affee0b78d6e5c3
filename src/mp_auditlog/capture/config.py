"""Capture – AuditConfig, AuditedSource, ForeignKey."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from typing import Any

from mp_auditlog.kernel.errors import ConfigurationError

REMOVE = "remove"
AUDIT_TRAIL = "audit-trail"
ASSOCIATION_MODES = (REMOVE, AUDIT_TRAIL)

DEFAULT_BLACKLIST = ("created", "modified")


def _check_mode(mode: str | None, where: str) -> None:
    if mode is not None and mode not in ASSOCIATION_MODES:
        raise ConfigurationError(
            f"Unknown associations mode {mode!r} for {where}",
            detail={"allowed": list(ASSOCIATION_MODES)},
        )


@dataclasses.dataclass(frozen=True)
class ForeignKey:
    """A foreign-key field resolved to a friendly label at capture time.

    ``ForeignKey("authors", "name")`` configured for ``author_id`` adds an
    ``author`` entry holding the referenced author's ``name``.
    """

    source: str
    field: str


@dataclasses.dataclass(frozen=True)
class AuditConfig:
    """Engine-wide defaults, passed to :class:`AuditCapture` at construction."""

    blacklist: tuple[str, ...] = DEFAULT_BLACKLIST
    associations_mode: str = REMOVE

    def __post_init__(self) -> None:
        object.__setattr__(self, "blacklist", tuple(self.blacklist))
        _check_mode(self.associations_mode, "the audit configuration")


@dataclasses.dataclass(frozen=True)
class AuditedSource:
    """An audited collection (table) and its capture options.

    Parameters
    ----------
    name:
        Collection name, recorded as the events' ``source``.
    columns:
        Declared fields, used when no whitelist is configured.
    primary_key:
        Primary key field(s).
    display_field:
        Field, or fields joined with ``;``, labelling an entity.  Defaults to
        ``title`` or ``name`` when declared, else the primary key.
    associations:
        Property names holding associated entities.
    whitelist:
        When non-empty, the only fields tracked.
    blacklist:
        Fields never tracked; ``None`` uses the engine blacklist.
    foreign_keys:
        Foreign-key field → :class:`ForeignKey` to resolve.
    associations_mode:
        ``"remove"`` or ``"audit-trail"``; ``None`` uses the engine default.
    compare_fields:
        ``audit-trail`` only: association property → field identifying an
        unmodified associated row on both sides of the change.
    index:
        Search index override for this collection.
    """

    name: str
    columns: tuple[str, ...] = ()
    primary_key: tuple[str, ...] = ("id",)
    display_field: str | tuple[str, ...] | None = None
    associations: tuple[str, ...] = ()
    whitelist: tuple[str, ...] = ()
    blacklist: tuple[str, ...] | None = None
    foreign_keys: Mapping[str, ForeignKey] = dataclasses.field(default_factory=dict)
    associations_mode: str | None = None
    compare_fields: Mapping[str, str] = dataclasses.field(default_factory=dict)
    index: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("An audited source needs a name")
        for attr in ("columns", "primary_key", "associations", "whitelist"):
            object.__setattr__(self, attr, _as_tuple(getattr(self, attr)))
        if self.blacklist is not None:
            object.__setattr__(self, "blacklist", _as_tuple(self.blacklist))
        if isinstance(self.display_field, list):
            object.__setattr__(self, "display_field", tuple(self.display_field))
        if not self.primary_key:
            raise ConfigurationError(f"Audited source '{self.name}' has no primary key")
        _check_mode(self.associations_mode, f"source '{self.name}'")

    # ------------------------------------------------------------------
    # Effective settings
    # ------------------------------------------------------------------

    def effective_blacklist(self, config: AuditConfig) -> tuple[str, ...]:
        return self.blacklist if self.blacklist is not None else config.blacklist

    def effective_mode(self, config: AuditConfig) -> str:
        return self.associations_mode or config.associations_mode

    def effective_display_field(self) -> str | tuple[str, ...]:
        if self.display_field:
            return self.display_field
        for candidate in ("title", "name"):
            if candidate in self.columns:
                return candidate
        return self.primary_key[0] if len(self.primary_key) == 1 else self.primary_key

    def association_properties(self, associated: Sequence[str] | None = None) -> list[str]:
        """Association properties taking part in a save.

        ``None`` means every declared association; unknown names are a
        configuration error.
        """
        if associated is None:
            return list(self.associations)
        unknown = [name for name in associated if name not in self.associations]
        if unknown:
            raise ConfigurationError(
                f"Source '{self.name}' has no association {', '.join(unknown)}",
                detail={"associations": list(self.associations)},
            )
        return list(associated)

    def tracked_fields(self, config: AuditConfig, associated: Sequence[str] | None = None) -> list[str]:
        """Whitelist (or columns plus associations) minus blacklist, in order."""
        if self.whitelist:
            fields = list(self.whitelist)
        else:
            fields = list(self.columns)
            fields += [p for p in self.association_properties(associated) if p not in fields]
        blacklist = set(self.effective_blacklist(config))
        return [f for f in fields if f not in blacklist]


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


__all__ = [
    "ASSOCIATION_MODES",
    "AUDIT_TRAIL",
    "DEFAULT_BLACKLIST",
    "REMOVE",
    "AuditConfig",
    "AuditedSource",
    "ForeignKey",
]
