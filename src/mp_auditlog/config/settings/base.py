"""Config settings – Settings base class."""
from __future__ import annotations

import dataclasses
from typing import ClassVar


@dataclasses.dataclass
class Settings:
    """Base class for 12-factor settings.

    Subclasses declare fields with defaults and set ``_prefix``; loaders
    read ``<PREFIX>_<FIELD>`` and call the constructor, so ``_validate``
    runs however the instance was built.  Validation errors name the
    environment variable (:meth:`env_key`) so an operator knows what to fix.
    """

    _prefix: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    @classmethod
    def env_key(cls, field_name: str) -> str:
        """Environment variable read for *field_name*, e.g. ``AUDITLOG_PERSISTER``."""
        return f"{cls._prefix}_{field_name}".upper().lstrip("_")

    def _validate(self) -> None:
        """Override to add cross-field validation."""


__all__ = ["Settings"]
