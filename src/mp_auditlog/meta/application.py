"""Metadata enrichers – ApplicationMetadata."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mp_auditlog.meta.registry import MetadataEnricher


class ApplicationMetadata(MetadataEnricher):
    """Tags every event with the application that produced it.

    Parameters
    ----------
    name:
        Application name, stored under ``app_name``.
    data:
        Extra static fields copied to every event.
    """

    def __init__(self, name: str, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = {"app_name": name}
        for key, value in (data or {}).items():
            self._data.setdefault(key, value)

    def contribution(self) -> Mapping[str, Any]:
        return self._data


__all__ = ["ApplicationMetadata"]
