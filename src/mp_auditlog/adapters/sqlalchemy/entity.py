"""SQLAlchemy adapter – InstanceView, an EntityView over a mapped instance."""
from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from sqlalchemy.orm import RelationshipProperty

from mp_auditlog.capture.entity import export_value


class InstanceView:
    """Read-only :class:`~mp_auditlog.capture.entity.EntityView` of an ORM object.

    Values come from the instance state and prior values from the
    attribute history, which stays available until the flush that wrote
    the object completes.  Related objects are returned as views too.
    Unloaded attributes read as ``None``; nothing here triggers a lazy load.
    """

    def __init__(self, instance: Any, new: bool | None = None) -> None:
        self.instance = instance
        self._state = sa.inspect(instance)
        self._new = new

    def __repr__(self) -> str:
        return f"InstanceView({self.instance!r}, new={self.is_new()})"

    def mark_new(self, new: bool) -> None:
        self._new = new

    # ------------------------------------------------------------------

    def _columns(self) -> list[str]:
        return [attr.key for attr in self._state.mapper.column_attrs]

    def _is_relationship(self, field: str) -> bool:
        prop = self._state.mapper.attrs.get(field)
        return isinstance(prop, RelationshipProperty)

    def _wrap(self, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, (list, tuple, set)):
            return [InstanceView(item) for item in value]
        return InstanceView(value)

    # EntityView ---------------------------------------------------------

    def fields(self) -> list[str]:
        return list(self._state.mapper.attrs.keys())

    def has(self, field: str) -> bool:
        return field in self._state.mapper.attrs and field in self._state.dict

    def get(self, field: str) -> Any:
        value = self._state.dict.get(field)
        if self._is_relationship(field):
            return self._wrap(value)
        return value

    def is_new(self) -> bool:
        if self._new is not None:
            return self._new
        return self._state.key is None

    def is_dirty(self, field: str | None = None) -> bool:
        if field is None:
            return bool(self.dirty_fields())
        if field not in self._state.attrs:
            return False
        return self._state.attrs[field].history.has_changes()

    def dirty_fields(self) -> list[str]:
        return [attr.key for attr in self._state.attrs if attr.history.has_changes()]

    def get_original(self, field: str) -> Any:
        history = self._state.attrs[field].history
        if not history.has_changes():
            return self.get(field)
        if self._is_relationship(field):
            prior = list(history.unchanged or ()) + list(history.deleted or ())
            if self._state.mapper.relationships[field].uselist:
                return self._wrap(prior)
            return self._wrap(prior[0]) if prior else None
        if history.deleted:
            return history.deleted[0]
        return None

    def original_values(self) -> dict[str, Any]:
        return {name: self.get_original(name) for name in self._columns() if name in self._state.dict}

    def to_dict(self) -> dict[str, Any]:
        return {name: export_value(self._state.dict.get(name)) for name in self._columns()}


__all__ = ["InstanceView"]
