"""Capture – EntityView protocol and the dict-backed Entity."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class EntityView(Protocol):
    """What the capture engine needs to know about an entity instance.

    The data-access layer adapts its own objects to this protocol;
    :class:`Entity` and
    :class:`~mp_auditlog.adapters.sqlalchemy.entity.InstanceView` are the
    bundled implementations.
    """

    def fields(self) -> list[str]: ...

    def has(self, field: str) -> bool: ...

    def get(self, field: str) -> Any: ...

    def is_new(self) -> bool: ...

    def is_dirty(self, field: str | None = None) -> bool: ...

    def dirty_fields(self) -> list[str]: ...

    def get_original(self, field: str) -> Any: ...

    def original_values(self) -> dict[str, Any]: ...

    def to_dict(self) -> dict[str, Any]: ...


def export_value(value: Any) -> Any:
    """Turn associated entities (or lists of them) into plain dicts."""
    if isinstance(value, EntityView):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [export_value(v) for v in value]
    return value


class Entity:
    """Dict-backed entity with dirty tracking.

    Fields are readable and writable both as attributes and through
    :meth:`get` / :meth:`set`.  The first write to a field remembers its
    original value until :meth:`clean` is called.

    Example::

        article = Entity({"id": 1, "title": "Old"}, new=False)
        article.title = "New"
        article.dirty_fields()        # ["title"]
        article.get_original("title")  # "Old"
    """

    def __init__(
        self,
        data: Mapping[str, Any] | None = None,
        *,
        new: bool = True,
        clean: bool | None = None,
    ) -> None:
        object.__setattr__(self, "_fields", dict(data or {}))
        object.__setattr__(self, "_original", {})
        object.__setattr__(self, "_new", new)
        object.__setattr__(self, "_dirty", {})
        if not (clean if clean is not None else not new):
            for name in self._fields:
                self._dirty[name] = True

    # attribute access -------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._fields.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
        else:
            self.set(name, value)

    def __repr__(self) -> str:
        return f"Entity({self._fields!r}, new={self._new})"

    # mutation ---------------------------------------------------------

    def set(self, field: str, value: Any) -> None:
        if field not in self._original:
            if not self._new and field in self._fields and self._fields[field] == value:
                return
            self._original[field] = self._fields.get(field)
        self._fields[field] = value
        self._dirty[field] = True

    def update(self, values: Mapping[str, Any]) -> None:
        for field, value in values.items():
            self.set(field, value)

    def set_new(self, new: bool) -> None:
        object.__setattr__(self, "_new", new)

    def set_dirty(self, field: str, dirty: bool = True) -> None:
        if dirty:
            self._dirty[field] = True
        else:
            self._dirty.pop(field, None)

    def clean(self) -> None:
        """Forget dirty flags and original values."""
        self._dirty.clear()
        self._original.clear()

    # EntityView -------------------------------------------------------

    def fields(self) -> list[str]:
        return list(self._fields)

    def has(self, field: str) -> bool:
        return field in self._fields

    def get(self, field: str) -> Any:
        return self._fields.get(field)

    def is_new(self) -> bool:
        return self._new

    def is_dirty(self, field: str | None = None) -> bool:
        if field is None:
            return bool(self._dirty)
        return field in self._dirty

    def dirty_fields(self) -> list[str]:
        return list(self._dirty)

    def get_original(self, field: str) -> Any:
        if field in self._original:
            return self._original[field]
        return self._fields.get(field)

    def original_values(self) -> dict[str, Any]:
        return {name: self.get_original(name) for name in self._fields}

    def extract(self, fields: Iterable[str], only_dirty: bool = False) -> dict[str, Any]:
        return {
            name: self._fields[name]
            for name in fields
            if name in self._fields and (not only_dirty or name in self._dirty)
        }

    def to_dict(self) -> dict[str, Any]:
        return {name: export_value(value) for name, value in self._fields.items()}


__all__ = ["Entity", "EntityView", "export_value"]
