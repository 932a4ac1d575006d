"""
statecore MapAttribute - Reactive Associative Collection
========================================================

A `MapAttribute` owns a backing dict with dynamic keys and exposes it through
a stable `ReactiveMap` view. Structured values are wrapped on insertion
(dicts become States, lists become ReactiveLists) and every effective change
emits the map attribute once.

Two derived read-only views are available from the map:

- `keys_ref()`: the current key list
- `size_ref()`: the current number of entries

Each is a single cached attribute per map that re-emits only when the key
list (respectively the size) actually changed.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional, Tuple

from ..errors import StateTypeError
from .base import AbstractAttribute, Unsubscribe, same_value

if TYPE_CHECKING:
    from ..runtime import ReactiveRuntime

_MISSING = object()


class MapAttribute(AbstractAttribute["ReactiveMap"]):
    """Attribute holding a reactive key/value store."""

    def __init__(
        self,
        key: str,
        runtime: "ReactiveRuntime",
        initial: Optional[Mapping] = None,
    ) -> None:
        super().__init__(key, runtime)
        self.entries: Dict[Any, Any] = {}
        for k, v in (initial or {}).items():
            self.entries[k] = self.wrap(k, v)
        self._view = ReactiveMap(self)
        self._keys_ref: Optional[MapKeysAttribute] = None
        self._size_ref: Optional[MapSizeAttribute] = None

    def wrap(self, entry_key: Any, value: Any) -> Any:
        from ..values import wrap

        return wrap(value, self.runtime, key=f"{self._key}.{entry_key}")

    # ---------- Attribute API ----------

    def get(self) -> "ReactiveMap":
        self.collect()
        return self._view

    def get_view(self) -> "ReactiveMap":
        return self._view

    def set(self, value: Any) -> None:
        if isinstance(value, ReactiveMap):
            value = value.snapshot()
        if not isinstance(value, Mapping):
            raise StateTypeError(f"'{self._key}' must be a mapping")
        self.entries = {k: self.wrap(k, v) for k, v in value.items()}
        self.emit()

    def is_writable(self) -> bool:
        return True

    # ---------- Entry access (participates in tracking) ----------

    def get_value(self, entry_key: Any) -> Any:
        self.collect()
        return self.entries.get(entry_key)

    def set_value(self, entry_key: Any, value: Any) -> None:
        wrapped = self.wrap(entry_key, value)
        prev = self.entries.get(entry_key, _MISSING)
        if prev is not _MISSING and same_value(prev, wrapped):
            return
        self.entries[entry_key] = wrapped
        self.emit()

    def delete_key(self, entry_key: Any) -> bool:
        if entry_key not in self.entries:
            return False
        del self.entries[entry_key]
        self.emit()
        return True

    def clear_all(self) -> None:
        if self.entries:
            self.entries.clear()
            self.emit()

    def keys_ref(self) -> "MapKeysAttribute":
        if self._keys_ref is None:
            self._keys_ref = MapKeysAttribute(self)
        return self._keys_ref

    def size_ref(self) -> "MapSizeAttribute":
        if self._size_ref is None:
            self._size_ref = MapSizeAttribute(self)
        return self._size_ref

    def dispose(self) -> None:
        super().dispose()
        for ref in (self._keys_ref, self._size_ref):
            if ref is not None:
                ref.dispose()
        self._keys_ref = None
        self._size_ref = None


class _MapProjection(AbstractAttribute[Any]):
    """Read-only attribute projecting a map; emits only on actual change."""

    suffix = ""

    def __init__(self, parent: MapAttribute) -> None:
        super().__init__(f"{parent.key}:{self.suffix}", parent.runtime)
        self.parent = parent
        self._last = self._project()
        self._off: Optional[Unsubscribe] = parent.subscribe(self._on_parent_change, immediate=False)

    def _project(self) -> Any:
        raise NotImplementedError

    def _on_parent_change(self, _value: Any) -> None:
        current = self._project()
        if current != self._last:
            self._last = current
            self.emit()

    def get(self) -> Any:
        self.collect()
        return self._project()

    def dispose(self) -> None:
        super().dispose()
        if self._off is not None:
            self._off()
            self._off = None


class MapKeysAttribute(_MapProjection):
    suffix = "keys"

    def _project(self) -> List[Any]:
        return list(self.parent.entries)


class MapSizeAttribute(_MapProjection):
    suffix = "size"

    def _project(self) -> int:
        return len(self.parent.entries)


class ReactiveMap:
    """Live, mutation-aware view over a `MapAttribute`."""

    __slots__ = ("_attr",)

    def __init__(self, attr: MapAttribute) -> None:
        self._attr = attr

    @property
    def attribute(self) -> MapAttribute:
        return self._attr

    @property
    def _entries(self) -> Dict[Any, Any]:
        return self._attr.entries

    def get(self, key: Any, default: Any = None) -> Any:
        return self._entries.get(key, default)

    def set(self, key: Any, value: Any) -> "ReactiveMap":
        self._attr.set_value(key, value)
        return self

    def delete(self, key: Any) -> "ReactiveMap":
        self._attr.delete_key(key)
        return self

    def clear(self) -> "ReactiveMap":
        self._attr.clear_all()
        return self

    def has(self, key: Any) -> bool:
        return key in self._entries

    def keys(self) -> Iterator[Any]:
        return iter(list(self._entries.keys()))

    def values(self) -> Iterator[Any]:
        return iter(list(self._entries.values()))

    def entries(self) -> Iterator[Tuple[Any, Any]]:
        return iter(list(self._entries.items()))

    items = entries

    def for_each(self, fn: Callable[[Any, Any, "ReactiveMap"], Any]) -> None:
        for k, v in list(self._entries.items()):
            fn(v, k, self)

    @property
    def size(self) -> int:
        return len(self._entries)

    def keys_ref(self) -> MapKeysAttribute:
        return self._attr.keys_ref()

    def size_ref(self) -> MapSizeAttribute:
        return self._attr.size_ref()

    def snapshot(self) -> Dict[Any, Any]:
        return dict(self._entries)

    def __getitem__(self, key: Any) -> Any:
        return self._entries[key]

    def __setitem__(self, key: Any, value: Any) -> None:
        self._attr.set_value(key, value)

    def __delitem__(self, key: Any) -> None:
        if not self._attr.delete_key(key):
            raise KeyError(key)

    def __contains__(self, key: Any) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Any]:
        return self.keys()

    def __repr__(self) -> str:
        return f"ReactiveMap({self._entries!r})"
