"""
statecore Virtual Element Attributes
====================================

`IndexAttribute` and `MapKeyAttribute` address one element of a list or one
entry of a map. They own no storage: writes are forwarded to the parent
collection (so wrapping and emission stay in one place) and they re-emit
whenever the parent collection changes, because a structural change (insert,
remove, move, replace) may change what the address refers to even without a
direct write to it.
"""

from typing import Any, Optional

from .base import AbstractAttribute, Unsubscribe
from .list import ListAttribute
from .map import MapAttribute


class _VirtualAttribute(AbstractAttribute[Any]):
    def __init__(self, key: str, parent: AbstractAttribute) -> None:
        super().__init__(key, parent.runtime)
        self.parent = parent
        self._off: Optional[Unsubscribe] = parent.subscribe(self._on_parent_change, immediate=False)

    def _on_parent_change(self, _value: Any) -> None:
        self.emit()

    def is_writable(self) -> bool:
        return True

    def dispose(self) -> None:
        super().dispose()
        if self._off is not None:
            self._off()
            self._off = None


class IndexAttribute(_VirtualAttribute):
    """One position of a `ListAttribute`."""

    def __init__(self, parent: ListAttribute, index: int) -> None:
        super().__init__(f"{parent.key}[{index}]", parent)
        self.index = index

    def get(self) -> Any:
        self.collect()
        return self.parent.get_view().at(self.index)

    def set(self, value: Any) -> None:
        self.parent.set_index(self.index, value)


class MapKeyAttribute(_VirtualAttribute):
    """One entry of a `MapAttribute`."""

    def __init__(self, parent: MapAttribute, entry_key: Any) -> None:
        super().__init__(f'{parent.key}["{entry_key}"]', parent)
        self.entry_key = entry_key

    def get(self) -> Any:
        self.collect()
        return self.parent.get_view().get(self.entry_key)

    def set(self, value: Any) -> None:
        self.parent.set_value(self.entry_key, value)
