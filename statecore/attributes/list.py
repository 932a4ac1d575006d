"""
statecore ListAttribute - Reactive Ordered Collection
=====================================================

A `ListAttribute` owns a backing Python list and exposes it through a stable
`ReactiveList` view. Structured elements are wrapped on insertion (dicts
become child States, so element fields are themselves observable), and every
mutating operation on the view triggers exactly one emission of the list
attribute.

The view supports the usual sequence protocol (`len`, iteration, indexing and
slicing, item assignment and deletion) plus:

- array-style mutators: `push`, `pop`, `shift`, `unshift`, `splice`,
  `reverse`, `sort`, `fill`, `copy_within`, `resize`, `truncate`
- chainable helpers: `update`, `replace_all`, `insert_at`, `remove_at`, `move`
- explicit accessors: `at(i)`, `set(i, value)`, `snapshot()`

```python
state = State({"values": [1, 2, 3], "total": lambda s: sum(s.values)})
state.values.push(4)           # total -> 10
state.values.update(0, lambda v, i: v * 10)
```
"""

from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Iterable,
    Iterator,
    List,
    Optional,
    Union,
)

from ..errors import StateTypeError
from .base import AbstractAttribute, same_value

if TYPE_CHECKING:
    from ..runtime import ReactiveRuntime
    from ..schema import SchemaHandle


class ListAttribute(AbstractAttribute["ReactiveList"]):
    """Attribute holding a reactive list."""

    def __init__(
        self,
        key: str,
        runtime: "ReactiveRuntime",
        initial: Iterable[Any],
        items_schema: Optional["SchemaHandle"] = None,
    ) -> None:
        super().__init__(key, runtime)
        self.items_schema = items_schema
        self.items: List[Any] = [self.wrap(v) for v in initial]
        self._view = ReactiveList(self)

    def wrap(self, value: Any) -> Any:
        from ..values import wrap

        return wrap(value, self.runtime, key=f"{self._key}[]", schema=self.items_schema)

    def get(self) -> "ReactiveList":
        self.collect()
        return self._view

    def get_view(self) -> "ReactiveList":
        return self._view

    def set(self, value: Any) -> None:
        if isinstance(value, ReactiveList):
            value = value.snapshot()
        if not isinstance(value, (list, tuple)):
            raise StateTypeError(f"'{self._key}' must be a list")
        self.items = [self.wrap(v) for v in value]
        self.emit()

    def is_writable(self) -> bool:
        return True

    def set_index(self, index: int, value: Any) -> None:
        """Assign one position (extending with None past the end)."""
        wrapped = self.wrap(value)
        size = len(self.items)
        if index < 0:
            index += size
            if index < 0:
                raise IndexError(f"'{self._key}' index out of range")
        if index >= size:
            self.items.extend([None] * (index - size))
            self.items.append(wrapped)
            self.emit()
            return
        if same_value(self.items[index], wrapped):
            return
        self.items[index] = wrapped
        self.emit()


class ReactiveList:
    """Live, mutation-aware view over a `ListAttribute`."""

    __slots__ = ("_attr",)

    def __init__(self, attr: ListAttribute) -> None:
        self._attr = attr

    @property
    def attribute(self) -> ListAttribute:
        return self._attr

    @property
    def _items(self) -> List[Any]:
        return self._attr.items

    def _emit(self) -> None:
        self._attr.emit()

    # ---------- Reads ----------

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def __contains__(self, item: Any) -> bool:
        return item in self._items

    def __getitem__(self, index: Union[int, slice]) -> Any:
        return self._items[index]

    def __repr__(self) -> str:
        return f"ReactiveList({self._items!r})"

    def at(self, index: int) -> Any:
        """Element at `index` (negative counts from the end), or None."""
        items = self._items
        if -len(items) <= index < len(items):
            return items[index]
        return None

    def index(self, value: Any) -> int:
        return self._items.index(value)

    def count(self, value: Any) -> int:
        return self._items.count(value)

    def snapshot(self) -> List[Any]:
        return list(self._items)

    # ---------- Item assignment ----------

    def __setitem__(self, index: Union[int, slice], value: Any) -> None:
        if isinstance(index, slice):
            self._items[index] = [self._attr.wrap(v) for v in value]
            self._emit()
            return
        self._attr.set_index(index, value)

    def __delitem__(self, index: Union[int, slice]) -> None:
        del self._items[index]
        self._emit()

    def set(self, index: int, value: Any) -> "ReactiveList":
        self._attr.set_index(index, value)
        return self

    # ---------- Array-style mutators ----------

    def push(self, *values: Any) -> int:
        self._items.extend(self._attr.wrap(v) for v in values)
        self._emit()
        return len(self._items)

    def pop(self) -> Any:
        value = self._items.pop() if self._items else None
        self._emit()
        return value

    def shift(self) -> Any:
        value = self._items.pop(0) if self._items else None
        self._emit()
        return value

    def unshift(self, *values: Any) -> int:
        self._items[0:0] = [self._attr.wrap(v) for v in values]
        self._emit()
        return len(self._items)

    def splice(self, start: int, delete_count: Optional[int] = None, *values: Any) -> List[Any]:
        size = len(self._items)
        if start < 0:
            start = max(size + start, 0)
        start = min(start, size)
        if delete_count is None:
            delete_count = size - start
        delete_count = max(0, min(delete_count, size - start))
        removed = self._items[start : start + delete_count]
        self._items[start : start + delete_count] = [self._attr.wrap(v) for v in values]
        self._emit()
        return removed

    def reverse(self) -> "ReactiveList":
        self._items.reverse()
        self._emit()
        return self

    def sort(
        self, key: Optional[Callable[[Any], Any]] = None, reverse: bool = False
    ) -> "ReactiveList":
        self._items.sort(key=key, reverse=reverse)
        self._emit()
        return self

    def fill(self, value: Any, start: int = 0, end: Optional[int] = None) -> "ReactiveList":
        wrapped = self._attr.wrap(value)
        for i in range(*slice(start, end).indices(len(self._items))):
            self._items[i] = wrapped
        self._emit()
        return self

    def copy_within(self, target: int, start: int = 0, end: Optional[int] = None) -> "ReactiveList":
        size = len(self._items)
        target = target + size if target < 0 else target
        chunk = self._items[slice(start, end)]
        target = max(0, min(target, size))
        chunk = chunk[: size - target]
        self._items[target : target + len(chunk)] = chunk
        self._emit()
        return self

    def resize(self, length: int) -> "ReactiveList":
        """Truncate, or pad with None, to `length` elements."""
        if length < 0:
            raise ValueError("length must be non-negative")
        size = len(self._items)
        if length == size:
            return self
        if length < size:
            del self._items[length:]
        else:
            self._items.extend([None] * (length - size))
        self._emit()
        return self

    def truncate(self, length: int) -> "ReactiveList":
        """Drop the elements past `length`; no-op when already shorter."""
        if length < len(self._items):
            self.resize(length)
        return self

    # ---------- Helpers (chainable) ----------

    def update(self, index: int, fn: Callable[[Any, int], Any]) -> "ReactiveList":
        items = self._items
        if index < 0 or index >= len(items):
            return self
        nxt = self._attr.wrap(fn(items[index], index))
        if not same_value(items[index], nxt):
            items[index] = nxt
            self._emit()
        return self

    def replace_all(self, fn: Callable[[Any, int], Any]) -> "ReactiveList":
        items = self._items
        changed = False
        for i, current in enumerate(list(items)):
            nxt = self._attr.wrap(fn(current, i))
            if not same_value(current, nxt):
                items[i] = nxt
                changed = True
        if changed:
            self._emit()
        return self

    def insert_at(self, index: int, value: Any) -> "ReactiveList":
        i = max(0, min(index, len(self._items)))
        self._items.insert(i, self._attr.wrap(value))
        self._emit()
        return self

    def remove_at(self, index: int, count: int = 1) -> "ReactiveList":
        if index < 0 or index >= len(self._items) or count <= 0:
            return self
        del self._items[index : index + count]
        self._emit()
        return self

    def move(self, source: int, target: int) -> "ReactiveList":
        items = self._items
        if source == target or source < 0 or source >= len(items):
            return self
        item = items.pop(source)
        items.insert(max(0, min(target, len(items))), item)
        self._emit()
        return self
