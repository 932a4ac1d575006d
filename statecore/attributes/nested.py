"""Attribute wrapping a child State."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional, Tuple

from ..errors import StateTypeError
from ..values import Map
from .base import AbstractAttribute

if TYPE_CHECKING:
    from ..runtime import ReactiveRuntime
    from ..schema import SchemaHandle
    from ..state import State


class NestedAttribute(AbstractAttribute["State"]):
    """
    Holds a child State.

    Assigning a plain mapping rebuilds the child (same runtime, the owner as
    parent, the key's schema fragment); assigning an existing State adopts it
    as is. A child built here is disposed when it gets replaced.
    """

    def __init__(
        self,
        key: str,
        runtime: "ReactiveRuntime",
        initial: Any,
        owner: Optional["State"] = None,
        schema: Optional["SchemaHandle"] = None,
    ) -> None:
        super().__init__(key, runtime)
        self._owner_handle = owner.handle if owner is not None else None
        self._schema = schema
        self._inner, self._owned = self._adopt(initial)

    def _adopt(self, value: Any) -> Tuple["State", bool]:
        from ..state import State

        if isinstance(value, State):
            return value, False
        if isinstance(value, Mapping) and not isinstance(value, Map):
            inner = State(
                dict(value),
                parent=self.runtime.arena.find(self._owner_handle),
                runtime=self.runtime,
                schema_handle=self._schema,
            )
            # held by this attribute; it must not pin the owner in turn
            self.runtime.arena.drop_keep_alive(inner.handle)
            return inner, True
        raise StateTypeError(f"Nested '{self._key}' requires a mapping or State.")

    def get(self) -> "State":
        self.collect()
        return self._inner

    def set(self, value: Any) -> None:
        if value is self._inner:
            return
        previous, previous_owned = self._inner, self._owned
        self._inner, self._owned = self._adopt(value)
        if previous_owned:
            previous.dispose()
        self.emit()

    def is_writable(self) -> bool:
        return True

    def dispose(self) -> None:
        super().dispose()
        if self._owned:
            self._inner.dispose()
