"""Plain writable attribute."""

from typing import TYPE_CHECKING, TypeVar

from .base import AbstractAttribute, same_value

if TYPE_CHECKING:
    from ..runtime import ReactiveRuntime

T = TypeVar("T")


class MutableAttribute(AbstractAttribute[T]):
    """Holds a single value; writing an equal value is a no-op."""

    def __init__(self, key: str, runtime: "ReactiveRuntime", value: T) -> None:
        super().__init__(key, runtime)
        self._value = value

    def get(self) -> T:
        self.collect()
        return self._value

    def set(self, value: T) -> None:
        if same_value(value, self._value):
            return
        self._value = value
        self.emit()

    def is_writable(self) -> bool:
        return True
