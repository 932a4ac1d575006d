"""
statecore DerivedAttribute - Auto-Tracked Computed Values
=========================================================

A derived attribute wraps a pure function of its owning State. Each
recompute drops every dependency subscription, evaluates the function inside
a dependency collector and subscribes (non-immediately) to exactly the
attributes read during that evaluation. Conditionally read dependencies
therefore drop out on their own.

Subscribers are notified on the first computation and afterwards only when
the recomputed value differs from the previous one.
"""

from typing import TYPE_CHECKING, Any, Callable, Dict, Generic, TypeVar

from ..errors import CircularDependencyError
from .base import AbstractAttribute, Attribute, Unsubscribe, same_value

if TYPE_CHECKING:
    from ..runtime import ReactiveRuntime
    from ..state import State

T = TypeVar("T")


class DerivedAttribute(AbstractAttribute[T], Generic[T]):
    """Read-only attribute recomputed whenever a dependency emits."""

    def __init__(
        self,
        key: str,
        runtime: "ReactiveRuntime",
        owner: Callable[[], "State"],
        compute: Callable[["State"], T],
    ) -> None:
        super().__init__(key, runtime)
        self._owner = owner
        self._compute = compute
        self._value: Any = None
        self._deps: Dict[Attribute, Unsubscribe] = {}
        self._computing = False
        self.recompute(initial=True)

    def get(self) -> T:
        if self._computing:
            raise CircularDependencyError(
                f"Circular dependency detected: '{self._key}' read during its own computation"
            )
        self.collect()
        return self._value

    @property
    def dependencies(self) -> list:
        return list(self._deps)

    def _register(self, attr: Attribute) -> None:
        if attr is self or attr in self._deps:
            return
        self._deps[attr] = attr.subscribe(self._on_dependency_change, immediate=False)

    def _on_dependency_change(self, _value: Any) -> None:
        self.recompute()

    def _clear_dependencies(self) -> None:
        for off in self._deps.values():
            off()
        self._deps.clear()

    def recompute(self, initial: bool = False) -> None:
        self._clear_dependencies()
        self._computing = True
        try:
            value = self.runtime.deps.run_with_collector(
                self._register, lambda: self._compute(self._owner())
            )
        finally:
            self._computing = False
        if initial or not same_value(value, self._value):
            self._value = value
            self.emit()

    def dispose(self) -> None:
        super().dispose()
        self._clear_dependencies()
