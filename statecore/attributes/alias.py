"""
statecore AliasAttribute - Redirect to Another Attribute
========================================================

An alias forwards reads, writes and subscriptions to a target attribute that
is resolved lazily (on first use) through a resolver supplied by the owning
State. An optional mapper transforms values on the way out (`read`) and, when
it supports it, on the way in (`write`).

The alias itself has no dependency graph: subscribing to it subscribes to the
target, so anything depending on the alias depends on the target.
"""

from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

from ..errors import AliasResolutionError, ReadOnlyError
from .base import AbstractAttribute, Attribute, Unsubscribe

if TYPE_CHECKING:
    from ..config import Mapper
    from ..runtime import ReactiveRuntime

T = TypeVar("T")


def mapper_can_write(mapper: Any) -> bool:
    can_write = getattr(mapper, "can_write", None)
    if callable(can_write):
        return bool(can_write())
    return callable(getattr(mapper, "write", None))


class AliasAttribute(AbstractAttribute[Any]):
    """Attribute delegating to a lazily-resolved target."""

    def __init__(
        self,
        key: str,
        runtime: "ReactiveRuntime",
        resolve: Callable[[], Attribute],
        mapper: Optional["Mapper"] = None,
        normalize: Optional[Callable[[Any], Any]] = None,
        owns_target: bool = False,
    ) -> None:
        super().__init__(key, runtime)
        self._resolve = resolve
        self.mapper = mapper
        self._normalize = normalize
        self._owns_target = owns_target
        self._target: Optional[Attribute] = None

    def target(self) -> Attribute:
        if self._target is None:
            target = self._resolve()
            if target is None:
                raise AliasResolutionError(f"Alias '{self._key}' has no target.")
            if target is self:
                raise AliasResolutionError(f"Alias '{self._key}' resolves to itself.")
            self._target = target
        return self._target

    def get(self) -> Any:
        self.collect()
        value = self.runtime.deps.untracked(self.target().get)
        return self.mapper.read(value) if self.mapper is not None else value

    def set(self, value: Any) -> None:
        target = self.target()
        if self.mapper is not None:
            if not mapper_can_write(self.mapper):
                raise ReadOnlyError(f"Alias '{self._key}' is read-only (mapper has no write).")
            value = self.mapper.write(value)
        if self._normalize is not None:
            value = self._normalize(value)
        target.set(value)

    def is_writable(self) -> bool:
        target = self.target()
        if self.mapper is None:
            return target.is_writable()
        return mapper_can_write(self.mapper) and target.is_writable()

    def subscribe(
        self,
        fn: Callable[[Any], Any],
        immediate: bool = True,
        buffer: Optional[float] = None,
        delay: Optional[float] = None,
    ) -> Unsubscribe:
        mapper = self.mapper
        if mapper is None:
            return self.target().subscribe(fn, immediate=immediate, buffer=buffer, delay=delay)

        def mapped(value: Any) -> None:
            fn(mapper.read(value))

        return self.target().subscribe(mapped, immediate=immediate, buffer=buffer, delay=delay)

    def dispose(self) -> None:
        super().dispose()
        if self._owns_target and self._target is not None:
            self._target.dispose()
        self._target = None
