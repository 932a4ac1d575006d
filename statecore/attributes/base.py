"""
statecore Attribute - Observable Unit of State
==============================================

An attribute holds one observable value. Reading it through `get()` reports
the attribute to the active dependency collector (if any) before returning;
writing it through `set()` stores the value and schedules an emission on the
owning runtime. Subscribers receive the fresh value on every emission.

This module provides the `Attribute` protocol shared by every variant and the
`AbstractAttribute` base class implementing subscriber bookkeeping, emission
and collection. Concrete variants live in the sibling modules:

- `MutableAttribute`: a plain value
- `DerivedAttribute`: a value computed from other attributes, auto-tracked
- `AliasAttribute`: a redirect to another attribute, optionally transformed
- `NestedAttribute`: a child State
- `ListAttribute` / `MapAttribute`: reactive ordered/associative collections
- `IndexAttribute` / `MapKeyAttribute`: one element/entry of a collection
- `PathAttribute`: a multi-segment address observed as a single value
"""

from abc import ABC, abstractmethod
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Generic,
    Optional,
    Protocol,
    Set,
    TypeVar,
    runtime_checkable,
)

from ..errors import ReadOnlyError

if TYPE_CHECKING:
    from ..runtime import ReactiveRuntime, TimerHandle

T = TypeVar("T")

Unsubscribe = Callable[[], None]


@runtime_checkable
class Attribute(Protocol[T]):
    """Capabilities every reactive attribute provides."""

    @property
    def key(self) -> str:
        """Stable, human-readable key (for debugging)."""
        ...

    def get(self) -> T:
        """Current value. Reading participates in dependency collection."""
        ...

    def set(self, value: T) -> None:
        """Set the value; read-only attributes raise `ReadOnlyError`."""
        ...

    def subscribe(
        self,
        fn: Callable[[T], Any],
        immediate: bool = True,
        buffer: Optional[float] = None,
        delay: Optional[float] = None,
    ) -> Unsubscribe:
        """
        Subscribe to changes.

        Args:
            fn: Callback receiving the new value.
            immediate: Push the current value right away (default True).
            buffer: Debounce window in milliseconds.
            delay: Delay applied to every delivery, in milliseconds.

        Returns:
            A function removing the subscription.
        """
        ...

    def is_writable(self) -> bool: ...

    def dispose(self) -> None:
        """Release watchers and any subscription held on other attributes."""
        ...


class TimedDelivery:
    """Subscriber wrapper routing deliveries through the runtime scheduler."""

    def __init__(
        self,
        runtime: "ReactiveRuntime",
        fn: Callable[[Any], Any],
        buffer: Optional[float] = None,
        delay: Optional[float] = None,
    ) -> None:
        self.runtime = runtime
        self.fn = fn
        self.buffer = buffer
        self.delay = delay
        self._latest: Any = None
        self._debounce: Optional["TimerHandle"] = None
        self._pending: Set["TimerHandle"] = set()

    def __call__(self, value: Any) -> None:
        if self.buffer:
            if self._debounce is not None:
                self._debounce.cancel()
            self._latest = value
            self._debounce = self.runtime.scheduler.call_later(
                self.buffer / 1000.0, self._flush_buffer
            )
        else:
            self._fire(value)

    def _flush_buffer(self) -> None:
        self._debounce = None
        self._fire(self._latest)

    def _fire(self, value: Any) -> None:
        if not self.delay:
            self.runtime.deliver(self.fn, value)
            return

        handle: Optional["TimerHandle"] = None

        def run() -> None:
            self._pending.discard(handle)
            self.runtime.deliver(self.fn, value)

        handle = self.runtime.scheduler.call_later(self.delay / 1000.0, run)
        self._pending.add(handle)

    def cancel(self) -> None:
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None
        for handle in list(self._pending):
            handle.cancel()
        self._pending.clear()


class AbstractAttribute(ABC, Generic[T]):
    """
    Base class for reactive attributes.

    Provides:
    - Subscriber bookkeeping (insertion-ordered; each subscription has its own
      token so the same callback may be subscribed more than once)
    - Emission through the runtime (coalesced while a batch is open)
    - Dependency collection on reads
    - Read-only default for `set()`

    Subclasses must implement `get()` and call `collect()` from it.
    """

    def __init__(self, key: str, runtime: "ReactiveRuntime") -> None:
        self._key = key
        self.runtime = runtime
        self._watchers: Dict[object, Callable[[T], Any]] = {}

    @property
    def key(self) -> str:
        return self._key

    @abstractmethod
    def get(self) -> T:
        pass

    def set(self, value: T) -> None:
        raise ReadOnlyError(f"'{self._key}' is read-only.")

    def is_writable(self) -> bool:
        return False

    @property
    def subscriber_count(self) -> int:
        return len(self._watchers)

    def subscribe(
        self,
        fn: Callable[[T], Any],
        immediate: bool = True,
        buffer: Optional[float] = None,
        delay: Optional[float] = None,
    ) -> Unsubscribe:
        target: Callable[[T], Any] = fn
        if buffer or delay:
            target = TimedDelivery(self.runtime, fn, buffer=buffer, delay=delay)
        token = object()
        self._watchers[token] = target
        if immediate:
            self.runtime.deliver(target, self.get())

        def unsubscribe() -> None:
            removed = self._watchers.pop(token, None)
            if isinstance(removed, TimedDelivery):
                removed.cancel()
            if removed is not None:
                self._on_unsubscribed()

        return unsubscribe

    def _on_unsubscribed(self) -> None:
        """Hook invoked after a subscription has been removed."""
        pass

    def emit(self) -> None:
        """Schedule a delivery of the current value to all subscribers."""
        self.runtime.enqueue(self)

    def flush_emit(self) -> None:
        if not self._watchers:
            return
        value = self.runtime.deps.untracked(self.get)
        for fn in list(self._watchers.values()):
            self.runtime.deliver(fn, value)

    def collect(self) -> None:
        """Register this attribute with the current dependency collector."""
        self.runtime.deps.collect(self)

    def dispose(self) -> None:
        for fn in self._watchers.values():
            if isinstance(fn, TimedDelivery):
                fn.cancel()
        self._watchers.clear()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._key!r})"


def same_value(a: Any, b: Any) -> bool:
    """Identity, or equality between values of the same type."""
    if a is b:
        return True
    if type(a) is not type(b):
        return False
    try:
        return bool(a == b)
    except Exception:
        return False
