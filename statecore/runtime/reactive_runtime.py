"""
statecore ReactiveRuntime - Emission Scheduling with Batching and Coalescing
============================================================================

Every attribute belongs to exactly one runtime. The runtime owns:

- the dependency collector stack (`runtime.deps`)
- the emission queue used while a batch is open
- the scheduler for buffered/delayed subscriptions
- the arena that stores the containers sharing the runtime

Outside a batch an emission is flushed immediately (synchronously, possibly
re-entrantly). Inside a batch emissions are coalesced per attribute and
flushed once, in first-enqueued order, when the outermost batch exits.

```python
runtime = ReactiveRuntime()
state = State({"a": 1, "b": 2, "sum": lambda s: s.a + s.b}, runtime=runtime)

with runtime.batch():
    state.a = 10
    state.b = 20
# a single "sum" notification is delivered here
```
"""

import logging
from typing import Any, Callable, Dict, Optional, Protocol, TypeVar, overload

from .arena import StateArena
from .dependencies import Dependencies
from .scheduler import Scheduler, TimerScheduler

T = TypeVar("T")

SubscriberErrorHook = Callable[[BaseException, Callable[..., Any]], None]


class Flushable(Protocol):
    """Unit queued for emission; attributes implement it."""

    def flush_emit(self) -> None: ...


class BatchScope:
    """Context manager opening a batch on a runtime."""

    def __init__(self, runtime: "ReactiveRuntime") -> None:
        self.runtime = runtime

    def __enter__(self) -> "BatchScope":
        self.runtime._depth += 1
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.runtime._depth -= 1
        if self.runtime._depth == 0:
            self.runtime.flush()


class ReactiveRuntime:
    """Dependency tracking plus batched, coalesced emission delivery."""

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        on_subscriber_error: Optional[SubscriberErrorHook] = None,
    ) -> None:
        self.deps = Dependencies()
        self.scheduler: Scheduler = scheduler or TimerScheduler()
        self.arena = StateArena()
        self.on_subscriber_error = on_subscriber_error
        self._depth = 0
        # dict used as an insertion-ordered set
        self._queue: Dict[Flushable, None] = {}

    @property
    def batching(self) -> bool:
        return self._depth > 0

    def enqueue(self, flushable: Flushable) -> None:
        """Queue an emission, coalesced while batching."""
        if self._depth > 0:
            self._queue[flushable] = None
        else:
            flushable.flush_emit()

    @overload
    def batch(self) -> BatchScope: ...

    @overload
    def batch(self, fn: Callable[[], T]) -> T: ...

    def batch(self, fn: Optional[Callable[[], T]] = None) -> Any:
        """
        Coalesce the emissions produced by `fn` into a single flush.

        Without a callable, returns a context manager doing the same for the
        enclosed block. Batches nest; only the outermost one flushes.
        """
        scope = BatchScope(self)
        if fn is None:
            return scope
        with scope:
            return fn()

    def flush(self) -> None:
        items = list(self._queue)
        self._queue.clear()
        for item in items:
            item.flush_emit()

    def deliver(self, fn: Callable[[Any], Any], value: Any) -> None:
        """Invoke a subscriber; its exceptions never reach other subscribers."""
        try:
            fn(value)
        except Exception as e:
            logging.debug(f"Subscriber {fn!r} raised {e!r}; error swallowed")
            if self.on_subscriber_error is not None:
                try:
                    self.on_subscriber_error(e, fn)
                except Exception as hook_error:
                    logging.error(f"Error in subscriber error hook: {hook_error}")
