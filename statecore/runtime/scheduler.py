"""
statecore Scheduler - Timers for Buffered and Delayed Subscriptions
===================================================================

Subscriptions created with `buffer=` or `delay=` hand their deliveries to the
runtime's scheduler instead of invoking the callback inline. The scheduler is
a small protocol so that embedding applications (and tests) can substitute
their own clock.
"""

import asyncio
import threading
from typing import Callable, List, Protocol, Tuple, runtime_checkable


@runtime_checkable
class TimerHandle(Protocol):
    def cancel(self) -> None: ...


@runtime_checkable
class Scheduler(Protocol):
    """Schedules a callback to run after a number of seconds."""

    def call_later(self, seconds: float, fn: Callable[[], None]) -> TimerHandle: ...


class TimerScheduler:
    """
    Default scheduler.

    Uses the running asyncio loop when there is one so that deliveries stay on
    the loop's thread; falls back to `threading.Timer` otherwise.

    Note:
        A runtime is not thread-safe. Without a running loop, buffered and
        delayed callbacks run on a timer thread, concurrently with the thread
        that owns the States. Applications that use `buffer=`/`delay=` outside
        asyncio should pass a scheduler of their own (for example one posting
        to their event loop) or a `ManualScheduler` driven from the owning
        thread.
    """

    def call_later(self, seconds: float, fn: Callable[[], None]) -> TimerHandle:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            timer = threading.Timer(seconds, fn)
            timer.daemon = True
            timer.start()
            return timer
        return loop.call_later(seconds, fn)


class _ManualTimer:
    def __init__(self, due: float, fn: Callable[[], None]) -> None:
        self.due = due
        self.fn = fn
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Deterministic scheduler driven explicitly through `advance()`.

    Time is expressed in milliseconds to match the subscription options.

    Example:
        ```python
        scheduler = ManualScheduler()
        runtime = ReactiveRuntime(scheduler=scheduler)
        state = State({"count": 0}, runtime=runtime)
        state.on("count", print, delay=50)
        scheduler.advance(50)  # prints 0
        ```
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: List[Tuple[float, int, _ManualTimer]] = []
        self._seq = 0

    def call_later(self, seconds: float, fn: Callable[[], None]) -> TimerHandle:
        timer = _ManualTimer(self.now + round(seconds * 1000.0, 6), fn)
        self._seq += 1
        self._timers.append((timer.due, self._seq, timer))
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for _, _, t in self._timers if not t.cancelled)

    def advance(self, ms: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self.now + ms
        while True:
            due = [entry for entry in self._timers if entry[0] <= target]
            if not due:
                break
            entry = min(due)
            self._timers.remove(entry)
            self.now = entry[0]
            if not entry[2].cancelled:
                entry[2].fn()
        self.now = target
