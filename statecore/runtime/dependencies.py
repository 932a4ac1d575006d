"""
statecore Dependencies - Dependency Collector Stack
===================================================

Producers (attributes) call `collect(attr)` from their read path. Consumers
(derived attributes, path bindings, `State.track`) wrap a computation with
`run_with_collector(register, fn)` and receive every attribute read while the
computation runs.

Collectors form a stack: a computed value evaluated while another one is
being evaluated registers its reads with the *inner* collector only.
"""

import threading
from typing import TYPE_CHECKING, Callable, List, Optional, TypeVar

if TYPE_CHECKING:
    from ..attributes.base import Attribute

T = TypeVar("T")

Register = Callable[["Attribute"], None]


def _ignore(attr: "Attribute") -> None:
    pass


class Dependencies:
    """Stack of active dependency collectors."""

    def __init__(self) -> None:
        self._local = threading.local()

    def _get_stack(self) -> List[Register]:
        if not hasattr(self._local, "stack"):
            self._local.stack = []
        return self._local.stack

    def run_with_collector(self, register: Register, fn: Callable[[], T]) -> T:
        """Run `fn`, handing every attribute it reads to `register`."""
        stack = self._get_stack()
        stack.append(register)
        try:
            return fn()
        finally:
            stack.pop()

    def untracked(self, fn: Callable[[], T]) -> T:
        """Run `fn` without reporting its reads to the enclosing collector."""
        return self.run_with_collector(_ignore, fn)

    def collect(self, attr: "Attribute") -> None:
        stack = self._get_stack()
        if stack:
            stack[-1](attr)

    @property
    def active(self) -> Optional[Register]:
        stack = self._get_stack()
        return stack[-1] if stack else None

    @property
    def depth(self) -> int:
        return len(self._get_stack())
