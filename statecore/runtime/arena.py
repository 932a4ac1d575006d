"""
statecore Arena - Handle-Addressed Store of Live State Containers
=================================================================

Containers never hold owning references to their parent or children. Each
State is allocated a slot in the arena of its runtime and the relations are
stored as `StateHandle` values. Disposing a State releases its slot; the index
is recycled through a free list with a bumped generation, so any handle that
still points at the old occupant is detected as stale.

Slots reference their State weakly. A State nobody references any more (an
element dropped from a list, a replaced map value) is collected by Python and
its slot is released by the weakref callback. A State built with a parent
asks the arena to keep that parent alive for as long as the child's slot is
live; `NestedAttribute` drops that hold for the children it owns, since the
parent already references them.

Key Features:
- O(1) allocation and release with index reuse
- Generation counters invalidate outstanding handles on release
- Unreferenced States free their slot without an explicit dispose()
"""

import weakref
from functools import partial
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, NamedTuple, Optional

from ..errors import StaleHandleError

if TYPE_CHECKING:
    from ..state import State


class StateHandle(NamedTuple):
    index: int
    generation: int


class StateArena:
    """Slot storage for the containers sharing one runtime."""

    def __init__(self) -> None:
        self._slots: List[Optional[weakref.ref]] = []
        self._generations: List[int] = []
        self._free_list: List[int] = []
        self._kept_alive: Dict[int, Any] = {}

    def allocate(self, state: "State", keep_alive: Any = None) -> StateHandle:
        """
        Store `state` in a free slot.

        Args:
            state: Object to store (held weakly)
            keep_alive: Object held strongly until the slot is released
        """
        if self._free_list:
            index = self._free_list.pop()
            self._generations[index] += 1
        else:
            index = len(self._slots)
            self._slots.append(None)
            self._generations.append(0)
        generation = self._generations[index]
        self._slots[index] = weakref.ref(state, partial(self._collected, index, generation))
        if keep_alive is not None:
            self._kept_alive[index] = keep_alive
        return StateHandle(index, generation)

    def drop_keep_alive(self, handle: StateHandle) -> None:
        if self.is_live(handle):
            self._kept_alive.pop(handle.index, None)

    def release(self, handle: StateHandle) -> None:
        if not self.is_live(handle):
            return
        self._free(handle.index)

    def _free(self, index: int) -> None:
        self._slots[index] = None
        self._kept_alive.pop(index, None)
        self._free_list.append(index)

    def _collected(self, index: int, generation: int, ref: weakref.ref) -> None:
        if self._generations[index] == generation and self._slots[index] is ref:
            self._free(index)

    def _deref(self, handle: Any) -> Optional["State"]:
        if not (
            isinstance(handle, StateHandle)
            and 0 <= handle.index < len(self._slots)
            and self._generations[handle.index] == handle.generation
        ):
            return None
        ref = self._slots[handle.index]
        return ref() if ref is not None else None

    def is_live(self, handle: Any) -> bool:
        return self._deref(handle) is not None

    def get(self, handle: StateHandle) -> "State":
        state = self._deref(handle)
        if state is None:
            raise StaleHandleError(f"State handle {tuple(handle)} is no longer live")
        return state

    def find(self, handle: Optional[StateHandle]) -> Optional["State"]:
        return self._deref(handle)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __iter__(self) -> Iterator["State"]:
        for ref in list(self._slots):
            state = ref() if ref is not None else None
            if state is not None:
                yield state
