"""
statecore PathAttribute - Multi-Segment Addresses as One Observable
===================================================================

A `PathAttribute` represents an address such as `user.address.city` or
`users[0]["tags"]` as a single attribute. While it has subscribers it holds
one subscription per intermediate link plus one on the final attribute:

- final emits -> the path emits
- an intermediate emits (a link was replaced wholesale) -> the chain is
  resolved again ("rewire") and the path emits

When the final attribute is a virtual Index/MapKey attribute it already emits
on every structural change of its collection. An intermediate then emits the
path only when the rewire lands on a different collection, so a change of
the collection itself is delivered once.

A path that cannot be resolved for a while (the list it indexes was emptied)
stays subscribed to the links that still resolve and wires itself again when
one of them changes.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Union

from .base import AbstractAttribute, Attribute, Unsubscribe
from .index import IndexAttribute, MapKeyAttribute

if TYPE_CHECKING:
    from ..path.resolver import ResolvedPath
    from ..state import State


def release_virtual(attr: Optional[Attribute]) -> None:
    """Dispose a materialized Index/MapKey attribute nobody subscribes through."""
    if isinstance(attr, (IndexAttribute, MapKeyAttribute)):
        attr.dispose()


class PathAttribute(AbstractAttribute[Any]):
    """Lazily-resolved, self-rewiring attribute for a path expression."""

    def __init__(self, owner: "State", path: str) -> None:
        super().__init__(f"$path:{path}", owner.runtime)
        self.owner = owner
        self.path = path
        self._unsubs: List[Unsubscribe] = []
        self._virtual_final: Optional[Union[IndexAttribute, MapKeyAttribute]] = None

    @property
    def wired(self) -> bool:
        return bool(self._unsubs)

    def resolved(self, partial: bool = False) -> "ResolvedPath":
        from ..path.resolver import PathResolver

        return PathResolver.resolve(self.owner, self.path, partial=partial)

    # ---------- Subscriptions (rewire) ----------

    def _clear_subscriptions(self) -> None:
        for off in self._unsubs:
            off()
        self._unsubs = []
        release_virtual(self._virtual_final)
        self._virtual_final = None

    def _bind(self, final: Attribute, intermediates: List[Attribute]) -> None:
        virtual_final = isinstance(final, (IndexAttribute, MapKeyAttribute))
        on_link: Callable[[Any], None] = self._on_link_rewire if virtual_final else self._on_link_change
        for attr in intermediates:
            self._unsubs.append(attr.subscribe(on_link, immediate=False))
        self._unsubs.append(final.subscribe(self._on_final_change, immediate=False))
        if virtual_final:
            self._virtual_final = final

    def _collection(self) -> Optional[Attribute]:
        return self._virtual_final.parent if self._virtual_final is not None else None

    def _on_link_rewire(self, _value: Any) -> None:
        previous = self._collection()
        if self.rewire() and self._collection() is not previous:
            self.emit()

    def _on_link_change(self, _value: Any) -> None:
        if self.rewire():
            self.emit()

    def _on_final_change(self, _value: Any) -> None:
        self.emit()

    def rewire(self, strict: bool = False) -> bool:
        """
        Resolve the chain again and subscribe to it.

        Returns False when the path does not resolve; the links resolved so
        far are watched so that a later change can complete it. With
        `strict`, resolution errors are raised instead.
        """
        self._clear_subscriptions()
        resolved = self.resolved(partial=not strict)
        if resolved.final is None:
            logging.debug(f"Path '{self.path}' unresolved: {resolved.error}")
            for attr in resolved.intermediates:
                self._unsubs.append(attr.subscribe(self._on_link_change, immediate=False))
            return False
        logging.debug(f"Rewired path '{self.path}' to {resolved.final!r}")
        self._bind(resolved.final, resolved.intermediates)
        return True

    # ---------- Attribute API ----------

    def get(self) -> Any:
        if self._watchers and not self._unsubs:
            self.rewire()
        resolved = self.resolved()
        self.collect()
        try:
            return self.runtime.deps.untracked(resolved.final.get)
        finally:
            release_virtual(resolved.final)

    def set(self, value: Any) -> None:
        resolved = self.resolved()
        try:
            resolved.final.set(value)
        finally:
            release_virtual(resolved.final)

    def is_writable(self) -> bool:
        resolved = self.resolved()
        try:
            return resolved.final.is_writable()
        finally:
            release_virtual(resolved.final)

    def subscribe(
        self,
        fn: Callable[[Any], Any],
        immediate: bool = True,
        buffer: Optional[float] = None,
        delay: Optional[float] = None,
    ) -> Unsubscribe:
        if not self._unsubs:
            self.rewire(strict=True)
        return super().subscribe(fn, immediate=immediate, buffer=buffer, delay=delay)

    def _on_unsubscribed(self) -> None:
        if not self._watchers:
            self._clear_subscriptions()

    def dispose(self) -> None:
        super().dispose()
        self._clear_subscriptions()
