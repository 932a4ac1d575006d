"""
statecore PathResolver - Walking Paths Through Containers and Collections
=========================================================================

A single walker serves two modes:

- `resolve()`: build mode. Materialises the terminal Index/MapKey attribute
  when the path ends on `[i]` / `["k"]`, and raises `PathResolutionError` on
  the first failure. With `partial=True` the failure is returned instead,
  together with the links that did resolve.
- `preflight()`: diagnostic mode. Allocates nothing, never raises for
  semantic problems, and records one `PreflightHop` per segment.

Walking rules, per segment:

- top: ancestor-aware lookup on the owner (own key, else nearest ancestor)
- `.prop`: the current value must be a State; ancestor-aware lookup on it
- `[i]`: the current attribute must be a list; terminal -> Index attribute,
  otherwise the element must be a State and the next segment a `.prop`
- `["k"]`: same as `[i]` for maps
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional, Union

from ..attributes.alias import AliasAttribute
from ..attributes.base import Attribute
from ..attributes.index import IndexAttribute, MapKeyAttribute
from ..attributes.list import ListAttribute
from ..attributes.map import MapAttribute
from ..errors import PathResolutionError
from ..values import is_navigable
from .tokenizer import IndexToken, MapKeyToken, PropToken, Token, tokenize

if TYPE_CHECKING:
    from ..state import State


class FinalKind(Enum):
    PROP = "prop"
    INDEX = "index"
    MAP_KEY = "map_key"


@dataclass(frozen=True)
class TopToken:
    name: str
    kind = "top"


@dataclass
class ResolvedPath:
    final: Optional[Attribute]
    intermediates: List[Attribute]
    final_kind: Optional[FinalKind]
    error: Optional[str] = None


@dataclass
class PreflightHop:
    token: Union[Token, TopToken]
    holder_type: str
    exists: bool
    message: Optional[str] = None


@dataclass
class PreflightResult:
    ok: bool
    error: Optional[str] = None
    final_kind: Optional[FinalKind] = None
    hops: List[PreflightHop] = field(default_factory=list)


@dataclass
class _WalkOutcome:
    ok: bool
    intermediates: List[Attribute]
    hops: List[PreflightHop]
    error: Optional[str] = None
    final: Optional[Attribute] = None
    final_kind: Optional[FinalKind] = None


def _underlying(attr: Attribute) -> Attribute:
    """Follow untransformed aliases and path attributes to the real attribute."""
    from ..attributes.path import PathAttribute, release_virtual

    seen = set()
    while id(attr) not in seen:
        seen.add(id(attr))
        if isinstance(attr, AliasAttribute) and attr.mapper is None:
            attr = attr.target()
        elif isinstance(attr, PathAttribute):
            final = attr.resolved().final
            # only its type is of interest here
            release_virtual(final)
            attr = final
        else:
            break
    return attr


def _holder_type(value: Any) -> str:
    return type(value).__name__ if value is not None else "None"


class PathResolver:
    """Resolves path expressions against a State."""

    @classmethod
    def resolve(cls, owner: "State", path: str, partial: bool = False) -> ResolvedPath:
        """
        Resolve `path` to its final attribute and the links leading to it.

        With `partial`, a semantic failure does not raise: the result has no
        final, carries the error and lists the links resolved before it.
        """
        outcome = owner.runtime.deps.untracked(
            lambda: cls._walk(
                owner, path, build_final=True, collect_hops=False, raise_errors=not partial
            )
        )
        return ResolvedPath(outcome.final, outcome.intermediates, outcome.final_kind, outcome.error)

    @classmethod
    def preflight(cls, owner: "State", path: str) -> PreflightResult:
        outcome = owner.runtime.deps.untracked(
            lambda: cls._walk(owner, path, build_final=False, collect_hops=True, raise_errors=False)
        )
        return PreflightResult(outcome.ok, outcome.error, outcome.final_kind, outcome.hops)

    @classmethod
    def _walk(
        cls,
        owner: "State",
        path: str,
        build_final: bool,
        collect_hops: bool,
        raise_errors: bool,
    ) -> _WalkOutcome:
        hops: List[PreflightHop] = []
        intermediates: List[Attribute] = []

        def hop(token, holder_type: str, exists: bool, message: Optional[str] = None) -> None:
            if collect_hops:
                hops.append(PreflightHop(token, holder_type, exists, message))

        def mark_last_missing(message: str) -> None:
            if collect_hops and hops:
                hops[-1].exists = False
                hops[-1].message = message

        def fail(message: str) -> _WalkOutcome:
            if raise_errors:
                raise PathResolutionError(message, path)
            return _WalkOutcome(False, intermediates, hops, error=message)

        def done(kind: FinalKind, final: Optional[Attribute] = None) -> _WalkOutcome:
            if final is None:
                return _WalkOutcome(True, intermediates, hops, final_kind=kind)
            return _WalkOutcome(True, intermediates, hops, final=final, final_kind=kind)

        top, rest = tokenize(path)

        top_attr = owner.resolve_top(top)
        hop(
            TopToken(top),
            "state" if top_attr is not None else "value",
            top_attr is not None,
            None if top_attr is not None else f"'{top}' not found",
        )
        if top_attr is None:
            return fail(f"'{top}' not found")

        attr: Attribute = top_attr
        intermediates.append(attr)

        t = 0
        while t < len(rest):
            token = rest[t]
            terminal = t == len(rest) - 1

            if isinstance(token, (IndexToken, MapKeyToken)):
                is_index = isinstance(token, IndexToken)
                expected = ListAttribute if is_index else MapAttribute
                holder = _underlying(attr)
                matches = isinstance(holder, expected)
                label = "list" if is_index else "map"
                wrong = "Index on non-list" if is_index else "Key on non-map"
                hop(
                    token,
                    label if matches else _holder_type(attr.get()),
                    matches,
                    None if matches else wrong,
                )
                if not matches:
                    return fail(f"'{path}': {wrong[0].lower() + wrong[1:]}")

                if terminal:
                    kind = FinalKind.INDEX if is_index else FinalKind.MAP_KEY
                    if not build_final:
                        return done(kind)
                    if is_index:
                        final: Attribute = IndexAttribute(holder, token.index)
                    else:
                        final = MapKeyAttribute(holder, token.key)
                    return done(kind, final)

                if is_index:
                    element = holder.get_view().at(token.index)
                    where = f"[{token.index}]"
                    what = "List element"
                    schema_label = "element schema"
                else:
                    element = holder.get_view().get(token.key)
                    where = f'["{token.key}"]'
                    what = "Map value"
                    schema_label = "value schema"

                t += 1
                nxt = rest[t] if t < len(rest) else None
                navigable = is_navigable(element)
                has_prop = isinstance(nxt, PropToken)
                if not navigable:
                    message: Optional[str] = f"{what} not navigable"
                elif not has_prop:
                    message = f"After {where} a .prop is required"
                else:
                    message = None
                hop(
                    nxt if has_prop else PropToken("(missing)"),
                    "state",
                    navigable and has_prop,
                    message,
                )
                if not navigable:
                    return fail(f"{what} not navigable in '{path}'")
                if not has_prop:
                    return fail(f"After {where} a .prop is required in '{path}'")

                next_attr = element.resolve_top(nxt.name)
                if next_attr is None:
                    mark_last_missing(f"'{nxt.name}' not found in {schema_label}")
                    return fail(f"'{nxt.name}' not found in {schema_label}")
                attr = next_attr
                intermediates.append(attr)
                t += 1
                continue

            # .prop
            value = attr.get()
            navigable = is_navigable(value)
            hop(
                token,
                "state",
                navigable,
                None if navigable else f"Segment '{token.name}' not navigable",
            )
            if not navigable:
                return fail(f"Segment '{token.name}' not navigable in '{path}'")
            next_attr = value.resolve_top(token.name)
            if next_attr is None:
                mark_last_missing(f"'{token.name}' not found in schema")
                return fail(f"'{token.name}' not found in schema")
            attr = next_attr
            intermediates.append(attr)
            t += 1

        if not build_final:
            return done(FinalKind.PROP)
        final_attr = intermediates.pop()
        return done(FinalKind.PROP, final_attr)
