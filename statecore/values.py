"""
statecore Values - Tagged Classification and Reactive Wrapping
==============================================================

Every value entering the reactive model is classified into one of a small set
of kinds, and structured values are converted into their reactive form by
`wrap()` at each insertion point (State construction, collection writes,
nested replacement):

- `dict` (any mapping that is not a `Map`) -> child `State`
- `list` / `tuple` -> `ReactiveList` (backed by a `ListAttribute`)
- `Map` -> `ReactiveMap` (backed by a `MapAttribute`)
- existing `State` / `ReactiveList` / `ReactiveMap` -> adopted as is
- anything else -> stored unchanged

`Map` exists because a Python `dict` is used for nested containers: tagging a
mapping with `Map` requests an associative collection with dynamic keys
instead of a container with a fixed set of declared keys.
"""

import re
from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .runtime import ReactiveRuntime
    from .schema import SchemaHandle

ALIAS_PATTERN = re.compile(r"^\{\s*(.+?)\s*\}$", re.DOTALL)


class Map(dict):
    """A plain mapping tagged to become an associative collection."""

    def __repr__(self) -> str:
        return f"Map({dict.__repr__(self)})"


class ValueKind(Enum):
    SCALAR = "scalar"
    CONTAINER = "container"
    LIST = "list"
    MAP = "map"
    COMPUTED = "computed"
    ALIAS = "alias"


def is_alias_expression(value: Any) -> bool:
    return isinstance(value, str) and ALIAS_PATTERN.match(value) is not None


def alias_body(value: str) -> str:
    match = ALIAS_PATTERN.match(value)
    if match is None:
        raise ValueError(f"Not an alias expression: {value!r}")
    return match.group(1)


def classify(value: Any) -> ValueKind:
    """Classify a State field value."""
    from .attributes.list import ReactiveList
    from .attributes.map import ReactiveMap
    from .state import State

    if isinstance(value, State):
        return ValueKind.CONTAINER
    if isinstance(value, (ReactiveMap, Map)):
        return ValueKind.MAP
    if isinstance(value, (ReactiveList, list, tuple)):
        return ValueKind.LIST
    if isinstance(value, Mapping):
        return ValueKind.CONTAINER
    if is_alias_expression(value):
        return ValueKind.ALIAS
    if callable(value):
        return ValueKind.COMPUTED
    return ValueKind.SCALAR


def is_navigable(value: Any) -> bool:
    """Whether a path may continue with `.prop` into `value`."""
    from .state import State

    return isinstance(value, State)


def wrap(
    value: Any,
    runtime: "ReactiveRuntime",
    key: str = "",
    schema: Optional["SchemaHandle"] = None,
) -> Any:
    """Convert a structured value into its reactive form."""
    from .attributes.list import ListAttribute, ReactiveList
    from .attributes.map import MapAttribute, ReactiveMap
    from .state import State

    if isinstance(value, (State, ReactiveList, ReactiveMap)):
        return value
    if isinstance(value, Map):
        return MapAttribute(key, runtime, value).get_view()
    if isinstance(value, (list, tuple)):
        items = schema.items() if schema is not None else None
        return ListAttribute(key, runtime, value, items_schema=items).get_view()
    if isinstance(value, Mapping):
        return State(dict(value), runtime=runtime, schema_handle=schema)
    return value


def unwrap(value: Any) -> Any:
    """Plain-Python snapshot of a (possibly reactive) value."""
    from .attributes.list import ReactiveList
    from .attributes.map import ReactiveMap
    from .state import State

    if isinstance(value, State):
        return value.to_dict()
    if isinstance(value, ReactiveList):
        return [unwrap(v) for v in value.snapshot()]
    if isinstance(value, ReactiveMap):
        return Map((k, unwrap(v)) for k, v in value.snapshot().items())
    return value
