"""
statecore State - Reactive Containers with Inheritance and Validation
=====================================================================

A `State` is a container with a fixed set of declared keys, built from an
initial mapping. Each field becomes an attribute chosen from its value:

- scalars -> `MutableAttribute`
- `dict` -> `NestedAttribute` holding a child `State`
- `list` / `tuple` -> `ListAttribute` (read back as a `ReactiveList`)
- `Map` -> `MapAttribute` (read back as a `ReactiveMap`)
- brace strings such as `"{user.name}"` -> `AliasAttribute`
- callables taking the State -> `DerivedAttribute`

```python
from statecore import State

state = State({
    "first": "Ada",
    "last": "Lovelace",
    "full": lambda s: f"{s.first} {s.last}",
    "name": "{first}",
    "visible": True,
    "hidden": "{!visible}",
})

state.on("full", print)         # prints "Ada Lovelace"
state.first = "Grace"           # prints "Grace Lovelace"
state.set("last", "Hopper")     # prints "Grace Hopper"
state["hidden"]                 # False
```

Keys are read and written through `get(key)` / `set(key, value)`, mapping
syntax (`state[key]`) or attribute syntax (`state.key`). Attribute syntax is
served by accessor properties generated once per distinct set of visible
keys; a key that collides with a State member stays reachable through `get`,
`set` and `[]`.

Inheritance
-----------

A State created with `parent=` sees every key its ancestors declare. Reads
and writes of a key that is not declared locally go to the nearest ancestor
declaring it, so a child writing an inherited key updates the ancestor's
storage:

```python
parent = State({"name": "Ada"})
child = State({"age": 36}, parent=parent)
child.name = "Alan"
parent.name                     # "Alan"
```

Validation
----------

An optional JSON Schema (`schema=`) or any `SchemaHandle` (`schema_handle=`)
validates the initial payload and later writes, and per-key custom
`validators` may add their own messages. Problems never block a write unless
the State was created with `validate_on_write=True`; they are aggregated per
path and published through `on_validation_change`.
"""

import logging
import weakref
from collections.abc import Mapping
from dataclasses import dataclass
from functools import partial
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterator,
    List,
    MutableMapping,
    NamedTuple,
    Optional,
    Set,
    Tuple,
)

from .attributes import (
    AliasAttribute,
    Attribute,
    DerivedAttribute,
    ListAttribute,
    MapAttribute,
    MutableAttribute,
    NestedAttribute,
    PathAttribute,
    ReactiveList,
    ReactiveMap,
    Unsubscribe,
)
from .config import AliasBinding, AliasContext, StateConfig, default_config
from .errors import (
    AliasResolutionError,
    SchemaValidationError,
    StateError,
    StateTypeError,
    UnknownPropertyError,
)
from .path import is_path
from .runtime import ReactiveRuntime, StateHandle
from .schema import (
    JsonSchemaHandle,
    SchemaErrorEntry,
    SchemaHandle,
    SchemaIssue,
    ValidationChangeEvent,
)
from .values import Map, ValueKind, alias_body, classify, is_alias_expression, unwrap

CustomValidator = Callable[[Any, "State"], Optional[str]]
ValidationListener = Callable[[ValidationChangeEvent], Any]


class TrackResult(NamedTuple):
    value: Any
    deps: Set[str]


@dataclass
class _PendingAlias:
    key: str
    expr: str
    schema: Optional[SchemaHandle]


def _is_structured(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple, State, ReactiveList, ReactiveMap))


def _skip_validation(value: Any) -> bool:
    return callable(value) or is_alias_expression(value)


class State:
    """
    Reactive container with declared keys, inheritance and validation.

    Args:
        initial: Mapping of declared keys to initial values
        parent: Container whose declared keys this one inherits
        runtime: Runtime shared by every attribute (inherited from the parent,
            otherwise a new one)
        schema: JSON Schema for the values (wrapped in a `JsonSchemaHandle`)
        schema_handle: Any `SchemaHandle`, as an alternative to `schema`
        validators: Per-key functions `(value, state) -> message or None`
        config: Mapper/alias registry (inherited from the parent, otherwise
            `default_config`)
        validate_on_write: Reject invalid writes with `SchemaValidationError`
    """

    # a class lives as long as some instance uses it
    _accessor_classes: MutableMapping[Tuple[type, FrozenSet[str]], type] = (
        weakref.WeakValueDictionary()
    )

    def __init__(
        self,
        initial: Optional[Mapping] = None,
        *,
        parent: Optional["State"] = None,
        runtime: Optional[ReactiveRuntime] = None,
        schema: Optional[Dict[str, Any]] = None,
        schema_handle: Optional[SchemaHandle] = None,
        validators: Optional[Dict[str, CustomValidator]] = None,
        config: Optional[StateConfig] = None,
        validate_on_write: bool = False,
    ):
        if initial is None:
            initial = {}
        if not isinstance(initial, Mapping):
            raise StateTypeError("State requires a mapping as initial value")

        if runtime is None:
            runtime = parent.runtime if parent is not None else ReactiveRuntime()
        elif parent is not None and parent.runtime is not runtime:
            raise StateError("A child State must share its parent's runtime")

        init = partial(object.__setattr__, self)
        init("_runtime", runtime)
        init("_handle", runtime.arena.allocate(self, keep_alive=parent))
        init("_parent_handle", parent.handle if parent is not None else None)
        init("_children", {})
        init("_config", config or (parent._config if parent is not None else default_config))
        init(
            "_validate_on_write",
            validate_on_write or (parent is not None and parent._validate_on_write),
        )
        init("_attrs", {})
        init("_declared", frozenset())
        init("_validators", {})
        init("_validation_listeners", {})
        init("_schema_errors", {})
        init("_schema", self._bind_schema(schema, schema_handle))
        init("_disposed", False)

        if parent is not None:
            parent._children[self._handle] = None

        self._register_validators(validators)

        if self._schema is not None:
            payload = self._schema_payload(initial)
            normalized = self._schema.normalize(payload, "")
            initial = self._apply_schema_defaults(initial, normalized)

        init("_declared", frozenset(initial.keys()))
        self._install_accessors()

        aliases, derived = self._build_concrete(initial)
        self._build_aliases(aliases)
        self._build_derived(derived)
        self._apply_initial_validators(initial)

    # ---------- Construction ----------

    def _bind_schema(
        self, schema: Optional[Dict[str, Any]], handle: Optional[SchemaHandle]
    ) -> Optional[SchemaHandle]:
        if schema is not None:
            return JsonSchemaHandle(schema, on_error=self._emit_validation_change)
        if handle is None:
            return None
        rebind = getattr(handle, "with_error_callback", None)
        if callable(rebind):
            return rebind(self._emit_validation_change)
        return handle

    def _schema_payload(self, initial: Mapping) -> Dict[str, Any]:
        return {k: v for k, v in initial.items() if not _skip_validation(v)}

    def _apply_schema_defaults(self, initial: Mapping, normalized: Any) -> Dict[str, Any]:
        result = dict(initial)
        if not isinstance(normalized, Mapping):
            return result
        for key, value in normalized.items():
            result[key] = self._merge_default(result.get(key, _MISSING), value)
        return result

    def _merge_default(self, existing: Any, normalized: Any) -> Any:
        if existing is _MISSING:
            return normalized
        if _skip_validation(existing):
            return existing
        if (
            isinstance(normalized, Mapping)
            and isinstance(existing, Mapping)
            and not isinstance(existing, Map)
        ):
            merged = dict(existing)
            for key, value in normalized.items():
                merged[key] = self._merge_default(existing.get(key, _MISSING), value)
            return merged
        return existing

    def _build_concrete(
        self, initial: Mapping
    ) -> Tuple[List[_PendingAlias], List[Tuple[str, Callable[["State"], Any]]]]:
        aliases: List[_PendingAlias] = []
        derived: List[Tuple[str, Callable[["State"], Any]]] = []
        for key, value in initial.items():
            child_schema = self._schema.child(key) if self._schema is not None else None
            kind = classify(value)
            if kind is ValueKind.COMPUTED:
                derived.append((key, value))
            elif kind is ValueKind.ALIAS:
                aliases.append(_PendingAlias(key, alias_body(value), child_schema))
            else:
                self._attrs[key] = self._create_attribute(key, value, kind, child_schema)
        return aliases, derived

    def _create_attribute(
        self, key: str, value: Any, kind: ValueKind, schema: Optional[SchemaHandle]
    ) -> Attribute:
        if kind is ValueKind.LIST:
            if isinstance(value, ReactiveList):
                value = value.snapshot()
            items = schema.items() if schema is not None else None
            return ListAttribute(key, self._runtime, value, items_schema=items)
        if kind is ValueKind.MAP:
            if isinstance(value, ReactiveMap):
                value = value.snapshot()
            return MapAttribute(key, self._runtime, value)
        if kind is ValueKind.CONTAINER:
            return NestedAttribute(key, self._runtime, value, owner=self, schema=schema)
        return MutableAttribute(key, self._runtime, value)

    def _resolve_alias_binding(self, expr: str) -> AliasBinding:
        context = AliasContext(resolve_path=self.attribute, get_mapper=self._config.get_mapper)
        for resolver in self._config.get_alias_resolvers():
            if resolver.match(expr):
                return resolver.build(context, expr)
        return AliasBinding(expr.strip())

    def _build_aliases(self, aliases: List[_PendingAlias]) -> None:
        owner = partial(self._runtime.arena.get, self._handle)
        for pending in aliases:
            binding = self._resolve_alias_binding(pending.expr)
            normalize = None
            if pending.schema is not None:
                normalize = partial(
                    pending.schema.normalize,
                    context=pending.key,
                    emit_errors=False,
                    in_place=True,
                )
            self._attrs[pending.key] = AliasAttribute(
                pending.key,
                self._runtime,
                partial(_alias_target, owner, pending.key, binding.path),
                mapper=binding.mapper,
                normalize=normalize,
                owns_target=is_path(binding.path),
            )
            logging.debug(f"Alias '{pending.key}' bound to '{binding.path}'")

    def _build_derived(self, derived: List[Tuple[str, Callable[["State"], Any]]]) -> None:
        owner = partial(self._runtime.arena.get, self._handle)
        for key, compute in derived:
            self._attrs[key] = DerivedAttribute(key, self._runtime, owner, compute)

    # ---------- Generated accessors ----------

    def visible_keys(self) -> FrozenSet[str]:
        """Keys declared here or by any ancestor."""
        keys = set(self._declared)
        current = self.parent
        while current is not None:
            keys.update(current._declared)
            current = current.parent
        return frozenset(keys)

    def _install_accessors(self) -> None:
        base = type(self)
        keys = frozenset(
            k for k in self.visible_keys() if k.isidentifier() and not hasattr(base, k)
        )
        cache_key = (base, keys)
        cls = State._accessor_classes.get(cache_key)
        if cls is None:
            namespace: Dict[str, Any] = {"__module__": base.__module__}
            for key in sorted(keys):
                namespace[key] = _accessor(key)
            cls = type(base.__name__, (base,), namespace)
            State._accessor_classes[cache_key] = cls
        object.__setattr__(self, "__class__", cls)

    def __getattr__(self, name: str) -> Any:
        # only reached for names with no member and no generated accessor
        if name.startswith("_"):
            raise AttributeError(name)
        raise UnknownPropertyError(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or isinstance(getattr(type(self), name, None), property):
            object.__setattr__(self, name, value)
            return
        self.set(name, value)

    # ---------- Read / write ----------

    def get(self, key: str) -> Any:
        """Read a key (own or inherited) or a path expression."""
        if is_path(key):
            return self.attribute(key).get()
        return self._attr_for_read(key).get()

    def set(self, key: str, value: Any) -> None:
        """Write a key (forwarded to the declaring ancestor) or a path."""
        if is_path(key):
            self.attribute(key).set(value)
            return
        owner = self._declaring_state(key)
        if owner is None:
            raise UnknownPropertyError(key, f"Cannot set unknown property '{key}' (no schema in chain)")
        owner._set_local(key, value)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._declaring_state(key) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def _declaring_state(self, key: str) -> Optional["State"]:
        current: Optional[State] = self
        while current is not None:
            if key in current._declared:
                return current
            current = current.parent
        return None

    def _attr_for_read(self, key: str) -> Attribute:
        owner = self._declaring_state(key)
        if owner is None:
            raise UnknownPropertyError(key)
        attr = owner._attrs.get(key)
        if attr is None:
            raise StateError(f"'{key}' was read before it was built")
        return attr

    def _set_local(self, key: str, value: Any) -> None:
        attr = self._attrs[key]
        if self._validate_on_write:
            problems = self._schema_issues(key, value) + self._custom_issues(key, value)
            if problems:
                raise SchemaValidationError(key, problems)
        value = self._normalize_for_schema(key, value)
        self._apply_custom_validators(key, value)
        attr.set(value)

    def _normalize_for_schema(self, key: str, value: Any) -> Any:
        if self._schema is None:
            return value
        child = self._schema.child(key)
        if child is None or _skip_validation(value) or _is_structured(value):
            return value
        return child.normalize(value, key)

    def _schema_issues(self, key: str, value: Any) -> List[SchemaIssue]:
        if self._schema is None:
            return []
        child = self._schema.child(key)
        if child is None or _skip_validation(value):
            return []
        return child.issues(unwrap(value))

    # ---------- Attribute resolution ----------

    def resolve_top(self, key: str, skip_self: bool = False) -> Optional[Attribute]:
        """Attribute for `key` here, else on the nearest ancestor declaring it."""
        current = self.parent if skip_self else self
        while current is not None:
            attr = current._attrs.get(key)
            if attr is not None:
                return attr
            current = current.parent
        return None

    def attribute(self, path: str) -> Attribute:
        """Attribute for a key, or a new `PathAttribute` for a path."""
        if is_path(path):
            return PathAttribute(self, path)
        attr = self.resolve_top(path)
        if attr is None:
            raise UnknownPropertyError(path, f"'{path}' not found in schema chain")
        return attr

    # ---------- Subscriptions ----------

    def on(
        self,
        path: str,
        fn: Callable[[Any], Any],
        immediate: bool = True,
        buffer: Optional[float] = None,
        delay: Optional[float] = None,
    ) -> Unsubscribe:
        """
        Subscribe to a key or path.

        Args:
            path: Key (`"name"`) or path (`"user.address.city"`, `"items[0]"`)
            fn: Callback receiving each new value
            immediate: Call `fn` with the current value right away
            buffer: Debounce deliveries by this many milliseconds
            delay: Defer every delivery by this many milliseconds

        Returns:
            Function removing the subscription
        """
        attr = self.attribute(path) if is_path(path) else self._attr_for_read(path)
        return attr.subscribe(fn, immediate=immediate, buffer=buffer, delay=delay)

    def track(self, fn: Callable[[], Any]) -> TrackResult:
        """Run `fn` and report the keys of every attribute it read."""
        deps: Set[str] = set()
        value = self._runtime.deps.run_with_collector(lambda attr: deps.add(attr.key), fn)
        return TrackResult(value, deps)

    def batch(self, fn: Optional[Callable[[], Any]] = None) -> Any:
        return self._runtime.batch(fn) if fn is not None else self._runtime.batch()

    # ---------- Introspection ----------

    @property
    def runtime(self) -> ReactiveRuntime:
        return self._runtime

    @property
    def handle(self) -> StateHandle:
        return self._handle

    @property
    def parent(self) -> Optional["State"]:
        return self._runtime.arena.find(self._parent_handle)

    @property
    def children(self) -> List["State"]:
        live = []
        for handle in list(self._children):
            child = self._runtime.arena.find(handle)
            if child is None:
                del self._children[handle]
            else:
                live.append(child)
        return live

    @property
    def config(self) -> StateConfig:
        return self._config

    @property
    def schema(self) -> Optional[SchemaHandle]:
        return self._schema

    @property
    def disposed(self) -> bool:
        return self._disposed

    def keys(self) -> List[str]:
        """Keys declared by this State (ancestors excluded)."""
        return list(self._attrs)

    def to_dict(self) -> Dict[str, Any]:
        """Plain snapshot of the declared keys, computed values included."""
        return {
            key: unwrap(self._runtime.deps.untracked(attr.get))
            for key, attr in self._attrs.items()
        }

    def __repr__(self) -> str:
        return f"State({', '.join(self._attrs)})"

    # ---------- Validation ----------

    def on_validation_change(self, fn: ValidationListener) -> Unsubscribe:
        """Subscribe to changes of this State's error set."""
        token = object()
        self._validation_listeners[token] = fn

        def unsubscribe() -> None:
            self._validation_listeners.pop(token, None)

        return unsubscribe

    def schema_errors(self, path: Optional[str] = None) -> Optional[List[SchemaIssue]]:
        """
        Current issues for `path`, or every issue when no path is given.

        Returns None for a path with no recorded issues.
        """
        if path is None:
            return [issue for entry in self._schema_errors.values() for issue in entry.errors]
        entry = self._schema_errors.get(path)
        return list(entry.errors) if entry is not None else None

    def all_schema_errors(self) -> List[SchemaErrorEntry]:
        return [
            SchemaErrorEntry(entry.path, entry.key, list(entry.errors))
            for entry in self._schema_errors.values()
            if entry.errors
        ]

    @property
    def valid(self) -> bool:
        return not self._schema_errors

    def _emit_validation_change(self, path: str, issues: Optional[List[SchemaIssue]]) -> None:
        if not self._update_validation_entry(path, issues):
            return
        self._dispatch_validation_event()
        for child in self.children:
            child._emit_validation_change(path, issues)

    def _update_validation_entry(self, path: str, issues: Optional[List[SchemaIssue]]) -> bool:
        if not issues:
            return self._schema_errors.pop(path, None) is not None
        previous = self._schema_errors.get(path)
        if previous is not None and previous.errors == issues:
            return False
        key = path.rsplit(".", 1)[-1] if path else None
        self._schema_errors[path] = SchemaErrorEntry(path, key, list(issues))
        return True

    def _dispatch_validation_event(self) -> None:
        if not self._validation_listeners:
            return
        snapshot = self.all_schema_errors()
        event = ValidationChangeEvent(self, not snapshot, snapshot)
        for listener in list(self._validation_listeners.values()):
            self._runtime.deliver(listener, event)

    def _register_validators(self, validators: Optional[Dict[str, CustomValidator]]) -> None:
        for key, fn in (validators or {}).items():
            if callable(fn):
                self._validators.setdefault(key, []).append(fn)

    def add_validator(self, key: str, fn: CustomValidator) -> None:
        """Register a custom validator for `key`, checked on later writes."""
        self._validators.setdefault(key, []).append(fn)

    def _apply_initial_validators(self, initial: Mapping) -> None:
        for key, value in initial.items():
            self._apply_custom_validators(key, value)

    def _custom_issues(self, key: str, value: Any) -> List[SchemaIssue]:
        if _skip_validation(value):
            return []
        issues = []
        for fn in self._validators.get(key, ()):
            message = fn(value, self)
            if isinstance(message, str):
                issues.append(SchemaIssue("custom", key, message))
        return issues

    def _apply_custom_validators(self, key: str, value: Any) -> None:
        if _skip_validation(value) or not self._validators.get(key):
            return
        issues = self._custom_issues(key, value)
        self._emit_validation_change(key, issues or None)

    # ---------- Lifecycle ----------

    def dispose(self) -> None:
        """
        Detach from the parent, release attributes and the arena slot.

        Handles referring to this State become stale afterwards.
        """
        if self._disposed:
            return
        parent = self.parent
        if parent is not None:
            parent._children.pop(self._handle, None)
        for attr in self._attrs.values():
            attr.dispose()
        self._validation_listeners.clear()
        self._runtime.arena.release(self._handle)
        object.__setattr__(self, "_disposed", True)


_MISSING = object()


def _alias_target(owner: Callable[[], State], key: str, path: str) -> Attribute:
    state = owner()
    if path == key:
        ancestor = state.resolve_top(path, skip_self=True)
        if ancestor is None:
            raise AliasResolutionError(
                f"Alias '{key}' cannot resolve path '{path}' (self-referential)"
            )
        return ancestor
    return state.attribute(path)


def _accessor(key: str) -> property:
    def fget(self: State) -> Any:
        return self.get(key)

    def fset(self: State, value: Any) -> None:
        self.set(key, value)

    return property(fget, fset, doc=f"Reactive accessor for '{key}'.")

