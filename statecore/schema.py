"""
statecore Schema - Value Validation Through JSON Schema
=======================================================

A State may be given a JSON Schema describing the shape of its values. The
schema is wrapped in a `SchemaHandle` that mirrors the nested
`properties` / `items` structure, so every declared key (and every list
element) can be validated against its own fragment.

Validation never blocks a write by default. Problems are reported through an
`on_error(context, issues)` callback, grouped per relative path
(`address.city`, `tags[0]`), and the owning State turns them into validation
change events:

```python
schema = {
    "type": "object",
    "properties": {
        "age": {"type": "integer", "minimum": 0},
        "role": {"type": "string", "default": "guest"},
    },
}
state = State({"age": 30}, schema=schema)
state.role                      # "guest" (filled from the schema default)

state.on_validation_change(lambda evt: print(evt.valid))
state.age = -1                  # prints False
state.schema_errors("age")      # [SchemaIssue(keyword="minimum", ...)]
```

`JsonSchemaHandle` is backed by the `jsonschema` library; any object
implementing the `SchemaHandle` protocol can be used instead.
"""

import copy
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    runtime_checkable,
)

from jsonschema import Draft202012Validator, validators

from .values import is_alias_expression, unwrap

if TYPE_CHECKING:
    from .state import State


@dataclass
class SchemaIssue:
    """One validation problem."""

    keyword: str
    path: str
    message: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SchemaErrorEntry:
    """The current issues recorded for one path of a State."""

    path: str
    key: Optional[str]
    errors: List[SchemaIssue]


@dataclass
class ValidationChangeEvent:
    target: "State"
    valid: bool
    errors: List[SchemaErrorEntry]


ErrorCallback = Callable[[str, Optional[List[SchemaIssue]]], None]


@runtime_checkable
class SchemaHandle(Protocol):
    """Validates values against a (nested) value schema."""

    def normalize(
        self,
        value: Any,
        context: str,
        emit_errors: bool = True,
        in_place: bool = False,
    ) -> Any:
        """
        Validate `value` and return it with schema defaults applied.

        Invalid values are returned unchanged. When `emit_errors` is true the
        outcome (issues, or None when valid) is reported for `context`.
        """
        ...

    def issues(self, value: Any) -> List["SchemaIssue"]:
        """Validate without reporting anything."""
        ...

    def child(self, key: str) -> Optional["SchemaHandle"]: ...

    def items(self) -> Optional["SchemaHandle"]: ...


def _extend_with_default(validator_class):
    """Validator class that fills `default` values of missing properties."""
    validate_properties = validator_class.VALIDATORS["properties"]

    def set_defaults(validator, properties, instance, schema):
        if isinstance(instance, dict):
            for name, subschema in properties.items():
                if isinstance(subschema, dict) and "default" in subschema:
                    instance.setdefault(name, copy.deepcopy(subschema["default"]))
        yield from validate_properties(validator, properties, instance, schema)

    return validators.extend(validator_class, {"properties": set_defaults})


DefaultFillingValidator = _extend_with_default(Draft202012Validator)

_REQUIRED_MESSAGE = re.compile(r"^'(.+?)' is a required property")


def join_context(base: str, relative: str) -> str:
    if not relative:
        return base
    if relative.startswith("[") or not base:
        return f"{base}{relative}"
    return f"{base}.{relative}"


def _path_to_string(segments) -> str:
    path = ""
    for segment in segments:
        if isinstance(segment, int):
            path += f"[{segment}]"
        else:
            path = f"{path}.{segment}" if path else str(segment)
    return path


def _clone_for_schema(value: Any) -> Any:
    value = unwrap(value)
    if isinstance(value, Mapping):
        return {
            k: _clone_for_schema(v)
            for k, v in value.items()
            if not callable(v) and not is_alias_expression(v)
        }
    if isinstance(value, (list, tuple)):
        return [_clone_for_schema(v) for v in value]
    return value


class JsonSchemaHandle:
    """
    `SchemaHandle` backed by a `jsonschema` validator.

    Args:
        schema: JSON Schema document (Draft 2020-12 by default)
        on_error: Callback receiving `(context, issues)`; `issues` is None
            when the value validated
        validator_cls: jsonschema validator class to extend with default
            filling, for other drafts
    """

    def __init__(
        self,
        schema: Dict[str, Any],
        on_error: Optional[ErrorCallback] = None,
        validator_cls=None,
    ) -> None:
        self.schema = schema or {}
        self.on_error = on_error
        self._validator_cls = validator_cls
        cls = (
            DefaultFillingValidator
            if validator_cls is None
            else _extend_with_default(validator_cls)
        )
        self._validator = cls(self.schema)
        self._children: Dict[str, "JsonSchemaHandle"] = {}
        self._items: Optional["JsonSchemaHandle"] = None

        properties = self.schema.get("properties")
        if isinstance(properties, dict):
            for key, child_schema in properties.items():
                if isinstance(child_schema, dict):
                    self._children[key] = JsonSchemaHandle(child_schema, on_error, validator_cls)

        items_schema = self.schema.get("items")
        if isinstance(items_schema, list):
            items_schema = items_schema[0] if items_schema else None
        if isinstance(items_schema, dict):
            self._items = JsonSchemaHandle(items_schema, on_error, validator_cls)

    def with_error_callback(self, on_error: Optional[ErrorCallback]) -> "JsonSchemaHandle":
        """Copy of this handle reporting to another callback."""
        return JsonSchemaHandle(self.schema, on_error, self._validator_cls)

    def child(self, key: str) -> Optional["JsonSchemaHandle"]:
        return self._children.get(key)

    def items(self) -> Optional["JsonSchemaHandle"]:
        return self._items

    def issues(self, value: Any) -> List[SchemaIssue]:
        """Validate without reporting; returns the issues found."""
        return self._collect(_clone_for_schema(value))

    def normalize(
        self,
        value: Any,
        context: str,
        emit_errors: bool = True,
        in_place: bool = False,
    ) -> Any:
        if in_place or callable(value) or is_alias_expression(value):
            payload = value
        else:
            payload = _clone_for_schema(value)
        issues = self._collect(payload)
        if issues:
            if emit_errors:
                self._dispatch(context, issues)
            return value
        if emit_errors:
            self._dispatch(context, None)
        return payload

    def _collect(self, payload: Any) -> List[SchemaIssue]:
        issues: List[SchemaIssue] = []
        for error in self._validator.iter_errors(payload):
            issues.extend(self._to_issues(error))
        return issues

    def _to_issues(self, error) -> List[SchemaIssue]:
        keyword = str(error.validator)
        base = _path_to_string(error.absolute_path)
        params: Dict[str, Any] = {}
        if keyword == "required":
            match = _REQUIRED_MESSAGE.match(error.message)
            if match:
                params["missing_property"] = match.group(1)
                base = join_context(base, match.group(1))
            return [SchemaIssue(keyword, base, error.message, params)]
        if keyword == "additionalProperties" and isinstance(error.instance, dict):
            declared = error.schema.get("properties", {}) or {}
            extras = [k for k in error.instance if k not in declared]
            if extras:
                return [
                    SchemaIssue(
                        keyword,
                        join_context(base, str(extra)),
                        error.message,
                        {"additional_property": extra},
                    )
                    for extra in extras
                ]
        if error.validator_value is not None and not isinstance(error.validator_value, (dict, list)):
            params[keyword] = error.validator_value
        return [SchemaIssue(keyword, base, error.message, params)]

    def _dispatch(self, context: str, issues: Optional[List[SchemaIssue]]) -> None:
        if self.on_error is None:
            return
        if not issues:
            self.on_error(context, None)
            return
        grouped: Dict[str, List[SchemaIssue]] = {}
        for issue in issues:
            path = join_context(context, issue.path)
            grouped.setdefault(path, []).append(replace(issue, path=path))
        for path, bucket in grouped.items():
            self.on_error(path, bucket)
