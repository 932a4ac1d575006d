"""
statecore Errors - Exception Taxonomy
=====================================

Structural errors (unknown property, read-only write, malformed paths,
non-navigable segments, bad aliases) are raised synchronously at the call
site that detected them. Validation problems are *not* exceptions: they are
reported through the validation-change channel of a State, unless hard
validation was requested, in which case `SchemaValidationError` is raised.
"""

from typing import Any, List, Optional


class StateError(Exception):
    """Base class for every error raised by statecore."""

    pass


class UnknownPropertyError(StateError, AttributeError):
    """A key is declared neither by a State nor by any of its ancestors."""

    def __init__(self, key: str, message: Optional[str] = None):
        self.key = key
        super().__init__(message or f"Unknown property '{key}' (no schema in chain)")


class ReadOnlyError(StateError):
    """Raised when writing to an attribute that does not support writes."""

    pass


class StateTypeError(StateError, TypeError):
    """A value of the wrong shape was assigned to a structured attribute."""

    pass


class PathSyntaxError(StateError, ValueError):
    """A path expression could not be tokenized."""

    pass


class PathResolutionError(StateError):
    """A syntactically valid path does not lead to an attribute."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class AliasResolutionError(StateError):
    """An alias expression cannot be bound to a target attribute."""

    pass


class MapperNotFoundError(StateError, LookupError):
    """A value transformer referenced by name has not been registered."""

    pass


class CircularDependencyError(StateError):
    """A derived attribute read itself while being computed."""

    pass


class StaleHandleError(StateError, LookupError):
    """A handle refers to a State that has already been disposed."""

    pass


class SchemaValidationError(StateError):
    """Raised on writes rejected by a State created with hard validation."""

    def __init__(self, context: str, errors: Optional[List[Any]] = None):
        self.context = context
        self.errors = list(errors or [])
        super().__init__(self._build_message(context, self.errors))

    @staticmethod
    def _build_message(context: str, errors: List[Any]) -> str:
        if not errors:
            return f"{context} failed schema validation."
        first = errors[0]
        path = getattr(first, "path", "") or "/"
        detail = getattr(first, "message", None) or getattr(first, "keyword", "")
        return f"{context} failed schema validation at '{path}': {detail}"
