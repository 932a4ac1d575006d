"""
statecore - Reactive State Containers

A reactive state engine: declared-key containers whose fields are observable
attributes, with auto-tracked computed values, aliases with value mappers,
reactive lists and maps, self-rewiring path subscriptions, parent/child
inheritance and JSON Schema validation.
"""

# Core container
from .state import State, TrackResult

# Runtime: dependency tracking, batching, scheduling, ownership
from .runtime import (
    Dependencies,
    ManualScheduler,
    ReactiveRuntime,
    Scheduler,
    StateArena,
    StateHandle,
    TimerScheduler,
)

# Attributes and collection views
from .attributes import (
    AliasAttribute,
    Attribute,
    DerivedAttribute,
    IndexAttribute,
    ListAttribute,
    MapAttribute,
    MapKeyAttribute,
    MutableAttribute,
    NestedAttribute,
    PathAttribute,
    ReactiveList,
    ReactiveMap,
)

# Alias/mapper registry
from .config import (
    AliasBinding,
    AliasContext,
    AliasResolver,
    LambdaMapper,
    Mapper,
    MapperFactory,
    SimpleMapperFactory,
    StateConfig,
    default_config,
    register_global_alias_resolver,
    register_global_mapper,
    reset_global_state_config,
)

# Paths
from .path import FinalKind, PathResolver, PreflightResult, is_path, tokenize

# Validation
from .schema import (
    JsonSchemaHandle,
    SchemaErrorEntry,
    SchemaHandle,
    SchemaIssue,
    ValidationChangeEvent,
)

# Values
from .values import Map, unwrap, wrap

# Exceptions
from .errors import (
    AliasResolutionError,
    CircularDependencyError,
    MapperNotFoundError,
    PathResolutionError,
    PathSyntaxError,
    ReadOnlyError,
    SchemaValidationError,
    StaleHandleError,
    StateError,
    StateTypeError,
    UnknownPropertyError,
)

__all__ = [
    # Container
    "State",
    "TrackResult",
    # Runtime
    "Dependencies",
    "ManualScheduler",
    "ReactiveRuntime",
    "Scheduler",
    "StateArena",
    "StateHandle",
    "TimerScheduler",
    # Attributes
    "AliasAttribute",
    "Attribute",
    "DerivedAttribute",
    "IndexAttribute",
    "ListAttribute",
    "MapAttribute",
    "MapKeyAttribute",
    "MutableAttribute",
    "NestedAttribute",
    "PathAttribute",
    "ReactiveList",
    "ReactiveMap",
    # Registry
    "AliasBinding",
    "AliasContext",
    "AliasResolver",
    "LambdaMapper",
    "Mapper",
    "MapperFactory",
    "SimpleMapperFactory",
    "StateConfig",
    "default_config",
    "register_global_alias_resolver",
    "register_global_mapper",
    "reset_global_state_config",
    # Paths
    "FinalKind",
    "PathResolver",
    "PreflightResult",
    "is_path",
    "tokenize",
    # Validation
    "JsonSchemaHandle",
    "SchemaErrorEntry",
    "SchemaHandle",
    "SchemaIssue",
    "ValidationChangeEvent",
    # Values
    "Map",
    "unwrap",
    "wrap",
    # Exceptions
    "AliasResolutionError",
    "CircularDependencyError",
    "MapperNotFoundError",
    "PathResolutionError",
    "PathSyntaxError",
    "ReadOnlyError",
    "SchemaValidationError",
    "StaleHandleError",
    "StateError",
    "StateTypeError",
    "UnknownPropertyError",
]
