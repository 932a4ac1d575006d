"""
statecore Config - Value Transformers and Alias Expression Resolvers
====================================================================

Alias fields are written as brace-delimited expressions:

- `"{path}"`: plain redirect to another key or path
- `"{!path}"`: boolean negation (writable)
- `"{path |> name(arg1, arg2)}"`: value transformed by the mapper factory
  registered under `name`, created with the bare-string arguments

A `StateConfig` registry holds the mapper factories and the ordered list of
alias resolvers; the first resolver whose `match()` accepts an expression
builds the binding. Named mappers are looked up lazily, at read/write time,
so factories may be registered after a State referencing them was created.

Each State uses the registry passed as `config=` (inherited from its parent);
`default_config` is the process-wide registry used otherwise.

Registering a custom mapper:

```python
class TimesFactory:
    def name(self):
        return "times"

    def create(self, args):
        k = float(args[0]) if args else 1.0
        return LambdaMapper(lambda v: v * k, lambda v: v / k)

register_global_mapper(TimesFactory())
state = State({"num": 10, "scaled": "{num |> times(5)}"})
```
"""

import re
from dataclasses import dataclass
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

from .errors import MapperNotFoundError, ReadOnlyError

if TYPE_CHECKING:
    from .attributes.base import Attribute


@runtime_checkable
class Mapper(Protocol):
    """Transforms values read from a target; `write` is optional."""

    def read(self, value: Any) -> Any: ...


@runtime_checkable
class MapperFactory(Protocol):
    """Creates mappers referenced by name with string arguments."""

    def name(self) -> str: ...

    def create(self, args: List[str]) -> Mapper: ...


@dataclass
class AliasBinding:
    path: str
    mapper: Optional[Mapper] = None


@dataclass
class AliasContext:
    resolve_path: Callable[[str], "Attribute"]
    get_mapper: Callable[[str, List[str]], Optional[Mapper]]


@runtime_checkable
class AliasResolver(Protocol):
    """Builds an alias binding from an expression it matches."""

    def match(self, expr: str) -> bool: ...

    def build(self, context: AliasContext, expr: str) -> AliasBinding: ...


# ---------- Default mappers ----------


class IdentityMapper:
    def read(self, value: Any) -> Any:
        return value

    def write(self, value: Any) -> Any:
        return value


class BoolMapper:
    def read(self, value: Any) -> bool:
        return bool(value)

    def write(self, value: Any) -> bool:
        return bool(value)


class NotMapper:
    def read(self, value: Any) -> bool:
        return not value

    def write(self, value: Any) -> bool:
        return not value


class LambdaMapper:
    """Mapper built from plain functions."""

    def __init__(
        self,
        read: Callable[[Any], Any],
        write: Optional[Callable[[Any], Any]] = None,
    ) -> None:
        self._read = read
        self._write = write

    def read(self, value: Any) -> Any:
        return self._read(value)

    def can_write(self) -> bool:
        return self._write is not None

    def write(self, value: Any) -> Any:
        if self._write is None:
            raise ReadOnlyError("Mapper is read-only (no write)")
        return self._write(value)


class SimpleMapperFactory:
    """Factory returning a mapper built by `create(args)`."""

    def __init__(self, name: str, create: Callable[[List[str]], Mapper]) -> None:
        self._name = name
        self._create = create

    def name(self) -> str:
        return self._name

    def create(self, args: List[str]) -> Mapper:
        return self._create(args)


class DelegatingMapper:
    """Looks up the named mapper at every call."""

    def __init__(self, getter: Callable[[], Optional[Mapper]], name: str) -> None:
        self._getter = getter
        self.name = name

    def _real(self) -> Mapper:
        mapper = self._getter()
        if mapper is None:
            raise MapperNotFoundError(f"Mapper '{self.name}' not registered.")
        return mapper

    def read(self, value: Any) -> Any:
        return self._real().read(value)

    def can_write(self) -> bool:
        from .attributes.alias import mapper_can_write

        return mapper_can_write(self._real())

    def write(self, value: Any) -> Any:
        real = self._real()
        write = getattr(real, "write", None)
        if not callable(write):
            raise ReadOnlyError(f"Mapper '{self.name}' is read-only (no write)")
        return write(value)


# ---------- Alias resolvers (ordered) ----------


class NotAliasResolver:
    _pattern = re.compile(r"^!\s*(.+)$", re.DOTALL)

    def match(self, expr: str) -> bool:
        return self._pattern.match(expr.strip()) is not None

    def build(self, context: AliasContext, expr: str) -> AliasBinding:
        m = self._pattern.match(expr.strip())
        return AliasBinding(m.group(1).strip(), context.get_mapper("not", []))


class PipeAliasResolver:
    _pattern = re.compile(r"^(.+?)\|>\s*([A-Za-z_]\w*)(?:\s*\((.*?)\))?$", re.DOTALL)

    def match(self, expr: str) -> bool:
        return self._pattern.match(expr.strip()) is not None

    def build(self, context: AliasContext, expr: str) -> AliasBinding:
        m = self._pattern.match(expr.strip())
        path = m.group(1).strip()
        name = m.group(2).strip()
        args = [a.strip() for a in (m.group(3) or "").split(",") if a.strip()]
        mapper = DelegatingMapper(lambda: context.get_mapper(name, args), name)
        return AliasBinding(path, mapper)


class PathAliasResolver:
    def match(self, expr: str) -> bool:
        return True

    def build(self, context: AliasContext, expr: str) -> AliasBinding:
        return AliasBinding(expr.strip())


class StateConfig:
    """Registry of mapper factories and alias resolvers."""

    def __init__(self, defaults: bool = True) -> None:
        self._mapper_factories: Dict[str, MapperFactory] = {}
        self._alias_resolvers: List[AliasResolver] = []
        if defaults:
            self.register_defaults()

    def register_defaults(self) -> None:
        self.register_mapper_factory(SimpleMapperFactory("id", lambda args: IdentityMapper()))
        self.register_mapper_factory(SimpleMapperFactory("bool", lambda args: BoolMapper()))
        self.register_mapper_factory(SimpleMapperFactory("not", lambda args: NotMapper()))
        self.register_alias_resolver(NotAliasResolver())
        self.register_alias_resolver(PipeAliasResolver())
        self.register_alias_resolver(PathAliasResolver())

    def register_mapper_factory(self, factory: MapperFactory) -> None:
        self._mapper_factories[factory.name()] = factory

    def register_alias_resolver(self, resolver: AliasResolver) -> None:
        """
        Append a resolver.

        Resolvers are consulted in registration order and the catch-all path
        resolver is registered by default, so custom resolvers registered
        afterwards need `prepend=True` semantics; use `insert_alias_resolver`.
        """
        self._alias_resolvers.append(resolver)

    def insert_alias_resolver(self, resolver: AliasResolver, index: int = 0) -> None:
        self._alias_resolvers.insert(index, resolver)

    def get_mapper(self, name: str, args: Optional[List[str]] = None) -> Optional[Mapper]:
        factory = self._mapper_factories.get(name)
        if factory is None:
            return None
        return factory.create(list(args or []))

    def has_mapper(self, name: str) -> bool:
        return name in self._mapper_factories

    def get_alias_resolvers(self) -> List[AliasResolver]:
        return list(self._alias_resolvers)

    def reset(self) -> None:
        """Drop custom registrations and restore the defaults."""
        self._mapper_factories.clear()
        self._alias_resolvers = []
        self.register_defaults()


default_config = StateConfig()


def register_global_mapper(factory: MapperFactory) -> None:
    default_config.register_mapper_factory(factory)


def register_global_alias_resolver(resolver: AliasResolver, index: int = 0) -> None:
    default_config.insert_alias_resolver(resolver, index)


def reset_global_state_config() -> None:
    default_config.reset()
