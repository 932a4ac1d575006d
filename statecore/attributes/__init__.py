"""
statecore Attributes - Reactive Storage Units
=============================================
"""

from .alias import AliasAttribute
from .base import AbstractAttribute, Attribute, TimedDelivery, Unsubscribe, same_value
from .derived import DerivedAttribute
from .index import IndexAttribute, MapKeyAttribute
from .list import ListAttribute, ReactiveList
from .map import MapAttribute, MapKeysAttribute, MapSizeAttribute, ReactiveMap
from .mutable import MutableAttribute
from .nested import NestedAttribute
from .path import PathAttribute

__all__ = [
    "AbstractAttribute",
    "AliasAttribute",
    "Attribute",
    "DerivedAttribute",
    "IndexAttribute",
    "ListAttribute",
    "MapAttribute",
    "MapKeyAttribute",
    "MapKeysAttribute",
    "MapSizeAttribute",
    "MutableAttribute",
    "NestedAttribute",
    "PathAttribute",
    "ReactiveList",
    "ReactiveMap",
    "TimedDelivery",
    "Unsubscribe",
    "same_value",
]
