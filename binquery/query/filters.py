"""
Secondary-index filters and their compilation from qualifiers.

An index filter narrows the physical set of records the server reads. Only
one filter applies per query and only some leaf qualifiers have a native
index representation; everything else is left to the filter expression.

Example:
    >>> compile_index_filter(Qualifier("age", FilterOperation.GT, 10))
    IndexFilter(name='age', kind=<FilterKind.RANGE: 'range'>, ...begin=11...)
    >>> compile_index_filter(Qualifier("name", FilterOperation.CONTAINING, "x")) is None
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..core.values import INT64_MAX, INT64_MIN, ParticleType, Value
from ..utils.logging import get_logger
from .qualifier import BaseQualifier, FilterOperation, KeyQualifier, Qualifier


logger = get_logger(__name__)


class IndexCollectionType(str, Enum):
    """Which part of a bin a secondary index covers."""

    DEFAULT = "default"       # the bin value itself
    LIST = "list"             # list elements
    MAPKEYS = "mapkeys"       # map keys
    MAPVALUES = "mapvalues"   # map values


class FilterKind(str, Enum):
    """Index filter shapes."""

    EQUAL = "equal"
    RANGE = "range"
    CONTAINS = "contains"
    GEO_CONTAINS = "geo_contains"


@dataclass(frozen=True)
class IndexFilter:
    """
    A native secondary-index filter.

    ``begin`` holds the equality/containment operand or the lower range
    bound, ``end`` the upper range bound (ranges are inclusive on both
    ends). Geo filters keep their GeoJSON region in ``begin``.
    """

    name: str
    kind: FilterKind
    begin: Any
    end: Any = None
    collection_type: IndexCollectionType = IndexCollectionType.DEFAULT

    @classmethod
    def equal(cls, name: str, value: Any) -> "IndexFilter":
        return cls(name, FilterKind.EQUAL, value, value)

    @classmethod
    def range(
        cls,
        name: str,
        begin: int,
        end: int,
        collection_type: IndexCollectionType = IndexCollectionType.DEFAULT,
    ) -> "IndexFilter":
        return cls(name, FilterKind.RANGE, begin, end, collection_type)

    @classmethod
    def contains(
        cls,
        name: str,
        collection_type: IndexCollectionType,
        value: Any,
    ) -> "IndexFilter":
        return cls(name, FilterKind.CONTAINS, value, value, collection_type)

    @classmethod
    def geo_contains(cls, name: str, region: str) -> "IndexFilter":
        return cls(name, FilterKind.GEO_CONTAINS, region)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "begin": self.begin,
            "end": self.end,
            "collection_type": self.collection_type.value,
        }

    def __str__(self) -> str:
        if self.kind == FilterKind.RANGE:
            return f"{self.name} in [{self.begin}, {self.end}] ({self.collection_type.value})"
        return f"{self.name} {self.kind.value} {self.begin!r} ({self.collection_type.value})"


_CONTAINS_TYPES = {
    FilterOperation.LIST_CONTAINS: IndexCollectionType.LIST,
    FilterOperation.MAP_KEYS_CONTAINS: IndexCollectionType.MAPKEYS,
    FilterOperation.MAP_VALUES_CONTAINS: IndexCollectionType.MAPVALUES,
}

_BETWEEN_TYPES = {
    FilterOperation.LIST_BETWEEN: IndexCollectionType.LIST,
    FilterOperation.MAP_KEYS_BETWEEN: IndexCollectionType.MAPKEYS,
    FilterOperation.MAP_VALUES_BETWEEN: IndexCollectionType.MAPVALUES,
}


def _is_integer(value: Optional[Value]) -> bool:
    return value is not None and value.type == ParticleType.INTEGER


def _upper_bound(qualifier: Qualifier) -> Optional[int]:
    if qualifier.value2 is None:
        return INT64_MAX
    if not _is_integer(qualifier.value2):
        return None
    return qualifier.value2.to_long()


def _equal(qualifier: Qualifier) -> Optional[IndexFilter]:
    value = qualifier.value1
    if value.type == ParticleType.INTEGER:
        return IndexFilter.equal(qualifier.field, value.to_long())
    if value.type == ParticleType.STRING:
        # There is no case-insensitive equality filter.
        if qualifier.ignore_case:
            return None
        return IndexFilter.equal(qualifier.field, value.to_string())
    return None


def _range(qualifier: Qualifier) -> Optional[IndexFilter]:
    if not _is_integer(qualifier.value1):
        return None
    op = qualifier.operation
    value = qualifier.value1.to_long()

    if op in (FilterOperation.GTEQ, FilterOperation.BETWEEN):
        begin, end = value, _upper_bound(qualifier)
    elif op == FilterOperation.GT:
        if value == INT64_MAX:
            return None
        begin, end = value + 1, _upper_bound(qualifier)
    elif op == FilterOperation.LT:
        if value == INT64_MIN:
            return None
        begin, end = INT64_MIN, value - 1
    else:
        begin, end = INT64_MIN, value

    if end is None:
        return None
    return IndexFilter.range(qualifier.field, begin, end)


def _collection_contains(
    qualifier: Qualifier,
    collection_type: IndexCollectionType,
) -> Optional[IndexFilter]:
    value = qualifier.value1
    if value.type == ParticleType.INTEGER:
        return IndexFilter.contains(qualifier.field, collection_type, value.to_long())
    if value.type == ParticleType.STRING:
        return IndexFilter.contains(qualifier.field, collection_type, value.to_string())
    return None


def _collection_range(
    qualifier: Qualifier,
    collection_type: IndexCollectionType,
) -> Optional[IndexFilter]:
    if not (_is_integer(qualifier.value1) and _is_integer(qualifier.value2)):
        return None
    return IndexFilter.range(
        qualifier.field,
        qualifier.value1.to_long(),
        qualifier.value2.to_long(),
        collection_type,
    )


def _geo_within(qualifier: Qualifier) -> Optional[IndexFilter]:
    if qualifier.value1.type not in (ParticleType.GEOJSON, ParticleType.STRING):
        return None
    return IndexFilter.geo_contains(qualifier.field, qualifier.value1.to_string())


def compile_index_filter(qualifier: BaseQualifier) -> Optional[IndexFilter]:
    """
    Map a leaf qualifier to a secondary-index filter.

    Args:
        qualifier: The qualifier to convert

    Returns:
        The index filter, or None when the qualifier has no native index
        representation (composites, key lookups, string matching, NOTEQ, IN,
        case-insensitive equality, unsupported value types).
    """
    if not isinstance(qualifier, Qualifier) or isinstance(qualifier, KeyQualifier):
        return None

    op = qualifier.operation

    if op == FilterOperation.EQ:
        index_filter = _equal(qualifier)
    elif op in (FilterOperation.GT, FilterOperation.GTEQ, FilterOperation.LT,
                FilterOperation.LTEQ, FilterOperation.BETWEEN):
        index_filter = _range(qualifier)
    elif op in _CONTAINS_TYPES:
        index_filter = _collection_contains(qualifier, _CONTAINS_TYPES[op])
    elif op in _BETWEEN_TYPES:
        index_filter = _collection_range(qualifier, _BETWEEN_TYPES[op])
    elif op == FilterOperation.GEO_WITHIN:
        index_filter = _geo_within(qualifier)
    else:
        index_filter = None

    if index_filter is None:
        logger.debug(f"No index filter for qualifier {qualifier!r}")
    return index_filter
