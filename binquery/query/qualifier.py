"""
Qualifiers: the predicate tree compiled into index filters and expressions.

A qualifier is either a leaf comparison on one bin (``Qualifier``), a
logical combination of qualifiers (``CompositeQualifier``), or a primary-key
equality (``KeyQualifier``). All of them are immutable.

Supports:
- Comparison operators (EQ, NOTEQ, GT, GTEQ, LT, LTEQ, BETWEEN)
- String operators (START_WITH, ENDS_WITH, CONTAINING), optionally
  case-insensitive
- Membership (IN) and collection operators (LIST_CONTAINS, MAP_KEYS_BETWEEN...)
- Geo containment (GEO_WITHIN)
- Logical operators (AND, OR)

Example:
    >>> # Simple qualifier
    >>> q = Qualifier("age", FilterOperation.GT, 30)
    >>>
    >>> # Using builder
    >>> q = (
    ...     QualifierBuilder()
    ...     .field("age").between(18, 65)
    ...     .field("name").starts_with("jo", ignore_case=True)
    ...     .build()
    ... )
    >>>
    >>> # Complex qualifier with OR
    >>> q = CompositeQualifier(FilterOperation.OR, [
    ...     Qualifier("city", FilterOperation.EQ, "Paris"),
    ...     Qualifier("tags", FilterOperation.LIST_CONTAINS, "travel"),
    ... ])
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.exceptions import InvalidArgumentError
from ..core.values import ParticleType, Value
from ..core.records import Key
from ..utils.validation import validate_bin_name


class FilterOperation(str, Enum):
    """Qualifier operations."""

    # Comparison
    EQ = "EQ"
    NOTEQ = "NOTEQ"
    GT = "GT"
    GTEQ = "GTEQ"
    LT = "LT"
    LTEQ = "LTEQ"
    BETWEEN = "BETWEEN"

    # String matching
    START_WITH = "START_WITH"
    ENDS_WITH = "ENDS_WITH"
    CONTAINING = "CONTAINING"

    # Membership
    IN = "IN"

    # Collections
    LIST_CONTAINS = "LIST_CONTAINS"
    MAP_KEYS_CONTAINS = "MAP_KEYS_CONTAINS"
    MAP_VALUES_CONTAINS = "MAP_VALUES_CONTAINS"
    LIST_BETWEEN = "LIST_BETWEEN"
    MAP_KEYS_BETWEEN = "MAP_KEYS_BETWEEN"
    MAP_VALUES_BETWEEN = "MAP_VALUES_BETWEEN"

    # Geo
    GEO_WITHIN = "GEO_WITHIN"

    # Logical
    AND = "AND"
    OR = "OR"


BETWEEN_OPERATIONS = frozenset({
    FilterOperation.BETWEEN,
    FilterOperation.LIST_BETWEEN,
    FilterOperation.MAP_KEYS_BETWEEN,
    FilterOperation.MAP_VALUES_BETWEEN,
})

LOGICAL_OPERATIONS = frozenset({FilterOperation.AND, FilterOperation.OR})

CASE_INSENSITIVE_OPERATIONS = frozenset({
    FilterOperation.EQ,
    FilterOperation.START_WITH,
    FilterOperation.ENDS_WITH,
    FilterOperation.CONTAINING,
})


class Meta(str, Enum):
    """Reserved names for record metadata."""

    KEY = "__key"
    TTL = "__ttl"
    EXPIRATION = "__Expiration"
    GENERATION = "__generation"

    def __str__(self) -> str:
        return self.value


class BaseQualifier(ABC):
    """Abstract base class for all qualifiers."""

    operation: FilterOperation
    filter_only: bool

    def is_filter_only(self) -> bool:
        """True if the index filter fully handles this qualifier."""
        return self.filter_only

    def with_filter_only(self, filter_only: bool = True) -> "BaseQualifier":
        """Return a copy with the filter-only flag set to ``filter_only``."""
        return replace(self, filter_only=filter_only)

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert qualifier to dictionary representation."""
        pass

    def __and__(self, other: "BaseQualifier") -> "CompositeQualifier":
        """Combine qualifiers with AND."""
        return CompositeQualifier(FilterOperation.AND, [self, other])

    def __or__(self, other: "BaseQualifier") -> "CompositeQualifier":
        """Combine qualifiers with OR."""
        return CompositeQualifier(FilterOperation.OR, [self, other])


def _to_operation(operation: Any) -> FilterOperation:
    try:
        return FilterOperation(operation)
    except ValueError:
        raise InvalidArgumentError(f"Unknown filter operation: {operation!r}") from None


@dataclass(frozen=True, repr=False)
class Qualifier(BaseQualifier):
    """
    Leaf qualifier on a single bin.

    ``value1`` and ``value2`` accept plain Python objects and are wrapped in
    ``Value``. A string operand of GEO_WITHIN is taken as a GeoJSON region.

    Raises:
        InvalidArgumentError: If the qualifier breaks one of its invariants:
            logical operation on a leaf, missing or superfluous ``value2``,
            or ``ignore_case`` on a non-string or non-text operation.
    """

    field: str
    operation: FilterOperation
    value1: Value
    value2: Optional[Value] = None
    ignore_case: bool = False
    filter_only: bool = False

    def __post_init__(self):
        validate_bin_name(self.field)

        operation = _to_operation(self.operation)
        object.__setattr__(self, "operation", operation)

        if operation in LOGICAL_OPERATIONS:
            raise InvalidArgumentError(
                f"{operation.name} requires CompositeQualifier, not a field qualifier"
            )

        value1 = self.value1
        if operation == FilterOperation.GEO_WITHIN and isinstance(value1, str):
            value1 = Value.geo(value1)
        object.__setattr__(self, "value1", Value.get(value1))

        if operation in BETWEEN_OPERATIONS:
            if self.value2 is None:
                raise InvalidArgumentError(
                    f"{operation.name} requires value2 for field '{self.field}'"
                )
            object.__setattr__(self, "value2", Value.get(self.value2))
        elif self.value2 is not None:
            raise InvalidArgumentError(
                f"{operation.name} does not take value2 (field '{self.field}')"
            )

        self._check_integer_range()

        if self.ignore_case:
            self._check_ignore_case()

    def _check_integer_range(self) -> None:
        # Index bounds are signed 64-bit; reject anything wider up front.
        for value in (self.value1, self.value2):
            if value is not None and value.type == ParticleType.INTEGER:
                value.to_long()
        if self.operation == FilterOperation.IN and self.value1.type == ParticleType.LIST:
            for element in self.value1.object:
                Value.get(element)

    def _check_ignore_case(self) -> None:
        if self.operation == FilterOperation.IN:
            # Each element becomes an EQ qualifier and is checked there.
            return
        if self.operation not in CASE_INSENSITIVE_OPERATIONS:
            raise InvalidArgumentError(
                f"ignore_case is not supported for {self.operation.name}"
            )
        if self.value1.type != ParticleType.STRING:
            raise InvalidArgumentError(
                f"ignore_case requires a string value, got {self.value1.type.name}"
            )

    @property
    def qualifiers(self) -> Tuple["BaseQualifier", ...]:
        return ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "field",
            "field": self.field,
            "operation": self.operation.value,
            "value1": self.value1.to_dict(),
            "value2": self.value2.to_dict() if self.value2 is not None else None,
            "ignore_case": self.ignore_case,
            "filter_only": self.filter_only,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Qualifier":
        value2 = data.get("value2")
        return cls(
            field=data["field"],
            operation=FilterOperation(data["operation"]),
            value1=Value.from_dict(data["value1"]),
            value2=Value.from_dict(value2) if value2 is not None else None,
            ignore_case=data.get("ignore_case", False),
            filter_only=data.get("filter_only", False),
        )

    def __repr__(self) -> str:
        return f"{self.field}:{self.operation.name}:{self.value1}:{self.value2}"


@dataclass(frozen=True, init=False, repr=False)
class KeyQualifier(Qualifier):
    """
    Primary-key equality.

    A lone KeyQualifier makes the query engine fetch the record directly
    instead of running a query.
    """

    def __init__(self, value: Any, filter_only: bool = False):
        super().__init__(
            field=Meta.KEY.value,
            operation=FilterOperation.EQ,
            value1=value,
            filter_only=filter_only,
        )

    def make_key(self, namespace: str, set_name: Optional[str]) -> Key:
        """Build the store key for this qualifier's value."""
        return Key(namespace, set_name, self.value1.to_python())

    def with_filter_only(self, filter_only: bool = True) -> "KeyQualifier":
        return KeyQualifier(self.value1, filter_only=filter_only)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "key",
            "value": self.value1.to_dict(),
            "filter_only": self.filter_only,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyQualifier":
        return cls(
            Value.from_dict(data["value"]),
            filter_only=data.get("filter_only", False),
        )


@dataclass(frozen=True, repr=False)
class CompositeQualifier(BaseQualifier):
    """Logical AND/OR over an ordered, non-empty sequence of qualifiers."""

    operation: FilterOperation
    qualifiers: Tuple[BaseQualifier, ...] = field(default_factory=tuple)
    filter_only: bool = False

    def __post_init__(self):
        operation = _to_operation(self.operation)
        if operation not in LOGICAL_OPERATIONS:
            raise InvalidArgumentError(
                f"CompositeQualifier requires AND or OR, got {operation.name}"
            )
        object.__setattr__(self, "operation", operation)

        qualifiers = tuple(self.qualifiers)
        if not qualifiers:
            raise InvalidArgumentError(
                f"{operation.name} qualifier requires at least one child"
            )
        for child in qualifiers:
            if not isinstance(child, BaseQualifier):
                raise InvalidArgumentError(
                    f"Not a qualifier: {type(child).__name__}"
                )
        object.__setattr__(self, "qualifiers", qualifiers)

    @property
    def field(self) -> None:
        return None

    @property
    def value1(self) -> None:
        return None

    @property
    def value2(self) -> None:
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "composite",
            "operation": self.operation.value,
            "qualifiers": [q.to_dict() for q in self.qualifiers],
            "filter_only": self.filter_only,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompositeQualifier":
        return cls(
            operation=FilterOperation(data["operation"]),
            qualifiers=[qualifier_from_dict(q) for q in data["qualifiers"]],
            filter_only=data.get("filter_only", False),
        )

    def __repr__(self) -> str:
        inner = ", ".join(repr(q) for q in self.qualifiers)
        return f"{self.operation.name}({inner})"


def qualifier_from_dict(data: Dict[str, Any]) -> BaseQualifier:
    """Create a qualifier from dictionary representation."""
    qualifier_type = data.get("type", "field")

    if qualifier_type == "field":
        return Qualifier.from_dict(data)
    elif qualifier_type == "composite":
        return CompositeQualifier.from_dict(data)
    elif qualifier_type == "key":
        return KeyQualifier.from_dict(data)
    else:
        raise InvalidArgumentError(f"Unknown qualifier type: {qualifier_type}")


class FieldQualifierBuilder:
    """Builder for field qualifiers with fluent API."""

    def __init__(self, parent: "QualifierBuilder", field: str):
        self._parent = parent
        self._field = field

    def _add(self, operation: FilterOperation, value1: Any,
             value2: Any = None, ignore_case: bool = False) -> "FieldQualifierBuilder":
        self._parent._add_qualifier(
            Qualifier(self._field, operation, value1, value2, ignore_case)
        )
        return self

    def eq(self, value: Any, ignore_case: bool = False) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.EQ, value, ignore_case=ignore_case)

    def ne(self, value: Any) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.NOTEQ, value)

    def gt(self, value: int) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.GT, value)

    def gte(self, value: int) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.GTEQ, value)

    def lt(self, value: int) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.LT, value)

    def lte(self, value: int) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.LTEQ, value)

    def between(self, low: int, high: int) -> "FieldQualifierBuilder":
        """Field between low and high (inclusive)."""
        return self._add(FilterOperation.BETWEEN, low, high)

    def starts_with(self, text: str, ignore_case: bool = False) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.START_WITH, text, ignore_case=ignore_case)

    def ends_with(self, text: str, ignore_case: bool = False) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.ENDS_WITH, text, ignore_case=ignore_case)

    def containing(self, text: str, ignore_case: bool = False) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.CONTAINING, text, ignore_case=ignore_case)

    def in_(self, values: Sequence[Any], ignore_case: bool = False) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.IN, list(values), ignore_case=ignore_case)

    def list_contains(self, value: Any) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.LIST_CONTAINS, value)

    def map_keys_contain(self, value: Any) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.MAP_KEYS_CONTAINS, value)

    def map_values_contain(self, value: Any) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.MAP_VALUES_CONTAINS, value)

    def list_between(self, low: int, high: int) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.LIST_BETWEEN, low, high)

    def map_keys_between(self, low: int, high: int) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.MAP_KEYS_BETWEEN, low, high)

    def map_values_between(self, low: int, high: int) -> "FieldQualifierBuilder":
        return self._add(FilterOperation.MAP_VALUES_BETWEEN, low, high)

    def geo_within(self, region: str) -> "FieldQualifierBuilder":
        """Field (a GeoJSON bin) lies within ``region``."""
        return self._add(FilterOperation.GEO_WITHIN, Value.geo(region))

    # Chaining back to the parent builder

    def field(self, name: str) -> "FieldQualifierBuilder":
        return self._parent.field(name)

    def or_(self) -> "QualifierBuilder":
        return self._parent.or_()

    def and_(self) -> "QualifierBuilder":
        return self._parent.and_()

    def build(self) -> Optional[BaseQualifier]:
        return self._parent.build()


class QualifierBuilder:
    """
    Fluent builder for creating qualifiers.

    Example:
        >>> q = (
        ...     QualifierBuilder()
        ...     .field("age").gte(18).lt(65)
        ...     .field("tags").list_contains("vip")
        ...     .build()
        ... )
    """

    def __init__(self):
        self._qualifiers: List[BaseQualifier] = []
        self._operation = FilterOperation.AND

    def field(self, name: str) -> FieldQualifierBuilder:
        """Start building qualifiers for a bin."""
        return FieldQualifierBuilder(self, name)

    def key(self, value: Any) -> "QualifierBuilder":
        """Add a primary-key equality."""
        self._qualifiers.append(KeyQualifier(value))
        return self

    def _add_qualifier(self, qualifier: BaseQualifier) -> None:
        self._qualifiers.append(qualifier)

    def or_(self) -> "QualifierBuilder":
        """Combine the collected qualifiers with OR."""
        self._operation = FilterOperation.OR
        return self

    def and_(self) -> "QualifierBuilder":
        """Combine the collected qualifiers with AND (default)."""
        self._operation = FilterOperation.AND
        return self

    def build(self) -> Optional[BaseQualifier]:
        """Build the final qualifier."""
        if not self._qualifiers:
            return None

        if len(self._qualifiers) == 1:
            return self._qualifiers[0]

        return CompositeQualifier(self._operation, self._qualifiers)
