"""
Filter expression AST evaluated by the server against candidate records.

Nodes are frozen dataclasses, so two expressions built from the same
qualifier compare equal. ``Expression`` is the built form attached to a
query policy; it packs the tree with msgpack for transport.

Example:
    >>> exp = Cmp(CmpOp.GT, int_bin("age"), Val(30))
    >>> Expression.build(exp).to_bytes()
    b'...'
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Any, Callable, ClassVar, Dict, List, Sequence, Tuple, Type

import msgpack

from ..core.exceptions import InvalidArgumentError


class ExpType(str, Enum):
    """Value type a bin read is expected to produce."""

    NIL = "nil"
    BOOL = "bool"
    INT = "int"
    STRING = "string"
    LIST = "list"
    MAP = "map"
    FLOAT = "float"
    GEO = "geo"


class CmpOp(str, Enum):
    """Comparison operators."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GE = "ge"
    LT = "lt"
    LE = "le"


class RegexFlag(IntFlag):
    """POSIX regex flags accepted by the server's regex matcher."""

    NONE = 0
    EXTENDED = 1
    ICASE = 2
    NOSUB = 4
    NEWLINE = 8


class ReturnType(str, Enum):
    """What a collection read returns."""

    COUNT = "count"
    VALUE = "value"


_REGISTRY: Dict[str, Type["Exp"]] = {}


def _register(cls: Type["Exp"]) -> Type["Exp"]:
    _REGISTRY[cls.tag] = cls
    return cls


class Exp(ABC):
    """Abstract base class for all expression nodes."""

    tag: ClassVar[str]

    @abstractmethod
    def _args(self) -> List[Any]:
        pass

    @classmethod
    @abstractmethod
    def _from_args(cls, args: Sequence[Any]) -> "Exp":
        pass

    def to_list(self) -> List[Any]:
        """Nested list form: ``[tag, *args]``."""
        return [self.tag, *self._args()]


def exp_from_list(data: Sequence[Any]) -> Exp:
    """Rebuild an expression tree from its nested list form."""
    if not data or data[0] not in _REGISTRY:
        raise InvalidArgumentError(f"Not an expression: {data!r}")
    return _REGISTRY[data[0]]._from_args(data[1:])


# =============================================================================
# OPERANDS
# =============================================================================


@_register
@dataclass(frozen=True)
class Bin(Exp):
    """Read of a bin, expected to hold ``type``."""

    tag: ClassVar[str] = "bin"
    name: str
    type: ExpType

    def _args(self):
        return [self.name, self.type.value]

    @classmethod
    def _from_args(cls, args):
        return cls(args[0], ExpType(args[1]))


@_register
@dataclass(frozen=True)
class KeyExp(Exp):
    """Read of the record's stored user key."""

    tag: ClassVar[str] = "key"
    type: ExpType

    def _args(self):
        return [self.type.value]

    @classmethod
    def _from_args(cls, args):
        return cls(ExpType(args[0]))


@_register
@dataclass(frozen=True)
class Val(Exp):
    """Integer or string literal."""

    tag: ClassVar[str] = "val"
    value: Any

    def _args(self):
        return [self.value]

    @classmethod
    def _from_args(cls, args):
        return cls(args[0])


@_register
@dataclass(frozen=True)
class GeoVal(Exp):
    """GeoJSON literal."""

    tag: ClassVar[str] = "geo"
    region: str

    def _args(self):
        return [self.region]

    @classmethod
    def _from_args(cls, args):
        return cls(args[0])


# =============================================================================
# PREDICATES
# =============================================================================


@_register
@dataclass(frozen=True)
class Cmp(Exp):
    tag: ClassVar[str] = "cmp"
    op: CmpOp
    left: Exp
    right: Exp

    def _args(self):
        return [self.op.value, self.left.to_list(), self.right.to_list()]

    @classmethod
    def _from_args(cls, args):
        return cls(CmpOp(args[0]), exp_from_list(args[1]), exp_from_list(args[2]))


@_register
@dataclass(frozen=True)
class RegexCompare(Exp):
    """Match a string bin against a BRE pattern."""

    tag: ClassVar[str] = "regex"
    pattern: str
    flags: RegexFlag
    bin: Exp

    def _args(self):
        return [self.pattern, int(self.flags), self.bin.to_list()]

    @classmethod
    def _from_args(cls, args):
        return cls(args[0], RegexFlag(args[1]), exp_from_list(args[2]))


@_register
@dataclass(frozen=True)
class GeoCompare(Exp):
    """True when one geo operand lies within or contains the other."""

    tag: ClassVar[str] = "geo_compare"
    left: Exp
    right: Exp

    def _args(self):
        return [self.left.to_list(), self.right.to_list()]

    @classmethod
    def _from_args(cls, args):
        return cls(exp_from_list(args[0]), exp_from_list(args[1]))


@dataclass(frozen=True)
class _Logical(Exp):
    exps: Tuple[Exp, ...]

    def __post_init__(self):
        exps = tuple(self.exps)
        if not exps:
            raise InvalidArgumentError(f"{type(self).__name__} requires at least one expression")
        object.__setattr__(self, "exps", exps)

    def _args(self):
        return [exp.to_list() for exp in self.exps]

    @classmethod
    def _from_args(cls, args):
        return cls(tuple(exp_from_list(arg) for arg in args))


@_register
@dataclass(frozen=True)
class And(_Logical):
    tag: ClassVar[str] = "and"


@_register
@dataclass(frozen=True)
class Or(_Logical):
    tag: ClassVar[str] = "or"


# =============================================================================
# COLLECTION READS
# =============================================================================


@dataclass(frozen=True)
class _CollectionByValue(Exp):
    return_type: ReturnType
    value: Exp
    bin: Exp

    def _args(self):
        return [self.return_type.value, self.value.to_list(), self.bin.to_list()]

    @classmethod
    def _from_args(cls, args):
        return cls(ReturnType(args[0]), exp_from_list(args[1]), exp_from_list(args[2]))


@dataclass(frozen=True)
class _CollectionByRange(Exp):
    """Select items in ``[begin, end)``; the end bound is exclusive."""

    return_type: ReturnType
    begin: Exp
    end: Exp
    bin: Exp

    def _args(self):
        return [
            self.return_type.value,
            self.begin.to_list(),
            self.end.to_list(),
            self.bin.to_list(),
        ]

    @classmethod
    def _from_args(cls, args):
        return cls(
            ReturnType(args[0]),
            exp_from_list(args[1]),
            exp_from_list(args[2]),
            exp_from_list(args[3]),
        )


@_register
@dataclass(frozen=True)
class ListGetByValue(_CollectionByValue):
    tag: ClassVar[str] = "list_by_value"


@_register
@dataclass(frozen=True)
class ListGetByValueRange(_CollectionByRange):
    tag: ClassVar[str] = "list_by_value_range"


@_register
@dataclass(frozen=True)
class MapGetByKey(_CollectionByValue):
    tag: ClassVar[str] = "map_by_key"


@_register
@dataclass(frozen=True)
class MapGetByValue(_CollectionByValue):
    tag: ClassVar[str] = "map_by_value"


@_register
@dataclass(frozen=True)
class MapGetByKeyRange(_CollectionByRange):
    tag: ClassVar[str] = "map_by_key_range"


@_register
@dataclass(frozen=True)
class MapGetByValueRange(_CollectionByRange):
    tag: ClassVar[str] = "map_by_value_range"


# =============================================================================
# HELPERS
# =============================================================================


def _bin_reader(exp_type: ExpType) -> Callable[[str], Bin]:
    def reader(name: str) -> Bin:
        return Bin(name, exp_type)
    return reader


int_bin = _bin_reader(ExpType.INT)
string_bin = _bin_reader(ExpType.STRING)
list_bin = _bin_reader(ExpType.LIST)
map_bin = _bin_reader(ExpType.MAP)
geo_bin = _bin_reader(ExpType.GEO)


@dataclass(frozen=True)
class Expression:
    """
    A built filter expression, ready to attach to a query policy.

    Example:
        >>> built = Expression.build(Cmp(CmpOp.EQ, int_bin("a"), Val(1)))
        >>> Expression.from_bytes(built.to_bytes()) == built
        True
    """

    exp: Exp

    @classmethod
    def build(cls, exp: Exp) -> "Expression":
        if not isinstance(exp, Exp):
            raise InvalidArgumentError(f"Not an expression: {type(exp).__name__}")
        return cls(exp)

    def to_bytes(self) -> bytes:
        """Pack the expression tree with msgpack."""
        return msgpack.packb(self.exp.to_list(), use_bin_type=True)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Expression":
        return cls(exp_from_list(msgpack.unpackb(data, raw=False)))
