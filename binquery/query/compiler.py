"""
Compilation of qualifiers into filter expressions.

``compile_expression`` turns any qualifier tree into an expression AST that
enforces its exact semantics. ``compile_predicate_set`` combines the
top-level qualifiers of a query (implicitly AND-ed) into the built
expression attached to the query policy.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

from ..core.exceptions import InvalidArgumentError, UnsupportedOperationError
from ..core.values import ParticleType, Value
from .expressions import (
    And,
    Cmp,
    CmpOp,
    Exp,
    ExpType,
    Expression,
    GeoCompare,
    GeoVal,
    KeyExp,
    ListGetByValue,
    ListGetByValueRange,
    MapGetByKey,
    MapGetByKeyRange,
    MapGetByValue,
    MapGetByValueRange,
    Or,
    RegexCompare,
    RegexFlag,
    ReturnType,
    Val,
    geo_bin,
    int_bin,
    list_bin,
    map_bin,
    string_bin,
)
from .qualifier import (
    BaseQualifier,
    CompositeQualifier,
    FilterOperation,
    KeyQualifier,
    Qualifier,
)
from .regex import RegexPatternBuilder


_COMPARISONS = {
    FilterOperation.GT: CmpOp.GT,
    FilterOperation.GTEQ: CmpOp.GE,
    FilterOperation.LT: CmpOp.LT,
    FilterOperation.LTEQ: CmpOp.LE,
}

_CONTAINS_READS = {
    FilterOperation.LIST_CONTAINS: (ListGetByValue, list_bin),
    FilterOperation.MAP_KEYS_CONTAINS: (MapGetByKey, map_bin),
    FilterOperation.MAP_VALUES_CONTAINS: (MapGetByValue, map_bin),
}

_RANGE_READS = {
    FilterOperation.LIST_BETWEEN: (ListGetByValueRange, list_bin),
    FilterOperation.MAP_KEYS_BETWEEN: (MapGetByKeyRange, map_bin),
    FilterOperation.MAP_VALUES_BETWEEN: (MapGetByValueRange, map_bin),
}


def _require_integer(qualifier: Qualifier, value: Value) -> int:
    if value.type != ParticleType.INTEGER:
        raise UnsupportedOperationError(qualifier.operation, value.type)
    return value.to_long()


def _require_string(qualifier: Qualifier, value: Value) -> str:
    if value.type != ParticleType.STRING:
        raise UnsupportedOperationError(qualifier.operation, value.type)
    return value.to_string()


def _scalar(qualifier: Qualifier, value: Value) -> Val:
    """Integer or string literal; other value types are unsupported."""
    if value.type == ParticleType.INTEGER:
        return Val(value.to_long())
    if value.type == ParticleType.STRING:
        return Val(value.to_string())
    raise UnsupportedOperationError(qualifier.operation, value.type)


class ExpressionCompiler:
    """
    Compiles qualifier trees into filter expression ASTs.

    Stateless: one instance can be shared between threads.

    Example:
        >>> compiler = ExpressionCompiler()
        >>> compiler.compile(Qualifier("age", FilterOperation.GT, 30))
        Cmp(op=<CmpOp.GT: 'gt'>, left=Bin(name='age', ...), right=Val(value=30))
    """

    def __init__(self):
        self._handlers: Dict[FilterOperation, Callable[[Qualifier], Exp]] = {
            FilterOperation.IN: self._in,
            FilterOperation.EQ: self._eq,
            FilterOperation.NOTEQ: self._noteq,
            FilterOperation.GT: self._compare,
            FilterOperation.GTEQ: self._compare,
            FilterOperation.LT: self._compare,
            FilterOperation.LTEQ: self._compare,
            FilterOperation.BETWEEN: self._between,
            FilterOperation.GEO_WITHIN: self._geo_within,
            FilterOperation.START_WITH: self._regex,
            FilterOperation.ENDS_WITH: self._regex,
            FilterOperation.CONTAINING: self._regex,
            FilterOperation.LIST_CONTAINS: self._collection_contains,
            FilterOperation.MAP_KEYS_CONTAINS: self._collection_contains,
            FilterOperation.MAP_VALUES_CONTAINS: self._collection_contains,
            FilterOperation.LIST_BETWEEN: self._collection_between,
            FilterOperation.MAP_KEYS_BETWEEN: self._collection_between,
            FilterOperation.MAP_VALUES_BETWEEN: self._collection_between,
        }

    def compile(self, qualifier: BaseQualifier) -> Exp:
        """
        Compile a qualifier tree.

        Args:
            qualifier: Leaf, key or composite qualifier

        Returns:
            The expression AST

        Raises:
            InvalidArgumentError: IN without a list operand
            UnsupportedOperationError: Operation/value-type combination with
                no expression form
        """
        if isinstance(qualifier, CompositeQualifier):
            children = [self.compile(child) for child in qualifier.qualifiers]
            if qualifier.operation == FilterOperation.AND:
                return And(tuple(children))
            return Or(tuple(children))

        if isinstance(qualifier, KeyQualifier):
            return self._key(qualifier)

        if not isinstance(qualifier, Qualifier):
            raise InvalidArgumentError(f"Not a qualifier: {type(qualifier).__name__}")

        handler = self._handlers.get(qualifier.operation)
        if handler is None:
            raise UnsupportedOperationError(qualifier.operation)
        return handler(qualifier)

    # =========================================================================
    # SCALAR OPERATIONS
    # =========================================================================

    def _key(self, qualifier: KeyQualifier) -> Exp:
        value = qualifier.value1
        if value.type == ParticleType.INTEGER:
            return Cmp(CmpOp.EQ, KeyExp(ExpType.INT), Val(value.to_long()))
        if value.type == ParticleType.STRING:
            return Cmp(CmpOp.EQ, KeyExp(ExpType.STRING), Val(value.to_string()))
        raise UnsupportedOperationError(qualifier.operation, value.type)

    def _in(self, qualifier: Qualifier) -> Exp:
        # No native IN: OR of one equality per element.
        value = qualifier.value1
        if value.type != ParticleType.LIST:
            raise InvalidArgumentError(
                f"FilterOperation.IN expects List argument with type: "
                f"{ParticleType.LIST.name}, but got: {value.type.name}"
            )
        elements = value.to_list()
        if not elements:
            raise InvalidArgumentError(
                f"FilterOperation.IN on '{qualifier.field}' requires a non-empty list"
            )
        return Or(tuple(
            self.compile(Qualifier(
                qualifier.field,
                FilterOperation.EQ,
                Value.get(element),
                ignore_case=qualifier.ignore_case,
            ))
            for element in elements
        ))

    def _eq(self, qualifier: Qualifier) -> Exp:
        value = qualifier.value1
        if value.type == ParticleType.INTEGER:
            return Cmp(CmpOp.EQ, int_bin(qualifier.field), Val(value.to_long()))
        if value.type == ParticleType.STRING:
            if qualifier.ignore_case:
                pattern = RegexPatternBuilder.string_equals(value.to_string())
                return RegexCompare(pattern, RegexFlag.ICASE, string_bin(qualifier.field))
            return Cmp(CmpOp.EQ, string_bin(qualifier.field), Val(value.to_string()))
        raise UnsupportedOperationError(qualifier.operation, value.type)

    def _noteq(self, qualifier: Qualifier) -> Exp:
        value = qualifier.value1
        if value.type == ParticleType.INTEGER:
            return Cmp(CmpOp.NE, int_bin(qualifier.field), Val(value.to_long()))
        return Cmp(CmpOp.NE, string_bin(qualifier.field), Val(value.to_string()))

    def _compare(self, qualifier: Qualifier) -> Exp:
        value = _require_integer(qualifier, qualifier.value1)
        return Cmp(_COMPARISONS[qualifier.operation], int_bin(qualifier.field), Val(value))

    def _between(self, qualifier: Qualifier) -> Exp:
        low = _require_integer(qualifier, qualifier.value1)
        high = _require_integer(qualifier, qualifier.value2)
        return And((
            Cmp(CmpOp.GE, int_bin(qualifier.field), Val(low)),
            Cmp(CmpOp.LE, int_bin(qualifier.field), Val(high)),
        ))

    def _geo_within(self, qualifier: Qualifier) -> Exp:
        value = qualifier.value1
        if value.type not in (ParticleType.GEOJSON, ParticleType.STRING):
            raise UnsupportedOperationError(qualifier.operation, value.type)
        return GeoCompare(geo_bin(qualifier.field), GeoVal(value.to_string()))

    def _regex(self, qualifier: Qualifier) -> Exp:
        text = _require_string(qualifier, qualifier.value1)
        pattern = RegexPatternBuilder.pattern_for(qualifier.operation, text)
        flags = RegexFlag.ICASE if qualifier.ignore_case else RegexFlag.NONE
        return RegexCompare(pattern, flags, string_bin(qualifier.field))

    # =========================================================================
    # COLLECTION OPERATIONS
    # =========================================================================

    def _collection_contains(self, qualifier: Qualifier) -> Exp:
        read, reader = _CONTAINS_READS[qualifier.operation]
        count = read(ReturnType.COUNT, _scalar(qualifier, qualifier.value1), reader(qualifier.field))
        return Cmp(CmpOp.GT, count, Val(0))

    def _collection_between(self, qualifier: Qualifier) -> Exp:
        read, reader = _RANGE_READS[qualifier.operation]
        low = _require_integer(qualifier, qualifier.value1)
        high = _require_integer(qualifier, qualifier.value2)
        # The range read excludes its end; the qualifier includes it.
        count = read(ReturnType.COUNT, Val(low), Val(high + 1), reader(qualifier.field))
        return Cmp(CmpOp.GT, count, Val(0))


class PredicateSetCompiler:
    """
    Combines the top-level qualifiers of a query into one expression.

    Top-level qualifiers are AND-ed. Qualifiers flagged filter-only are left
    out because the index filter already handles them.
    """

    def __init__(self, expression_compiler: Optional[ExpressionCompiler] = None):
        self._compiler = expression_compiler or ExpressionCompiler()

    def relevant(self, qualifiers: Iterable[Optional[BaseQualifier]]) -> List[BaseQualifier]:
        """Qualifiers that belong in the expression."""
        return [q for q in qualifiers if q is not None and not q.is_filter_only()]

    def compile(self, qualifiers: Iterable[Optional[BaseQualifier]]) -> Optional[Expression]:
        relevant = self.relevant(qualifiers or ())

        if not relevant:
            return None
        if len(relevant) == 1:
            return Expression.build(self._compiler.compile(relevant[0]))
        return Expression.build(And(tuple(self._compiler.compile(q) for q in relevant)))


_expression_compiler = ExpressionCompiler()
_predicate_set_compiler = PredicateSetCompiler(_expression_compiler)


def compile_expression(qualifier: BaseQualifier) -> Exp:
    """Compile one qualifier tree into an expression AST."""
    return _expression_compiler.compile(qualifier)


def compile_predicate_set(
    qualifiers: Iterable[Optional[BaseQualifier]],
) -> Optional[Expression]:
    """
    Build the filter expression for a query's qualifiers.

    Returns:
        None if no qualifier remains after dropping filter-only ones, the
        single qualifier's expression, or the AND of all of them.
    """
    return _predicate_set_compiler.compile(qualifiers)
