"""
Query processing module for binquery.

This module provides:
- The qualifier model (leaf, composite and key qualifiers)
- Secondary-index filter compilation
- Filter expression compilation
- The query engine

Example:
    >>> from binquery.query import QueryEngine, QualifierBuilder
    >>>
    >>> # Build qualifiers
    >>> qualifier = (
    ...     QualifierBuilder()
    ...     .field("age").gte(18)
    ...     .field("name").starts_with("jo", ignore_case=True)
    ...     .build()
    ... )
    >>>
    >>> # Execute query
    >>> engine = QueryEngine(client)
    >>> results = engine.select("test", "people", None, qualifier)
"""

from .qualifier import (
    FilterOperation,
    Meta,
    BaseQualifier,
    Qualifier,
    KeyQualifier,
    CompositeQualifier,
    QualifierBuilder,
    qualifier_from_dict,
)

from .regex import RegexPatternBuilder, escape, pattern_for

from .filters import (
    IndexFilter,
    IndexCollectionType,
    FilterKind,
    compile_index_filter,
)

from .expressions import (
    Exp,
    Expression,
    ExpType,
    CmpOp,
    RegexFlag,
    ReturnType,
    exp_from_list,
)

from .compiler import (
    ExpressionCompiler,
    PredicateSetCompiler,
    compile_expression,
    compile_predicate_set,
)

from .engine import (
    QueryEngine,
    QueryPlan,
    PlanPath,
    StatementBuilder,
    KeyRecordIterator,
    SCANS_DISABLED_MESSAGE,
)

__all__ = [
    # Qualifiers
    "FilterOperation",
    "Meta",
    "BaseQualifier",
    "Qualifier",
    "KeyQualifier",
    "CompositeQualifier",
    "QualifierBuilder",
    "qualifier_from_dict",
    # Regex
    "RegexPatternBuilder",
    "escape",
    "pattern_for",
    # Index filters
    "IndexFilter",
    "IndexCollectionType",
    "FilterKind",
    "compile_index_filter",
    # Expressions
    "Exp",
    "Expression",
    "ExpType",
    "CmpOp",
    "RegexFlag",
    "ReturnType",
    "exp_from_list",
    # Compilers
    "ExpressionCompiler",
    "PredicateSetCompiler",
    "compile_expression",
    "compile_predicate_set",
    # Engine
    "QueryEngine",
    "QueryPlan",
    "PlanPath",
    "StatementBuilder",
    "KeyRecordIterator",
    "SCANS_DISABLED_MESSAGE",
]
