"""
binquery - qualifier compilation for secondary-index queries.

Example:
    >>> from binquery import QueryEngine, Qualifier, FilterOperation
    >>> from binquery.storage import MemoryStoreClient
    >>>
    >>> client = MemoryStoreClient()
    >>> engine = QueryEngine(client)
    >>>
    >>> # Index filter on age, case-insensitive prefix match in the expression
    >>> results = engine.select(
    ...     "test", "people", None,
    ...     Qualifier("age", FilterOperation.GT, 30),
    ...     Qualifier("name", FilterOperation.START_WITH, "jo", ignore_case=True),
    ... )
"""

from .core import (
    # Values
    Value,
    ParticleType,
    # Records
    Key,
    Record,
    KeyRecord,
    # Exceptions
    BinQueryError,
    InvalidArgumentError,
    UnsupportedOperationError,
    UnfilteredScanDisabledError,
    StoreError,
    QueryExecutionError,
)

from .query import (
    # Qualifiers
    FilterOperation,
    Qualifier,
    KeyQualifier,
    CompositeQualifier,
    QualifierBuilder,
    # Compilation
    IndexFilter,
    Expression,
    compile_index_filter,
    compile_expression,
    compile_predicate_set,
    # Engine
    QueryEngine,
)

__version__ = "0.1.0"
__author__ = "binquery Team"

__all__ = [
    "Value",
    "ParticleType",
    "Key",
    "Record",
    "KeyRecord",
    "BinQueryError",
    "InvalidArgumentError",
    "UnsupportedOperationError",
    "UnfilteredScanDisabledError",
    "StoreError",
    "QueryExecutionError",
    "FilterOperation",
    "Qualifier",
    "KeyQualifier",
    "CompositeQualifier",
    "QualifierBuilder",
    "IndexFilter",
    "Expression",
    "compile_index_filter",
    "compile_expression",
    "compile_predicate_set",
    "QueryEngine",
]
