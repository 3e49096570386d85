"""
Core components for binquery.
"""

from .values import Value, ParticleType, INT64_MIN, INT64_MAX
from .records import Key, Record, KeyRecord
from .exceptions import (
    BinQueryError,
    InvalidArgumentError,
    UnsupportedOperationError,
    UnfilteredScanDisabledError,
    StoreError,
    QueryExecutionError,
)

__all__ = [
    # Values
    "Value",
    "ParticleType",
    "INT64_MIN",
    "INT64_MAX",
    # Records
    "Key",
    "Record",
    "KeyRecord",
    # Exceptions
    "BinQueryError",
    "InvalidArgumentError",
    "UnsupportedOperationError",
    "UnfilteredScanDisabledError",
    "StoreError",
    "QueryExecutionError",
]
