"""
Store client interfaces and the in-memory client.
"""

from .base import (
    Policy,
    QueryPolicy,
    Statement,
    RecordSet,
    IterableRecordSet,
    StoreClient,
)
from .memory import MemoryStoreClient
from .evaluator import (
    ExpressionEvaluator,
    expression_matches,
    filter_matches,
    bre_to_python,
)

__all__ = [
    "Policy",
    "QueryPolicy",
    "Statement",
    "RecordSet",
    "IterableRecordSet",
    "StoreClient",
    "MemoryStoreClient",
    "ExpressionEvaluator",
    "expression_matches",
    "filter_matches",
    "bre_to_python",
]
