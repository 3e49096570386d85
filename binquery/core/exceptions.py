"""
Custom exceptions for binquery.
"""

from typing import Any, Optional


class BinQueryError(Exception):
    """Base exception for binquery."""
    pass


class InvalidArgumentError(BinQueryError, ValueError):
    """A qualifier or value was built with arguments it cannot accept."""
    pass


class UnsupportedOperationError(BinQueryError):
    """
    Operation/value-type combination with no expression representation.

    Attributes:
        operation: The offending filter operation
        value_type: Runtime type of the value involved, if relevant
    """

    def __init__(
        self,
        operation: Any,
        value_type: Optional[Any] = None,
        message: Optional[str] = None,
    ):
        self.operation = operation
        self.value_type = value_type
        if message is None:
            name = getattr(operation, "name", operation)
            if value_type is None:
                message = f"FilterExpression Unsupported Operation: {name}"
            else:
                type_name = getattr(value_type, "name", value_type)
                message = (
                    f"FilterExpression Unsupported Particle Type {type_name} "
                    f"for operation {name}"
                )
        super().__init__(message)


class UnfilteredScanDisabledError(BinQueryError):
    """A query resolved to a full scan while scans are disabled."""
    pass


class StoreError(BinQueryError):
    """
    Error raised by a store client (network, server-side failures).

    Attributes:
        result_code: Server or client result code, if known
    """

    def __init__(self, message: str, result_code: Optional[int] = None):
        self.result_code = result_code
        super().__init__(message)


class QueryExecutionError(BinQueryError):
    """Translated store failure surfaced by the query engine."""
    pass
