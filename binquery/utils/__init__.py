"""
Utility functions for binquery.
"""

from .validation import (
    validate_namespace,
    validate_set_name,
    validate_bin_name,
)
from .logging import setup_logger, get_logger, LogContext

__all__ = [
    "validate_namespace",
    "validate_set_name",
    "validate_bin_name",
    "setup_logger",
    "get_logger",
    "LogContext",
]
