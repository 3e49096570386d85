"""
Input validation utilities.
"""

from typing import Optional

from ..core.exceptions import InvalidArgumentError


# Maximum limits imposed by the store
MAX_NAMESPACE_LENGTH = 31
MAX_SET_NAME_LENGTH = 63
MAX_BIN_NAME_LENGTH = 15


def _validate_name(kind: str, name: str, max_length: int) -> str:
    if not isinstance(name, str):
        raise InvalidArgumentError(f"{kind} must be a string, got {type(name).__name__}")

    if not name:
        raise InvalidArgumentError(f"{kind} cannot be empty")

    if len(name) > max_length:
        raise InvalidArgumentError(
            f"{kind} too long: '{name}' has {len(name)} characters (max {max_length})"
        )

    return name


def validate_namespace(namespace: str) -> str:
    """
    Validate a namespace name.

    Raises:
        InvalidArgumentError: If the name is empty, not a string or too long
    """
    return _validate_name("Namespace", namespace, MAX_NAMESPACE_LENGTH)


def validate_set_name(set_name: Optional[str]) -> Optional[str]:
    """Validate a set name; None selects the whole namespace."""
    if set_name is None:
        return None
    return _validate_name("Set name", set_name, MAX_SET_NAME_LENGTH)


def validate_bin_name(name: str) -> str:
    """Validate the bin name a qualifier refers to."""
    return _validate_name("Bin name", name, MAX_BIN_NAME_LENGTH)
