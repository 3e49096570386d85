"""
Key and record definitions shared by the query engine and store clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Key:
    """
    Primary key of a record.

    Attributes:
        namespace: Namespace holding the record
        set_name: Set (collection) within the namespace, may be None
        user_key: The caller-supplied key value
    """

    namespace: str
    set_name: Optional[str]
    user_key: Any

    def __str__(self) -> str:
        return f"{self.namespace}:{self.set_name}:{self.user_key}"


@dataclass
class Record:
    """
    Bins of a stored record plus its metadata.

    Attributes:
        bins: Bin name to value mapping
        generation: Write generation counter
        expiration: Expiration time in seconds (0 means never)
    """

    bins: Dict[str, Any] = field(default_factory=dict)
    generation: int = 0
    expiration: int = 0

    def get(self, name: str, default: Any = None) -> Any:
        return self.bins.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bins": dict(self.bins),
            "generation": self.generation,
            "expiration": self.expiration,
        }


@dataclass(frozen=True)
class KeyRecord:
    """A (key, record) pair returned by queries."""

    key: Key
    record: Record

    def __iter__(self):
        # Allows ``for key, record in results``.
        yield self.key
        yield self.record
