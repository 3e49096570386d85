"""
Interfaces of the store client the query engine dispatches to.

The engine never talks to the wire itself; it builds a ``Statement`` and a
``QueryPolicy`` and hands them to a ``StoreClient``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, List, Optional

from ..core.records import Key, KeyRecord, Record

if TYPE_CHECKING:
    from ..query.expressions import Expression
    from ..query.filters import IndexFilter


@dataclass
class Policy:
    """Base request policy."""

    total_timeout_ms: int = 0  # 0 means no timeout
    send_key: bool = True

    def copy(self, **changes: Any) -> "Policy":
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)


@dataclass
class QueryPolicy(Policy):
    """
    Policy for secondary-index queries and scans.

    Attributes:
        filter_exp: Filter expression the server evaluates per record
        max_records: Upper bound on returned records (0 means unlimited)
    """

    filter_exp: Optional["Expression"] = None
    max_records: int = 0


@dataclass
class Statement:
    """
    Query request: where to look and how to narrow the scan.

    Attributes:
        namespace: Namespace to query
        set_name: Set within the namespace (None queries the whole namespace)
        filter: Secondary-index filter, None for a scan
        bin_names: Bins to return (empty means all)
    """

    namespace: str
    set_name: Optional[str] = None
    filter: Optional["IndexFilter"] = None
    bin_names: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "namespace": self.namespace,
            "set_name": self.set_name,
            "filter": self.filter.to_dict() if self.filter is not None else None,
            "bin_names": list(self.bin_names),
        }


class RecordSet(ABC):
    """
    Lazy stream of query results.

    Forward-only and single-use; owned by one consumer. Close it to release
    the underlying request if it is not read to the end.
    """

    @abstractmethod
    def __iter__(self) -> Iterator[KeyRecord]:
        pass

    def close(self) -> None:
        """Release resources held by the stream."""
        pass


class IterableRecordSet(RecordSet):
    """RecordSet over any iterable of KeyRecord."""

    def __init__(self, records: Iterable[KeyRecord]):
        self._iterator = iter(records)
        self._closed = False

    def __iter__(self) -> Iterator[KeyRecord]:
        while not self._closed:
            try:
                yield next(self._iterator)
            except StopIteration:
                return

    def close(self) -> None:
        self._closed = True
        close = getattr(self._iterator, "close", None)
        if close is not None:
            close()


class StoreClient(ABC):
    """Minimal read-path client of a key-value store."""

    @abstractmethod
    def get(self, policy: Optional[Policy], key: Key) -> Optional[Record]:
        """
        Fetch one record by primary key.

        Returns:
            The record, or None if it does not exist

        Raises:
            StoreError: On network or server failure
        """
        pass

    @abstractmethod
    def query(self, policy: QueryPolicy, statement: Statement) -> RecordSet:
        """
        Run a secondary-index query, or a scan when the statement has no
        filter.

        Raises:
            StoreError: On network or server failure
        """
        pass

    def close(self) -> None:
        pass
