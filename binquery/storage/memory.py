"""
In-memory store client.

Holds records in a dictionary and answers queries the way the server does:
the index filter selects candidates, the filter expression decides. Every
bin is treated as indexed.

Use for:
- Development and testing
- Examples
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Iterator, List, Optional

from ..core.records import Key, KeyRecord, Record
from .base import IterableRecordSet, Policy, QueryPolicy, RecordSet, Statement, StoreClient
from .evaluator import expression_matches, filter_matches


class MemoryStoreClient(StoreClient):
    """
    Store client backed by a dictionary.

    Example:
        >>> client = MemoryStoreClient()
        >>> client.put(Key("test", "people", 1), {"name": "Bob", "age": 30})
        >>> client.get(None, Key("test", "people", 1)).bins["age"]
        30
    """

    def __init__(self):
        self._records: Dict[Key, Record] = {}
        self._lock = threading.RLock()

        # Request log, for inspection in tests
        self.gets = 0
        self.queries = 0
        self.last_statement: Optional[Statement] = None
        self.last_policy: Optional[QueryPolicy] = None

    @property
    def size(self) -> int:
        return len(self._records)

    def put(self, key: Key, bins: Dict[str, Any]) -> Record:
        """Store ``bins`` under ``key``, bumping the generation."""
        with self._lock:
            previous = self._records.get(key)
            generation = previous.generation + 1 if previous is not None else 1
            record = Record(bins=dict(bins), generation=generation)
            self._records[key] = record
            return record

    def get(self, policy: Optional[Policy], key: Key) -> Optional[Record]:
        with self._lock:
            self.gets += 1
            return self._records.get(key)

    def query(self, policy: QueryPolicy, statement: Statement) -> RecordSet:
        with self._lock:
            self.queries += 1
            self.last_statement = statement
            self.last_policy = policy
            snapshot = [
                (key, record) for key, record in self._records.items()
                if key.namespace == statement.namespace
                and (statement.set_name is None or key.set_name == statement.set_name)
            ]
        return IterableRecordSet(self._stream(snapshot, policy, statement))

    def _stream(
        self,
        snapshot: List[tuple],
        policy: QueryPolicy,
        statement: Statement,
    ) -> Iterator[KeyRecord]:
        exp = policy.filter_exp.exp if policy.filter_exp is not None else None
        returned = 0

        for key, record in snapshot:
            if statement.filter is not None and not filter_matches(statement.filter, record):
                continue
            if not expression_matches(exp, key, record):
                continue
            if statement.bin_names:
                record = Record(
                    bins={n: record.bins[n] for n in statement.bin_names if n in record.bins},
                    generation=record.generation,
                    expiration=record.expiration,
                )
            yield KeyRecord(key, record)
            returned += 1
            if policy.max_records and returned >= policy.max_records:
                return
