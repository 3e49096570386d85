"""
Query engine: turns qualifiers into a store request and runs it.

Features:
- Primary-key fast path for a lone KeyQualifier
- Index filter selection from the qualifiers
- Residual filter expression over all qualifiers
- Refusal of unfiltered scans unless explicitly enabled
- Explain output for the chosen plan
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Sequence

from ..core.exceptions import (
    InvalidArgumentError,
    QueryExecutionError,
    StoreError,
    UnfilteredScanDisabledError,
)
from ..core.records import Key, KeyRecord
from ..storage.base import QueryPolicy, RecordSet, Statement, StoreClient
from ..utils.logging import get_logger, setup_logger
from ..utils.validation import validate_namespace, validate_set_name
from .compiler import compile_predicate_set
from .filters import IndexFilter, compile_index_filter
from .qualifier import BaseQualifier, KeyQualifier


logger = get_logger(__name__)


SCANS_DISABLED_MESSAGE = (
    "Query without a filter will initiate a scan. Since scans are potentially "
    "dangerous operations, they are disabled by default. If you still need to "
    "use them, enable them via the `scans_enabled` setting."
)


class KeyRecordIterator:
    """
    Forward-only iterator over (key, record) pairs.

    Wraps either a store RecordSet or a single record fetched by key, so both
    query paths return the same type. Not restartable and not safe for
    concurrent consumption.

    Example:
        >>> with engine.select("test", "people", None, q) as results:
        ...     for key, record in results:
        ...         print(key, record.bins)
    """

    def __init__(
        self,
        namespace: str,
        record_set: Optional[RecordSet] = None,
        single: Optional[KeyRecord] = None,
    ):
        self.namespace = namespace
        self._record_set = record_set
        if record_set is not None:
            self._iterator: Iterator[KeyRecord] = iter(record_set)
        elif single is not None:
            self._iterator = iter((single,))
        else:
            self._iterator = iter(())
        self._closed = False

    def __iter__(self) -> "KeyRecordIterator":
        return self

    def __next__(self) -> KeyRecord:
        if self._closed:
            raise StopIteration
        try:
            return next(self._iterator)
        except StoreError as e:
            raise QueryExecutionError(f"Query on namespace '{self.namespace}' failed: {e}") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._record_set is not None:
            self._record_set.close()

    def __enter__(self) -> "KeyRecordIterator":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class StatementBuilder:
    """Builds the store request for a qualifier set."""

    def build(
        self,
        namespace: str,
        set_name: Optional[str],
        index_filter: Optional[IndexFilter],
        qualifiers: Sequence[Optional[BaseQualifier]] = (),
    ) -> Statement:
        """
        Build a statement.

        A caller-supplied ``index_filter`` wins. Otherwise the first
        qualifier with an index representation provides the filter; no
        attempt is made to pick the most selective one.
        """
        statement = Statement(namespace=namespace, set_name=set_name)

        if index_filter is not None:
            statement.filter = index_filter
            return statement

        for qualifier in qualifiers:
            if qualifier is None:
                continue
            candidate = compile_index_filter(qualifier)
            if candidate is not None:
                statement.filter = candidate
                break

        return statement


class PlanPath(str, Enum):
    """How a query reaches its records."""

    KEY_LOOKUP = "key_lookup"
    INDEX_QUERY = "index_query"
    SCAN = "scan"


@dataclass
class QueryPlan:
    """
    Resolved request for one select call.

    Exactly one of ``key`` (KEY_LOOKUP) or ``statement``/``policy`` (query
    paths) is set.
    """

    path: PlanPath
    namespace: str
    set_name: Optional[str]
    key: Optional[Key] = None
    statement: Optional[Statement] = None
    policy: Optional[QueryPolicy] = None

    def explain(self) -> str:
        """Generate explain output."""
        lines = [
            "Query Plan",
            "=" * 40,
            f"Path: {self.path.value}",
            f"Namespace: {self.namespace}",
            f"Set: {self.set_name or '-'}",
        ]
        if self.key is not None:
            lines.append(f"Key: {self.key.user_key!r}")
        if self.statement is not None:
            lines.append(f"Index Filter: {self.statement.filter or 'none'}")
        if self.policy is not None:
            exp = self.policy.filter_exp
            lines.append(f"Filter Expression: {exp.exp if exp is not None else 'none'}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        exp = self.policy.filter_exp if self.policy is not None else None
        return {
            "path": self.path.value,
            "namespace": self.namespace,
            "set_name": self.set_name,
            "key": self.key.user_key if self.key is not None else None,
            "statement": self.statement.to_dict() if self.statement is not None else None,
            "filter_exp": exp.exp.to_list() if exp is not None else None,
        }


class QueryEngine:
    """
    Multi-qualifier query engine in front of a store client.

    Example:
        >>> engine = QueryEngine(client)
        >>> results = engine.select(
        ...     "test", "people", None,
        ...     Qualifier("age", FilterOperation.GTEQ, 18),
        ...     Qualifier("name", FilterOperation.START_WITH, "jo", ignore_case=True),
        ... )
        >>> for key, record in results:
        ...     print(record.bins)
    """

    def __init__(
        self,
        client: StoreClient,
        scans_enabled: bool = False,
        query_policy: Optional[QueryPolicy] = None,
        statement_builder: Optional[StatementBuilder] = None,
    ):
        """
        Initialize the engine.

        Args:
            client: Store client to dispatch to
            scans_enabled: Allow queries that resolve to no index filter.
                Scans can slow down the server, so they are off by default.
            query_policy: Base policy copied for every query
            statement_builder: Override of the statement construction
        """
        self.client = client
        self._scans_enabled = scans_enabled
        self.query_policy = query_policy or QueryPolicy()
        self.statement_builder = statement_builder or StatementBuilder()

    @classmethod
    def from_settings(cls, client: StoreClient, settings: Any) -> "QueryEngine":
        """
        Create an engine from a ``config.Settings`` object.

        Also applies ``settings.log_level`` to the package logger.
        """
        setup_logger(level=settings.log_level)
        policy = QueryPolicy(
            total_timeout_ms=settings.query_policy.total_timeout_ms,
            max_records=settings.query_policy.max_records,
            send_key=settings.send_key,
        )
        return cls(client, scans_enabled=settings.scans_enabled, query_policy=policy)

    @property
    def scans_enabled(self) -> bool:
        return self._scans_enabled

    def set_scans_enabled(self, scans_enabled: bool) -> None:
        """Change the scan policy. Intended for startup configuration only."""
        self._scans_enabled = scans_enabled

    def plan(
        self,
        namespace: str,
        set_name: Optional[str],
        index_filter: Optional[IndexFilter] = None,
        *qualifiers: BaseQualifier,
    ) -> QueryPlan:
        """
        Resolve how a select would run, without dispatching it.

        Raises:
            UnfilteredScanDisabledError: No index filter resolved and scans
                are disabled
            InvalidArgumentError: Malformed qualifiers, or an index_filter
                that is not an IndexFilter
            UnsupportedOperationError: Qualifier cannot be compiled
        """
        validate_namespace(namespace)
        validate_set_name(set_name)
        if index_filter is not None and not isinstance(index_filter, IndexFilter):
            raise InvalidArgumentError(
                f"index_filter must be an IndexFilter or None, got {type(index_filter).__name__}"
            )

        # A lone key qualifier is a direct lookup. A caller filter passed
        # alongside it is ignored.
        if len(qualifiers) == 1 and isinstance(qualifiers[0], KeyQualifier):
            key = qualifiers[0].make_key(namespace, set_name)
            return QueryPlan(PlanPath.KEY_LOOKUP, namespace, set_name, key=key)

        statement = self.statement_builder.build(namespace, set_name, index_filter, qualifiers)
        policy = self.query_policy.copy(filter_exp=compile_predicate_set(qualifiers))

        if statement.filter is None:
            if not self._scans_enabled:
                raise UnfilteredScanDisabledError(SCANS_DISABLED_MESSAGE)
            path = PlanPath.SCAN
        else:
            path = PlanPath.INDEX_QUERY

        return QueryPlan(path, namespace, set_name, statement=statement, policy=policy)

    def select(
        self,
        namespace: str,
        set_name: Optional[str],
        index_filter: Optional[IndexFilter] = None,
        *qualifiers: BaseQualifier,
    ) -> KeyRecordIterator:
        """
        Select records filtered by an index filter and qualifiers.

        Args:
            namespace: Namespace storing the data
            set_name: Set storing the data
            index_filter: Index filter to use; resolved from the qualifiers
                when None
            *qualifiers: Zero or more qualifiers, AND-ed together

        Returns:
            A KeyRecordIterator over the results

        Raises:
            UnfilteredScanDisabledError: No index filter and scans disabled
            QueryExecutionError: The store client failed
        """
        plan = self.plan(namespace, set_name, index_filter, *qualifiers)

        if plan.path == PlanPath.KEY_LOOKUP:
            logger.debug(f"Key lookup for {plan.key}")
            try:
                record = self.client.get(None, plan.key)
            except StoreError as e:
                raise QueryExecutionError(f"Get of key {plan.key} failed: {e}") from e
            if record is None:
                return KeyRecordIterator(namespace)
            return KeyRecordIterator(namespace, single=KeyRecord(plan.key, record))

        if plan.path == PlanPath.SCAN:
            logger.warning(f"Running unfiltered scan on {namespace}/{set_name}")
        logger.debug(
            f"Query {namespace}/{set_name}: filter={plan.statement.filter}, "
            f"expression={plan.policy.filter_exp}"
        )

        try:
            record_set = self.client.query(plan.policy, plan.statement)
        except StoreError as e:
            raise QueryExecutionError(f"Query on {namespace}/{set_name} failed: {e}") from e
        return KeyRecordIterator(namespace, record_set=record_set)
