"""
Basic usage example for binquery.
"""

import json

from binquery import (
    FilterOperation,
    Key,
    KeyQualifier,
    Qualifier,
    QualifierBuilder,
    QueryEngine,
    UnfilteredScanDisabledError,
)
from binquery.storage import MemoryStoreClient
from binquery.utils import setup_logger


def main():
    print("=" * 60)
    print("binquery Basic Usage Example")
    print("=" * 60)

    setup_logger(level="INFO")

    # 1. Load records
    print("\n1. Loading records...")
    client = MemoryStoreClient()
    people = [
        ("alice", {"name": "Alice", "age": 34, "tags": ["admin", "ops"]}),
        ("bob", {"name": "bob", "age": 19, "tags": ["ops"]}),
        ("carol", {"name": "Carol.K", "age": 52, "tags": []}),
    ]
    for user_key, bins in people:
        client.put(Key("test", "people", user_key), bins)
    print(f"   Stored {client.size} records")

    engine = QueryEngine(client)

    # 2. Index filter plus expression
    print("\n2. age > 18 and name starts with 'b' (any case)...")
    qualifiers = (
        Qualifier("age", FilterOperation.GT, 18),
        Qualifier("name", FilterOperation.START_WITH, "B", ignore_case=True),
    )
    plan = engine.plan("test", "people", None, *qualifiers)
    print(plan.explain())
    for key, record in engine.select("test", "people", None, *qualifiers):
        print(f"   {key.user_key}: {record.bins}")

    # 3. Builder
    print("\n3. Builder: tags contain 'ops' and age between 30 and 60...")
    q = (
        QualifierBuilder()
        .field("tags").list_contains("ops")
        .field("age").between(30, 60)
        .build()
    )
    for qualifier in q.qualifiers:
        print(f"   {qualifier!r}")
    results = engine.select("test", "people", None, *q.qualifiers)
    print(f"   Matches: {[key.user_key for key, _ in results]}")

    # 4. Key lookup
    print("\n4. Key lookup...")
    for key, record in engine.select("test", "people", None, KeyQualifier("carol")):
        print(f"   {key}: {record.bins}")

    # 5. Scans are refused by default
    print("\n5. Unindexed predicate...")
    containing = Qualifier("name", FilterOperation.CONTAINING, ".")
    try:
        engine.select("test", "people", None, containing)
    except UnfilteredScanDisabledError as e:
        print(f"   Refused: {e}")

    engine.set_scans_enabled(True)
    results = engine.select("test", "people", None, containing)
    print(f"   With scans enabled: {[key.user_key for key, _ in results]}")

    # 6. Wire form of the expression
    print("\n6. Filter expression...")
    exp = plan.policy.filter_exp
    print(f"   {json.dumps(exp.exp.to_list())}")
    print(f"   {len(exp.to_bytes())} bytes packed")

    print("\n" + "=" * 60)
    print("Example completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    main()
