"""
Pytest fixtures for binquery tests.
"""

import json
import logging
from typing import Dict, List

import pytest

from binquery.core.records import Key
from binquery.core.values import Value
from binquery.query.engine import QueryEngine
from binquery.storage.memory import MemoryStoreClient


NAMESPACE = "test"
SET_NAME = "people"


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: end-to-end queries against the in-memory store"
    )


def point(lng: float, lat: float) -> Value:
    """GeoJSON point value."""
    return Value.geo(json.dumps({"type": "Point", "coordinates": [lng, lat]}))


PEOPLE: Dict[int, dict] = {
    1: {
        "name": "Alice",
        "age": 30,
        "city": "Paris",
        "tags": ["vip", "travel"],
        "scores": [10, 25],
        "prefs": {"color": "red", "size": 3},
        "loc": point(2.35, 48.85),
    },
    2: {
        "name": "bob.smith",
        "age": 17,
        "city": "London",
        "tags": ["new"],
        "scores": [5],
        "prefs": {"color": "blue"},
        "loc": point(-0.12, 51.50),
    },
    3: {
        "name": "Carol",
        "age": 45,
        "city": "paris",
        "tags": ["vip"],
        "scores": [20, 40],
        "prefs": {"size": 7},
    },
    4: {
        "name": "dave",
        "age": 62,
        "city": "Berlin",
        "tags": [],
        "scores": [21],
        "prefs": {},
        "loc": point(13.40, 52.52),
    },
    5: {
        "name": "Eve(1)",
        "age": 30,
        "city": "Rome",
        "tags": ["travel"],
        "scores": [100],
        "prefs": {"color": "red"},
        "loc": point(12.50, 41.90),
    },
}


@pytest.fixture
def people() -> Dict[int, dict]:
    """Raw test records keyed by user key."""
    return PEOPLE


@pytest.fixture
def client() -> MemoryStoreClient:
    """In-memory store holding the people set."""
    store = MemoryStoreClient()
    for user_key, bins in PEOPLE.items():
        store.put(Key(NAMESPACE, SET_NAME, user_key), bins)
    # A record in another set must never leak into people queries
    store.put(Key(NAMESPACE, "pets", 1), {"name": "Rex", "age": 3})
    return store


@pytest.fixture
def engine(client: MemoryStoreClient) -> QueryEngine:
    """Engine with scans disabled (the default)."""
    return QueryEngine(client)


@pytest.fixture
def scan_engine(client: MemoryStoreClient) -> QueryEngine:
    """Engine with scans enabled."""
    return QueryEngine(client, scans_enabled=True)


@pytest.fixture
def user_keys():
    """Collect the sorted user keys of a result iterator."""
    def collect(results) -> List[int]:
        return sorted(key.user_key for key, _ in results)
    return collect


@pytest.fixture
def package_logger():
    """The ``binquery`` logger, with its level and handlers restored afterwards."""
    logger = logging.getLogger("binquery")
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    logger.setLevel(level)
    logger.handlers[:] = handlers
