"""
Unit tests for record-side filter and expression evaluation.
"""

import json

import pytest

from binquery.core.records import Key, Record
from binquery.query.expressions import (
    Bin,
    Cmp,
    CmpOp,
    ExpType,
    KeyExp,
    ListGetByValue,
    ReturnType,
    Val,
)
from binquery.query.filters import IndexCollectionType, IndexFilter
from binquery.storage.evaluator import (
    ExpressionEvaluator,
    expression_matches,
    filter_matches,
    geo_matches,
)


PARIS = json.dumps({"type": "Point", "coordinates": [2.35, 48.85]})
LONDON = json.dumps({"type": "Point", "coordinates": [-0.12, 51.50]})
KEY = Key("test", "people", 1)


def circle(lng, lat, radius):
    return json.dumps({"type": "AeroCircle", "coordinates": [[lng, lat], radius]})


class TestGeo:
    """Point-in-region checks."""

    def test_circle(self):
        assert geo_matches(PARIS, circle(2.30, 48.86, 10000))
        assert not geo_matches(LONDON, circle(2.30, 48.86, 10000))

    def test_polygon(self):
        polygon = json.dumps({
            "type": "Polygon",
            "coordinates": [[[0, 48], [3, 48], [3, 50], [0, 50], [0, 48]]],
        })
        assert geo_matches(PARIS, polygon)
        assert not geo_matches(LONDON, polygon)

    def test_operands_commute(self):
        assert geo_matches(circle(2.35, 48.85, 1), PARIS)

    def test_garbage(self):
        assert not geo_matches("not json", PARIS)
        assert not geo_matches(PARIS, json.dumps({"type": "AeroCircle"}))


class TestFilterMatches:
    """Index filter selection."""

    def test_equal_is_type_strict(self):
        record = Record({"age": 30})
        assert filter_matches(IndexFilter.equal("age", 30), record)
        assert not filter_matches(IndexFilter.equal("age", "30"), record)

    def test_range(self):
        record = Record({"age": 30})
        assert filter_matches(IndexFilter.range("age", 30, 40), record)
        assert not filter_matches(IndexFilter.range("age", 31, 40), record)

    def test_missing_bin(self):
        assert not filter_matches(IndexFilter.equal("age", 30), Record({}))

    def test_collections(self):
        record = Record({"tags": ["a", "b"], "prefs": {"k": 5}})

        assert filter_matches(IndexFilter.contains("tags", IndexCollectionType.LIST, "b"), record)
        assert filter_matches(IndexFilter.contains("prefs", IndexCollectionType.MAPKEYS, "k"), record)
        assert filter_matches(
            IndexFilter.range("prefs", 1, 5, IndexCollectionType.MAPVALUES), record
        )
        assert not filter_matches(
            IndexFilter.contains("prefs", IndexCollectionType.MAPVALUES, "k"), record
        )


class TestExpressionEvaluator:
    """Expression evaluation against one record."""

    def test_comparison(self):
        record = Record({"age": 30})
        assert expression_matches(Cmp(CmpOp.GE, Bin("age", ExpType.INT), Val(30)), KEY, record)

    def test_wrong_bin_type_is_false(self):
        record = Record({"age": "30"})
        exp = Cmp(CmpOp.NE, Bin("age", ExpType.INT), Val(1))
        assert not expression_matches(exp, KEY, record)

    def test_missing_bin_is_false(self):
        exp = Cmp(CmpOp.NE, Bin("age", ExpType.INT), Val(1))
        assert not expression_matches(exp, KEY, Record({}))

    def test_key(self):
        exp = Cmp(CmpOp.EQ, KeyExp(ExpType.INT), Val(1))
        assert expression_matches(exp, KEY, Record({}))
        assert not expression_matches(exp, Key("test", "people", "1"), Record({}))

    def test_count(self):
        record = Record({"tags": ["a", "b", "a"]})
        exp = ListGetByValue(ReturnType.COUNT, Val("a"), Bin("tags", ExpType.LIST))
        assert ExpressionEvaluator(KEY, record).evaluate(exp) == 2

    def test_none_passes(self):
        assert expression_matches(None, KEY, Record({}))

    def test_unknown_node(self):
        with pytest.raises(TypeError):
            ExpressionEvaluator(KEY, Record({})).evaluate("age")
