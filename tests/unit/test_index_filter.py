"""
Unit tests for index filter compilation.
"""

import pytest

from binquery.core.values import INT64_MAX, INT64_MIN, Value
from binquery.query.filters import (
    FilterKind,
    IndexCollectionType,
    IndexFilter,
    compile_index_filter,
)
from binquery.query.qualifier import (
    CompositeQualifier,
    FilterOperation,
    KeyQualifier,
    Qualifier,
)


REGION = '{"type": "AeroCircle", "coordinates": [[2.35, 48.85], 1000]}'


class TestEquality:
    """EQ qualifiers."""

    def test_integer(self):
        q = Qualifier("age", FilterOperation.EQ, 30)
        assert compile_index_filter(q) == IndexFilter.equal("age", 30)

    def test_string(self):
        q = Qualifier("name", FilterOperation.EQ, "bob")
        assert compile_index_filter(q) == IndexFilter.equal("name", "bob")

    def test_ignore_case_has_no_filter(self):
        q = Qualifier("name", FilterOperation.EQ, "bob", ignore_case=True)
        assert compile_index_filter(q) is None

    def test_double_has_no_filter(self):
        assert compile_index_filter(Qualifier("score", FilterOperation.EQ, 1.5)) is None


class TestRanges:
    """Integer range qualifiers."""

    def test_gt(self):
        q = Qualifier("age", FilterOperation.GT, 10)
        assert compile_index_filter(q) == IndexFilter.range("age", 11, INT64_MAX)

    def test_gteq(self):
        q = Qualifier("age", FilterOperation.GTEQ, 10)
        assert compile_index_filter(q) == IndexFilter.range("age", 10, INT64_MAX)

    def test_lt(self):
        q = Qualifier("age", FilterOperation.LT, 10)
        assert compile_index_filter(q) == IndexFilter.range("age", INT64_MIN, 9)

    def test_lteq(self):
        q = Qualifier("age", FilterOperation.LTEQ, 10)
        assert compile_index_filter(q) == IndexFilter.range("age", INT64_MIN, 10)

    def test_between_inclusive(self):
        q = Qualifier("age", FilterOperation.BETWEEN, 18, 65)
        assert compile_index_filter(q) == IndexFilter.range("age", 18, 65)

    def test_gt_max_is_empty(self):
        assert compile_index_filter(Qualifier("age", FilterOperation.GT, INT64_MAX)) is None

    def test_lt_min_is_empty(self):
        assert compile_index_filter(Qualifier("age", FilterOperation.LT, INT64_MIN)) is None

    @pytest.mark.parametrize(
        "op, value",
        [
            (FilterOperation.GTEQ, INT64_MAX),
            (FilterOperation.LTEQ, INT64_MIN),
            (FilterOperation.GT, INT64_MIN),
            (FilterOperation.LT, INT64_MAX),
        ],
    )
    def test_int64_bounds_compile(self, op, value):
        index_filter = compile_index_filter(Qualifier("age", op, value))
        assert index_filter is not None
        assert INT64_MIN <= index_filter.begin <= index_filter.end <= INT64_MAX

    @pytest.mark.parametrize("value", [INT64_MAX, INT64_MIN])
    def test_equal_at_int64_bounds(self, value):
        assert compile_index_filter(Qualifier("age", FilterOperation.EQ, value)) == IndexFilter.equal("age", value)

    def test_list_between_at_int64_bounds(self):
        q = Qualifier("scores", FilterOperation.LIST_BETWEEN, INT64_MIN, INT64_MAX)
        assert compile_index_filter(q) == IndexFilter.range(
            "scores", INT64_MIN, INT64_MAX, IndexCollectionType.LIST
        )

    @pytest.mark.parametrize("op", [FilterOperation.GT, FilterOperation.LTEQ])
    def test_string_has_no_range(self, op):
        assert compile_index_filter(Qualifier("name", op, "m")) is None


class TestCollections:
    """Collection containment and ranges."""

    @pytest.mark.parametrize(
        "op, collection_type",
        [
            (FilterOperation.LIST_CONTAINS, IndexCollectionType.LIST),
            (FilterOperation.MAP_KEYS_CONTAINS, IndexCollectionType.MAPKEYS),
            (FilterOperation.MAP_VALUES_CONTAINS, IndexCollectionType.MAPVALUES),
        ],
    )
    def test_contains(self, op, collection_type):
        index_filter = compile_index_filter(Qualifier("tags", op, "vip"))

        assert index_filter.kind == FilterKind.CONTAINS
        assert index_filter.collection_type == collection_type
        assert index_filter.begin == "vip"

    def test_contains_integer(self):
        q = Qualifier("scores", FilterOperation.LIST_CONTAINS, 5)
        assert compile_index_filter(q) == IndexFilter.contains(
            "scores", IndexCollectionType.LIST, 5
        )

    def test_contains_double_has_no_filter(self):
        assert compile_index_filter(Qualifier("scores", FilterOperation.LIST_CONTAINS, 0.5)) is None

    @pytest.mark.parametrize(
        "op, collection_type",
        [
            (FilterOperation.LIST_BETWEEN, IndexCollectionType.LIST),
            (FilterOperation.MAP_KEYS_BETWEEN, IndexCollectionType.MAPKEYS),
            (FilterOperation.MAP_VALUES_BETWEEN, IndexCollectionType.MAPVALUES),
        ],
    )
    def test_between(self, op, collection_type):
        q = Qualifier("scores", op, 1, 5)
        assert compile_index_filter(q) == IndexFilter.range("scores", 1, 5, collection_type)

    def test_between_strings_has_no_filter(self):
        q = Qualifier("prefs", FilterOperation.MAP_KEYS_BETWEEN, "a", "c")
        assert compile_index_filter(q) is None


class TestGeo:

    def test_geo_within(self):
        q = Qualifier("loc", FilterOperation.GEO_WITHIN, REGION)
        assert compile_index_filter(q) == IndexFilter.geo_contains("loc", REGION)

    def test_geo_value(self):
        q = Qualifier("loc", FilterOperation.GEO_WITHIN, Value.geo(REGION))
        assert compile_index_filter(q).kind == FilterKind.GEO_CONTAINS


class TestNoFilter:
    """Qualifiers without a native index representation."""

    @pytest.mark.parametrize(
        "qualifier",
        [
            Qualifier("name", FilterOperation.NOTEQ, "bob"),
            Qualifier("name", FilterOperation.START_WITH, "bo"),
            Qualifier("name", FilterOperation.ENDS_WITH, "ob"),
            Qualifier("name", FilterOperation.CONTAINING, "o"),
            Qualifier("age", FilterOperation.IN, [1, 2]),
            KeyQualifier(1),
            CompositeQualifier(FilterOperation.AND, [Qualifier("age", FilterOperation.EQ, 1)]),
        ],
    )
    def test_none(self, qualifier):
        assert compile_index_filter(qualifier) is None

    def test_none_input(self):
        assert compile_index_filter(None) is None


class TestIndexFilter:

    def test_equal_bounds(self):
        index_filter = IndexFilter.equal("age", 3)
        assert index_filter.begin == index_filter.end == 3
        assert index_filter.collection_type == IndexCollectionType.DEFAULT

    def test_to_dict(self):
        assert IndexFilter.range("age", 1, 2).to_dict() == {
            "name": "age",
            "kind": "range",
            "begin": 1,
            "end": 2,
            "collection_type": "default",
        }

    def test_str(self):
        assert str(IndexFilter.range("age", 1, 2)) == "age in [1, 2] (default)"
