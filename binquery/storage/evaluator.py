"""
Record-side evaluation of index filters and filter expressions.

Used by the in-memory store to reproduce what the server does: select
candidates with the index filter, then keep those the expression accepts.
A bin that is missing or holds another type makes its comparison false.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from ..core.records import Key, Record
from ..core.values import ParticleType, Value
from ..query.expressions import (
    And,
    Bin,
    Cmp,
    CmpOp,
    Exp,
    ExpType,
    GeoCompare,
    GeoVal,
    KeyExp,
    ListGetByValue,
    ListGetByValueRange,
    MapGetByKey,
    MapGetByKeyRange,
    MapGetByValue,
    MapGetByValueRange,
    Or,
    RegexCompare,
    RegexFlag,
    ReturnType,
    Val,
)
from ..query.filters import FilterKind, IndexCollectionType, IndexFilter


EARTH_RADIUS_METERS = 6371000.0

_COMPARE = {
    CmpOp.EQ: lambda a, b: a == b,
    CmpOp.NE: lambda a, b: a != b,
    CmpOp.GT: lambda a, b: a > b,
    CmpOp.GE: lambda a, b: a >= b,
    CmpOp.LT: lambda a, b: a < b,
    CmpOp.LE: lambda a, b: a <= b,
}


# =============================================================================
# VALUE HELPERS
# =============================================================================


def _plain(value: Any) -> Any:
    """Unwrap a Value stored in a bin."""
    if isinstance(value, Value):
        return value.object if value.type == ParticleType.GEOJSON else value.to_python()
    return value


def _is_int(value: Any) -> bool:
    return isinstance(value, (int, np.integer))


def _same_kind(a: Any, b: Any) -> bool:
    """Integers compare with integers and strings with strings only."""
    return (_is_int(a) and _is_int(b)) or (isinstance(a, str) and isinstance(b, str))


def _typed(value: Any, exp_type: ExpType) -> Any:
    """Return ``value`` if it has ``exp_type``, else None."""
    if value is None:
        return None
    if exp_type == ExpType.INT:
        return int(value) if _is_int(value) else None
    if exp_type == ExpType.FLOAT:
        return float(value) if isinstance(value, (float, np.floating)) else None
    if exp_type == ExpType.STRING:
        return value if isinstance(value, str) else None
    if exp_type == ExpType.LIST:
        return list(value) if isinstance(value, (list, tuple)) else None
    if exp_type == ExpType.MAP:
        return value if isinstance(value, dict) else None
    if exp_type == ExpType.GEO:
        return value if isinstance(value, (str, dict)) else None
    return value


def bre_to_python(pattern: str) -> str:
    """
    Translate a POSIX basic regular expression into Python ``re`` syntax.

    Only ``\\ . * $ [ ^`` are special in a BRE; every other character is
    matched literally.
    """
    out: List[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == "\\" and i + 1 < n:
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if char == "^" and i == 0:
            out.append("^")
        elif char == "$" and i == n - 1:
            out.append("$")
        elif char == ".":
            out.append(".")
        elif char == "*" and out and out[-1] != "^":
            out.append("*")
        elif char == "[":
            end = pattern.find("]", i + 2 if pattern[i + 1:i + 2] in ("]", "^") else i + 1)
            if end == -1:
                out.append(re.escape(char))
            else:
                body = pattern[i + 1:end].replace("\\", "\\\\")
                out.append("[" + body + "]")
                i = end + 1
                continue
        else:
            out.append(re.escape(char))
        i += 1
    return "".join(out)


# =============================================================================
# GEO
# =============================================================================


def _parse_geo(value: Any) -> Optional[Dict[str, Any]]:
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return None
        return parsed if isinstance(parsed, dict) else None
    return None


def _point_in_polygon(point: np.ndarray, ring: np.ndarray) -> bool:
    """Ray casting against a closed ring of (lng, lat) vertices."""
    x, y = point
    xs, ys = ring[:, 0], ring[:, 1]
    xs_next, ys_next = np.roll(xs, -1), np.roll(ys, -1)
    crosses = (ys > y) != (ys_next > y)
    with np.errstate(divide="ignore", invalid="ignore"):
        x_at_y = (xs_next - xs) * (y - ys) / (ys_next - ys) + xs
    return bool(np.count_nonzero(crosses & (x < x_at_y)) % 2)


def _haversine(a: np.ndarray, b: np.ndarray) -> float:
    lng1, lat1, lng2, lat2 = np.radians([a[0], a[1], b[0], b[1]])
    h = (
        np.sin((lat2 - lat1) / 2) ** 2
        + np.cos(lat1) * np.cos(lat2) * np.sin((lng2 - lng1) / 2) ** 2
    )
    return float(2 * EARTH_RADIUS_METERS * np.arcsin(np.sqrt(h)))


def _point_in_region(point: Dict[str, Any], region: Dict[str, Any]) -> bool:
    coords = np.asarray(point["coordinates"], dtype=np.float64)
    region_type = region.get("type")
    if region_type == "Polygon":
        ring = np.asarray(region["coordinates"][0], dtype=np.float64)
        return _point_in_polygon(coords, ring)
    if region_type == "AeroCircle":
        center, radius = region["coordinates"]
        return _haversine(coords, np.asarray(center, dtype=np.float64)) <= float(radius)
    if region_type == "Point":
        return bool(np.allclose(coords, np.asarray(region["coordinates"], dtype=np.float64)))
    return False


def geo_matches(left: Any, right: Any) -> bool:
    """True if one GeoJSON operand is a point lying within the other."""
    a, b = _parse_geo(_plain(left)), _parse_geo(_plain(right))
    if a is None or b is None:
        return False
    try:
        if a.get("type") == "Point":
            return _point_in_region(a, b)
        if b.get("type") == "Point":
            return _point_in_region(b, a)
    except (KeyError, TypeError, ValueError):
        return False
    return False


# =============================================================================
# INDEX FILTERS
# =============================================================================


def _indexed_items(value: Any, collection_type: IndexCollectionType) -> Iterable[Any]:
    if collection_type == IndexCollectionType.DEFAULT:
        return (value,)
    if collection_type == IndexCollectionType.LIST:
        return value if isinstance(value, (list, tuple)) else ()
    if not isinstance(value, dict):
        return ()
    if collection_type == IndexCollectionType.MAPKEYS:
        return value.keys()
    return value.values()


def filter_matches(index_filter: IndexFilter, record: Record) -> bool:
    """True if ``record`` is selected by the secondary-index filter."""
    value = _plain(record.bins.get(index_filter.name))
    if value is None:
        return False

    if index_filter.kind == FilterKind.GEO_CONTAINS:
        return geo_matches(value, index_filter.begin)

    for item in _indexed_items(value, index_filter.collection_type):
        item = _plain(item)
        if index_filter.kind == FilterKind.RANGE:
            if _is_int(item) and index_filter.begin <= item <= index_filter.end:
                return True
        elif _same_kind(item, index_filter.begin) and item == index_filter.begin:
            return True
    return False


# =============================================================================
# EXPRESSIONS
# =============================================================================


class ExpressionEvaluator:
    """
    Evaluates an expression AST against one record.

    Example:
        >>> evaluator = ExpressionEvaluator(key, record)
        >>> evaluator.evaluate(Cmp(CmpOp.EQ, int_bin("age"), Val(30)))
        True
    """

    def __init__(self, key: Key, record: Record):
        self.key = key
        self.record = record

    def evaluate(self, exp: Exp) -> Any:
        if isinstance(exp, And):
            return all(self.evaluate(child) is True for child in exp.exps)
        if isinstance(exp, Or):
            return any(self.evaluate(child) is True for child in exp.exps)
        if isinstance(exp, Cmp):
            return self._compare(exp)
        if isinstance(exp, RegexCompare):
            return self._regex(exp)
        if isinstance(exp, GeoCompare):
            left, right = self.evaluate(exp.left), self.evaluate(exp.right)
            return left is not None and right is not None and geo_matches(left, right)
        if isinstance(exp, Bin):
            return _typed(_plain(self.record.bins.get(exp.name)), exp.type)
        if isinstance(exp, KeyExp):
            return _typed(self.key.user_key, exp.type)
        if isinstance(exp, Val):
            return exp.value
        if isinstance(exp, GeoVal):
            return exp.region
        if isinstance(exp, (ListGetByValue, MapGetByKey, MapGetByValue)):
            return self._by_value(exp)
        if isinstance(exp, (ListGetByValueRange, MapGetByKeyRange, MapGetByValueRange)):
            return self._by_range(exp)
        raise TypeError(f"Cannot evaluate expression node {type(exp).__name__}")

    def _compare(self, exp: Cmp) -> bool:
        left, right = self.evaluate(exp.left), self.evaluate(exp.right)
        if left is None or right is None or not _same_kind(left, right):
            return False
        return _COMPARE[exp.op](left, right)

    def _regex(self, exp: RegexCompare) -> bool:
        value = self.evaluate(exp.bin)
        if not isinstance(value, str):
            return False
        flags = re.IGNORECASE if exp.flags & RegexFlag.ICASE else 0
        return re.search(bre_to_python(exp.pattern), value, flags) is not None

    def _items(self, exp: Exp) -> Optional[List[Any]]:
        collection = self.evaluate(exp.bin)
        if collection is None:
            return None
        if isinstance(exp, (ListGetByValue, ListGetByValueRange)):
            return [_plain(item) for item in collection]
        if isinstance(exp, (MapGetByKey, MapGetByKeyRange)):
            return list(collection.keys())
        return [_plain(item) for item in collection.values()]

    def _result(self, exp: Exp, selected: List[Any]) -> Any:
        if exp.return_type == ReturnType.COUNT:
            return len(selected)
        return selected

    def _by_value(self, exp: Exp) -> Any:
        items = self._items(exp)
        if items is None:
            return None
        target = self.evaluate(exp.value)
        selected = [item for item in items if _same_kind(item, target) and item == target]
        return self._result(exp, selected)

    def _by_range(self, exp: Exp) -> Any:
        items = self._items(exp)
        if items is None:
            return None
        begin, end = self.evaluate(exp.begin), self.evaluate(exp.end)
        selected = [
            item for item in items
            if _same_kind(item, begin) and begin <= item < end
        ]
        return self._result(exp, selected)


def expression_matches(exp: Optional[Exp], key: Key, record: Record) -> bool:
    """True if the record passes the expression (None passes everything)."""
    if exp is None:
        return True
    return ExpressionEvaluator(key, record).evaluate(exp) is True
