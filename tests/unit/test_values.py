"""
Unit tests for Value.
"""

import numpy as np
import pytest

from binquery.core.exceptions import InvalidArgumentError
from binquery.core.values import INT64_MAX, INT64_MIN, ParticleType, Value


class TestValueTypes:
    """Particle type inference."""

    @pytest.mark.parametrize(
        "obj, particle_type",
        [
            (None, ParticleType.NULL),
            (7, ParticleType.INTEGER),
            (True, ParticleType.INTEGER),
            (np.int32(7), ParticleType.INTEGER),
            (1.5, ParticleType.DOUBLE),
            (np.float32(1.5), ParticleType.DOUBLE),
            ("x", ParticleType.STRING),
            ([1, 2], ParticleType.LIST),
            ((1, 2), ParticleType.LIST),
            ({"a": 1}, ParticleType.MAP),
        ],
    )
    def test_get(self, obj, particle_type):
        assert Value.get(obj).type == particle_type

    def test_geo(self):
        value = Value.geo('{"type": "Point", "coordinates": [0, 0]}')
        assert value.type == ParticleType.GEOJSON
        assert value.to_string().startswith("{")

    def test_get_returns_existing_value(self):
        value = Value.get(5)
        assert Value.get(value) is value

    def test_unsupported_type(self):
        with pytest.raises(InvalidArgumentError):
            Value.get(object())


class TestValueConversions:
    """Conversions between value types."""

    def test_numpy_integer_becomes_int(self):
        value = Value.get(np.int64(42))
        assert value.to_long() == 42
        assert type(value.object) is int

    def test_to_long_range(self):
        assert Value.get(INT64_MAX).to_long() == INT64_MAX
        assert Value.get(INT64_MIN).to_long() == INT64_MIN
        with pytest.raises(InvalidArgumentError):
            Value(ParticleType.INTEGER, INT64_MAX + 1).to_long()

    @pytest.mark.parametrize("obj", [INT64_MAX + 1, INT64_MIN - 1, 2 ** 64])
    def test_get_rejects_wide_integer(self, obj):
        with pytest.raises(InvalidArgumentError):
            Value.get(obj)

    def test_to_long_rejects_string(self):
        with pytest.raises(InvalidArgumentError):
            Value.get("12").to_long()

    def test_list_is_immutable_copy(self):
        source = [1, 2]
        value = Value.get(source)
        source.append(3)
        assert value.to_list() == [1, 2]

    def test_map(self):
        assert Value.get({"a": 1}).to_map() == {"a": 1}
        with pytest.raises(InvalidArgumentError):
            Value.get([1]).to_map()

    def test_dict_round_trip(self):
        for obj in (5, "s", [1, "a"], {"k": 2}, None):
            value = Value.get(obj)
            assert Value.from_dict(value.to_dict()) == value
        geo = Value.geo('{"type": "Point", "coordinates": [1, 2]}')
        assert Value.from_dict(geo.to_dict()) == geo

    def test_equality(self):
        assert Value.get(3) == Value.get(3)
        assert Value.get(3) != Value.get("3")
