"""
Typed values for bins and qualifier operands.

Every value carries a runtime type discriminant (``ParticleType``) so the
compilers can dispatch on it explicitly.

Example:
    >>> Value.get(42).type
    <ParticleType.INTEGER: 1>
    >>> Value.get(["a", "b"]).to_list()
    ['a', 'b']
    >>> Value.geo('{"type": "Point", "coordinates": [1.0, 2.0]}').type
    <ParticleType.GEOJSON: 23>
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List

import numpy as np

from .exceptions import InvalidArgumentError


INT64_MIN = int(np.iinfo(np.int64).min)
INT64_MAX = int(np.iinfo(np.int64).max)


class ParticleType(IntEnum):
    """Runtime type discriminant of a stored or operand value."""

    NULL = 0
    INTEGER = 1
    DOUBLE = 2
    STRING = 3
    MAP = 19
    LIST = 20
    GEOJSON = 23


@dataclass(frozen=True)
class Value:
    """
    An immutable tagged value.

    Lists are held as tuples and maps as tuples of ``(key, value)`` pairs so
    the value never changes after construction. Use ``to_list()`` and
    ``to_map()`` to get mutable copies.
    """

    type: ParticleType
    object: Any

    @classmethod
    def get(cls, obj: Any) -> "Value":
        """Wrap a plain Python object, inferring its particle type."""
        if isinstance(obj, Value):
            return obj
        if obj is None:
            return cls(ParticleType.NULL, None)
        if isinstance(obj, (bool, np.bool_)):
            return cls(ParticleType.INTEGER, int(obj))
        if isinstance(obj, (int, np.integer)):
            value = int(obj)
            if not INT64_MIN <= value <= INT64_MAX:
                raise InvalidArgumentError(f"Integer out of 64-bit range: {value}")
            return cls(ParticleType.INTEGER, value)
        if isinstance(obj, (float, np.floating)):
            return cls(ParticleType.DOUBLE, float(obj))
        if isinstance(obj, str):
            return cls(ParticleType.STRING, obj)
        if isinstance(obj, (list, tuple)):
            return cls(ParticleType.LIST, tuple(obj))
        if isinstance(obj, dict):
            return cls(ParticleType.MAP, tuple(obj.items()))
        raise InvalidArgumentError(
            f"Unsupported value type: {type(obj).__name__}"
        )

    @classmethod
    def geo(cls, region: str) -> "Value":
        """Wrap a GeoJSON string."""
        if not isinstance(region, str):
            raise InvalidArgumentError(
                f"GeoJSON value must be a string, got {type(region).__name__}"
            )
        return cls(ParticleType.GEOJSON, region)

    def to_long(self) -> int:
        """Return the value as a 64-bit signed integer."""
        if self.type == ParticleType.INTEGER:
            result = self.object
        elif self.type == ParticleType.DOUBLE:
            result = int(self.object)
        else:
            raise InvalidArgumentError(
                f"Cannot convert {self.type.name} value to integer"
            )
        if not INT64_MIN <= result <= INT64_MAX:
            raise InvalidArgumentError(f"Integer out of 64-bit range: {result}")
        return result

    def to_double(self) -> float:
        if self.type in (ParticleType.INTEGER, ParticleType.DOUBLE):
            return float(self.object)
        raise InvalidArgumentError(
            f"Cannot convert {self.type.name} value to double"
        )

    def to_string(self) -> str:
        if self.type in (ParticleType.STRING, ParticleType.GEOJSON):
            return self.object
        if self.type == ParticleType.NULL:
            return ""
        return str(self.object)

    def to_list(self) -> List[Any]:
        if self.type != ParticleType.LIST:
            raise InvalidArgumentError(
                f"Cannot convert {self.type.name} value to list"
            )
        return list(self.object)

    def to_map(self) -> Dict[Any, Any]:
        if self.type != ParticleType.MAP:
            raise InvalidArgumentError(
                f"Cannot convert {self.type.name} value to map"
            )
        return dict(self.object)

    def to_python(self) -> Any:
        """Return the plain Python object (list/dict for collections)."""
        if self.type == ParticleType.LIST:
            return self.to_list()
        if self.type == ParticleType.MAP:
            return self.to_map()
        return self.object

    def to_dict(self) -> Dict[str, Any]:
        if self.type == ParticleType.MAP:
            payload: Any = [list(item) for item in self.object]
        elif self.type == ParticleType.LIST:
            payload = list(self.object)
        else:
            payload = self.object
        return {"type": self.type.name, "value": payload}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Value":
        particle_type = ParticleType[data["type"]]
        payload = data["value"]
        if particle_type == ParticleType.GEOJSON:
            return cls.geo(payload)
        if particle_type == ParticleType.MAP:
            return cls(ParticleType.MAP, tuple(tuple(item) for item in payload))
        if particle_type == ParticleType.LIST:
            return cls(ParticleType.LIST, tuple(payload))
        return cls(particle_type, payload)

    def __str__(self) -> str:
        return self.to_string()
