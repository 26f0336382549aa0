"""
Geometry Shapes Module
======================

Vector geometry model shared by every layer of the editor core.

Design:
- Closed tagged variant (GeometryKind enum) instead of type strings
- Style payload (symbol) and property bag travel with every geometry
- copy() detaches: derived geometries never alias their source
- Layer back-reference is bookkeeping only (excluded from equality/repr)
"""

import copy as _copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from cdsp_geometry.rings import Coordinate, normalize_coordinates


class GeometryKind(str, Enum):
    """Closed set of supported geometry variants."""

    POINT = "Point"
    LINE_STRING = "LineString"
    POLYGON = "Polygon"
    MULTI_POINT = "MultiPoint"
    MULTI_LINE_STRING = "MultiLineString"
    MULTI_POLYGON = "MultiPolygon"

    @property
    def is_multi(self) -> bool:
        return self in _PART_KIND

    @property
    def part_kind(self) -> "GeometryKind":
        """Single-geometry kind of the parts (identity for single kinds)."""
        return _PART_KIND.get(self, self)

    @property
    def multi_kind(self) -> "GeometryKind":
        """Multi-geometry kind wrapping this kind (identity for multi kinds)."""
        return _MULTI_KIND.get(self, self)

    @property
    def depth(self) -> int:
        """Nesting depth of the coordinate structure."""
        return _DEPTH[self]

    @property
    def is_polygonal(self) -> bool:
        return self.part_kind is GeometryKind.POLYGON

    def same_family(self, other: "GeometryKind") -> bool:
        """True if both kinds share the same single-geometry kind."""
        return self.part_kind is other.part_kind


_PART_KIND = {
    GeometryKind.MULTI_POINT: GeometryKind.POINT,
    GeometryKind.MULTI_LINE_STRING: GeometryKind.LINE_STRING,
    GeometryKind.MULTI_POLYGON: GeometryKind.POLYGON,
}

_MULTI_KIND = {single: multi for multi, single in _PART_KIND.items()}

_DEPTH = {
    GeometryKind.POINT: 0,
    GeometryKind.LINE_STRING: 1,
    GeometryKind.MULTI_POINT: 1,
    GeometryKind.POLYGON: 2,
    GeometryKind.MULTI_LINE_STRING: 2,
    GeometryKind.MULTI_POLYGON: 3,
}


@dataclass(eq=False)
class Geometry:
    """
    A vector geometry with style and properties.

    Attributes:
        kind: Geometry variant
        coordinates: Nested float tuples, depth given by kind.depth
        symbol: Style payload (None = renderer default)
        properties: Arbitrary attribute bag
        id: Optional identifier
        layer: Owning layer, set by the layer on add()

    Equality is identity. Use stringify_coords() for structural matching.
    """

    kind: GeometryKind
    coordinates: Any
    symbol: Optional[Dict[str, Any]] = None
    properties: Optional[Dict[str, Any]] = None
    id: Optional[str] = None
    layer: Any = field(default=None, repr=False)

    def __post_init__(self):
        """Coerce kind and normalize coordinates."""
        try:
            self.kind = GeometryKind(self.kind)
        except ValueError as e:
            raise ValueError(f"Unsupported geometry type: {self.kind!r}") from e
        self.coordinates = normalize_coordinates(self.kind, self.coordinates)

    # Constructors

    @classmethod
    def point(cls, coordinate, **kwargs) -> "Geometry":
        return cls(GeometryKind.POINT, coordinate, **kwargs)

    @classmethod
    def line_string(cls, coordinates, **kwargs) -> "Geometry":
        return cls(GeometryKind.LINE_STRING, coordinates, **kwargs)

    @classmethod
    def polygon(cls, rings, **kwargs) -> "Geometry":
        """Build a polygon from rings; a flat coordinate list is taken as the shell."""
        if rings and not isinstance(rings[0][0], (list, tuple)):
            rings = [rings]
        return cls(GeometryKind.POLYGON, rings, **kwargs)

    @classmethod
    def multi(cls, parts: List["Geometry"], **kwargs) -> "Geometry":
        """Wrap single geometries of one kind into the matching multi-geometry."""
        kind = parts[0].kind.part_kind.multi_kind
        coordinates = []
        for part in parts:
            if part.kind.is_multi:
                coordinates.extend(part.coordinates)
            else:
                coordinates.append(part.coordinates)
        return cls(kind, coordinates, **kwargs)

    # Accessors

    @property
    def is_multi(self) -> bool:
        return self.kind.is_multi

    @property
    def shell(self) -> List[Coordinate]:
        """Outer ring of a polygon, or the coordinate list of a line."""
        if self.kind is GeometryKind.POLYGON:
            return self.coordinates[0]
        if self.kind is GeometryKind.LINE_STRING:
            return self.coordinates
        raise TypeError(f"{self.kind.value} has no shell")

    def parts(self) -> List["Geometry"]:
        """
        Explode into single geometries.

        Parts inherit copies of this geometry's symbol and properties.
        A single geometry returns a one-element list with its own copy.
        """
        if not self.is_multi:
            return [self.copy()]
        return [
            Geometry(
                self.kind.part_kind,
                _copy.deepcopy(part),
                symbol=_copy.deepcopy(self.symbol),
                properties=_copy.deepcopy(self.properties),
            )
            for part in self.coordinates
        ]

    def copy(self) -> "Geometry":
        """Detached deep copy (no layer)."""
        return Geometry(
            self.kind,
            _copy.deepcopy(self.coordinates),
            symbol=_copy.deepcopy(self.symbol),
            properties=_copy.deepcopy(self.properties),
            id=self.id,
        )

    def derive(self, kind: GeometryKind, coordinates) -> "Geometry":
        """New geometry carrying this geometry's symbol and properties."""
        return Geometry(
            kind,
            coordinates,
            symbol=_copy.deepcopy(self.symbol),
            properties=_copy.deepcopy(self.properties),
        )

    def remove(self) -> None:
        """Detach from the owning layer, if any."""
        if self.layer is not None:
            self.layer.remove(self)

    # Serialization

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a GeoJSON-like dict."""
        data: Dict[str, Any] = {
            "type": self.kind.value,
            "coordinates": _as_lists(self.coordinates),
        }
        if self.id is not None:
            data["id"] = self.id
        if self.symbol is not None:
            data["symbol"] = _copy.deepcopy(self.symbol)
        if self.properties is not None:
            data["properties"] = _copy.deepcopy(self.properties)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Geometry":
        """
        Deserialize from dict.

        Raises:
            ValueError: If required keys missing or values invalid
        """
        try:
            return cls(
                kind=data["type"],
                coordinates=data["coordinates"],
                symbol=data.get("symbol"),
                properties=data.get("properties"),
                id=data.get("id"),
            )
        except KeyError as e:
            raise ValueError(f"Missing required geometry field: {e}") from e
        except (TypeError, IndexError) as e:
            raise ValueError(f"Invalid geometry data: {e}") from e


def _as_lists(coordinates: Any) -> Any:
    if isinstance(coordinates, tuple):
        return list(coordinates)
    return [_as_lists(c) for c in coordinates]
