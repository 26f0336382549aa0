"""
Coordinate Ring Utilities
=========================

Pure helpers over nested coordinate structures - NO state, NO side effects.

Design:
- Canonical string keys for selection-set membership
- Order-preserving union with value equality
- Exact comparison by default, optional epsilon
"""

import json
from typing import Any, Iterable, List, Sequence, Tuple

import numpy as np

Coordinate = Tuple[float, ...]
Ring = List[Coordinate]


def to_coordinate(value: Sequence[float]) -> Coordinate:
    """Coerce an (x, y[, z]) sequence into a float tuple."""
    if len(value) not in (2, 3):
        raise ValueError(f"Coordinate must have 2 or 3 values, got {len(value)}")
    return tuple(float(v) for v in value)


def points_equal(a: Sequence[float], b: Sequence[float], epsilon: float = 0.0) -> bool:
    """
    Compare two coordinates (or screen points as tuples).

    Args:
        a: First coordinate
        b: Second coordinate
        epsilon: Absolute tolerance per axis (0.0 = exact equality)

    Returns:
        True if both coordinates are equal within epsilon
    """
    if a is None or b is None:
        return False
    if epsilon <= 0.0:
        return tuple(a) == tuple(b)
    if len(a) != len(b):
        return False
    return all(abs(x - y) <= epsilon for x, y in zip(a, b))


def close_ring(ring: Iterable[Sequence[float]]) -> Ring:
    """Return a copy of ring with the first coordinate repeated at the end."""
    closed = [to_coordinate(c) for c in ring]
    if closed and closed[0] != closed[-1]:
        closed.append(closed[0])
    return closed


def normalize_coordinates(kind, coordinates: Any) -> Any:
    """
    Coerce nested coordinates for a geometry kind into float tuples.

    Polygon rings are closed. Nesting depth is dictated by kind.depth:
    Point -> coord, LineString/MultiPoint -> [coord],
    Polygon/MultiLineString -> [[coord]], MultiPolygon -> [[[coord]]].
    """
    return _normalize(coordinates, kind.depth, kind.is_polygonal)


def _normalize(coordinates: Any, depth: int, closed: bool) -> Any:
    if depth == 0:
        return to_coordinate(coordinates)
    if depth == 1:
        return close_ring(coordinates) if closed else [to_coordinate(c) for c in coordinates]
    return [_normalize(item, depth - 1, closed) for item in coordinates]


def flatten_coords(coordinates: Any) -> List[Coordinate]:
    """Flatten any nesting of coordinates into a flat coordinate list."""
    if not coordinates:
        return []
    if isinstance(coordinates[0], (int, float)):
        return [tuple(coordinates)]
    flat: List[Coordinate] = []
    for item in coordinates:
        flat.extend(flatten_coords(item))
    return flat


def _to_json_ready(coordinates: Any) -> Any:
    if isinstance(coordinates, (list, tuple)):
        return [_to_json_ready(c) for c in coordinates]
    return coordinates


def stringify_coords(geometry):
    """
    Canonical serialization of a geometry's coordinate structure.

    Used purely as a set-membership key: two geometries with identical
    coordinate structure produce the same string.

    Args:
        geometry: A Geometry, or a list of Geometries

    Returns:
        str for a single geometry, list[str] for a list
    """
    if isinstance(geometry, (list, tuple)):
        return [stringify_coords(item) for item in geometry]
    return json.dumps(_to_json_ready(geometry.coordinates), separators=(",", ":"))


def union_dedup(list_a: Sequence, list_b: Sequence, epsilon: float = 0.0) -> list:
    """
    Set union preserving first-seen order.

    Equality is deep value equality on coordinates (exact unless epsilon).
    Duplicates already present in list_a are removed as well.
    """
    result: list = []
    for item in list(list_a) + list(list_b):
        if not any(points_equal(item, seen, epsilon) for seen in result):
            result.append(item)
    return result


def drop_repeats(coords: Sequence[Coordinate], epsilon: float = 0.0) -> List[Coordinate]:
    """Remove consecutive duplicate coordinates."""
    result: List[Coordinate] = []
    for coord in coords:
        if not result or not points_equal(result[-1], coord, epsilon):
            result.append(coord)
    return result


def ring_area(ring: Sequence[Sequence[float]]) -> float:
    """Absolute shoelace area of a ring (closed or open)."""
    if len(ring) < 3:
        return 0.0
    pts = np.array([c[:2] for c in ring], dtype=float)
    x, y = pts[:, 0], pts[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y)) / 2.0)
