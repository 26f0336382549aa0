"""
Intersection Service
====================

Applies screen-space primitives to geographic geometries.

Design:
- Binds one projection and one zoom for the duration of an operation
- Coordinates in, screen points for bookkeeping, coordinates out
- Stateless apart from the bound configuration (safe to share)
"""

from typing import List, Sequence

import supervision as sv

from cdsp_geometry.intersection import (
    contains_point,
    intersect_polygon_polyline,
    intersect_polyline_polyline,
)
from cdsp_geometry.projection import PlanarProjection, Projection
from cdsp_geometry.rings import Coordinate, points_equal
from cdsp_geometry.shapes import Geometry


class IntersectionService:
    """
    Geometry-level intersection and containment queries.

    Predicates are only meaningful in a locally flat frame, so every query
    projects coordinates at the bound zoom before testing.

    Attributes:
        projection: Injected Projection
        zoom: Zoom level fixed for this operation
        epsilon: Tolerance for point equality (0.0 = exact)
    """

    def __init__(
        self,
        projection: Projection | None = None,
        zoom: float = 0,
        epsilon: float = 0.0,
    ):
        self.projection = projection or PlanarProjection()
        self.zoom = zoom
        self.epsilon = epsilon

    def to_points(self, coords: Sequence[Sequence[float]]) -> List[sv.Point]:
        """Project a coordinate list."""
        return [self.projection.project(c, self.zoom) for c in coords]

    def to_coords(self, points: Sequence[sv.Point]) -> List[Coordinate]:
        """Unproject a screen point list."""
        return [tuple(self.projection.unproject(p, self.zoom)) for p in points]

    def contains(self, polygon: Geometry, coord: Sequence[float]) -> bool:
        """Point-in-polygon on the polygon's shell."""
        return contains_point(
            self.to_points(polygon.shell),
            self.projection.project(coord, self.zoom),
        )

    def polygon_crossings(
        self, polygon: Geometry, line: Sequence[Sequence[float]]
    ) -> List[sv.Point]:
        """Screen points where line crosses the polygon shell."""
        result = intersect_polygon_polyline(self.to_points(polygon.shell), self.to_points(line))
        return list(result.points)

    def polyline_crossings(
        self, a: Sequence[Sequence[float]], b: Sequence[Sequence[float]]
    ) -> List[sv.Point]:
        """Screen points where polyline a crosses polyline b (interpolated on a)."""
        result = intersect_polyline_polyline(self.to_points(a), self.to_points(b))
        return list(result.points)

    def same_point(self, a, b) -> bool:
        """Compare two coordinates or two screen points."""
        if isinstance(a, sv.Point):
            a = (a.x, a.y)
        if isinstance(b, sv.Point):
            b = (b.x, b.y)
        return points_equal(a, b, self.epsilon)

    def __repr__(self) -> str:
        return (
            f"IntersectionService(projection={self.projection!r}, "
            f"zoom={self.zoom}, epsilon={self.epsilon})"
        )
