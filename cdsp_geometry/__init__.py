"""
Geometry Layer
==============

Bounded Context: Vector geometry model and 2D spatial predicates.

Responsibilities:
- Geometry representation (tagged variants, style + properties)
- Point-in-polygon and polyline intersection tests (screen space)
- Coordinate <-> screen projection
- Canonical coordinate keys and ring helpers
- In-memory vector layers with hit-testing
- NO selection state, NO rendering

Design Philosophy:
- Pure functions where possible
- Exact coordinate equality unless an epsilon is configured
- Zero side effects
"""

from cdsp_geometry.shapes import Geometry, GeometryKind
from cdsp_geometry.intersection import (
    IntersectionResult,
    contains_point,
    intersect_polygon_polyline,
    intersect_polyline_polyline,
)
from cdsp_geometry.projection import (
    PlanarProjection,
    Projection,
    WebMercatorProjection,
    get_projection,
)
from cdsp_geometry.rings import (
    close_ring,
    flatten_coords,
    points_equal,
    ring_area,
    stringify_coords,
    union_dedup,
)
from cdsp_geometry.service import IntersectionService
from cdsp_geometry.layer import Layer, VectorLayer, hit_test

__all__ = [
    "Geometry",
    "GeometryKind",
    "IntersectionResult",
    "contains_point",
    "intersect_polygon_polyline",
    "intersect_polyline_polyline",
    "PlanarProjection",
    "Projection",
    "WebMercatorProjection",
    "get_projection",
    "close_ring",
    "flatten_coords",
    "points_equal",
    "ring_area",
    "stringify_coords",
    "union_dedup",
    "IntersectionService",
    "Layer",
    "VectorLayer",
    "hit_test",
]
