"""
Intersection Primitives
=======================

Pure screen-space predicates - NO projection, NO state.

Design:
- Inputs are sequences of sv.Point (or (x, y) pairs), outputs sv.Point
- Segment tests vectorized with numpy broadcasting
- Endpoint-inclusive parameter test (0 <= t <= 1 on both segments)
- Parallel, coincident and degenerate segments yield no intersection
- Points are interpolated on the first polyline, so repeated calls with the
  same segment pair in the same roles produce identical floats
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

import numpy as np
import supervision as sv

PointLike = Union[sv.Point, Tuple[float, float], Sequence[float]]


@dataclass(frozen=True)
class IntersectionResult:
    """
    Outcome of an intersection query.

    Attributes:
        points: Intersection points in traversal order
                (segments of the first polyline outer, second inner)
    """

    points: Tuple[sv.Point, ...] = ()

    @property
    def status(self) -> str:
        return "Intersection" if self.points else "No Intersection"

    def __len__(self) -> int:
        return len(self.points)

    def __bool__(self) -> bool:
        return len(self.points) > 0


def as_array(points: Sequence[PointLike]) -> np.ndarray:
    """Convert points to an (N, 2) float array."""
    if len(points) == 0:
        return np.empty((0, 2), dtype=float)
    rows = [
        (p.x, p.y) if isinstance(p, sv.Point) else (p[0], p[1])
        for p in points
    ]
    return np.asarray(rows, dtype=float)


def _segment_intersections(
    a1: np.ndarray, a2: np.ndarray, b1: np.ndarray, b2: np.ndarray
) -> List[sv.Point]:
    """
    Intersect every segment a1[i]->a2[i] with every segment b1[j]->b2[j].

    Returns points ordered by i, then j.
    """
    if len(a1) == 0 or len(b1) == 0:
        return []

    # Shapes: a -> (N, 1), b -> (1, M)
    ax1, ay1 = a1[:, 0:1], a1[:, 1:2]
    ax2, ay2 = a2[:, 0:1], a2[:, 1:2]
    bx1, by1 = b1[:, 0][None, :], b1[:, 1][None, :]
    bx2, by2 = b2[:, 0][None, :], b2[:, 1][None, :]

    ua_t = (bx2 - bx1) * (ay1 - by1) - (by2 - by1) * (ax1 - bx1)
    ub_t = (ax2 - ax1) * (ay1 - by1) - (ay2 - ay1) * (ax1 - bx1)
    u_b = (by2 - by1) * (ax2 - ax1) - (bx2 - bx1) * (ay2 - ay1)

    with np.errstate(divide="ignore", invalid="ignore"):
        ua = ua_t / u_b
        ub = ub_t / u_b

    hit = (u_b != 0) & (ua >= 0) & (ua <= 1) & (ub >= 0) & (ub <= 1)

    points: List[sv.Point] = []
    for i, j in zip(*np.nonzero(hit)):
        t = ua[i, j]
        x = a1[i, 0] + (a2[i, 0] - a1[i, 0]) * t
        y = a1[i, 1] + (a2[i, 1] - a1[i, 1]) * t
        points.append(sv.Point(x=float(x), y=float(y)))
    return points


def intersect_polyline_polyline(
    a: Sequence[PointLike], b: Sequence[PointLike]
) -> IntersectionResult:
    """
    All intersection points between two open polylines.

    Args:
        a: First polyline (points interpolated on its segments)
        b: Second polyline

    Returns:
        IntersectionResult, segments of a outer, segments of b inner
    """
    pa, pb = as_array(a), as_array(b)
    if len(pa) < 2 or len(pb) < 2:
        return IntersectionResult()
    points = _segment_intersections(pa[:-1], pa[1:], pb[:-1], pb[1:])
    return IntersectionResult(points=tuple(points))


def intersect_polygon_polyline(
    ring: Sequence[PointLike], polyline: Sequence[PointLike]
) -> IntersectionResult:
    """
    Points where a polyline crosses a polygon ring.

    The ring is treated as closed (edge last->first included; for an
    already-closed ring that edge is degenerate and never intersects).

    Args:
        ring: Polygon boundary
        polyline: Cutting polyline (points interpolated on its segments)

    Returns:
        IntersectionResult, polyline segments outer, ring edges inner
    """
    pr, pl = as_array(ring), as_array(polyline)
    if len(pr) < 2 or len(pl) < 2:
        return IntersectionResult()
    points = _segment_intersections(pl[:-1], pl[1:], pr, np.roll(pr, -1, axis=0))
    return IntersectionResult(points=tuple(points))


def contains_point(ring: Sequence[PointLike], point: PointLike) -> bool:
    """
    Even-odd point-in-polygon test on a single ring.

    Args:
        ring: Polygon outer ring (closed or open)
        point: Point to test

    Returns:
        True if point lies inside the ring
    """
    pr = as_array(ring)
    if len(pr) < 3:
        return False
    px, py = as_array([point])[0]

    x1, y1 = pr[:, 0], pr[:, 1]
    x2, y2 = np.roll(x1, -1), np.roll(y1, -1)

    straddles = (y1 > py) != (y2 > py)
    with np.errstate(divide="ignore", invalid="ignore"):
        x_cross = (x2 - x1) * (py - y1) / (y2 - y1) + x1
    crossings = straddles & (px < x_cross)
    return bool(np.count_nonzero(crossings) % 2)
