"""
Polygon Split Engine
====================

Cuts a polygon by cutting lines, producing child polygons per cut.

Design:
- Pure functions over an IntersectionService (projection + zoom bound)
- Cutting lines are classified against the original polygon first
- Each cut is folded over every piece produced by the previous cut
- Unsupported crossing counts degrade to the unsplit input

Algorithm (one cut):
    The shell is walked edge by edge. A `forward` flag flips at every edge
    the cut crosses: while forward, vertices go to `main`; otherwise they go
    to the current `child`, which is closed at the next crossing. A
    multi-vertex cut additionally threads its own interior vertices (the
    gap) into `main`, and reversed into `child`.
"""

import logging
from functools import reduce
from typing import List, Sequence

import supervision as sv

from cdsp_geometry.rings import Coordinate, close_ring, drop_repeats, union_dedup
from cdsp_geometry.service import IntersectionService
from cdsp_geometry.shapes import Geometry, GeometryKind

logger = logging.getLogger(__name__)


def polygon_avail_targets(
    service: IntersectionService, polygon: Geometry, target: Geometry
) -> List[Geometry]:
    """
    Extract the usable cutting lines from a target line.

    A target segment is usable if it crosses the polygon boundary. A
    segment entering the polygon opens an inside run that collects vertices
    until the first outside vertex following an inside one; the run becomes
    one multi-vertex cut and the exit vertex is scanned again. Any other
    crossing segment becomes a 2-point cut. Runs that never leave the
    polygon are dropped.

    Returns:
        Cutting LineStrings, in target order
    """
    coords = target.coordinates
    eps = service.epsilon
    avail: List[Coordinate] = []
    avails: List[List[Coordinate]] = []
    inside_run = False

    i = 0
    while i < len(coords):
        if inside_run:
            avail = union_dedup(avail, [coords[i]], eps)
            if service.contains(polygon, coords[i - 1]) and not service.contains(polygon, coords[i]):
                inside_run = False
                avails.append(avail)
                avail = []
                i -= 1
        elif i + 1 < len(coords):
            segment = [coords[i], coords[i + 1]]
            if service.polygon_crossings(polygon, segment):
                if not service.contains(polygon, coords[i]) and service.contains(polygon, coords[i + 1]):
                    inside_run = True
                    avail = union_dedup(avail, [coords[i]], eps)
                else:
                    avails.append(segment)
        i += 1

    return [target.derive(GeometryKind.LINE_STRING, line) for line in avails if len(line) >= 2]


def _squared_distance(a: Coordinate, b: Coordinate) -> float:
    return (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2


def _pieces(polygon: Geometry, rings: Sequence[Sequence[Coordinate]], epsilon: float) -> List[Geometry]:
    pieces = []
    for ring in rings:
        ring = drop_repeats(ring, epsilon)
        if len(ring) > 1 and ring[0] == ring[-1]:
            ring = ring[:-1]
        if len(ring) >= 3:
            pieces.append(polygon.derive(GeometryKind.POLYGON, [close_ring(ring)]))
    return pieces


def split_with_target_common(
    service: IntersectionService, polygon: Geometry, target: Geometry
) -> List[Geometry]:
    """
    Split by a straight cut: one main polygon plus a child per re-entry.

    The intersection point is shared by the polygons on both sides of each
    crossed edge. A child still open when the walk ends is discarded.
    """
    ring = polygon.shell
    cut = target.coordinates
    main: List[Coordinate] = []
    child: List[Coordinate] = []
    children: List[List[Coordinate]] = []
    forward = True

    for i in range(len(ring) - 1):
        points = service.polyline_crossings(cut, [ring[i], ring[i + 1]])
        if points:
            ect = service.to_coords(points[:1])[0]
            if forward:
                main.extend([ring[i], ect])
                child.append(ect)
            else:
                main.append(ect)
                child.extend([ring[i], ect])
                children.append(child)
                child = []
            forward = not forward
        elif forward:
            main.append(ring[i])
        else:
            child.append(ring[i])

    return _pieces(polygon, [main] + children, service.epsilon)


def target_gap(
    service: IntersectionService,
    polygon: Geometry,
    target: Geometry,
    point0: sv.Point,
) -> List[Coordinate]:
    """
    Vertices of the target lying between its two boundary crossings.

    The run is oriented to start next to the crossing equal to point0.

    Args:
        service: Bound intersection service
        polygon: Polygon being cut
        target: Multi-vertex cutting line
        point0: Screen point of the crossing the ring walk met first

    Returns:
        Target coordinates strictly between the crossings
    """
    coords = target.coordinates
    record = False
    index: List[int] = []
    index_start = None

    for i in range(len(coords) - 1):
        if record:
            index.append(i)
        points = service.polygon_crossings(polygon, [coords[i], coords[i + 1]])
        if points:
            if service.same_point(points[0], point0):
                index_start = i + 1
            record = not record

    if index and index[0] != index_start:
        index.reverse()
    return [coords[i] for i in index]


def split_with_target_more_two(
    service: IntersectionService, polygon: Geometry, target: Geometry
) -> List[Geometry]:
    """
    Split by a multi-vertex cut crossing the boundary exactly twice.

    The cut's interior vertices are spliced into both halves so the split
    follows the cutting path instead of a straight chord.
    """
    ring = polygon.shell
    cut = target.coordinates
    main: List[Coordinate] = []
    child: List[Coordinate] = []
    gap: List[Coordinate] = []
    forward = True

    for i in range(len(ring) - 1):
        points = service.polyline_crossings(cut, [ring[i], ring[i + 1]])
        if not points:
            if forward:
                main.append(ring[i])
            else:
                child.append(ring[i])
            continue

        # Crossings in edge order, nearest to ring[i] first
        crossings = sorted(
            zip(points, service.to_coords(points)),
            key=lambda pc: _squared_distance(pc[1], ring[i]),
        )
        point, ect = crossings[0]
        if forward:
            main.extend([ring[i], ect])
        else:
            main.append(ect)

        if not gap:
            gap = target_gap(service, polygon, target, point)
            main.extend(gap)
            child.extend(reversed(gap))

        if forward:
            child.append(ect)
        else:
            child.extend([ring[i], ect])

        # Both crossings on one edge: the cut dips in and out through it
        if len(crossings) > 1:
            far = crossings[1][1]
            main.append(far)
            child.append(far)
        else:
            forward = not forward

    return _pieces(polygon, [main, child], service.epsilon)


def split_polygon_by_target(
    service: IntersectionService,
    polygon: Geometry,
    target: Geometry,
    multi_crossing_cuts: bool = False,
) -> List[Geometry]:
    """
    Apply one cut to one polygon.

    Exactly two boundary crossings: straight cuts use the common walk,
    multi-vertex cuts the gap-threading walk. Any other count returns the
    polygon unchanged, unless multi_crossing_cuts allows a straight cut with
    an even number of crossings. A walk leaving fewer than two pieces also
    returns the polygon unchanged.

    Returns:
        Resulting polygons ([polygon] when not split)
    """
    points = service.polygon_crossings(polygon, target.coordinates)
    straight = len(target.coordinates) == 2

    pieces: List[Geometry] = []
    if len(points) == 2:
        if straight:
            pieces = split_with_target_common(service, polygon, target)
        else:
            pieces = split_with_target_more_two(service, polygon, target)
    elif multi_crossing_cuts and straight and len(points) > 2 and len(points) % 2 == 0:
        pieces = split_with_target_common(service, polygon, target)

    # A cut grazing a vertex yields one piece equal to the polygon
    if len(pieces) < 2:
        logger.debug("cut skipped: %d boundary crossings, %d pieces", len(points), len(pieces))
        return [polygon]
    return pieces


def split_polygon(
    service: IntersectionService,
    polygon: Geometry,
    targets: Sequence[Geometry],
    multi_crossing_cuts: bool = False,
) -> List[Geometry]:
    """
    Cut a polygon by every target, chaining across the pieces.

    Targets are classified against the original polygon, then each cut is
    applied to every piece produced by the previous one.

    Args:
        service: Bound intersection service
        polygon: Source polygon
        targets: Cutting lines (LineString or MultiLineString)
        multi_crossing_cuts: See split_polygon_by_target

    Returns:
        Resulting polygons ([polygon] when no cut applies)
    """
    cuts = [
        cut
        for target in targets
        for part in target.parts()
        if part.kind is GeometryKind.LINE_STRING
        for cut in polygon_avail_targets(service, polygon, part)
    ]
    logger.debug("%d cutting line(s) from %d target(s)", len(cuts), len(targets))

    def apply_cut(pieces: List[Geometry], cut: Geometry) -> List[Geometry]:
        return [
            piece
            for current in pieces
            for piece in split_polygon_by_target(service, current, cut, multi_crossing_cuts)
        ]

    return reduce(apply_cut, cuts, [polygon])
