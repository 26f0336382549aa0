"""
Line Split Engine
=================

Cuts a line string at its crossings with cutting lines.

Design:
- Same classification/fold structure as the polygon split engine
- No inside/outside state: lines have no interior
- Sub-lines keep the original traversal order
"""

import logging
from functools import reduce
from typing import List, Sequence

from cdsp_geometry.rings import Coordinate, drop_repeats
from cdsp_geometry.service import IntersectionService
from cdsp_geometry.shapes import Geometry, GeometryKind

logger = logging.getLogger(__name__)


def line_avail_targets(
    service: IntersectionService, line: Geometry, target: Geometry
) -> List[Geometry]:
    """Segments of target that cross line, as 2-point cutting lines."""
    coords = target.coordinates
    cuts = []
    for i in range(len(coords) - 1):
        segment = [coords[i], coords[i + 1]]
        if service.polyline_crossings(segment, line.coordinates):
            cuts.append(target.derive(GeometryKind.LINE_STRING, segment))
    return cuts


def split_line_by_target(
    service: IntersectionService, line: Geometry, target: Geometry
) -> List[Geometry]:
    """
    Apply one cut to one line.

    Each crossed segment closes the current sub-line at its first crossing
    point, which also starts the next sub-line. Sub-lines collapsing to a
    single point (cuts through a vertex) are dropped.

    Returns:
        Sub-lines in traversal order ([line] when not crossed)
    """
    coords = line.coordinates
    current: List[Coordinate] = [coords[0]]
    lines: List[List[Coordinate]] = []

    for i in range(len(coords) - 1):
        points = service.polyline_crossings(target.coordinates, [coords[i], coords[i + 1]])
        if points:
            ect = service.to_coords(points[:1])[0]
            current.append(ect)
            lines.append(current)
            current = [ect, coords[i + 1]]
        else:
            current.append(coords[i + 1])
    lines.append(current)

    if len(lines) == 1:
        return [line]

    sub_lines = [drop_repeats(sub, service.epsilon) for sub in lines]
    return [line.derive(GeometryKind.LINE_STRING, sub) for sub in sub_lines if len(sub) >= 2]


def split_line(
    service: IntersectionService, line: Geometry, targets: Sequence[Geometry]
) -> List[Geometry]:
    """
    Cut a line by every target, chaining depth-first across sub-lines.

    Args:
        service: Bound intersection service
        line: Source LineString
        targets: Cutting lines (LineString or MultiLineString)

    Returns:
        Sub-lines in traversal order ([line] when no cut applies)
    """
    cuts = [
        cut
        for target in targets
        for part in target.parts()
        if part.kind is GeometryKind.LINE_STRING
        for cut in line_avail_targets(service, line, part)
    ]
    logger.debug("%d cutting segment(s) from %d target(s)", len(cuts), len(targets))

    def apply_cut(pieces: List[Geometry], cut: Geometry) -> List[Geometry]:
        return [
            piece
            for current in pieces
            for piece in split_line_by_target(service, current, cut)
        ]

    return reduce(apply_cut, cuts, [line])
