"""
Peel Engine
===========

Punches holes into a polygon using the shells of target polygons.
"""

import logging
from typing import List, Sequence, Tuple

from cdsp_geometry.shapes import Geometry, GeometryKind

logger = logging.getLogger(__name__)


def peel_rings(polygon: Geometry, targets: Sequence[Geometry]) -> list:
    """
    Ring list of the peeled polygon.

    The source's rings come first, then the shell of every target polygon
    (every part of a MultiPolygon target). Targets are not checked for
    containment.
    """
    rings = [list(ring) for ring in polygon.coordinates]
    for target in targets:
        for part in target.parts():
            if part.kind is GeometryKind.POLYGON:
                rings.append(list(part.shell))
    return rings


def peel(polygon: Geometry, targets: Sequence[Geometry]) -> Tuple[Geometry, List[Geometry]]:
    """
    Replace polygon with a copy holed by the targets.

    Targets are copied into deals and removed from their layers; the result
    takes the source's position in its layer and inherits its style.

    Args:
        polygon: Source polygon
        targets: Polygons / MultiPolygons defining the holes

    Returns:
        (result, deals)
    """
    result = polygon.derive(GeometryKind.POLYGON, peel_rings(polygon, targets))

    deals: List[Geometry] = []
    for target in targets:
        deals.append(target.copy())
        target.remove()

    layer = polygon.layer
    if layer is not None:
        index = layer.index_of(polygon)
        layer.remove(polygon)
        layer.add(result, index=index)

    logger.debug(
        "peeled %d target(s) into polygon with %d rings",
        len(targets), len(result.coordinates),
    )
    return result, deals
