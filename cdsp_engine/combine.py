"""
Combine / Decompose Engine
==========================

Merges selected geometries into one multi-geometry, or explodes a
multi-geometry into its parts.

Design:
- Selection membership by canonical coordinate key, not identity
- Originals are copied before being removed from their layer
- Result kind dispatched on the first part's GeometryKind
"""

import logging
from typing import List, Optional, Sequence, Tuple

from cdsp_geometry.layer import Layer
from cdsp_geometry.rings import stringify_coords
from cdsp_geometry.shapes import Geometry

logger = logging.getLogger(__name__)


def composite(parts: Sequence[Geometry], pivot: Geometry) -> Optional[Geometry]:
    """
    Wrap parts into a single multi-geometry.

    The multi kind follows the first part; mixed lists are not validated.

    Args:
        parts: Single geometries to merge
        pivot: Geometry whose symbol and properties the result inherits

    Returns:
        MultiPoint / MultiLineString / MultiPolygon, or None for no parts
    """
    if not parts:
        return None
    merged = Geometry.multi(list(parts))
    return pivot.derive(merged.kind, merged.coordinates)


def toggle_choice(
    chosen: Sequence[Geometry], hit: Geometry, force_remove: bool = False
) -> Tuple[Geometry, ...]:
    """
    Toggle hit's membership in the selection.

    Every entry whose coordinate key matches hit is removed. If nothing was
    removed (and force_remove is False) the hit is appended instead.

    Returns:
        New selection tuple
    """
    key = stringify_coords(hit)
    remaining = tuple(geo for geo in chosen if stringify_coords(geo) != key)
    if not force_remove and len(remaining) == len(chosen):
        return tuple(chosen) + (hit,)
    return remaining


def combine(
    pivot: Geometry, chosen: Sequence[Geometry], layer: Layer
) -> Tuple[Optional[Geometry], List[Geometry]]:
    """
    Merge every layer geometry matching the selection.

    Matching geometries are copied (multi-geometries spliced into their
    parts) and removed from layer; the merged geometry is added to layer.

    Args:
        pivot: Geometry the task was started on (style source)
        chosen: Selection set
        layer: Source layer

    Returns:
        (result, deals) where deals are copies of the chosen geometries
    """
    deals = [geo.copy() for geo in chosen]
    keys = set(stringify_coords(list(chosen)))

    parts: List[Geometry] = []
    for geo in layer.get_geometries():
        if stringify_coords(geo) in keys:
            parts.extend(geo.parts())
            layer.remove(geo)

    result = composite(parts, pivot)
    if result is not None:
        layer.add(result)
    logger.debug("combined %d parts from %d chosen geometries", len(parts), len(chosen))
    return result, deals


def explode(multi: Geometry) -> List[Geometry]:
    """Copies of a multi-geometry's parts, the initial decompose selection."""
    return multi.parts()


def decompose(
    source: Geometry,
    children: Sequence[Geometry],
    chosen: Sequence[Geometry],
    layer: Layer,
) -> Tuple[Optional[Geometry], List[Geometry]]:
    """
    Commit a decomposition.

    Children still chosen are merged back into one multi-geometry placed at
    the source's former position; deselected children are re-added to layer
    as standalone geometries.

    Args:
        source: Multi-geometry being decomposed
        children: All exploded parts (see explode)
        chosen: Parts still selected
        layer: Source layer

    Returns:
        (result, deals) where deals are the standalone children
    """
    keys = set(stringify_coords(list(chosen)))
    index = layer.index_of(source)

    kept: List[Geometry] = []
    deals: List[Geometry] = []
    for child in children:
        if stringify_coords(child) in keys:
            kept.append(child.copy())
        else:
            deals.append(layer.add(child.copy()))

    layer.remove(source)
    result = composite(kept, source)
    if result is not None:
        layer.add(result, index=index)
    logger.debug("decomposed into %d kept and %d standalone parts", len(kept), len(deals))
    return result, deals
