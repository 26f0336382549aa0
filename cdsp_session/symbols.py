"""
Preview Symbols
===============

Style payloads for hovered and chosen geometry previews.

Design:
- Existing symbols are recolored, never mutated in place
- Geometries without a symbol get a kind-specific default
"""

import copy
from typing import Any, Dict

import supervision as sv

from cdsp_geometry.shapes import Geometry, GeometryKind

MARKER_PATH = (
    "M8 23l0 0 0 0 0 0 0 0 0 0c-4,-5 -8,-10 -8,-14 0,-5 4,-9 8,-9l0 0 0 0"
    "c4,0 8,4 8,9 0,4 -4,9 -8,14z M3,9 a5,5 0,1,0,0,-0.9Z"
)


def default_marker_symbol(color: str) -> Dict[str, Any]:
    """Pin marker used for point previews."""
    return {
        "markerFill": color,
        "markerType": "path",
        "markerPath": [{"path": MARKER_PATH, "fill": "#DE3333"}],
        "markerPathWidth": 16,
        "markerPathHeight": 23,
        "markerWidth": 24,
        "markerHeight": 34,
    }


def symbol_or_default(geometry: Geometry, color: sv.Color, line_width: int) -> Dict[str, Any]:
    """
    Preview symbol for geometry.

    Every `*Fill` / `*Color` key of an existing symbol is set to color and
    lineWidth to line_width. Without a symbol, points get the pin marker
    and everything else a plain stroke.
    """
    hex_color = color.as_hex()
    if geometry.symbol:
        symbol = copy.deepcopy(geometry.symbol)
        for key in symbol:
            if key.endswith("Fill") or key.endswith("Color"):
                symbol[key] = hex_color
        symbol["lineWidth"] = line_width
        return symbol
    if geometry.kind.part_kind is GeometryKind.POINT:
        return default_marker_symbol(hex_color)
    return {"lineColor": hex_color, "lineWidth": line_width}


def styled_copy(geometry: Geometry, color: sv.Color, line_width: int) -> Geometry:
    """Detached copy of geometry carrying the preview symbol."""
    preview = geometry.copy()
    preview.symbol = symbol_or_default(geometry, color, line_width)
    return preview
