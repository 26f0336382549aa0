"""
Engine Layer
============

Bounded Context: Geometry transformations committed by editing tasks.

Responsibilities:
- Combine selections into multi-geometries, decompose them back
- Peel holes into polygons
- Split polygons and lines by cutting lines

Design Philosophy:
- Split engines are pure: geometries in, new geometries out
- Combine/decompose/peel copy originals before touching their layer
- Degenerate crossings fall back to the least destructive result
"""

from cdsp_engine.combine import combine, composite, decompose, explode, toggle_choice
from cdsp_engine.peel import peel, peel_rings
from cdsp_engine.split_line import line_avail_targets, split_line, split_line_by_target
from cdsp_engine.split_polygon import (
    polygon_avail_targets,
    split_polygon,
    split_polygon_by_target,
    split_with_target_common,
    split_with_target_more_two,
    target_gap,
)

__all__ = [
    "combine",
    "composite",
    "decompose",
    "explode",
    "toggle_choice",
    "peel",
    "peel_rings",
    "line_avail_targets",
    "split_line",
    "split_line_by_target",
    "polygon_avail_targets",
    "split_polygon",
    "split_polygon_by_target",
    "split_with_target_common",
    "split_with_target_more_two",
    "target_gap",
]
