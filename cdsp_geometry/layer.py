"""
Vector Layer Module
===================

Ordered geometry collection with hit-testing.

Design:
- Layer protocol: the host map's layers only need these five methods
- VectorLayer: in-memory implementation for headless use and tests
- Hit-testing in coordinate space with an absolute tolerance
"""

from typing import Iterator, List, Optional, Protocol, Sequence

import numpy as np

from cdsp_geometry.intersection import contains_point
from cdsp_geometry.shapes import Geometry, GeometryKind


class Layer(Protocol):
    """Protocol for geometry layers (interface)."""

    def identify(self, coord: Sequence[float]) -> List[Geometry]:
        """Geometries hit at coord, top-most first."""
        ...

    def get_geometries(self) -> List[Geometry]:
        """Snapshot of the layer's geometries in draw order."""
        ...

    def add(self, geometry: Geometry, index: Optional[int] = None) -> Geometry:
        """Attach geometry (appended, or inserted at index)."""
        ...

    def remove(self, geometry: Geometry) -> None:
        """Detach geometry."""
        ...

    def index_of(self, geometry: Geometry) -> int:
        """Draw-order position of geometry, -1 if absent."""
        ...


def _point_segment_distance(point: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Distances from point to each segment a[i]->b[i]."""
    ab = b - a
    length_sq = np.einsum("ij,ij->i", ab, ab)
    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.einsum("ij,ij->i", point - a, ab) / length_sq
    t = np.where(length_sq == 0, 0.0, np.clip(t, 0.0, 1.0))
    closest = a + ab * t[:, None]
    return np.linalg.norm(point - closest, axis=1)


def _near_path(path, coord: np.ndarray, tolerance: float) -> bool:
    pts = np.asarray([c[:2] for c in path], dtype=float)
    if len(pts) == 1:
        return bool(np.linalg.norm(pts[0] - coord) <= tolerance)
    return bool(np.min(_point_segment_distance(coord, pts[:-1], pts[1:])) <= tolerance)


def hit_test(geometry: Geometry, coord: Sequence[float], tolerance: float = 0.0) -> bool:
    """
    Check if coord hits geometry.

    Points and lines hit within tolerance; polygons hit inside their shell
    or within tolerance of it.
    """
    xy = np.asarray(coord[:2], dtype=float)
    kind = geometry.kind
    if kind.is_multi:
        return any(hit_test(part, coord, tolerance) for part in geometry.parts())
    if kind is GeometryKind.POINT:
        return _near_path([geometry.coordinates], xy, tolerance)
    if kind is GeometryKind.LINE_STRING:
        return _near_path(geometry.coordinates, xy, tolerance)
    if kind is GeometryKind.POLYGON:
        shell = [c[:2] for c in geometry.shell]
        return contains_point(shell, xy) or _near_path(shell, xy, tolerance)
    raise ValueError(f"Unsupported geometry kind: {kind!r}")


class VectorLayer:
    """
    In-memory geometry layer.

    Attributes:
        name: Layer identifier
        tolerance: Hit-test tolerance in coordinate units

    Example:
        layer = VectorLayer("parcels")
        layer.add(Geometry.polygon([(0, 0), (4, 0), (4, 4), (0, 4)]))
        layer.identify((1, 1))  # -> [polygon]
    """

    def __init__(self, name: str = "layer", tolerance: float = 0.0):
        self.name = name
        self.tolerance = tolerance
        self._geometries: List[Geometry] = []

    def identify(self, coord: Sequence[float]) -> List[Geometry]:
        """Geometries hit at coord, top-most (last added) first."""
        return [g for g in reversed(self._geometries) if hit_test(g, coord, self.tolerance)]

    def get_geometries(self) -> List[Geometry]:
        return list(self._geometries)

    def get_geometry_by_id(self, geometry_id: str) -> Optional[Geometry]:
        for geometry in self._geometries:
            if geometry.id == geometry_id:
                return geometry
        return None

    def add(self, geometry: Geometry, index: Optional[int] = None) -> Geometry:
        """
        Attach geometry, moving it from its previous layer if needed.

        Args:
            geometry: Geometry to add
            index: Draw-order position (default: on top)

        Returns:
            The added geometry
        """
        if geometry.layer is not None:
            geometry.layer.remove(geometry)
        if index is None or index < 0 or index > len(self._geometries):
            self._geometries.append(geometry)
        else:
            self._geometries.insert(index, geometry)
        geometry.layer = self
        return geometry

    def remove(self, geometry: Geometry) -> None:
        index = self.index_of(geometry)
        if index >= 0:
            del self._geometries[index]
            geometry.layer = None

    def index_of(self, geometry: Geometry) -> int:
        for i, item in enumerate(self._geometries):
            if item is geometry:
                return i
        return -1

    def clear(self) -> None:
        for geometry in self._geometries:
            geometry.layer = None
        self._geometries.clear()

    def __contains__(self, geometry: Geometry) -> bool:
        return self.index_of(geometry) >= 0

    def __iter__(self) -> Iterator[Geometry]:
        return iter(list(self._geometries))

    def __len__(self) -> int:
        return len(self._geometries)

    def __repr__(self) -> str:
        return f"VectorLayer(name={self.name!r}, geometries={len(self._geometries)})"
