"""
Projection Module
=================

Coordinate <-> screen point conversion at a given zoom.

Design:
- Protocol: any object with project()/unproject() can be injected
- PlanarProjection: scale by 2**zoom, y axis flipped (screen space).
  Power-of-two scaling keeps the round trip exact.
- WebMercatorProjection: lon/lat degrees to EPSG:3857 pixel space
"""

import math
from typing import Protocol, Sequence, Tuple

import supervision as sv

TILE_SIZE = 256
MAX_LATITUDE = 85.0511287798


class Projection(Protocol):
    """Protocol for coordinate projections (interface)."""

    def project(self, coord: Sequence[float], zoom: float) -> sv.Point:
        """Convert a coordinate into a screen point at zoom."""
        ...

    def unproject(self, point: sv.Point, zoom: float) -> Tuple[float, float]:
        """Convert a screen point back into a coordinate at zoom."""
        ...


class PlanarProjection:
    """
    Projection for already-projected (planar) coordinates.

    screen = (x * 2**zoom, -y * 2**zoom)
    """

    def project(self, coord: Sequence[float], zoom: float) -> sv.Point:
        scale = 2.0 ** zoom
        return sv.Point(x=coord[0] * scale, y=-coord[1] * scale)

    def unproject(self, point: sv.Point, zoom: float) -> Tuple[float, float]:
        scale = 2.0 ** zoom
        # + 0.0 folds -0.0 into 0.0 so coordinate keys stay canonical
        return (point.x / scale + 0.0, -point.y / scale + 0.0)

    def __repr__(self) -> str:
        return "PlanarProjection()"


class WebMercatorProjection:
    """
    Spherical mercator projection for lon/lat coordinates.

    Pixel space is TILE_SIZE * 2**zoom wide, origin at the top-left
    (lon -180, lat MAX_LATITUDE).
    """

    def project(self, coord: Sequence[float], zoom: float) -> sv.Point:
        size = TILE_SIZE * 2.0 ** zoom
        lon = coord[0]
        lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, coord[1]))
        sin_lat = math.sin(math.radians(lat))
        x = (lon + 180.0) / 360.0 * size
        y = (0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)) * size
        return sv.Point(x=x, y=y)

    def unproject(self, point: sv.Point, zoom: float) -> Tuple[float, float]:
        size = TILE_SIZE * 2.0 ** zoom
        lon = point.x / size * 360.0 - 180.0
        n = math.pi - 2.0 * math.pi * point.y / size
        lat = math.degrees(math.atan(math.sinh(n)))
        return (lon, lat)

    def __repr__(self) -> str:
        return "WebMercatorProjection()"


PROJECTIONS = {
    "planar": PlanarProjection,
    "web_mercator": WebMercatorProjection,
}


def get_projection(name: str) -> Projection:
    """
    Look up a projection by name.

    Raises:
        ValueError: If name is unknown
    """
    try:
        return PROJECTIONS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown projection: {name!r}. "
            f"Available projections: {', '.join(sorted(PROJECTIONS))}"
        )
