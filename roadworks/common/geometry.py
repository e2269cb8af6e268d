"""Point and polyline distances on the WGS-84 ellipsoid.

Point-to-point distances are geodesic (pyproj ``Geod.inv``). Point-to-route
distances project the route and the point into an azimuthal equidistant plane
centred on the route, then take the planar point-to-segment minimum. At city
scale (spans up to ~50 km) the projection error stays well under a metre.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from pyproj import CRS, Geod, Transformer

from roadworks.common.errors import GeometryError
from roadworks.common.models import LatLon

_WGS84 = CRS.from_epsg(4326)
_GEOD = Geod(ellps="WGS84")


def distance_to_point(a: LatLon, b: LatLon) -> float:
    """Geodesic distance in metres between two points."""
    _fwd_az, _back_az, meters = _GEOD.inv(a.lon, a.lat, b.lon, b.lat)
    return float(meters)


def _segment_distance(px: float, py: float, ax: float, ay: float, bx: float, by: float) -> float:
    dx = bx - ax
    dy = by - ay
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return math.hypot(px - ax, py - ay)
    t = ((px - ax) * dx + (py - ay) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(px - (ax + t * dx), py - (ay + t * dy))


def _local_transformer(origin: LatLon) -> Transformer:
    aeqd = CRS.from_proj4(
        f"+proj=aeqd +lat_0={origin.lat} +lon_0={origin.lon} +x_0=0 +y_0=0 +datum=WGS84 +units=m"
    )
    return Transformer.from_crs(_WGS84, aeqd, always_xy=True)


class RouteProjection:
    """A route projected once, queried for many points."""

    def __init__(self, line: Sequence[LatLon]) -> None:
        if len(line) < 2:
            raise GeometryError(f"Route polyline needs at least 2 vertices, got {len(line)}")
        self.line = tuple(LatLon(float(v[0]), float(v[1])) for v in line)
        self.origin = self.line[len(self.line) // 2]
        self._transformer = _local_transformer(self.origin)
        self._vertices = [self._project(vertex) for vertex in self.line]

    def _project(self, point: LatLon) -> tuple[float, float]:
        x, y = self._transformer.transform(point.lon, point.lat)
        return float(x), float(y)

    def distance(self, point: LatLon) -> float:
        px, py = self._project(point)
        return min(
            _segment_distance(px, py, ax, ay, bx, by)
            for (ax, ay), (bx, by) in zip(self._vertices, self._vertices[1:])
        )


def distance_to_polyline(point: LatLon, line: Sequence[LatLon]) -> float:
    """Shortest distance in metres from ``point`` to any segment of ``line``."""
    return RouteProjection(line).distance(point)


def to_lat_lon(coordinates: Iterable[Sequence[float]]) -> tuple[LatLon, ...]:
    """Convert (longitude, latitude) pairs, as GeoJSON orders them, to LatLon."""
    out = []
    for pair in coordinates:
        if len(pair) < 2:
            raise GeometryError(f"Coordinate pair has fewer than 2 values: {pair!r}")
        lon, lat = pair[0], pair[1]
        out.append(LatLon(float(lat), float(lon)))
    return tuple(out)
