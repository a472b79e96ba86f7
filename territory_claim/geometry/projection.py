"""Local metric projection used by the collision primitives."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray
from pyproj import CRS, Transformer
from shapely.geometry import LineString, Point, Polygon
from shapely.validation import make_valid

from ..models import GeoPoint

MetricArray = NDArray[np.float64]


def build_local_transformer(points: Sequence[GeoPoint]) -> Transformer:
    """Build a local UTM transformer centred on the provided coordinates."""

    if not points:
        raise ValueError("Cannot build a projection for an empty point collection")
    mean_lat = float(np.mean([pt.lat for pt in points]))
    mean_lon = float(np.mean([pt.lon for pt in points]))
    zone = int((mean_lon + 180.0) // 6.0) + 1
    zone = max(1, min(zone, 60))
    if mean_lat >= 0:
        epsg = 32600 + zone
    else:
        epsg = 32700 + zone
    try:
        target_crs = CRS.from_epsg(epsg)
    except Exception:
        target_crs = CRS.from_epsg(3857)
    return Transformer.from_crs(CRS.from_epsg(4326), target_crs, always_xy=True)


def project_points(points: Sequence[GeoPoint], transformer: Transformer) -> MetricArray:
    """Project points through an existing transformer into (x, y) metres."""

    if not points:
        return np.empty((0, 2), dtype=float)
    lats = np.asarray([pt.lat for pt in points], dtype=float)
    lons = np.asarray([pt.lon for pt in points], dtype=float)
    xs, ys = transformer.transform(lons, lats)
    return np.column_stack((xs, ys)).astype(float, copy=False)


@dataclass(slots=True)
class LocalFrame:
    """A metric frame in which shapely geometries of nearby points are built."""

    transformer: Transformer

    @classmethod
    def around(cls, points: Sequence[GeoPoint]) -> "LocalFrame":
        return cls(build_local_transformer(points))

    def point(self, point: GeoPoint) -> Point:
        x, y = project_points([point], self.transformer)[0]
        return Point(float(x), float(y))

    def line(self, points: Sequence[GeoPoint]) -> LineString:
        if len(points) < 2:
            raise ValueError("A line needs at least two points")
        return LineString(project_points(points, self.transformer))

    def polygon(self, points: Sequence[GeoPoint]):
        """Return a valid shapely polygon (or repaired multi-geometry)."""

        if len(points) < 3:
            raise ValueError("A polygon needs at least three points")
        shape = Polygon(project_points(points, self.transformer))
        if not shape.is_valid:
            shape = make_valid(shape)
        return shape


__all__ = ["LocalFrame", "build_local_transformer", "project_points"]
