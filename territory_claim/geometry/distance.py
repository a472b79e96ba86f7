"""Great-circle distance helpers on the shared mean-radius sphere."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from ..config import EARTH_RADIUS_M
from ..models import GeoPoint

MetricArray = NDArray[np.float64]


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Return the great-circle distance between two points in metres."""

    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.lon - a.lon)
    h = (
        math.sin(d_lat / 2.0) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2.0) ** 2
    )
    return 2.0 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def segment_lengths_m(points: Sequence[GeoPoint]) -> MetricArray:
    """Return the length of every consecutive segment of an open path."""

    if len(points) < 2:
        return np.zeros(0, dtype=float)
    lats = np.radians(np.asarray([pt.lat for pt in points], dtype=float))
    lons = np.radians(np.asarray([pt.lon for pt in points], dtype=float))
    d_lat = np.diff(lats)
    d_lon = np.diff(lons)
    h = (
        np.sin(d_lat / 2.0) ** 2
        + np.cos(lats[:-1]) * np.cos(lats[1:]) * np.sin(d_lon / 2.0) ** 2
    )
    return 2.0 * EARTH_RADIUS_M * np.arcsin(np.minimum(1.0, np.sqrt(h)))


def path_length_m(points: Sequence[GeoPoint]) -> float:
    """Return the walked length of an open path in metres."""

    return float(np.sum(segment_lengths_m(points)))


__all__ = ["haversine_m", "path_length_m", "segment_lengths_m"]
