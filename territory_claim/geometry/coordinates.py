"""WGS-84 <-> GCJ-02 conversion for region-shifted map frames.

Only used at the system boundary: samples arriving in the shifted display
frame are converted to WGS-84 before they reach a session, and claim polygons
are converted forward for display. Outside mainland China both directions are
the identity.
"""

from __future__ import annotations

import math
from typing import Iterable, List

from ..config import GCJ02_REVERSE_MAX_ITERATIONS, GCJ02_REVERSE_TOLERANCE_DEG
from ..models import GeoPoint

# Krasovsky 1940 ellipsoid used by the GCJ-02 offset.
_SEMI_MAJOR_AXIS = 6378245.0
_ECCENTRICITY_SQ = 0.00669342162296594323


def in_china(point: GeoPoint) -> bool:
    return 73.66 < point.lon < 135.05 and 3.86 < point.lat < 53.55


def wgs84_to_gcj02(point: GeoPoint) -> GeoPoint:
    if not in_china(point):
        return point
    d_lat, d_lon = _offset(point.lat, point.lon)
    return GeoPoint(point.lat + d_lat, point.lon + d_lon)


def gcj02_to_wgs84(
    point: GeoPoint,
    *,
    max_iterations: int = GCJ02_REVERSE_MAX_ITERATIONS,
    tolerance_deg: float = GCJ02_REVERSE_TOLERANCE_DEG,
) -> GeoPoint:
    """Invert :func:`wgs84_to_gcj02` by fixed-point refinement.

    A single correction step leaves errors of around a metre. Each further
    iteration shrinks the residual, so the loop stops once the forward
    transform of the estimate is within ``tolerance_deg`` of the input.
    """

    if not in_china(point):
        return point
    lat, lon = point.lat, point.lon
    for _ in range(max(1, max_iterations)):
        forward = wgs84_to_gcj02(GeoPoint(lat, lon))
        err_lat = forward.lat - point.lat
        err_lon = forward.lon - point.lon
        lat -= err_lat
        lon -= err_lon
        if abs(err_lat) < tolerance_deg and abs(err_lon) < tolerance_deg:
            break
    return GeoPoint(lat, lon)


def convert_path_to_gcj02(points: Iterable[GeoPoint]) -> List[GeoPoint]:
    return [wgs84_to_gcj02(pt) for pt in points]


def convert_path_to_wgs84(points: Iterable[GeoPoint]) -> List[GeoPoint]:
    return [gcj02_to_wgs84(pt) for pt in points]


def _offset(lat: float, lon: float) -> tuple[float, float]:
    d_lat = _transform_lat(lon - 105.0, lat - 35.0)
    d_lon = _transform_lon(lon - 105.0, lat - 35.0)
    rad_lat = lat / 180.0 * math.pi
    magic = math.sin(rad_lat)
    magic = 1 - _ECCENTRICITY_SQ * magic * magic
    sqrt_magic = math.sqrt(magic)
    d_lat = (d_lat * 180.0) / (
        (_SEMI_MAJOR_AXIS * (1 - _ECCENTRICITY_SQ)) / (magic * sqrt_magic) * math.pi
    )
    d_lon = (d_lon * 180.0) / (_SEMI_MAJOR_AXIS / sqrt_magic * math.cos(rad_lat) * math.pi)
    return d_lat, d_lon


def _transform_lat(x: float, y: float) -> float:
    ret = -100.0 + 2.0 * x + 3.0 * y + 0.2 * y * y + 0.1 * x * y + 0.2 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(y * math.pi) + 40.0 * math.sin(y / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (160.0 * math.sin(y / 12.0 * math.pi) + 320 * math.sin(y * math.pi / 30.0)) * 2.0 / 3.0
    return ret


def _transform_lon(x: float, y: float) -> float:
    ret = 300.0 + x + 2.0 * y + 0.1 * x * x + 0.1 * x * y + 0.1 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(x * math.pi) + 40.0 * math.sin(x / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (150.0 * math.sin(x / 12.0 * math.pi) + 300.0 * math.sin(x / 30.0 * math.pi)) * 2.0 / 3.0
    return ret


__all__ = [
    "convert_path_to_gcj02",
    "convert_path_to_wgs84",
    "gcj02_to_wgs84",
    "in_china",
    "wgs84_to_gcj02",
]
