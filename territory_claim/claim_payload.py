"""Serialise a validated claim into the record stored by the territory service.

The engine hands this record to the upload collaborator and keeps nothing.
Field names follow the ``territories`` table.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from polyline import encode as polyline_encode
from shapely.geometry import Polygon

from .models import GeoPoint, ValidatedClaim

WKT_SRID_PREFIX = "SRID=4326;"


def points_to_path_json(points: Sequence[GeoPoint]) -> List[Dict[str, float]]:
    return [{"lat": pt.lat, "lon": pt.lon} for pt in points]


def path_json_to_points(path: Sequence[Dict[str, Any]]) -> List[GeoPoint]:
    """Inverse of :func:`points_to_path_json`; entries missing a key are skipped."""

    return [
        GeoPoint(float(entry["lat"]), float(entry["lon"]))
        for entry in path
        if "lat" in entry and "lon" in entry
    ]


def points_to_wkt(points: Sequence[GeoPoint]) -> str:
    """Return an EWKT polygon (longitude first) for PostGIS.

    The ring is closed automatically. Fewer than three points yield "".
    """

    if len(points) < 3:
        return ""
    polygon = Polygon([(pt.lon, pt.lat) for pt in points])
    return f"{WKT_SRID_PREFIX}{polygon.wkt}"


def encode_path(points: Sequence[GeoPoint], precision: int = 5) -> str:
    """Google encoded polyline of the path, useful for compact previews."""

    return polyline_encode([pt.as_tuple() for pt in points], precision)


def _iso(value: Optional[float | datetime]) -> str:
    if value is None:
        moment = datetime.now(timezone.utc)
    elif isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    else:
        moment = datetime.fromtimestamp(float(value), tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds")


def build_claim_payload(
    claim: ValidatedClaim,
    *,
    user_id: str,
    started_at: Optional[float | datetime] = None,
    completed_at: Optional[float | datetime] = None,
) -> Dict[str, Any]:
    """Return the upload record for ``claim``.

    ``started_at``/``completed_at`` default to the claim's own timestamps,
    which are epoch seconds when samples carried wall-clock time.
    """

    if claim.point_count < 3:
        raise ValueError("A claim needs at least three points")
    bbox = claim.bounding_box
    return {
        "user_id": user_id,
        "path": points_to_path_json(claim.points),
        "polygon": points_to_wkt(claim.points),
        "path_polyline": encode_path(claim.points),
        "bbox_min_lat": bbox.min_lat,
        "bbox_max_lat": bbox.max_lat,
        "bbox_min_lon": bbox.min_lon,
        "bbox_max_lon": bbox.max_lon,
        "area": claim.area_m2,
        "point_count": claim.point_count,
        "started_at": _iso(started_at if started_at is not None else claim.started_at),
        "completed_at": _iso(
            completed_at if completed_at is not None else claim.completed_at
        ),
        "is_active": True,
    }


__all__ = [
    "build_claim_payload",
    "encode_path",
    "path_json_to_points",
    "points_to_path_json",
    "points_to_wkt",
]
