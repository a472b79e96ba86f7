"""Dataclasses describing position samples, thresholds and claim results."""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Iterable, Optional, Tuple

from .config import (
    CLAIM_CLOSURE_DISTANCE_M,
    CLAIM_MAX_ACCURACY_M,
    CLAIM_MAX_JUMP_M,
    CLAIM_MAX_PLAUSIBLE_SPEED_KMH,
    CLAIM_MIN_AREA_M2,
    CLAIM_MIN_LENGTH_M,
    CLAIM_MIN_POINT_SPACING_M,
    CLAIM_MIN_POINTS,
    CLAIM_SPEED_GRACE_S,
    CLAIM_SPEED_STOP_KMH,
    CLAIM_SPEED_WARNING_KMH,
    EARTH_RADIUS_M,
    SELF_INTERSECTION_HEAD_SKIP,
    SELF_INTERSECTION_TAIL_SKIP,
)
from .errors import InvalidThresholdsError

LatLon = Tuple[float, float]

_METRES_PER_DEGREE = EARTH_RADIUS_M * math.pi / 180.0


def kmh_to_mps(value: float) -> float:
    return float(value) / 3.6


def mps_to_kmh(value: float) -> float:
    return float(value) * 3.6


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """WGS-84 latitude/longitude pair in degrees."""

    lat: float
    lon: float

    @property
    def is_valid(self) -> bool:
        return (
            math.isfinite(self.lat)
            and math.isfinite(self.lon)
            and -90.0 <= self.lat <= 90.0
            and -180.0 <= self.lon <= 180.0
        )

    def as_tuple(self) -> LatLon:
        return (self.lat, self.lon)


@dataclass(frozen=True, slots=True)
class Sample:
    """A single reading pushed by the location source.

    ``speed_mps`` is the speed reported by the device; negative or non-finite
    values mean the device did not know its speed.
    """

    point: GeoPoint
    accuracy_m: float
    speed_mps: float
    timestamp_s: float

    @classmethod
    def at(
        cls,
        lat: float,
        lon: float,
        *,
        accuracy_m: float = 5.0,
        speed_mps: float = -1.0,
        timestamp_s: float = 0.0,
    ) -> "Sample":
        return cls(GeoPoint(lat, lon), accuracy_m, speed_mps, timestamp_s)

    @property
    def has_reported_speed(self) -> bool:
        return math.isfinite(self.speed_mps) and self.speed_mps >= 0.0


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned lat/lon bounds of a point collection."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @classmethod
    def from_points(cls, points: Iterable[GeoPoint]) -> "BoundingBox":
        pts = list(points)
        if not pts:
            raise ValueError("Cannot bound an empty point collection")
        lats = [pt.lat for pt in pts]
        lons = [pt.lon for pt in pts]
        return cls(min(lats), max(lats), min(lons), max(lons))

    def contains(self, point: GeoPoint) -> bool:
        return (
            self.min_lat <= point.lat <= self.max_lat
            and self.min_lon <= point.lon <= self.max_lon
        )

    def intersects(self, other: "BoundingBox") -> bool:
        return not (
            other.min_lat > self.max_lat
            or other.max_lat < self.min_lat
            or other.min_lon > self.max_lon
            or other.max_lon < self.min_lon
        )

    def expanded(self, margin_m: float) -> "BoundingBox":
        """Return the box grown by ``margin_m`` metres on every side."""

        d_lat = margin_m / _METRES_PER_DEGREE
        mid_lat = math.radians((self.min_lat + self.max_lat) / 2.0)
        cos_lat = max(math.cos(mid_lat), 1e-6)
        d_lon = d_lat / cos_lat
        return BoundingBox(
            max(self.min_lat - d_lat, -90.0),
            min(self.max_lat + d_lat, 90.0),
            max(self.min_lon - d_lon, -180.0),
            min(self.max_lon + d_lon, 180.0),
        )


@dataclass(frozen=True, slots=True)
class ClosureThresholds:
    """Fixed configuration bundle for one claiming session.

    Speeds are in metres per second. ``head_skip``/``tail_skip`` name how many
    leading and trailing segments are excluded from being compared against each
    other by the self-intersection check.
    """

    min_points: int = CLAIM_MIN_POINTS
    min_length_m: float = CLAIM_MIN_LENGTH_M
    min_area_m2: float = CLAIM_MIN_AREA_M2
    closure_distance_m: float = CLAIM_CLOSURE_DISTANCE_M
    min_point_spacing_m: float = CLAIM_MIN_POINT_SPACING_M
    speed_warning_mps: float = kmh_to_mps(CLAIM_SPEED_WARNING_KMH)
    speed_stop_mps: float = kmh_to_mps(CLAIM_SPEED_STOP_KMH)
    speed_grace_s: float = CLAIM_SPEED_GRACE_S
    max_accuracy_m: float = CLAIM_MAX_ACCURACY_M
    max_jump_m: float = CLAIM_MAX_JUMP_M
    max_plausible_speed_mps: float = kmh_to_mps(CLAIM_MAX_PLAUSIBLE_SPEED_KMH)
    head_skip: int = SELF_INTERSECTION_HEAD_SKIP
    tail_skip: int = SELF_INTERSECTION_TAIL_SKIP

    def __post_init__(self) -> None:
        if self.speed_stop_mps <= self.speed_warning_mps:
            raise InvalidThresholdsError(
                "speed_stop_mps must be greater than speed_warning_mps"
            )
        if self.min_point_spacing_m >= self.closure_distance_m:
            raise InvalidThresholdsError(
                "min_point_spacing_m must be smaller than closure_distance_m"
            )
        if self.min_points < 3:
            raise InvalidThresholdsError("min_points must be >= 3")
        if self.speed_grace_s < 0 or self.head_skip < 0 or self.tail_skip < 0:
            raise InvalidThresholdsError(
                "speed_grace_s, head_skip and tail_skip must be non-negative"
            )
        if self.max_accuracy_m <= 0 or self.max_jump_m <= 0:
            raise InvalidThresholdsError(
                "max_accuracy_m and max_jump_m must be greater than zero"
            )
        if self.max_plausible_speed_mps <= self.speed_stop_mps:
            raise InvalidThresholdsError(
                "max_plausible_speed_mps must be greater than speed_stop_mps"
            )

    @classmethod
    def from_config(cls) -> "ClosureThresholds":
        """Return the bundle described by :mod:`territory_claim.config`."""

        return cls()


@dataclass(frozen=True, slots=True)
class ValidatedClaim:
    """Closed territory polygon produced by a successful confirmation.

    The first point is implicitly connected back to the last one.
    """

    points: Tuple[GeoPoint, ...]
    area_m2: float
    length_m: float
    started_at: Optional[float] = None
    completed_at: Optional[float] = None

    @property
    def point_count(self) -> int:
        return len(self.points)

    @property
    def bounding_box(self) -> BoundingBox:
        return BoundingBox.from_points(self.points)

    def latlon_points(self) -> list[LatLon]:
        return [pt.as_tuple() for pt in self.points]


__all__ = [
    "BoundingBox",
    "ClosureThresholds",
    "GeoPoint",
    "LatLon",
    "Sample",
    "ValidatedClaim",
    "kmh_to_mps",
    "mps_to_kmh",
]
