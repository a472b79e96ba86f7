"""Ownership checks against territory already claimed by other players.

The gate asks a :class:`TerritoryOracle` about the current point before a
recording starts and about the path snapshot on a fixed interval while
recording. ``InMemoryTerritoryStore`` is a local oracle over a set of known
polygons; a server-backed oracle only needs the same two query methods.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from ..config import (
    COLLISION_CAUTION_M,
    COLLISION_CHECK_INTERVAL_S,
    COLLISION_CHECK_ON_START,
    COLLISION_DANGER_M,
    COLLISION_WARNING_M,
)
from ..claim_payload import path_json_to_points
from ..geometry.collision import PolygonProximity, path_proximity, point_proximity
from ..geometry.projection import LocalFrame
from ..models import BoundingBox, GeoPoint


class CollisionLevel(str, Enum):
    NONE = "none"
    PROXIMITY = "proximity"
    VIOLATION = "violation"


class ProximityBand(str, Enum):
    """Distance bands to another territory, tightest last."""

    CAUTION = "caution"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class CollisionReport:
    level: CollisionLevel = CollisionLevel.NONE
    band: Optional[ProximityBand] = None
    distance_m: Optional[float] = None
    territory_id: Optional[str] = None
    owner_id: Optional[str] = None

    @classmethod
    def clear(cls) -> "CollisionReport":
        return cls()

    @property
    def is_violation(self) -> bool:
        return self.level is CollisionLevel.VIOLATION


class TerritoryOracle(Protocol):
    def check_point(self, point: GeoPoint) -> CollisionReport: ...

    def check_path(self, points: Sequence[GeoPoint]) -> CollisionReport: ...


def band_for_distance(
    distance_m: float,
    *,
    danger_m: float = COLLISION_DANGER_M,
    warning_m: float = COLLISION_WARNING_M,
    caution_m: float = COLLISION_CAUTION_M,
) -> Optional[ProximityBand]:
    if distance_m <= danger_m:
        return ProximityBand.DANGER
    if distance_m <= warning_m:
        return ProximityBand.WARNING
    if distance_m <= caution_m:
        return ProximityBand.CAUTION
    return None


@dataclass(frozen=True)
class OwnedTerritory:
    """Another player's recorded polygon."""

    territory_id: str
    owner_id: str
    points: Tuple[GeoPoint, ...]
    bounding_box: BoundingBox = field(init=False)

    def __post_init__(self) -> None:
        if len(self.points) < 3:
            raise ValueError("A territory needs at least three points")
        object.__setattr__(self, "bounding_box", BoundingBox.from_points(self.points))

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "OwnedTerritory":
        """Build a territory from a stored row (``path`` as lat/lon dicts)."""

        points = tuple(path_json_to_points(record.get("path") or []))
        return cls(str(record["id"]), str(record["user_id"]), points)


class InMemoryTerritoryStore:
    """Territory oracle over a local collection of other players' polygons.

    Territories owned by ``player_id`` are ignored. Bounding boxes grown by
    the caution distance filter candidates before any projected geometry is
    built.
    """

    def __init__(
        self,
        territories: Iterable[OwnedTerritory] = (),
        *,
        player_id: Optional[str] = None,
        danger_m: float = COLLISION_DANGER_M,
        warning_m: float = COLLISION_WARNING_M,
        caution_m: float = COLLISION_CAUTION_M,
    ) -> None:
        if not danger_m <= warning_m <= caution_m:
            raise ValueError("Proximity bands must satisfy danger <= warning <= caution")
        self._lock = threading.Lock()
        self._territories: Dict[str, OwnedTerritory] = {}
        self.player_id = player_id
        self._bands = {"danger_m": danger_m, "warning_m": warning_m, "caution_m": caution_m}
        self._caution_m = caution_m
        for territory in territories:
            self.add(territory)

    def add(self, territory: OwnedTerritory) -> None:
        with self._lock:
            self._territories[territory.territory_id] = territory

    def remove(self, territory_id: str) -> None:
        with self._lock:
            self._territories.pop(territory_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._territories)

    def candidates(self, points: Sequence[GeoPoint]) -> List[OwnedTerritory]:
        """Foreign territories whose grown bounding box meets ``points``' box."""

        if not points:
            return []
        query_box = BoundingBox.from_points(points)
        with self._lock:
            territories = list(self._territories.values())
        return [
            territory
            for territory in territories
            if territory.owner_id != self.player_id
            and territory.bounding_box.expanded(self._caution_m).intersects(query_box)
        ]

    def bbox_collides(self, points: Sequence[GeoPoint]) -> bool:
        """Return True when ``points`` fall inside any foreign bounding box."""

        if not points:
            return False
        query_box = BoundingBox.from_points(points)
        return any(
            territory.bounding_box.intersects(query_box)
            for territory in self.candidates(points)
        )

    def check_point(self, point: GeoPoint) -> CollisionReport:
        return self._classify(
            [point], lambda territory, frame: point_proximity(point, territory.points, frame)
        )

    def check_path(self, points: Sequence[GeoPoint]) -> CollisionReport:
        if not points:
            return CollisionReport.clear()
        return self._classify(
            points,
            lambda territory, frame: path_proximity(points, territory.points, frame),
        )

    def _classify(self, points: Sequence[GeoPoint], measure) -> CollisionReport:
        nearest: Optional[Tuple[float, OwnedTerritory]] = None
        for territory in self.candidates(points):
            frame = LocalFrame.around(list(territory.points) + list(points))
            proximity: PolygonProximity = measure(territory, frame)
            if proximity.overlaps:
                return CollisionReport(
                    CollisionLevel.VIOLATION,
                    distance_m=0.0,
                    territory_id=territory.territory_id,
                    owner_id=territory.owner_id,
                )
            if nearest is None or proximity.distance_m < nearest[0]:
                nearest = (proximity.distance_m, territory)
        if nearest is None:
            return CollisionReport.clear()
        distance, territory = nearest
        band = band_for_distance(distance, **self._bands)
        if band is None:
            return CollisionReport(distance_m=distance)
        return CollisionReport(
            CollisionLevel.PROXIMITY,
            band=band,
            distance_m=distance,
            territory_id=territory.territory_id,
            owner_id=territory.owner_id,
        )


class CollisionGate:
    """Pace and interpret territory oracle queries for one session."""

    def __init__(
        self,
        oracle: Optional[TerritoryOracle] = None,
        *,
        interval_s: float = COLLISION_CHECK_INTERVAL_S,
        check_on_start: bool = COLLISION_CHECK_ON_START,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be greater than zero")
        self.oracle = oracle
        self.interval_s = interval_s
        self.check_on_start = check_on_start
        self.last_report: CollisionReport = CollisionReport.clear()
        self.last_checked_at: Optional[float] = None
        self._log = logger or logging.getLogger(self.__class__.__name__)

    @property
    def band(self) -> Optional[ProximityBand]:
        return self.last_report.band

    def reset(self, now: Optional[float] = None) -> None:
        self.last_report = CollisionReport.clear()
        self.last_checked_at = now

    def check_start(self, point: GeoPoint, now: Optional[float] = None) -> CollisionReport:
        """Query the start point and count it as the first interval check.

        When no check runs, the first periodic check is due immediately.
        """

        if self.oracle is None or not self.check_on_start:
            return CollisionReport.clear()
        report = self.oracle.check_point(point)
        self.last_report = report
        self.last_checked_at = now
        self._log.debug("Start check at (%.6f, %.6f): %s", point.lat, point.lon, report.level.value)
        return report

    def due(self, now: float) -> bool:
        if self.oracle is None:
            return False
        return self.last_checked_at is None or now - self.last_checked_at >= self.interval_s

    def mark_checked(self, now: float) -> None:
        self.last_checked_at = now

    def query_path(self, points: Sequence[GeoPoint]) -> CollisionReport:
        """Ask the oracle about a path snapshot; a single point is a point query."""

        if self.oracle is None or not points:
            return CollisionReport.clear()
        if len(points) == 1:
            return self.oracle.check_point(points[0])
        return self.oracle.check_path(points)

    def record(self, report: CollisionReport) -> None:
        self.last_report = report


__all__ = [
    "CollisionGate",
    "CollisionLevel",
    "CollisionReport",
    "InMemoryTerritoryStore",
    "OwnedTerritory",
    "ProximityBand",
    "TerritoryOracle",
    "band_for_distance",
]
