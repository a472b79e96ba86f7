"""Append-only record of the points that make up an in-progress claim."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..errors import SessionAlreadyClosedError
from ..geometry.area import polygon_area_m2
from ..geometry.distance import haversine_m
from ..models import ClosureThresholds, GeoPoint
from ..rejections import SampleRejection


@dataclass(frozen=True)
class PathSnapshot:
    """Immutable view of a tracked path at one instant."""

    points: Tuple[GeoPoint, ...] = ()
    length_m: float = 0.0
    closed: bool = False

    @property
    def point_count(self) -> int:
        return len(self.points)

    @property
    def first(self) -> Optional[GeoPoint]:
        return self.points[0] if self.points else None

    @property
    def last(self) -> Optional[GeoPoint]:
        return self.points[-1] if self.points else None

    def area_m2(self) -> float:
        return polygon_area_m2(self.points)


@dataclass
class TrackedPath:
    points: List[GeoPoint] = field(default_factory=list)
    length_m: float = 0.0
    closed: bool = False
    closeable: bool = False
    started_at: Optional[float] = None
    last_recorded_at: Optional[float] = None

    @property
    def last_point(self) -> Optional[GeoPoint]:
        return self.points[-1] if self.points else None


class PathRecorder:
    """Accumulate speed-cleared points while suppressing stationary jitter."""

    def __init__(self, thresholds: ClosureThresholds) -> None:
        self._thresholds = thresholds
        self.path = TrackedPath()

    @property
    def last_point(self) -> Optional[GeoPoint]:
        return self.path.last_point

    @property
    def closed(self) -> bool:
        return self.path.closed

    @property
    def point_count(self) -> int:
        return len(self.path.points)

    @property
    def length_m(self) -> float:
        return self.path.length_m

    def append(
        self, point: GeoPoint, timestamp_s: Optional[float] = None
    ) -> Optional[SampleRejection]:
        """Record ``point`` unless it sits within the jitter radius.

        Returns ``SampleRejection.JITTER`` for dropped points; nothing about
        the path changes in that case.
        """

        path = self.path
        if path.closed:
            raise SessionAlreadyClosedError("Path is closed; no further points")
        previous = path.last_point
        increment = 0.0
        if previous is not None:
            increment = haversine_m(previous, point)
            if increment < self._thresholds.min_point_spacing_m:
                return SampleRejection.JITTER
        path.points.append(point)
        if previous is not None:
            path.length_m += increment
        if path.started_at is None:
            path.started_at = timestamp_s
        path.last_recorded_at = timestamp_s
        return None

    def snapshot(self) -> PathSnapshot:
        path = self.path
        return PathSnapshot(tuple(path.points), path.length_m, path.closed)

    def mark_closed(self) -> None:
        self.path.closed = True
        self.path.closeable = False

    def clear(self) -> None:
        self.path = TrackedPath()


__all__ = ["PathRecorder", "PathSnapshot", "TrackedPath"]
