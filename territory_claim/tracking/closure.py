"""Advisory closeability check re-run after every recorded point."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..geometry.area import polygon_area_m2
from ..geometry.distance import haversine_m
from ..models import ClosureThresholds
from ..rejections import ClosureCondition, ConditionFailure
from .recorder import PathSnapshot


@dataclass(frozen=True)
class ClosureCheck:
    """Result of evaluating a snapshot against the closure thresholds.

    Conditions are evaluated in order and the first failure stops the check,
    so ``area_m2`` and ``distance_to_start_m`` stay None when an earlier
    condition failed.
    """

    closeable: bool
    point_count: int
    length_m: float
    area_m2: Optional[float] = None
    distance_to_start_m: Optional[float] = None
    failure: Optional[ConditionFailure] = None


class ClosureEvaluator:
    """Decide whether the player may confirm closure.

    The flag only tells the player closure is available; it never closes the
    path.
    """

    def __init__(self, thresholds: ClosureThresholds) -> None:
        self._thresholds = thresholds
        self.last_check: Optional[ClosureCheck] = None

    @property
    def closeable(self) -> bool:
        return self.last_check is not None and self.last_check.closeable

    def reset(self) -> None:
        self.last_check = None

    def evaluate(self, snapshot: PathSnapshot) -> ClosureCheck:
        check = self.check(snapshot)
        self.last_check = check
        return check

    def check(self, snapshot: PathSnapshot) -> ClosureCheck:
        """Evaluate ``snapshot`` without touching ``last_check``."""

        t = self._thresholds
        count = snapshot.point_count
        length = snapshot.length_m
        if count < t.min_points:
            return self._fail(
                snapshot, ClosureCondition.POINT_COUNT, float(count), float(t.min_points)
            )
        if length < t.min_length_m:
            return self._fail(snapshot, ClosureCondition.LENGTH, length, t.min_length_m)
        area = polygon_area_m2(snapshot.points)
        if area < t.min_area_m2:
            return self._fail(
                snapshot, ClosureCondition.AREA, area, t.min_area_m2, area=area
            )
        first, last = snapshot.points[0], snapshot.points[-1]
        distance = haversine_m(last, first)
        if distance > t.closure_distance_m:
            return self._fail(
                snapshot,
                ClosureCondition.PROXIMITY,
                distance,
                t.closure_distance_m,
                area=area,
                distance=distance,
            )
        return ClosureCheck(
            closeable=True,
            point_count=count,
            length_m=length,
            area_m2=area,
            distance_to_start_m=distance,
        )

    @staticmethod
    def _fail(
        snapshot: PathSnapshot,
        condition: ClosureCondition,
        current: float,
        required: float,
        *,
        area: Optional[float] = None,
        distance: Optional[float] = None,
    ) -> ClosureCheck:
        return ClosureCheck(
            closeable=False,
            point_count=snapshot.point_count,
            length_m=snapshot.length_m,
            area_m2=area,
            distance_to_start_m=distance,
            failure=ConditionFailure(condition, current, required),
        )


__all__ = ["ClosureCheck", "ClosureEvaluator"]
