"""Final validation run when the player confirms closure."""

from __future__ import annotations

from typing import Optional, Union

from ..geometry.area import polygon_area_m2
from ..geometry.intersection import find_self_intersection
from ..models import ClosureThresholds, ValidatedClaim
from ..rejections import (
    AreaTooSmall,
    ClaimRejection,
    ClosureCondition,
    ConditionFailure,
    NotCloseable,
    SelfIntersecting,
)
from .closure import ClosureCheck
from .recorder import PathRecorder

ClaimResult = Union[ValidatedClaim, ClaimRejection]


class ClaimValidator:
    """Turn a closeable path into a :class:`ValidatedClaim` or a rejection.

    Checks run in a fixed order: the advisory closeable flag, point count and
    length, self-intersection, then area. Only success closes the path; any
    rejection leaves it open so the player can keep walking.
    """

    def __init__(self, thresholds: ClosureThresholds) -> None:
        self._thresholds = thresholds

    def confirm(
        self,
        recorder: PathRecorder,
        last_check: Optional[ClosureCheck],
        *,
        completed_at: Optional[float] = None,
    ) -> ClaimResult:
        t = self._thresholds
        if last_check is None or not last_check.closeable:
            return _not_closeable(recorder, last_check, t)

        snapshot = recorder.snapshot()
        failures = []
        if snapshot.point_count < t.min_points:
            failures.append(
                ConditionFailure(
                    ClosureCondition.POINT_COUNT,
                    float(snapshot.point_count),
                    float(t.min_points),
                )
            )
        if snapshot.length_m < t.min_length_m:
            failures.append(
                ConditionFailure(ClosureCondition.LENGTH, snapshot.length_m, t.min_length_m)
            )
        if failures:
            return NotCloseable(tuple(failures))

        crossing = find_self_intersection(
            snapshot.points, head_skip=t.head_skip, tail_skip=t.tail_skip
        )
        if crossing is not None:
            return SelfIntersecting(crossing[0], crossing[1])

        area = polygon_area_m2(snapshot.points)
        if area < t.min_area_m2:
            return AreaTooSmall(measured_m2=area, required_m2=t.min_area_m2)

        recorder.mark_closed()
        path = recorder.path
        return ValidatedClaim(
            points=snapshot.points,
            area_m2=area,
            length_m=snapshot.length_m,
            started_at=path.started_at,
            completed_at=completed_at if completed_at is not None else path.last_recorded_at,
        )


def _not_closeable(
    recorder: PathRecorder,
    last_check: Optional[ClosureCheck],
    thresholds: ClosureThresholds,
) -> NotCloseable:
    if last_check is not None and last_check.failure is not None:
        return NotCloseable((last_check.failure,))
    # Nothing has been evaluated yet, so the path is still short of points.
    return NotCloseable(
        (
            ConditionFailure(
                ClosureCondition.POINT_COUNT,
                float(recorder.point_count),
                float(thresholds.min_points),
            ),
        )
    )


__all__ = ["ClaimResult", "ClaimValidator"]
