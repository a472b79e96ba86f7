"""Per-sample admission checks applied before any state is touched."""

from __future__ import annotations

import math
from typing import Optional

from ..geometry.distance import haversine_m
from ..models import ClosureThresholds, GeoPoint, Sample
from ..rejections import SampleRejection


class SampleFilter:
    """Reject malformed, low-accuracy and teleporting samples.

    Stateless: the last recorded point and its timestamp are owned by the path
    recorder and passed in by the caller.
    """

    def __init__(self, thresholds: ClosureThresholds) -> None:
        self._thresholds = thresholds

    def check(
        self,
        sample: Sample,
        previous: Optional[GeoPoint] = None,
        previous_timestamp_s: Optional[float] = None,
    ) -> Optional[SampleRejection]:
        """Return the reason ``sample`` must be dropped, or None to accept it."""

        if not sample.point.is_valid or not math.isfinite(sample.timestamp_s):
            return SampleRejection.INVALID_COORDINATE
        accuracy = sample.accuracy_m
        # A negative accuracy is the device saying it has no fix.
        if not math.isfinite(accuracy) or accuracy < 0.0:
            return SampleRejection.LOW_ACCURACY
        if accuracy > self._thresholds.max_accuracy_m:
            return SampleRejection.LOW_ACCURACY
        if previous is not None:
            limit = self.jump_limit_m(sample.timestamp_s, previous_timestamp_s)
            if haversine_m(previous, sample.point) > limit:
                return SampleRejection.IMPLAUSIBLE_JUMP
        return None

    def jump_limit_m(
        self, timestamp_s: float, previous_timestamp_s: Optional[float]
    ) -> float:
        """Largest plausible distance from the previous point at ``timestamp_s``.

        Never below ``max_jump_m``; grows with the time elapsed since the
        previous point at the plausible-speed ceiling.
        """

        t = self._thresholds
        if previous_timestamp_s is None or not math.isfinite(previous_timestamp_s):
            return t.max_jump_m
        elapsed = max(timestamp_s - previous_timestamp_s, 0.0)
        return max(t.max_jump_m, t.max_plausible_speed_mps * elapsed)


__all__ = ["SampleFilter"]
