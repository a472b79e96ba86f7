"""Movement speed classification with a grace period for GPS spikes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..geometry.distance import haversine_m
from ..models import ClosureThresholds, Sample


class SpeedStatus(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    VIOLATION = "violation"


@dataclass(frozen=True)
class SpeedVerdict:
    """Outcome of one speed evaluation.

    ``speed_mps`` is None when no speed could be derived (first sample without
    a reported speed, or no time elapsed since the previous sample).
    """

    status: SpeedStatus
    speed_mps: Optional[float] = None
    grace_exceeded: bool = False

    @property
    def accept(self) -> bool:
        return self.status is not SpeedStatus.VIOLATION

    @property
    def degraded(self) -> bool:
        return self.status is SpeedStatus.WARNING


@dataclass
class SpeedState:
    last_sample: Optional[Sample] = None
    warning: bool = False
    warning_started_at: Optional[float] = None
    last_speed_mps: Optional[float] = None

    @property
    def last_timestamp(self) -> Optional[float]:
        return self.last_sample.timestamp_s if self.last_sample is not None else None

    def reset(self) -> None:
        self.last_sample = None
        self.warning = False
        self.warning_started_at = None
        self.last_speed_mps = None


class SpeedGuard:
    """Classify speed between consecutive accepted samples.

    Speeds at or under the warning threshold are normal. Speeds above it are
    still recorded but start a grace timer measured on sample timestamps;
    staying above it for longer than the grace period, or exceeding the stop
    threshold at all, is a violation.
    """

    def __init__(self, thresholds: ClosureThresholds) -> None:
        self._thresholds = thresholds
        self.state = SpeedState()

    def reset(self) -> None:
        self.state.reset()

    @property
    def current_status(self) -> SpeedStatus:
        return SpeedStatus.WARNING if self.state.warning else SpeedStatus.NORMAL

    def evaluate(self, sample: Sample) -> SpeedVerdict:
        state = self.state
        previous = state.last_sample
        speed = self._measure(sample, previous)
        if speed is None:
            if previous is None:
                state.last_sample = sample
            return SpeedVerdict(self.current_status, None)

        state.last_sample = sample
        state.last_speed_mps = speed
        thresholds = self._thresholds

        if speed > thresholds.speed_stop_mps:
            return SpeedVerdict(SpeedStatus.VIOLATION, speed)

        if speed > thresholds.speed_warning_mps:
            if not state.warning:
                state.warning = True
                state.warning_started_at = sample.timestamp_s
            started = state.warning_started_at
            if started is not None and sample.timestamp_s - started > thresholds.speed_grace_s:
                return SpeedVerdict(SpeedStatus.VIOLATION, speed, grace_exceeded=True)
            return SpeedVerdict(SpeedStatus.WARNING, speed)

        state.warning = False
        state.warning_started_at = None
        return SpeedVerdict(SpeedStatus.NORMAL, speed)

    @staticmethod
    def _measure(sample: Sample, previous: Optional[Sample]) -> Optional[float]:
        if sample.has_reported_speed:
            return float(sample.speed_mps)
        if previous is None:
            return None
        elapsed = sample.timestamp_s - previous.timestamp_s
        if elapsed <= 0.0:
            return None
        return haversine_m(previous.point, sample.point) / elapsed


__all__ = ["SpeedGuard", "SpeedState", "SpeedStatus", "SpeedVerdict"]
