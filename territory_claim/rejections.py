"""Gameplay outcomes of the claiming engine expressed as values.

None of these are raised. Sample-level drops are absorbed, session
terminations end the recording, and closure rejections leave the path open so
the player can keep walking.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .models import GeoPoint, mps_to_kmh


class SampleRejection(str, Enum):
    """Why a single sample was not recorded."""

    INVALID_COORDINATE = "invalid_coordinate"
    LOW_ACCURACY = "low_accuracy"
    IMPLAUSIBLE_JUMP = "implausible_jump"
    JITTER = "jitter"


class SampleOutcome(str, Enum):
    """Result of feeding one sample to a session."""

    RECORDED = "recorded"
    DROPPED = "dropped"
    TERMINATED = "terminated"


class ClosureCondition(str, Enum):
    """Closure conditions in the order they are evaluated."""

    POINT_COUNT = "point_count"
    LENGTH = "length"
    AREA = "area"
    PROXIMITY = "proximity"


class RejectionReason(str, Enum):
    NOT_CLOSEABLE = "not_closeable"
    SELF_INTERSECTING = "self_intersecting"
    AREA_TOO_SMALL = "area_too_small"


@dataclass(frozen=True)
class ConditionFailure:
    """A closure condition that did not hold, with the measured value."""

    condition: ClosureCondition
    current: float
    required: float

    def describe(self) -> str:
        if self.condition is ClosureCondition.PROXIMITY:
            return (
                f"{self.condition.value}: {self.current:.1f} m from start "
                f"(max {self.required:.1f} m)"
            )
        return f"{self.condition.value}: {self.current:.1f} (min {self.required:.1f})"


@dataclass(frozen=True)
class ClaimRejection:
    """Base class for a failed closure confirmation."""

    @property
    def reason(self) -> RejectionReason:  # pragma: no cover - overridden
        raise NotImplementedError

    def describe(self) -> str:
        return self.reason.value


@dataclass(frozen=True)
class NotCloseable(ClaimRejection):
    failures: Tuple[ConditionFailure, ...] = ()

    @property
    def reason(self) -> RejectionReason:
        return RejectionReason.NOT_CLOSEABLE

    @property
    def conditions(self) -> Tuple[ClosureCondition, ...]:
        return tuple(failure.condition for failure in self.failures)

    def describe(self) -> str:
        details = "; ".join(failure.describe() for failure in self.failures)
        return f"{self.reason.value} ({details})" if details else self.reason.value


@dataclass(frozen=True)
class SelfIntersecting(ClaimRejection):
    """The walked path crosses itself between the two segment indices."""

    first_segment: int = -1
    second_segment: int = -1

    @property
    def reason(self) -> RejectionReason:
        return RejectionReason.SELF_INTERSECTING

    def describe(self) -> str:
        return (
            f"{self.reason.value} (segment {self.first_segment} crosses "
            f"segment {self.second_segment})"
        )


@dataclass(frozen=True)
class AreaTooSmall(ClaimRejection):
    measured_m2: float = 0.0
    required_m2: float = 0.0

    @property
    def reason(self) -> RejectionReason:
        return RejectionReason.AREA_TOO_SMALL

    def describe(self) -> str:
        return (
            f"{self.reason.value} ({self.measured_m2:.0f} m2 of "
            f"{self.required_m2:.0f} m2 required)"
        )


@dataclass(frozen=True)
class SessionTermination:
    """Base class for a forced stop that ends a session without a claim."""

    timestamp_s: Optional[float] = None

    def describe(self) -> str:  # pragma: no cover - overridden
        return "terminated"


@dataclass(frozen=True)
class SpeedViolation(SessionTermination):
    speed_mps: float = 0.0
    grace_exceeded: bool = False

    @property
    def speed_kmh(self) -> float:
        return mps_to_kmh(self.speed_mps)

    def describe(self) -> str:
        cause = "sustained speed" if self.grace_exceeded else "speed"
        return f"{cause} {self.speed_kmh:.1f} km/h"


@dataclass(frozen=True)
class CollisionViolation(SessionTermination):
    territory_id: Optional[str] = None
    owner_id: Optional[str] = None
    point: Optional[GeoPoint] = None

    def describe(self) -> str:
        return f"entered territory {self.territory_id or 'unknown'}"


__all__ = [
    "AreaTooSmall",
    "ClaimRejection",
    "ClosureCondition",
    "CollisionViolation",
    "ConditionFailure",
    "NotCloseable",
    "RejectionReason",
    "SampleOutcome",
    "SampleRejection",
    "SelfIntersecting",
    "SessionTermination",
    "SpeedViolation",
]
