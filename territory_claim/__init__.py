"""Location-based territory claiming engine."""

from .claim_payload import build_claim_payload
from .diagnostics import ClaimEventListener, DiagnosticLog, LoggingEventListener
from .errors import (
    ClaimEngineError,
    InvalidThresholdsError,
    SessionAlreadyActiveError,
    SessionAlreadyClosedError,
    SessionNotActiveError,
)
from .models import BoundingBox, ClosureThresholds, GeoPoint, Sample, ValidatedClaim
from .rejections import (
    AreaTooSmall,
    ClaimRejection,
    CollisionViolation,
    NotCloseable,
    SampleOutcome,
    SampleRejection,
    SelfIntersecting,
    SpeedViolation,
)
from .tracking import ClaimSession, InMemoryTerritoryStore, IntervalTicker, SessionState

__all__ = [
    "AreaTooSmall",
    "BoundingBox",
    "ClaimEngineError",
    "ClaimEventListener",
    "ClaimRejection",
    "ClaimSession",
    "ClosureThresholds",
    "CollisionViolation",
    "DiagnosticLog",
    "GeoPoint",
    "InMemoryTerritoryStore",
    "IntervalTicker",
    "InvalidThresholdsError",
    "LoggingEventListener",
    "NotCloseable",
    "Sample",
    "SampleOutcome",
    "SampleRejection",
    "SelfIntersecting",
    "SessionAlreadyActiveError",
    "SessionAlreadyClosedError",
    "SessionNotActiveError",
    "SessionState",
    "SpeedViolation",
    "ValidatedClaim",
    "build_claim_payload",
]
