"""Real-time path-to-polygon claiming pipeline.

Sample flow: :class:`SampleFilter` -> :class:`SpeedGuard` ->
:class:`PathRecorder` -> :class:`ClosureEvaluator`, with
:class:`CollisionGate` checks on an interval and :class:`ClaimValidator` on
explicit confirmation. :class:`ClaimSession` wires them together.
"""

from .closure import ClosureCheck, ClosureEvaluator
from .collision_gate import (
    CollisionGate,
    CollisionLevel,
    CollisionReport,
    InMemoryTerritoryStore,
    OwnedTerritory,
    ProximityBand,
    TerritoryOracle,
    band_for_distance,
)
from .filter import SampleFilter
from .recorder import PathRecorder, PathSnapshot, TrackedPath
from .session import ClaimSession, SessionState, SessionStatus
from .speed import SpeedGuard, SpeedState, SpeedStatus, SpeedVerdict
from .ticker import IntervalTicker
from .validator import ClaimResult, ClaimValidator

__all__ = [
    "ClaimResult",
    "ClaimSession",
    "ClaimValidator",
    "ClosureCheck",
    "ClosureEvaluator",
    "CollisionGate",
    "CollisionLevel",
    "CollisionReport",
    "InMemoryTerritoryStore",
    "IntervalTicker",
    "OwnedTerritory",
    "PathRecorder",
    "PathSnapshot",
    "ProximityBand",
    "SampleFilter",
    "SessionState",
    "SessionStatus",
    "SpeedGuard",
    "SpeedState",
    "SpeedStatus",
    "SpeedVerdict",
    "TerritoryOracle",
    "TrackedPath",
    "band_for_distance",
]
