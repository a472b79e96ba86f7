"""Claiming session: the sequential fold over a player's position samples.

One session owns one tracked path. Every mutation (samples, confirmation,
cancellation) runs under the session lock in call order. Periodic collision
checks read a snapshot under the lock and query the oracle outside it, so a
slow territory lookup never blocks incoming samples.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
import logging
import threading
import time
from typing import Callable, Iterable, Optional

from ..config import COLLISION_CHECK_INTERVAL_S, COLLISION_CHECK_ON_START
from ..diagnostics import ClaimEventListener, ListenerGroup
from ..errors import (
    SessionAlreadyActiveError,
    SessionAlreadyClosedError,
    SessionNotActiveError,
)
from ..models import ClosureThresholds, GeoPoint, Sample, ValidatedClaim
from ..rejections import (
    ClaimRejection,
    CollisionViolation,
    SampleOutcome,
    SampleRejection,
    SessionTermination,
    SpeedViolation,
)
from .closure import ClosureCheck, ClosureEvaluator
from .collision_gate import CollisionGate, CollisionReport, ProximityBand, TerritoryOracle
from .filter import SampleFilter
from .recorder import PathRecorder, PathSnapshot
from .speed import SpeedGuard, SpeedStatus
from .validator import ClaimResult, ClaimValidator


class SessionState(str, Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    CLOSED = "closed"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class SessionStatus:
    """Everything a UI layer may read about a session at one instant."""

    state: SessionState
    point_count: int
    length_m: float
    area_m2: float
    closeable: bool
    speed_status: SpeedStatus
    speed_warning: bool
    collision_band: Optional[ProximityBand]
    termination: Optional[SessionTermination]


class ClaimSession:
    """Record a walked loop and turn it into a validated territory claim.

    Starting a new recording while one is open raises
    ``SessionAlreadyActiveError``; the caller must cancel first. A
    confirmation validates the path exactly as it stood when the call was
    made: samples arriving meanwhile wait for the lock and are refused once
    the claim is closed.
    """

    def __init__(
        self,
        thresholds: Optional[ClosureThresholds] = None,
        *,
        oracle: Optional[TerritoryOracle] = None,
        listeners: Iterable[ClaimEventListener] = (),
        collision_interval_s: float = COLLISION_CHECK_INTERVAL_S,
        collision_check_on_start: bool = COLLISION_CHECK_ON_START,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.thresholds = thresholds or ClosureThresholds.from_config()
        self.listeners = ListenerGroup(listeners)
        self._clock = clock
        self._log = logger or logging.getLogger(self.__class__.__name__)
        self._lock = threading.RLock()

        self._filter = SampleFilter(self.thresholds)
        self._speed = SpeedGuard(self.thresholds)
        self._recorder = PathRecorder(self.thresholds)
        self._evaluator = ClosureEvaluator(self.thresholds)
        self._validator = ClaimValidator(self.thresholds)
        self._gate = CollisionGate(
            oracle,
            interval_s=collision_interval_s,
            check_on_start=collision_check_on_start,
            logger=self._log,
        )

        self._state = SessionState.IDLE
        self._termination: Optional[SessionTermination] = None
        self._last_rejection: Optional[SampleRejection] = None
        self._generation = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start_tracking(self, origin: Optional[GeoPoint] = None) -> CollisionReport:
        """Reset all state and begin accepting samples.

        When ``origin`` is given and an oracle is configured, the point is
        checked first; a violation leaves the session idle and is returned
        (and stored as :attr:`termination`).
        """

        with self._lock:
            if self._state is SessionState.TRACKING:
                raise SessionAlreadyActiveError(
                    "A recording is already open; cancel it before starting another"
                )
            self._reset()
            report = CollisionReport.clear()
            if origin is not None:
                report = self._gate.check_start(origin, self._clock())
                self.listeners.emit("on_collision_report", report)
                if report.is_violation:
                    termination = CollisionViolation(
                        territory_id=report.territory_id,
                        owner_id=report.owner_id,
                        point=origin,
                    )
                    self._termination = termination
                    self._log.warning(
                        "Cannot start inside territory %s", report.territory_id
                    )
                    self.listeners.emit("on_session_terminated", termination)
                    return report
            self._state = SessionState.TRACKING
            self._generation += 1
            self._log.info("Tracking started")
            self.listeners.emit("on_tracking_started")
            return report

    def cancel_tracking(self) -> None:
        """Discard the recording and return to idle.

        Also acknowledges a forced stop. A validated claim cannot be
        cancelled.
        """

        with self._lock:
            if self._state is SessionState.CLOSED:
                raise SessionAlreadyClosedError("Claim already validated")
            if self._state is SessionState.IDLE:
                raise SessionNotActiveError("No recording to cancel")
            self._reset()
            self._generation += 1
            self._log.info("Tracking cancelled")
            self.listeners.emit("on_tracking_cancelled")

    # ------------------------------------------------------------------
    # Sample stream
    # ------------------------------------------------------------------
    def ingest_sample(self, sample: Sample) -> SampleOutcome:
        """Apply one sample: filter, speed check, record, closure re-check."""

        with self._lock:
            self._require_tracking()
            rejection = self._filter.check(
                sample, self._recorder.last_point, self._recorder.path.last_recorded_at
            )
            if rejection is not None:
                return self._drop(sample, rejection)

            previous_status = self._speed.current_status
            verdict = self._speed.evaluate(sample)
            if verdict.status is not previous_status:
                self.listeners.emit("on_speed_state_changed", verdict)
            if not verdict.accept:
                self._terminate(
                    SpeedViolation(
                        timestamp_s=sample.timestamp_s,
                        speed_mps=verdict.speed_mps or 0.0,
                        grace_exceeded=verdict.grace_exceeded,
                    )
                )
                return SampleOutcome.TERMINATED

            rejection = self._recorder.append(sample.point, sample.timestamp_s)
            if rejection is not None:
                return self._drop(sample, rejection)
            self._last_rejection = None

            self.listeners.emit(
                "on_point_recorded",
                sample.point,
                self._recorder.point_count,
                self._recorder.length_m,
            )
            self._recheck_closure()
            return SampleOutcome.RECORDED

    def consume(self, samples: Iterable[Sample]) -> Counter:
        """Fold ``samples`` in order until the session stops tracking."""

        outcomes: Counter = Counter()
        for sample in samples:
            with self._lock:
                if self._state is not SessionState.TRACKING:
                    break
                outcomes[self.ingest_sample(sample)] += 1
        return outcomes

    # ------------------------------------------------------------------
    # Closure
    # ------------------------------------------------------------------
    def confirm_closure(self, completed_at: Optional[float] = None) -> ClaimResult:
        with self._lock:
            self._require_tracking()
            result = self._validator.confirm(
                self._recorder, self._evaluator.last_check, completed_at=completed_at
            )
            if isinstance(result, ValidatedClaim):
                self._state = SessionState.CLOSED
                self._log.info(
                    "Claim validated: %d points, %.0f m2", result.point_count, result.area_m2
                )
                self.listeners.emit("on_claim_validated", result)
            else:
                self._log.info("Closure rejected: %s", result.describe())
                self.listeners.emit("on_claim_rejected", result)
            return result

    # ------------------------------------------------------------------
    # Periodic collision check
    # ------------------------------------------------------------------
    def on_tick(self, now: Optional[float] = None) -> Optional[CollisionReport]:
        """Run the interval collision check when it is due.

        Returns the oracle's report, or None when nothing was checked or the
        recording changed while the oracle was being queried.
        """

        now = self._clock() if now is None else now
        with self._lock:
            if self._state is not SessionState.TRACKING or not self._gate.due(now):
                return None
            snapshot = self._recorder.snapshot()
            if not snapshot.points:
                return None
            generation = self._generation
            self._gate.mark_checked(now)

        report = self._gate.query_path(snapshot.points)

        with self._lock:
            if generation != self._generation or self._state is not SessionState.TRACKING:
                self._log.debug("Discarding collision report for a superseded recording")
                return None
            self._gate.record(report)
            self.listeners.emit("on_collision_report", report)
            if report.is_violation:
                self._terminate(
                    CollisionViolation(
                        territory_id=report.territory_id,
                        owner_id=report.owner_id,
                        point=snapshot.last,
                    )
                )
            return report

    # ------------------------------------------------------------------
    # Readable state
    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self._state is SessionState.TRACKING

    @property
    def termination(self) -> Optional[SessionTermination]:
        return self._termination

    @property
    def last_sample_rejection(self) -> Optional[SampleRejection]:
        return self._last_rejection

    @property
    def closure_check(self) -> Optional[ClosureCheck]:
        return self._evaluator.last_check

    @property
    def point_count(self) -> int:
        return self._recorder.point_count

    @property
    def length_m(self) -> float:
        return self._recorder.length_m

    @property
    def is_closeable(self) -> bool:
        return self._evaluator.closeable

    @property
    def speed_warning(self) -> bool:
        return self._speed.state.warning

    @property
    def collision_band(self) -> Optional[ProximityBand]:
        return self._gate.band

    def snapshot(self) -> PathSnapshot:
        with self._lock:
            return self._recorder.snapshot()

    def live_area_m2(self) -> float:
        """Area of the open path as if it were closed now."""

        return self.snapshot().area_m2()

    def status(self) -> SessionStatus:
        with self._lock:
            snapshot = self._recorder.snapshot()
            return SessionStatus(
                state=self._state,
                point_count=snapshot.point_count,
                length_m=snapshot.length_m,
                area_m2=snapshot.area_m2(),
                closeable=self._evaluator.closeable,
                speed_status=self._speed.current_status,
                speed_warning=self._speed.state.warning,
                collision_band=self._gate.band,
                termination=self._termination,
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _require_tracking(self) -> None:
        if self._state is SessionState.CLOSED:
            raise SessionAlreadyClosedError("Claim already validated; start a new recording")
        if self._state is not SessionState.TRACKING:
            raise SessionNotActiveError(f"Session is {self._state.value}, not tracking")

    def _drop(self, sample: Sample, reason: SampleRejection) -> SampleOutcome:
        self._last_rejection = reason
        self.listeners.emit("on_sample_rejected", sample, reason)
        return SampleOutcome.DROPPED

    def _recheck_closure(self) -> None:
        was_closeable = self._evaluator.closeable
        check = self._evaluator.evaluate(self._recorder.snapshot())
        self._recorder.path.closeable = check.closeable
        if check.closeable != was_closeable:
            self.listeners.emit("on_closure_state_changed", check)

    def _terminate(self, termination: SessionTermination) -> None:
        self._reset()
        self._state = SessionState.TERMINATED
        self._termination = termination
        self._generation += 1
        self._log.warning("Tracking stopped: %s", termination.describe())
        self.listeners.emit("on_session_terminated", termination)

    def _reset(self) -> None:
        self._recorder.clear()
        self._speed.reset()
        self._evaluator.reset()
        self._gate.reset()
        self._state = SessionState.IDLE
        self._termination = None
        self._last_rejection = None


__all__ = ["ClaimSession", "SessionState", "SessionStatus"]
