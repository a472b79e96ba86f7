"""Diagnostic events emitted by a claiming session.

Sessions never print. They call the optional listeners registered with them;
``LoggingEventListener`` forwards events to :mod:`logging` and ``DiagnosticLog``
keeps a bounded, exportable history for on-device debugging.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import logging
import threading
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

from .config import DIAGNOSTIC_LOG_MAX_ENTRIES
from .models import GeoPoint, Sample, ValidatedClaim, mps_to_kmh
from .rejections import ClaimRejection, SampleRejection, SessionTermination

if TYPE_CHECKING:  # pragma: no cover
    from .tracking.closure import ClosureCheck
    from .tracking.collision_gate import CollisionReport
    from .tracking.speed import SpeedVerdict


class ClaimEventListener:
    """No-op base class; override the hooks you care about."""

    def on_tracking_started(self) -> None:
        pass

    def on_tracking_cancelled(self) -> None:
        pass

    def on_sample_rejected(self, sample: Sample, reason: SampleRejection) -> None:
        pass

    def on_point_recorded(self, point: GeoPoint, point_count: int, length_m: float) -> None:
        pass

    def on_speed_state_changed(self, verdict: "SpeedVerdict") -> None:
        pass

    def on_closure_state_changed(self, check: "ClosureCheck") -> None:
        pass

    def on_collision_report(self, report: "CollisionReport") -> None:
        pass

    def on_session_terminated(self, termination: SessionTermination) -> None:
        pass

    def on_claim_rejected(self, rejection: ClaimRejection) -> None:
        pass

    def on_claim_validated(self, claim: ValidatedClaim) -> None:
        pass


class ListenerGroup:
    """Fan events out to several listeners.

    A failing listener is logged and skipped so observers can never corrupt
    session state.
    """

    def __init__(self, listeners: Iterable[ClaimEventListener] = ()) -> None:
        self._listeners: List[ClaimEventListener] = list(listeners)
        self._log = logging.getLogger(self.__class__.__name__)

    def add(self, listener: ClaimEventListener) -> None:
        self._listeners.append(listener)

    def remove(self, listener: ClaimEventListener) -> None:
        self._listeners.remove(listener)

    def __len__(self) -> int:
        return len(self._listeners)

    def emit(self, hook: str, *args: object) -> None:
        for listener in tuple(self._listeners):
            try:
                getattr(listener, hook)(*args)
            except Exception:
                self._log.exception(
                    "Listener %s failed handling %s", type(listener).__name__, hook
                )


class LoggingEventListener(ClaimEventListener):
    """Forward session events to a standard library logger."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._log = logger or logging.getLogger("territory_claim.session")

    def on_tracking_started(self) -> None:
        self._log.info("Tracking started")

    def on_tracking_cancelled(self) -> None:
        self._log.info("Tracking cancelled")

    def on_sample_rejected(self, sample: Sample, reason: SampleRejection) -> None:
        self._log.debug(
            "Sample at t=%.1f dropped: %s (accuracy=%.1fm)",
            sample.timestamp_s,
            reason.value,
            sample.accuracy_m,
        )

    def on_point_recorded(self, point: GeoPoint, point_count: int, length_m: float) -> None:
        self._log.debug(
            "Recorded point #%d (%.6f, %.6f), length %.1fm",
            point_count,
            point.lat,
            point.lon,
            length_m,
        )

    def on_speed_state_changed(self, verdict: "SpeedVerdict") -> None:
        speed = verdict.speed_mps if verdict.speed_mps is not None else 0.0
        if verdict.degraded:
            self._log.warning("Speed warning: %.1f km/h", mps_to_kmh(speed))
        else:
            self._log.info("Speed %s (%.1f km/h)", verdict.status.value, mps_to_kmh(speed))

    def on_closure_state_changed(self, check: "ClosureCheck") -> None:
        if check.closeable:
            self._log.info(
                "Loop closeable: %d points, %.1fm, %.0f m2",
                check.point_count,
                check.length_m,
                check.area_m2 or 0.0,
            )
        else:
            failure = check.failure.describe() if check.failure else "unknown"
            self._log.info("Loop no longer closeable: %s", failure)

    def on_collision_report(self, report: "CollisionReport") -> None:
        if report.band is not None:
            self._log.warning(
                "Territory %s nearby: %s band, %.1fm",
                report.territory_id,
                report.band.value,
                report.distance_m or 0.0,
            )

    def on_session_terminated(self, termination: SessionTermination) -> None:
        self._log.warning("Tracking stopped: %s", termination.describe())

    def on_claim_rejected(self, rejection: ClaimRejection) -> None:
        self._log.info("Closure rejected: %s", rejection.describe())

    def on_claim_validated(self, claim: ValidatedClaim) -> None:
        self._log.info(
            "Claim validated: %d points, %.1fm, %.0f m2",
            claim.point_count,
            claim.length_m,
            claim.area_m2,
        )


class DiagnosticLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class DiagnosticEntry:
    message: str
    level: DiagnosticLevel = DiagnosticLevel.INFO
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def display_text(self) -> str:
        return f"[{self.timestamp:%H:%M:%S}] [{self.level.value}] {self.message}"

    @property
    def export_text(self) -> str:
        return f"[{self.timestamp:%Y-%m-%d %H:%M:%S}] [{self.level.value}] {self.message}"


class DiagnosticLog(ClaimEventListener):
    """Bounded in-memory history of session events.

    Oldest entries are discarded once ``max_entries`` is reached.
    """

    def __init__(self, max_entries: int = DIAGNOSTIC_LOG_MAX_ENTRIES) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._entries: deque[DiagnosticEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    @property
    def entries(self) -> Sequence[DiagnosticEntry]:
        with self._lock:
            return tuple(self._entries)

    def log(self, message: str, level: DiagnosticLevel = DiagnosticLevel.INFO) -> None:
        with self._lock:
            self._entries.append(DiagnosticEntry(message, level))

    def info(self, message: str) -> None:
        self.log(message, DiagnosticLevel.INFO)

    def success(self, message: str) -> None:
        self.log(message, DiagnosticLevel.SUCCESS)

    def warning(self, message: str) -> None:
        self.log(message, DiagnosticLevel.WARNING)

    def error(self, message: str) -> None:
        self.log(message, DiagnosticLevel.ERROR)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def text(self) -> str:
        return "\n".join(entry.display_text for entry in self.entries)

    def export(self, now: Optional[datetime] = None) -> str:
        """Return every entry with a short header, oldest first."""

        entries = self.entries
        exported_at = now or datetime.now()
        lines = [
            "=== Territory claim log ===",
            f"Exported: {exported_at:%Y-%m-%d %H:%M:%S}",
            f"Entries: {len(entries)}",
            "",
        ]
        lines.extend(entry.export_text for entry in entries)
        return "\n".join(lines) + "\n"

    # -- listener hooks ---------------------------------------------------
    def on_tracking_started(self) -> None:
        self.info("Tracking started")

    def on_tracking_cancelled(self) -> None:
        self.info("Tracking cancelled")

    def on_point_recorded(self, point: GeoPoint, point_count: int, length_m: float) -> None:
        self.info(f"Recorded point {point_count}, path {length_m:.1f}m")

    def on_speed_state_changed(self, verdict: "SpeedVerdict") -> None:
        if verdict.degraded and verdict.speed_mps is not None:
            self.warning(f"Moving fast {mps_to_kmh(verdict.speed_mps):.1f} km/h")

    def on_closure_state_changed(self, check: "ClosureCheck") -> None:
        if check.closeable:
            self.success(
                f"Loop closeable, {check.distance_to_start_m or 0.0:.1f}m from start"
            )
        elif check.failure is not None:
            self.info(f"Loop not closeable: {check.failure.describe()}")

    def on_collision_report(self, report: "CollisionReport") -> None:
        if report.band is not None:
            self.warning(
                f"Near territory {report.territory_id} ({report.distance_m or 0.0:.0f}m)"
            )

    def on_session_terminated(self, termination: SessionTermination) -> None:
        self.error(f"Tracking stopped: {termination.describe()}")

    def on_claim_rejected(self, rejection: ClaimRejection) -> None:
        self.warning(f"Closure rejected: {rejection.describe()}")

    def on_claim_validated(self, claim: ValidatedClaim) -> None:
        self.success(f"Claim validated, area {claim.area_m2:.0f} m2")


__all__ = [
    "ClaimEventListener",
    "DiagnosticEntry",
    "DiagnosticLevel",
    "DiagnosticLog",
    "ListenerGroup",
    "LoggingEventListener",
]
