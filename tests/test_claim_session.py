"""End-to-end behaviour of a claiming session fed with sample streams."""

from __future__ import annotations

import pytest

from territory_claim.errors import (
    SessionAlreadyActiveError,
    SessionAlreadyClosedError,
    SessionNotActiveError,
)
from territory_claim.models import Sample, ValidatedClaim, kmh_to_mps
from territory_claim.rejections import (
    ClosureCondition,
    CollisionViolation,
    NotCloseable,
    SampleOutcome,
    SampleRejection,
    SelfIntersecting,
    SpeedViolation,
)
from territory_claim.tracking import (
    ClaimSession,
    CollisionLevel,
    CollisionReport,
    InMemoryTerritoryStore,
    OwnedTerritory,
    ProximityBand,
    SessionState,
)

from geo_helpers import (
    FakeClock,
    RecordingListener,
    crossed_loop_xy,
    make_samples,
    offset,
    points_from_xy,
    straight_xy,
)


def _rival_store() -> InMemoryTerritoryStore:
    polygon = points_from_xy([(100, 0), (140, 0), (140, 40), (100, 40)])
    return InMemoryTerritoryStore([OwnedTerritory("t-1", "rival", tuple(polygon))], player_id="me")


# --- Closing a loop --------------------------------------------------
def test_walked_square_is_claimed(session, listener, square_points):
    session.start_tracking()
    outcomes = session.consume(make_samples(square_points))
    assert outcomes[SampleOutcome.RECORDED] == 12
    assert session.is_closeable
    assert session.live_area_m2() == pytest.approx(400.0, rel=5e-3)

    claim = session.confirm_closure()
    assert isinstance(claim, ValidatedClaim)
    assert claim.point_count == 12
    assert claim.area_m2 == pytest.approx(400.0, rel=5e-3)
    assert claim.length_m == pytest.approx(80.0 * 11 / 12, rel=1e-3)
    assert session.state is SessionState.CLOSED
    assert "on_claim_validated" in listener.hooks()
    closure_events = listener.args_for("on_closure_state_changed")
    assert closure_events and closure_events[-1][0].closeable


def test_closed_session_refuses_further_work(session, square_points):
    session.start_tracking()
    session.consume(make_samples(square_points))
    session.confirm_closure()
    with pytest.raises(SessionAlreadyClosedError):
        session.ingest_sample(Sample(offset(5, 5), 5.0, 1.2, 100.0))
    with pytest.raises(SessionAlreadyClosedError):
        session.confirm_closure()
    with pytest.raises(SessionAlreadyClosedError):
        session.cancel_tracking()
    session.start_tracking()
    assert session.is_tracking
    assert session.point_count == 0


def test_figure_eight_is_rejected_and_path_stays_open(session, listener):
    session.start_tracking()
    session.consume(make_samples(points_from_xy(crossed_loop_xy())))
    assert session.is_closeable

    result = session.confirm_closure()
    assert result == SelfIntersecting(1, 9)
    assert session.state is SessionState.TRACKING
    assert session.point_count == 13
    assert listener.args_for("on_claim_rejected") == [(result,)]

    extra = Sample(offset(0, 10), 5.0, 1.2, 100.0)
    assert session.ingest_sample(extra) is SampleOutcome.RECORDED


def test_too_few_points_is_not_closeable(session):
    session.start_tracking()
    session.consume(make_samples(points_from_xy(straight_xy(3, step_m=10.0))))
    result = session.confirm_closure()
    assert isinstance(result, NotCloseable)
    assert result.conditions == (ClosureCondition.POINT_COUNT,)
    assert session.is_tracking


def test_confirm_is_repeatable_for_same_path(session):
    session.start_tracking()
    session.consume(make_samples(points_from_xy(crossed_loop_xy())))
    assert session.confirm_closure() == session.confirm_closure()


# --- Sample handling -------------------------------------------------
def test_dropped_samples_are_reported(session, listener):
    session.start_tracking()
    assert session.ingest_sample(Sample(offset(0, 0), 5.0, 1.2, 0.0)) is SampleOutcome.RECORDED
    assert session.ingest_sample(Sample(offset(7, 0), 80.0, 1.2, 5.0)) is SampleOutcome.DROPPED
    assert session.last_sample_rejection is SampleRejection.LOW_ACCURACY
    assert session.ingest_sample(Sample(offset(1, 0), 5.0, 1.2, 6.0)) is SampleOutcome.DROPPED
    assert session.last_sample_rejection is SampleRejection.JITTER
    assert session.ingest_sample(Sample(offset(7, 0), 5.0, 1.2, 10.0)) is SampleOutcome.RECORDED
    assert session.last_sample_rejection is None
    assert session.point_count == 2
    reasons = [args[1] for args in listener.args_for("on_sample_rejected")]
    assert reasons == [SampleRejection.LOW_ACCURACY, SampleRejection.JITTER]


# --- Speed -----------------------------------------------------------
def test_single_speed_spike_does_not_stop_tracking(session):
    session.start_tracking()
    points = points_from_xy(straight_xy(8))
    samples = make_samples(points[:4])
    samples.append(Sample(points[4], 5.0, kmh_to_mps(50), 20.0))
    samples.extend(make_samples(points[5:], start_s=25.0))
    outcomes = session.consume(samples)
    assert outcomes[SampleOutcome.TERMINATED] == 0
    assert session.is_tracking
    assert not session.speed_warning
    assert session.point_count == 8


def test_sustained_speed_terminates_session(session, listener):
    session.start_tracking()
    session.consume(make_samples(points_from_xy(straight_xy(3))))
    fast = kmh_to_mps(40)
    riding = [
        Sample(offset(14 + fast * k, 0), 5.0, fast, 20.0 + k) for k in range(1, 16)
    ]
    outcomes = session.consume(riding)

    assert outcomes[SampleOutcome.TERMINATED] == 1
    assert session.state is SessionState.TERMINATED
    assert session.point_count == 0
    termination = session.termination
    assert isinstance(termination, SpeedViolation)
    assert termination.grace_exceeded
    assert termination.speed_kmh == pytest.approx(40.0)
    assert termination.timestamp_s == 32.0
    assert listener.args_for("on_session_terminated") == [(termination,)]


def test_speed_above_stop_threshold_terminates_immediately(session):
    session.start_tracking()
    session.ingest_sample(Sample(offset(0, 0), 5.0, 1.2, 0.0))
    outcome = session.ingest_sample(Sample(offset(20, 0), 5.0, kmh_to_mps(70), 1.0))
    assert outcome is SampleOutcome.TERMINATED
    assert not session.termination.grace_exceeded
    with pytest.raises(SessionNotActiveError):
        session.ingest_sample(Sample(offset(40, 0), 5.0, 1.2, 2.0))


def test_tracking_resumes_after_signal_gap(session):
    session.start_tracking()
    session.consume(make_samples(points_from_xy(straight_xy(3))))
    # Two minutes without a fix, then the player reappears 150 m further on.
    resumed = [
        Sample(offset(164 + 6.25 * k, 0), 5.0, 1.25, 130.0 + 5.0 * k) for k in range(30)
    ]
    outcomes = session.consume(resumed)
    assert outcomes[SampleOutcome.RECORDED] == 30
    assert outcomes[SampleOutcome.DROPPED] == 0
    assert session.point_count == 33
    assert session.is_tracking


def test_fast_movement_reaches_speed_guard_instead_of_jump_filter(session):
    session.start_tracking()
    session.consume(make_samples(points_from_xy(straight_xy(3))))
    step = kmh_to_mps(80) * 5.0
    driving = [Sample(offset(14 + step * k, 0), 5.0, -1.0, 10.0 + 5.0 * k) for k in range(1, 4)]
    outcomes = session.consume(driving)
    assert outcomes[SampleOutcome.TERMINATED] == 1
    assert outcomes[SampleOutcome.DROPPED] == 0
    assert isinstance(session.termination, SpeedViolation)
    assert session.termination.speed_kmh == pytest.approx(80.0, rel=1e-2)


# --- Lifecycle -------------------------------------------------------
def test_start_while_tracking_is_refused(session):
    session.start_tracking()
    with pytest.raises(SessionAlreadyActiveError):
        session.start_tracking()


def test_idle_session_refuses_samples_and_cancel(session):
    with pytest.raises(SessionNotActiveError):
        session.ingest_sample(Sample(offset(0, 0), 5.0, 1.2, 0.0))
    with pytest.raises(SessionNotActiveError):
        session.confirm_closure()
    with pytest.raises(SessionNotActiveError):
        session.cancel_tracking()


def test_cancel_discards_path_and_allows_restart(session, listener, square_points):
    session.start_tracking()
    session.consume(make_samples(square_points[:5]))
    session.cancel_tracking()
    assert session.state is SessionState.IDLE
    assert session.point_count == 0
    assert session.closure_check is None
    assert "on_tracking_cancelled" in listener.hooks()

    session.start_tracking()
    session.consume(make_samples(square_points, start_s=500.0))
    assert isinstance(session.confirm_closure(), ValidatedClaim)


def test_terminated_session_can_restart(session):
    session.start_tracking()
    session.ingest_sample(Sample(offset(0, 0), 5.0, kmh_to_mps(90), 0.0))
    assert session.state is SessionState.TERMINATED
    session.start_tracking()
    assert session.is_tracking
    assert session.termination is None


def test_cancel_acknowledges_termination(session):
    session.start_tracking()
    session.ingest_sample(Sample(offset(0, 0), 5.0, kmh_to_mps(90), 0.0))
    session.cancel_tracking()
    assert session.state is SessionState.IDLE
    assert session.termination is None


def test_status_snapshot(session, square_points):
    session.start_tracking()
    session.consume(make_samples(square_points))
    status = session.status()
    assert status.state is SessionState.TRACKING
    assert status.point_count == 12
    assert status.closeable
    assert status.collision_band is None
    assert status.area_m2 == pytest.approx(400.0, rel=5e-3)


# --- Territory collisions --------------------------------------------
def test_start_inside_rival_territory_is_refused(listener):
    session = ClaimSession(oracle=_rival_store(), listeners=[listener], clock=FakeClock())
    report = session.start_tracking(offset(120, 20))
    assert report.is_violation
    assert session.state is SessionState.IDLE
    assert isinstance(session.termination, CollisionViolation)
    assert session.termination.territory_id == "t-1"
    assert "on_tracking_started" not in listener.hooks()


def test_periodic_check_warns_then_terminates(listener):
    clock = FakeClock()
    session = ClaimSession(oracle=_rival_store(), listeners=[listener], clock=clock)
    session.start_tracking(offset(-10, 20))

    approach = [Sample(offset(-10 + 7 * k, 20), 5.0, 1.4, 5.0 * k) for k in range(14)]
    session.consume(approach)
    assert session.on_tick() is None  # not due yet

    clock.now = 10.0
    report = session.on_tick()
    assert report.level is CollisionLevel.PROXIMITY
    assert report.band is ProximityBand.DANGER
    assert session.collision_band is ProximityBand.DANGER
    assert session.is_tracking

    session.consume([Sample(offset(88, 20), 5.0, 1.4, 70.0), Sample(offset(95, 20), 5.0, 1.4, 75.0), Sample(offset(102, 20), 5.0, 1.4, 80.0)])
    clock.now = 15.0
    assert session.on_tick() is None
    clock.now = 20.0
    report = session.on_tick()
    assert report.is_violation
    assert session.state is SessionState.TERMINATED
    assert isinstance(session.termination, CollisionViolation)
    assert session.point_count == 0


def test_no_oracle_means_no_periodic_checks(session):
    session.start_tracking()
    session.ingest_sample(Sample(offset(0, 0), 5.0, 1.2, 0.0))
    assert session.on_tick(1_000.0) is None


def test_first_periodic_check_is_immediate_without_start_check(clock):
    session = ClaimSession(oracle=_rival_store(), clock=clock)
    session.start_tracking()
    assert session.on_tick() is None  # nothing recorded yet
    session.ingest_sample(Sample(offset(10, 20), 5.0, 1.2, 0.0))
    report = session.on_tick()
    assert report is not None
    assert report.band is ProximityBand.CAUTION
    assert session.on_tick() is None


class _RestartingOracle:
    """Oracle that restarts the session mid-query, then reports a violation."""

    def __init__(self) -> None:
        self.session = None

    def _violate(self) -> CollisionReport:
        self.session.cancel_tracking()
        self.session.start_tracking()
        return CollisionReport(CollisionLevel.VIOLATION, territory_id="stale")

    def check_point(self, point):
        return self._violate()

    def check_path(self, points):
        return self._violate()


def test_report_for_superseded_recording_is_discarded():
    clock = FakeClock()
    oracle = _RestartingOracle()
    session = ClaimSession(oracle=oracle, clock=clock)
    oracle.session = session
    session.start_tracking()
    session.consume(make_samples(points_from_xy(straight_xy(3))))

    clock.now = 30.0
    assert session.on_tick() is None
    assert session.is_tracking
    assert session.termination is None
    assert session.point_count == 0


def test_listener_added_after_construction_receives_events(session):
    recorder = RecordingListener()
    session.listeners.add(recorder)
    session.start_tracking()
    assert recorder.hooks() == ["on_tracking_started"]
