"""Background ticker driving periodic session checks."""

from __future__ import annotations

import threading

import pytest

from territory_claim.tracking import IntervalTicker


class _CountingSession:
    def __init__(self, fail: bool = False) -> None:
        self.calls = 0
        self.fail = fail
        self.reached = threading.Event()

    def on_tick(self):
        self.calls += 1
        if self.calls >= 3:
            self.reached.set()
        if self.fail:
            raise RuntimeError("oracle unavailable")
        return None


def test_ticker_calls_session_until_stopped():
    session = _CountingSession()
    with IntervalTicker(session, 0.01) as ticker:
        assert ticker.running
        assert session.reached.wait(2.0), "Ticker did not fire in time"
    assert not ticker.running
    calls = session.calls
    threading.Event().wait(0.05)
    assert session.calls == calls


def test_ticker_survives_failing_tick():
    session = _CountingSession(fail=True)
    ticker = IntervalTicker(session, 0.01)
    ticker.start()
    try:
        assert session.reached.wait(2.0), "Ticker stopped after a failing tick"
    finally:
        ticker.stop(timeout=1.0)
    assert ticker.ticks >= 3


def test_ticker_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        IntervalTicker(_CountingSession(), 0)
