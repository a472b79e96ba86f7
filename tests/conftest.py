"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable session and path fixtures so
test modules do not rebuild them.
"""
from __future__ import annotations

import os
import sys
from typing import List

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from territory_claim.models import ClosureThresholds, GeoPoint
from territory_claim.tracking import ClaimSession

from geo_helpers import FakeClock, RecordingListener, points_from_xy, square_xy


@pytest.fixture
def thresholds() -> ClosureThresholds:
    return ClosureThresholds()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def session(thresholds: ClosureThresholds, clock: FakeClock, listener) -> ClaimSession:
    return ClaimSession(thresholds, listeners=[listener], clock=clock)


@pytest.fixture
def square_points() -> List[GeoPoint]:
    """Twelve points around a 20 m square, about 6.7 m apart."""

    return points_from_xy(square_xy())
