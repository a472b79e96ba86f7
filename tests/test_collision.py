"""Collision primitives and the in-memory territory oracle."""

from __future__ import annotations

import pytest

from territory_claim.geometry import LocalFrame, path_proximity, point_in_polygon, point_proximity
from territory_claim.models import BoundingBox
from territory_claim.tracking import (
    CollisionLevel,
    InMemoryTerritoryStore,
    OwnedTerritory,
    ProximityBand,
    band_for_distance,
)

from geo_helpers import offset, points_from_xy

RIVAL_SQUARE = [(100, 0), (140, 0), (140, 40), (100, 40)]


@pytest.fixture
def rival_polygon():
    return points_from_xy(RIVAL_SQUARE)


@pytest.fixture
def store(rival_polygon):
    territory = OwnedTerritory("t-1", "rival", tuple(rival_polygon))
    return InMemoryTerritoryStore([territory], player_id="me")


# --- Geometry primitives ---------------------------------------------
def test_point_in_polygon(rival_polygon):
    assert point_in_polygon(offset(120, 20), rival_polygon)
    assert not point_in_polygon(offset(50, 20), rival_polygon)


def test_point_proximity_distance_in_metres(rival_polygon):
    proximity = point_proximity(offset(90, 20), rival_polygon)
    assert not proximity.overlaps
    assert proximity.distance_m == pytest.approx(10.0, abs=0.5)


def test_path_crossing_polygon_without_inner_vertex(rival_polygon):
    proximity = path_proximity([offset(90, 20), offset(150, 20)], rival_polygon)
    assert proximity.crosses
    assert not proximity.inside
    assert proximity.overlaps
    assert proximity.distance_m == 0.0


def test_path_beside_polygon_reports_gap(rival_polygon):
    path = [offset(0, 0), offset(40, 0), offset(80, 0)]
    proximity = path_proximity(path, rival_polygon)
    assert not proximity.overlaps
    assert proximity.distance_m == pytest.approx(20.0, abs=0.5)


def test_single_point_path_behaves_like_point(rival_polygon):
    proximity = path_proximity([offset(120, 20)], rival_polygon)
    assert proximity.inside


def test_local_frame_rejects_short_shapes():
    frame = LocalFrame.around([offset(0, 0)])
    with pytest.raises(ValueError):
        frame.line([offset(0, 0)])
    with pytest.raises(ValueError):
        frame.polygon([offset(0, 0), offset(1, 0)])


# --- Bands -----------------------------------------------------------
@pytest.mark.parametrize(
    "distance, band",
    [
        (0.0, ProximityBand.DANGER),
        (25.0, ProximityBand.DANGER),
        (25.1, ProximityBand.WARNING),
        (50.0, ProximityBand.WARNING),
        (99.9, ProximityBand.CAUTION),
        (100.1, None),
    ],
)
def test_band_for_distance(distance, band):
    assert band_for_distance(distance) is band


# --- Territory store -------------------------------------------------
def test_store_point_inside_is_violation(store):
    report = store.check_point(offset(120, 20))
    assert report.level is CollisionLevel.VIOLATION
    assert report.is_violation
    assert report.territory_id == "t-1"
    assert report.owner_id == "rival"


def test_store_point_near_is_banded(store):
    report = store.check_point(offset(85, 20))
    assert report.level is CollisionLevel.PROXIMITY
    assert report.band is ProximityBand.DANGER
    assert report.distance_m == pytest.approx(15.0, abs=0.5)

    report = store.check_point(offset(40, 20))
    assert report.band is ProximityBand.CAUTION


def test_store_far_point_is_clear(store):
    report = store.check_point(offset(-100, 20))
    assert report.level is CollisionLevel.NONE
    assert report.band is None
    assert not report.is_violation


def test_store_path_entering_territory(store):
    report = store.check_path([offset(70, 20), offset(90, 20), offset(110, 20)])
    assert report.is_violation


def test_store_ignores_own_territory(rival_polygon):
    own = OwnedTerritory("t-2", "me", tuple(rival_polygon))
    store = InMemoryTerritoryStore([own], player_id="me")
    assert store.check_point(offset(120, 20)).level is CollisionLevel.NONE
    assert store.candidates([offset(120, 20)]) == []


def test_store_add_remove_and_bbox(store, rival_polygon):
    assert len(store) == 1
    assert store.bbox_collides([offset(120, 20)])
    assert not store.bbox_collides([offset(60, 20)])
    store.remove("t-1")
    assert len(store) == 0
    assert not store.bbox_collides([offset(120, 20)])


def test_store_rejects_unordered_bands():
    with pytest.raises(ValueError):
        InMemoryTerritoryStore(danger_m=60, warning_m=50, caution_m=100)


def test_territory_from_record():
    record = {
        "id": 7,
        "user_id": "rival",
        "path": [{"lat": p.lat, "lon": p.lon} for p in points_from_xy(RIVAL_SQUARE)],
    }
    territory = OwnedTerritory.from_record(record)
    assert territory.territory_id == "7"
    assert len(territory.points) == 4
    assert territory.bounding_box.contains(offset(120, 20))


def test_territory_needs_three_points():
    with pytest.raises(ValueError):
        OwnedTerritory("x", "rival", tuple(points_from_xy([(0, 0), (10, 0)])))


def test_bounding_box_expanded_by_metres():
    box = BoundingBox.from_points(points_from_xy(RIVAL_SQUARE))
    grown = box.expanded(10.0)
    assert not box.contains(offset(95, 20))
    assert grown.contains(offset(95, 20))
    assert not grown.contains(offset(85, 20))
    assert box.intersects(grown)
