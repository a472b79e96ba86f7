"""Upload record produced for a validated claim."""

from __future__ import annotations

import polyline
import pytest
from shapely import wkt

from territory_claim.claim_payload import (
    build_claim_payload,
    encode_path,
    path_json_to_points,
    points_to_path_json,
    points_to_wkt,
)
from territory_claim.models import ValidatedClaim

from geo_helpers import offset, points_from_xy, square_xy


@pytest.fixture
def claim() -> ValidatedClaim:
    return ValidatedClaim(
        points=tuple(points_from_xy(square_xy())),
        area_m2=400.0,
        length_m=73.3,
        started_at=1_700_000_000.0,
        completed_at=1_700_000_060.0,
    )


def test_payload_fields(claim):
    payload = build_claim_payload(claim, user_id="user-1")
    assert payload["user_id"] == "user-1"
    assert payload["point_count"] == 12
    assert payload["area"] == 400.0
    assert payload["is_active"] is True
    assert payload["started_at"] == "2023-11-14T22:13:20.000+00:00"
    assert payload["completed_at"] == "2023-11-14T22:14:20.000+00:00"
    box = claim.bounding_box
    assert payload["bbox_min_lat"] == box.min_lat
    assert payload["bbox_max_lon"] == box.max_lon
    assert payload["path"][0] == {"lat": claim.points[0].lat, "lon": claim.points[0].lon}


def test_payload_timestamp_override(claim):
    payload = build_claim_payload(claim, user_id="u", started_at=0.0)
    assert payload["started_at"] == "1970-01-01T00:00:00.000+00:00"


def test_polygon_is_closed_lon_lat_ring(claim):
    text = build_claim_payload(claim, user_id="u")["polygon"]
    assert text.startswith("SRID=4326;POLYGON")
    ring = list(wkt.loads(text.split(";", 1)[1]).exterior.coords)
    assert len(ring) == claim.point_count + 1
    assert ring[0] == ring[-1]
    assert ring[0] == pytest.approx((claim.points[0].lon, claim.points[0].lat))


def test_wkt_needs_three_points():
    assert points_to_wkt([]) == ""
    assert points_to_wkt([offset(0, 0), offset(10, 0)]) == ""


def test_payload_rejects_degenerate_claim():
    degenerate = ValidatedClaim((offset(0, 0), offset(10, 0)), 0.0, 10.0)
    with pytest.raises(ValueError):
        build_claim_payload(degenerate, user_id="u")


def test_encoded_polyline_decodes_to_path(claim):
    decoded = polyline.decode(encode_path(claim.points))
    assert len(decoded) == claim.point_count
    for (lat, lon), point in zip(decoded, claim.points):
        assert lat == pytest.approx(point.lat, abs=1e-5)
        assert lon == pytest.approx(point.lon, abs=1e-5)


def test_path_json_skips_incomplete_entries():
    points = path_json_to_points([{"lat": 1.0, "lon": 2.0}, {"lat": 3.0}, {"lat": "4", "lon": "5"}])
    assert [p.as_tuple() for p in points] == [(1.0, 2.0), (4.0, 5.0)]
    assert path_json_to_points(points_to_path_json(points)) == points
