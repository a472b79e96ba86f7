"""Geometry toolkit for the claiming engine.

Distances and areas are computed on a mean-radius sphere; crossing tests use a
locally flat lon/lat frame; collision primitives run in a projected metric
frame.
"""

from .area import polygon_area_m2
from .collision import (
    PolygonProximity,
    path_proximity,
    point_in_polygon,
    point_proximity,
)
from .coordinates import gcj02_to_wgs84, wgs84_to_gcj02
from .distance import haversine_m, path_length_m, segment_lengths_m
from .intersection import (
    HEAD_SKIP,
    TAIL_SKIP,
    ccw,
    find_self_intersection,
    has_self_intersection,
    segments_cross,
)
from .projection import LocalFrame, build_local_transformer, project_points

__all__ = [
    "HEAD_SKIP",
    "TAIL_SKIP",
    "LocalFrame",
    "PolygonProximity",
    "build_local_transformer",
    "ccw",
    "find_self_intersection",
    "gcj02_to_wgs84",
    "has_self_intersection",
    "haversine_m",
    "path_length_m",
    "path_proximity",
    "point_in_polygon",
    "point_proximity",
    "project_points",
    "polygon_area_m2",
    "segment_lengths_m",
    "segments_cross",
    "wgs84_to_gcj02",
]
