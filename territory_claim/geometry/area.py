"""Enclosed area of a walked path treated as an implicitly closed polygon."""

from __future__ import annotations

import math
from typing import Sequence

from ..config import EARTH_RADIUS_M
from ..models import GeoPoint


def polygon_area_m2(points: Sequence[GeoPoint]) -> float:
    """Return the area enclosed by ``points`` in square metres.

    The last point connects back to the first. For each edge the longitude
    difference (radians) is weighted by ``2 + sin(lat1) + sin(lat2)``; the sum
    is scaled by the squared mean Earth radius, halved, and its absolute value
    returned. Edge order, sign convention and scaling are fixed so every client
    reports identical areas for the same path. Fewer than three points enclose
    nothing.
    """

    count = len(points)
    if count < 3:
        return 0.0
    total = 0.0
    for idx in range(count):
        p1 = points[idx]
        p2 = points[(idx + 1) % count]
        total += math.radians(p2.lon - p1.lon) * (
            2.0 + math.sin(math.radians(p1.lat)) + math.sin(math.radians(p2.lat))
        )
    return abs(total * EARTH_RADIUS_M * EARTH_RADIUS_M / 2.0)


__all__ = ["polygon_area_m2"]
