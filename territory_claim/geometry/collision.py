"""Point and path primitives against another player's polygon.

Both operands are projected into one local metric frame before any test, so
distances are metres and containment is exact for small polygons.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..models import GeoPoint
from .projection import LocalFrame


@dataclass(slots=True)
class PolygonProximity:
    """Relationship of a query point or path to one polygon."""

    inside: bool
    crosses: bool
    distance_m: float

    @property
    def overlaps(self) -> bool:
        return self.inside or self.crosses


def point_in_polygon(
    point: GeoPoint,
    polygon: Sequence[GeoPoint],
    frame: Optional[LocalFrame] = None,
) -> bool:
    """Return True when ``point`` lies inside or on the boundary of ``polygon``."""

    frame = frame or LocalFrame.around(list(polygon) + [point])
    return bool(frame.polygon(polygon).covers(frame.point(point)))


def point_proximity(
    point: GeoPoint,
    polygon: Sequence[GeoPoint],
    frame: Optional[LocalFrame] = None,
) -> PolygonProximity:
    frame = frame or LocalFrame.around(list(polygon) + [point])
    shape = frame.polygon(polygon)
    query = frame.point(point)
    inside = bool(shape.covers(query))
    distance = 0.0 if inside else float(shape.distance(query))
    return PolygonProximity(inside=inside, crosses=False, distance_m=distance)


def path_proximity(
    path: Sequence[GeoPoint],
    polygon: Sequence[GeoPoint],
    frame: Optional[LocalFrame] = None,
) -> PolygonProximity:
    """Return how an open walked path relates to ``polygon``.

    ``crosses`` means at least one path segment enters the polygon even when
    no recorded vertex lies inside it.
    """

    if len(path) == 1:
        return point_proximity(path[0], polygon, frame)
    if not path:
        raise ValueError("Cannot test an empty path")
    frame = frame or LocalFrame.around(list(polygon) + list(path))
    shape = frame.polygon(polygon)
    line = frame.line(path)
    inside = bool(shape.covers(frame.point(path[-1])))
    crosses = bool(line.intersects(shape))
    distance = 0.0 if crosses else float(shape.distance(line))
    return PolygonProximity(inside=inside, crosses=crosses, distance_m=distance)


__all__ = [
    "PolygonProximity",
    "path_proximity",
    "point_in_polygon",
    "point_proximity",
]
