"""Self-intersection test for a walked path.

Segments are compared in a locally flat frame using longitude as x and
latitude as y. That approximation holds at the scale of a walked claim.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np

from ..config import SELF_INTERSECTION_HEAD_SKIP, SELF_INTERSECTION_TAIL_SKIP
from ..models import GeoPoint

SegmentPair = Tuple[int, int]

# The first and last segments of every legitimate loop meet near the start
# point. Pairs drawn from the first HEAD_SKIP and the last TAIL_SKIP segments
# are never compared with each other.
HEAD_SKIP = SELF_INTERSECTION_HEAD_SKIP
TAIL_SKIP = SELF_INTERSECTION_TAIL_SKIP


def ccw(a: GeoPoint, b: GeoPoint, c: GeoPoint) -> bool:
    """Return True when ``a -> b -> c`` turns counter-clockwise."""

    return (c.lat - a.lat) * (b.lon - a.lon) > (b.lat - a.lat) * (c.lon - a.lon)


def segments_cross(p1: GeoPoint, p2: GeoPoint, p3: GeoPoint, p4: GeoPoint) -> bool:
    """Return True when segment ``p1-p2`` crosses segment ``p3-p4``."""

    return ccw(p1, p3, p4) != ccw(p2, p3, p4) and ccw(p1, p2, p3) != ccw(p1, p2, p4)


def find_self_intersection(
    points: Sequence[GeoPoint],
    *,
    head_skip: int = HEAD_SKIP,
    tail_skip: int = TAIL_SKIP,
) -> Optional[SegmentPair]:
    """Return the first pair of crossing segment indices, or None.

    Segment ``i`` joins ``points[i]`` and ``points[i + 1]``. Only
    non-adjacent pairs (``j >= i + 2``) are tested, scanning ``i`` then ``j``
    in ascending order and stopping at the first crossing. Paths with fewer
    than four points cannot cross themselves.
    """

    if len(points) < 4:
        return None
    coords = np.asarray([(pt.lon, pt.lat) for pt in points], dtype=float)
    starts = coords[:-1]
    ends = coords[1:]
    segment_count = len(starts)
    tail_start = segment_count - max(tail_skip, 0)

    for i in range(segment_count - 2):
        candidates = np.arange(i + 2, segment_count)
        if i < head_skip:
            candidates = candidates[candidates < tail_start]
        if candidates.size == 0:
            continue
        hits = _crossing_mask(starts[i], ends[i], starts[candidates], ends[candidates])
        hit_indices = np.nonzero(hits)[0]
        if hit_indices.size:
            return i, int(candidates[hit_indices[0]])
    return None


def has_self_intersection(
    points: Sequence[GeoPoint],
    *,
    head_skip: int = HEAD_SKIP,
    tail_skip: int = TAIL_SKIP,
) -> bool:
    return (
        find_self_intersection(points, head_skip=head_skip, tail_skip=tail_skip)
        is not None
    )


def _crossing_mask(
    p1: np.ndarray, p2: np.ndarray, p3: np.ndarray, p4: np.ndarray
) -> np.ndarray:
    """Vectorised :func:`segments_cross` of one segment against many."""

    ccw_134 = _ccw(p1, p3, p4)
    ccw_234 = _ccw(p2, p3, p4)
    ccw_123 = _ccw(p1, p2, p3)
    ccw_124 = _ccw(p1, p2, p4)
    return (ccw_134 != ccw_234) & (ccw_123 != ccw_124)


def _ccw(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    a = np.atleast_2d(a)
    b = np.atleast_2d(b)
    c = np.atleast_2d(c)
    return (c[:, 1] - a[:, 1]) * (b[:, 0] - a[:, 0]) > (b[:, 1] - a[:, 1]) * (
        c[:, 0] - a[:, 0]
    )


__all__ = [
    "HEAD_SKIP",
    "TAIL_SKIP",
    "ccw",
    "find_self_intersection",
    "has_self_intersection",
    "segments_cross",
]
