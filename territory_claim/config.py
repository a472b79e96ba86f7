"""Central configuration for the territory claiming engine.

All values are constants imported by the rest of the package. Every threshold
can be overridden through environment variables (optionally via a local
`.env`). Sessions built from explicit `ClosureThresholds` ignore these values.
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Earth model
# ---------------------------------------------------------------------------
# Mean Earth radius (metres) shared by distance and area calculations. Area
# based reward tiers depend on every client using the same value.
EARTH_RADIUS_M = 6_371_000.0


# ---------------------------------------------------------------------------
# Sample filtering
# ---------------------------------------------------------------------------
# Samples with a horizontal accuracy worse than this (metres) are dropped.
CLAIM_MAX_ACCURACY_M = _env_float("CLAIM_MAX_ACCURACY_M", 50.0)

# A sample further than this (metres) from the last recorded point is a
# positioning glitch, not movement, unless enough time has passed to cover it.
CLAIM_MAX_JUMP_M = _env_float("CLAIM_MAX_JUMP_M", 100.0)

# Fastest movement (km/h) a position fix can plausibly represent. After a gap
# the jump ceiling grows at this rate so the path resumes after tunnels, and
# fast but real movement reaches the speed guard instead of being dropped.
CLAIM_MAX_PLAUSIBLE_SPEED_KMH = _env_float("CLAIM_MAX_PLAUSIBLE_SPEED_KMH", 200.0)


# ---------------------------------------------------------------------------
# Path recording and closure
# ---------------------------------------------------------------------------
# Minimum spacing (metres) between consecutive recorded points. Suppresses
# stationary jitter.
CLAIM_MIN_POINT_SPACING_M = _env_float("CLAIM_MIN_POINT_SPACING_M", 3.0)

# Maximum distance (metres) from the latest point back to the first point for
# the loop to count as closed.
CLAIM_CLOSURE_DISTANCE_M = _env_float("CLAIM_CLOSURE_DISTANCE_M", 30.0)

# Minimum number of recorded points before closure is considered.
CLAIM_MIN_POINTS = _env_int("CLAIM_MIN_POINTS", 10)

# Minimum walked length (metres).
CLAIM_MIN_LENGTH_M = _env_float("CLAIM_MIN_LENGTH_M", 50.0)

# Minimum enclosed area (square metres).
CLAIM_MIN_AREA_M2 = _env_float("CLAIM_MIN_AREA_M2", 100.0)

# Number of leading and trailing path segments that are never compared with
# each other during the self-intersection check. The first and last segments
# meet near the start point on every legitimate loop.
SELF_INTERSECTION_HEAD_SKIP = _env_int("SELF_INTERSECTION_HEAD_SKIP", 2)
SELF_INTERSECTION_TAIL_SKIP = _env_int("SELF_INTERSECTION_TAIL_SKIP", 2)


# ---------------------------------------------------------------------------
# Speed guard
# ---------------------------------------------------------------------------
# Speeds above the warning threshold (km/h) raise a warning but are still
# recorded. Speeds above the stop threshold end the session immediately.
CLAIM_SPEED_WARNING_KMH = _env_float("CLAIM_SPEED_WARNING_KMH", 15.0)
CLAIM_SPEED_STOP_KMH = _env_float("CLAIM_SPEED_STOP_KMH", 60.0)

# Seconds a player may stay above the warning threshold before the session is
# terminated.
CLAIM_SPEED_GRACE_S = _env_float("CLAIM_SPEED_GRACE_S", 10.0)


# ---------------------------------------------------------------------------
# Collision checks
# ---------------------------------------------------------------------------
# Seconds between periodic territory collision checks while tracking.
COLLISION_CHECK_INTERVAL_S = _env_float("COLLISION_CHECK_INTERVAL_S", 10.0)

# Proximity bands (metres) to another player's territory, tightest first.
COLLISION_DANGER_M = _env_float("COLLISION_DANGER_M", 25.0)
COLLISION_WARNING_M = _env_float("COLLISION_WARNING_M", 50.0)
COLLISION_CAUTION_M = _env_float("COLLISION_CAUTION_M", 100.0)

# Run the start-of-tracking collision check when an origin point is supplied.
COLLISION_CHECK_ON_START = _env_bool("COLLISION_CHECK_ON_START", True)


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------
# Maximum number of entries kept by the in-memory diagnostic log.
DIAGNOSTIC_LOG_MAX_ENTRIES = _env_int("DIAGNOSTIC_LOG_MAX_ENTRIES", 300)


# ---------------------------------------------------------------------------
# Regional coordinate conversion
# ---------------------------------------------------------------------------
# The GCJ-02 inverse has no closed form. Refine until the forward transform of
# the estimate lands within the tolerance (degrees) or the cap is reached.
GCJ02_REVERSE_MAX_ITERATIONS = _env_int("GCJ02_REVERSE_MAX_ITERATIONS", 10)
GCJ02_REVERSE_TOLERANCE_DEG = _env_float("GCJ02_REVERSE_TOLERANCE_DEG", 1e-9)
