"""Central configuration for the route POI snapping engine.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Overrides are read from environment variables
(optionally via a local `.env`).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv


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


def _env_list(key: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(key, default)
    return tuple(item.strip().upper() for item in raw.split(",") if item.strip())


# Load .env from the current directory or any parent folder.
load_dotenv()


# ---------------------------------------------------------------------------
# Data layout
# ---------------------------------------------------------------------------
# Root directory holding one folder per route group. Can be absolute or
# relative to the working directory.
ROUTES_ROOT = os.getenv("ROUTES_ROOT", os.path.join("shared-data", "routes"))

# File names inside a route group folder.
ROUTE_META_FILENAME = "route.meta.json"
ROUTE_POIS_FILENAME = "route.pois.json"

# Version stamped on newly created POI documents.
POI_DOCUMENT_VERSION = 1

# Distance tiers a route group may offer. Labels are compared upper-case.
ROUTE_VARIANT_LABELS = _env_list("ROUTE_VARIANT_LABELS", "MED,LRG,XL,XXL")


# ---------------------------------------------------------------------------
# Snapping tolerances
# ---------------------------------------------------------------------------
# Maximum lateral distance (metres) between a click and a route segment for
# the segment to count as a hit. The boundary is inclusive.
SNAP_TOLERANCE_M = _env_float("SNAP_TOLERANCE_M", 12.0)

# Hits whose projected points lie within this many metres of the previously
# kept hit are treated as the same physical location.
DEDUPE_TOLERANCE_M = _env_float("DEDUPE_TOLERANCE_M", 6.0)

# Consecutive hits whose along-route distances differ by at most this many
# metres belong to the same pass.
CLUSTER_TOLERANCE_M = _env_float("CLUSTER_TOLERANCE_M", 12.0)


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------
EARTH_RADIUS_M = 6_371_000.0
METERS_PER_MILE = 1609.344
FEET_PER_METER = 3.28084


# ---------------------------------------------------------------------------
# Performance tuning
# ---------------------------------------------------------------------------
# Number of decoded route variants kept in memory, keyed by GPX content hash.
# 0 disables the cache so every request recomputes geometry from disk.
ROUTE_GEOMETRY_CACHE_SIZE = _env_int("ROUTE_GEOMETRY_CACHE_SIZE", 0)

# POI ids are "<type>-<title>" slugs; each part is capped at POI_SLUG_MAX_LENGTH
# characters and the joined id at POI_ID_MAX_LENGTH.
POI_SLUG_MAX_LENGTH = 64
POI_ID_MAX_LENGTH = 80
