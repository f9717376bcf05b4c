"""Route geometry primitives: GPX decoding, profiles, projection and passes."""

from .cache import RouteGeometryCache
from .clustering import build_placement_set, cluster_hits, dedupe_hits, sort_hits
from .gpx import decode_track_points
from .profile import compute_stats, haversine_m, parse_gpx
from .projection import nearest_vertex_hit, project, validate_coordinate

__all__ = [
    "RouteGeometryCache",
    "build_placement_set",
    "cluster_hits",
    "compute_stats",
    "decode_track_points",
    "dedupe_hits",
    "haversine_m",
    "nearest_vertex_hit",
    "parse_gpx",
    "project",
    "sort_hits",
    "validate_coordinate",
]
