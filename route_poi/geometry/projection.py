"""Projection of a query coordinate onto a route polyline."""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from ..config import EARTH_RADIUS_M, SNAP_TOLERANCE_M
from ..errors import GeometryDegenerateError, ValidationError
from ..models import LatLon, MetricArray, ProjectionHit, TrackPoint
from .profile import compute_stats, haversine_array_m, point_arrays, segment_lengths_m

_LOG = logging.getLogger(__name__)


def validate_coordinate(query: LatLon) -> LatLon:
    """Return ``query`` as floats or raise :class:`ValidationError`."""

    try:
        lat, lon = float(query[0]), float(query[1])
    except (TypeError, ValueError, IndexError) as exc:
        raise ValidationError(f"Invalid coordinate {query!r}") from exc
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValidationError(f"Coordinate must be finite, got lat={lat} lon={lon}")
    if abs(lat) > 90.0 or abs(lon) > 180.0:
        raise ValidationError(f"Coordinate out of range: lat={lat} lon={lon}")
    return lat, lon


def nearest_vertex_index(segment_index: int, t: float) -> int:
    """Return the vertex a projection at parameter ``t`` is attributed to.

    Projections in the first half of segment ``i`` (``t <= 0.5``) snap to
    vertex ``i``; the rest snap to ``i + 1``.
    """

    return segment_index if t <= 0.5 else segment_index + 1


def project(
    query: LatLon,
    points: Sequence[TrackPoint],
    distance_series: Optional[MetricArray] = None,
    *,
    tolerance_m: float = SNAP_TOLERANCE_M,
) -> List[ProjectionHit]:
    """Return every segment attachment of ``query`` within ``tolerance_m``.

    Each segment is projected in a flat-earth frame centred on the query
    latitude; the reported lateral distance is the haversine distance from
    the query to the projected point. When no segment qualifies, a single
    hit at the nearest vertex is returned with ``fallback`` set.

    Raises:
        GeometryDegenerateError: If ``points`` holds fewer than two points.
        ValidationError: If ``query`` is not a finite coordinate.
    """

    if len(points) < 2:
        raise GeometryDegenerateError(
            f"Route geometry needs at least 2 points, got {len(points)}"
        )
    lat, lon = validate_coordinate(query)
    if distance_series is None:
        distance_series = compute_stats(points).distance_series
    if len(distance_series) != len(points):
        raise ValueError("distance_series must be index-aligned with points")

    lats, lons = point_arrays(points)
    lengths = segment_lengths_m(points)

    cos_lat0 = math.cos(math.radians(lat))
    xs = np.radians(lons) * EARTH_RADIUS_M * cos_lat0
    ys = np.radians(lats) * EARTH_RADIUS_M
    px = float(np.radians(lon)) * EARTH_RADIUS_M * cos_lat0
    py = float(np.radians(lat)) * EARTH_RADIUS_M

    ax, ay = xs[:-1], ys[:-1]
    abx, aby = xs[1:] - ax, ys[1:] - ay
    dot = (px - ax) * abx + (py - ay) * aby
    length_sq = abx * abx + aby * aby
    t_raw = np.divide(dot, length_sq, out=np.zeros_like(dot), where=length_sq != 0.0)
    t = np.clip(t_raw, 0.0, 1.0)

    proj_lats = np.degrees((ay + t * aby) / EARTH_RADIUS_M)
    proj_lons = np.degrees((ax + t * abx) / (EARTH_RADIUS_M * cos_lat0))
    lateral = haversine_array_m(proj_lats, proj_lons, lat, lon)

    hits: List[ProjectionHit] = []
    for idx in np.nonzero(lateral <= tolerance_m)[0]:
        i = int(idx)
        t_i = float(t[i])
        hits.append(
            ProjectionHit(
                lat=float(proj_lats[i]),
                lon=float(proj_lons[i]),
                distance_m=float(distance_series[i]) + float(lengths[i]) * t_i,
                snap_index=nearest_vertex_index(i, t_i),
                distance_to_query_m=float(lateral[i]),
            )
        )
    if hits:
        return hits

    fallback = nearest_vertex_hit((lat, lon), points, distance_series)
    _LOG.warning(
        "No segment within %.1f m of (%.6f, %.6f); attached to vertex %d at %.1f m",
        tolerance_m,
        lat,
        lon,
        fallback.snap_index,
        fallback.distance_to_query_m,
    )
    return [fallback]


def nearest_vertex_hit(
    query: LatLon,
    points: Sequence[TrackPoint],
    distance_series: MetricArray,
) -> ProjectionHit:
    """Return a synthetic hit at the vertex closest to ``query``."""

    lats, lons = point_arrays(points)
    distances = haversine_array_m(lats, lons, query[0], query[1])
    index = int(np.argmin(distances))
    return ProjectionHit(
        lat=float(lats[index]),
        lon=float(lons[index]),
        distance_m=float(distance_series[index]),
        snap_index=index,
        distance_to_query_m=float(distances[index]),
        fallback=True,
    )
