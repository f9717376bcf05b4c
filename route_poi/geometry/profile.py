"""Along-route distance and elevation profiles."""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

from ..config import EARTH_RADIUS_M
from ..models import (
    LatLon,
    MetricArray,
    ParsedRoute,
    RouteStats,
    TrackPoint,
    meters_to_feet,
    meters_to_miles,
)
from .gpx import decode_track_points


def haversine_m(a: LatLon, b: LatLon) -> float:
    """Return the great-circle distance in metres between two (lat, lon) pairs."""

    lat1, lon1 = np.radians(a[0]), np.radians(a[1])
    lat2, lon2 = np.radians(b[0]), np.radians(b[1])
    sin_dlat = np.sin((lat2 - lat1) / 2.0)
    sin_dlon = np.sin((lon2 - lon1) / 2.0)
    h = sin_dlat * sin_dlat + np.cos(lat1) * np.cos(lat2) * sin_dlon * sin_dlon
    return float(2.0 * EARTH_RADIUS_M * np.arcsin(min(1.0, float(np.sqrt(h)))))


def haversine_array_m(
    lats1: MetricArray,
    lons1: MetricArray,
    lats2: Union[MetricArray, float],
    lons2: Union[MetricArray, float],
) -> MetricArray:
    """Vectorised haversine distance in metres (inputs in degrees)."""

    phi1 = np.radians(lats1)
    phi2 = np.radians(lats2)
    sin_dlat = np.sin((phi2 - phi1) / 2.0)
    sin_dlon = np.sin(np.radians(np.asarray(lons2) - np.asarray(lons1)) / 2.0)
    h = sin_dlat * sin_dlat + np.cos(phi1) * np.cos(phi2) * sin_dlon * sin_dlon
    return 2.0 * EARTH_RADIUS_M * np.arcsin(np.minimum(1.0, np.sqrt(h)))


def point_arrays(points: Sequence[TrackPoint]) -> tuple[MetricArray, MetricArray]:
    """Return latitude and longitude arrays for a point sequence."""

    lats = np.fromiter((pt.lat for pt in points), dtype=float, count=len(points))
    lons = np.fromiter((pt.lon for pt in points), dtype=float, count=len(points))
    return lats, lons


def segment_lengths_m(points: Sequence[TrackPoint]) -> MetricArray:
    """Return the haversine length of every consecutive segment."""

    if len(points) < 2:
        return np.zeros(0, dtype=float)
    lats, lons = point_arrays(points)
    return haversine_array_m(lats[:-1], lons[:-1], lats[1:], lons[1:])


def compute_stats(points: Sequence[TrackPoint]) -> RouteStats:
    """Fold a point sequence into distance and elevation series.

    ``distance_series[0]`` is 0 and each following entry adds the haversine
    length of the preceding segment. Missing elevations count as 0 m and only
    ascents contribute to the elevation gain.
    """

    if not points:
        empty = np.zeros(0, dtype=float)
        return RouteStats(0.0, empty, empty.copy(), 0.0)

    lengths = segment_lengths_m(points)
    distance_series = np.concatenate(([0.0], np.cumsum(lengths)))
    elevation_series = np.fromiter(
        (pt.elevation if pt.elevation is not None else 0.0 for pt in points),
        dtype=float,
        count=len(points),
    )
    deltas = np.diff(elevation_series)
    gain = float(np.sum(deltas[deltas > 0.0])) if deltas.size else 0.0
    return RouteStats(
        distance_m=float(distance_series[-1]),
        distance_series=distance_series,
        elevation_series=elevation_series,
        elevation_gain_m=gain,
    )


def parse_gpx(raw: Union[str, bytes], source: str = "<gpx>") -> ParsedRoute:
    """Decode GPX text and return its points together with the route profile."""

    points = decode_track_points(raw, source)
    stats = compute_stats(points)
    return ParsedRoute(
        points=points,
        distance_series=stats.distance_series,
        elevation_series=stats.elevation_series,
        total_distance_miles=meters_to_miles(stats.distance_m),
        elevation_gain_feet=meters_to_feet(stats.elevation_gain_m),
    )
