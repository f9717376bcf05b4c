"""GPX decoding into ordered track point sequences."""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Union

import gpxpy
import gpxpy.gpx

from ..errors import GpxParseError
from ..models import TrackPoint

_LOG = logging.getLogger(__name__)

# Optional child values that mark a <trkpt> as the full element form.
_NESTED_FIELDS = ("elevation", "time", "name", "comment", "description", "symbol")


def decode_track_points(
    raw: Union[str, bytes], source: str = "<gpx>"
) -> List[TrackPoint]:
    """Decode GPX text into an ordered list of :class:`TrackPoint`.

    Track points are read with one of two strategies, tried in order: the
    full element form carrying nested data such as ``<ele>``, then the
    coordinate-only self-closing form. Whichever yields points first is used
    exclusively. Documents without any track points fall back to route
    points (``<rtept>``). Points whose latitude or longitude is not a finite
    number are skipped, and non-finite elevations are read as missing.

    Raises:
        GpxParseError: If the text is not valid GPX or yields fewer than two
            usable points.
    """

    gpx = _parse_document(raw, source)
    track_points = list(_iter_track_points(gpx))

    points = _usable(pt for pt in track_points if _is_full_element(pt))
    strategy = "full"
    if not points:
        points = _usable(track_points, with_elevation=False)
        strategy = "coordinate-only"
    if not points:
        points = _usable(pt for route in gpx.routes for pt in route.points)
        strategy = "route"

    if len(points) < 2:
        raise GpxParseError(
            f"Not enough coordinates in {source}: found {len(points)}, need at least 2"
        )
    _LOG.debug(
        "Decoded %d points from %s using %s strategy", len(points), source, strategy
    )
    return points


def _parse_document(raw: Union[str, bytes], source: str) -> gpxpy.gpx.GPX:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise GpxParseError(f"GPX {source} is not valid UTF-8") from exc
    if not raw or not raw.strip():
        raise GpxParseError(f"GPX {source} is empty")
    try:
        return gpxpy.parse(raw)
    except (gpxpy.gpx.GPXException, ValueError) as exc:
        raise GpxParseError(f"Invalid GPX in {source}: {exc}") from exc


def _iter_track_points(gpx: gpxpy.gpx.GPX) -> Iterable[gpxpy.gpx.GPXTrackPoint]:
    for track in gpx.tracks:
        for segment in track.segments:
            yield from segment.points


def _is_full_element(point: gpxpy.gpx.GPXTrackPoint) -> bool:
    if any(getattr(point, name, None) is not None for name in _NESTED_FIELDS):
        return True
    return bool(getattr(point, "extensions", None))


def _usable(
    points: Iterable[gpxpy.gpx.GPXTrackPoint], *, with_elevation: bool = True
) -> List[TrackPoint]:
    """Convert gpxpy points, skipping those without finite coordinates."""

    usable: List[TrackPoint] = []
    for point in points:
        lat = _finite_or_none(point.latitude)
        lon = _finite_or_none(point.longitude)
        if lat is None or lon is None:
            _LOG.debug(
                "Skipping point with unusable coordinates lat=%r lon=%r",
                point.latitude,
                point.longitude,
            )
            continue
        elevation = _finite_or_none(point.elevation) if with_elevation else None
        usable.append(TrackPoint(lat=lat, lon=lon, elevation=elevation))
    return usable


def _finite_or_none(value: object) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
