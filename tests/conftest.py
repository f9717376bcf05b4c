"""Global pytest fixtures & helpers.

Adds project root to path and provides GPX builders plus an on-disk route
group fixture so storage, snapping and CLI tests share one layout.
"""
from __future__ import annotations

import json
import math
import os
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from route_poi.config import EARTH_RADIUS_M
from route_poi.models import TrackPoint

ROUTE_GROUP_ID = "test-loop"

# Straight line along the equator, ~111.19 m per segment.
LINE_POINTS = [(0.0, 0.001 * i, 100.0 + 5.0 * i) for i in range(5)]

# Closed square whose first and last points coincide.
LOOP_POINTS = [
    (0.0, 0.0, 10.0),
    (0.0, 0.001, 12.0),
    (0.001, 0.001, 11.0),
    (0.001, 0.0, 15.0),
    (0.0, 0.0, 10.0),
]


# --- Factory helpers -------------------------------------------------
def meters_to_lat_degrees(meters: float) -> float:
    """Latitude offset that is exactly ``meters`` north along a meridian."""

    return math.degrees(meters / EARTH_RADIUS_M)


def make_track(coords: Iterable[Sequence[float]]) -> list[TrackPoint]:
    points = []
    for coord in coords:
        elevation: Optional[float] = coord[2] if len(coord) > 2 else None
        points.append(TrackPoint(lat=coord[0], lon=coord[1], elevation=elevation))
    return points


def gpx_text(coords: Iterable[Sequence[float]], *, full: bool = True) -> str:
    """Build a GPX 1.1 document with one track.

    ``full=True`` writes ``<trkpt>`` elements with nested ``<ele>``;
    otherwise coordinate-only self-closing elements are written.
    """

    rows = []
    for coord in coords:
        lat, lon = coord[0], coord[1]
        if full:
            ele = coord[2] if len(coord) > 2 else 0.0
            rows.append(f'      <trkpt lat="{lat}" lon="{lon}"><ele>{ele}</ele></trkpt>')
        else:
            rows.append(f'      <trkpt lat="{lat}" lon="{lon}"/>')
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<gpx version="1.1" creator="tests" xmlns="http://www.topografix.com/GPX/1/1">\n'
        "  <trk>\n    <name>test</name>\n    <trkseg>\n"
        + "\n".join(rows)
        + "\n    </trkseg>\n  </trk>\n</gpx>\n"
    )


def route_gpx_text(coords: Iterable[Tuple[float, float]]) -> str:
    rows = [f'    <rtept lat="{lat}" lon="{lon}"/>' for lat, lon in coords]
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<gpx version="1.1" creator="tests" xmlns="http://www.topografix.com/GPX/1/1">\n'
        "  <rte>\n"
        + "\n".join(rows)
        + "\n  </rte>\n</gpx>\n"
    )


def write_route_group(
    root: Path,
    route_group_id: str = ROUTE_GROUP_ID,
    *,
    variants: Sequence[str] = ("MED", "LRG"),
) -> Path:
    """Create a route group folder with metadata and two variant GPX files.

    ``MED`` is stored as ``MED.gpx`` (straight line) and ``LRG`` as
    ``<group>-LRG.gpx`` (closed loop) to cover both file name forms.
    """

    group_dir = root / route_group_id
    group_dir.mkdir(parents=True, exist_ok=True)
    meta = {
        "routeGroupId": route_group_id,
        "name": "Test Loop",
        "location": "Null Island",
        "source": "tests",
        "notes": "",
        "variants": list(variants),
    }
    (group_dir / "route.meta.json").write_text(json.dumps(meta), encoding="utf-8")
    (group_dir / "MED.gpx").write_text(gpx_text(LINE_POINTS), encoding="utf-8")
    (group_dir / f"{route_group_id}-LRG.gpx").write_text(
        gpx_text(LOOP_POINTS), encoding="utf-8"
    )
    return group_dir


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def line_track() -> list[TrackPoint]:
    return make_track(LINE_POINTS)


@pytest.fixture
def loop_track() -> list[TrackPoint]:
    return make_track(LOOP_POINTS)


@pytest.fixture
def routes_root(tmp_path: Path) -> Path:
    """Routes root holding the ``test-loop`` group."""

    root = tmp_path / "routes"
    write_route_group(root)
    return root


@pytest.fixture
def store(routes_root: Path):
    from route_poi.storage import RouteStore

    return RouteStore(routes_root)
