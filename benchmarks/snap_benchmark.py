"""Benchmark GPX decoding, profiling and snapping with large point counts."""

from __future__ import annotations

import argparse
import statistics
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Late imports rely on the adjusted sys.path above.
from route_poi.geometry.clustering import build_placement_set  # noqa: E402
from route_poi.geometry.gpx import decode_track_points  # noqa: E402
from route_poi.geometry.profile import compute_stats  # noqa: E402
from route_poi.geometry.projection import project  # noqa: E402


@dataclass(slots=True)
class StageDurations:
    """Timing measurements (in seconds) for one snap request."""

    decode: float
    profile: float
    project: float
    cluster: float

    @property
    def total(self) -> float:
        """Return the aggregate duration for this benchmark iteration."""

        return self.decode + self.profile + self.project + self.cluster


@dataclass(slots=True)
class BenchmarkSummary:
    """Aggregated statistics for multiple benchmark iterations."""

    point_count: int
    iterations: int
    placements: int
    mean_decode_ms: float
    mean_profile_ms: float
    mean_project_ms: float
    mean_cluster_ms: float
    mean_total_ms: float
    worst_total_ms: float


def _build_gpx(point_count: int) -> str:
    """Generate an out-and-back track so the click yields two passes."""

    base_lat = 37.0
    base_lon = -122.0
    step_deg = 1.2e-5
    half = point_count // 2
    outbound = [(base_lat + idx * step_deg, base_lon) for idx in range(half)]
    inbound = [(lat, lon + 5e-5) for lat, lon in reversed(outbound)]
    rows = [
        f'<trkpt lat="{lat:.7f}" lon="{lon:.7f}"><ele>{idx % 40}</ele></trkpt>'
        for idx, (lat, lon) in enumerate(outbound + inbound)
    ]
    return (
        '<gpx version="1.1" creator="benchmark" '
        'xmlns="http://www.topografix.com/GPX/1/1"><trk><trkseg>'
        + "".join(rows)
        + "</trkseg></trk></gpx>"
    )


def _run_iteration(raw: str, click: tuple[float, float]) -> tuple[StageDurations, int]:
    """Execute one benchmark iteration and capture per-stage timings."""

    start = time.perf_counter()
    points = decode_track_points(raw, "benchmark.gpx")
    decode = time.perf_counter() - start

    start = time.perf_counter()
    stats = compute_stats(points)
    profile = time.perf_counter() - start

    start = time.perf_counter()
    hits = project(click, points, stats.distance_series)
    project_dur = time.perf_counter() - start

    start = time.perf_counter()
    placements = build_placement_set(hits)
    cluster = time.perf_counter() - start

    durations = StageDurations(
        decode=decode,
        profile=profile,
        project=project_dur,
        cluster=cluster,
    )
    return durations, len(placements)


def run_benchmark(point_count: int, iterations: int) -> BenchmarkSummary:
    """Benchmark one snap request and return aggregated timings."""

    if point_count < 1000:
        raise ValueError("point_count must be at least 1,000")
    if iterations <= 0:
        raise ValueError("iterations must be positive")

    raw = _build_gpx(point_count)
    # Midway between the outbound and inbound legs, a third of the way out.
    click = (37.0 + (point_count // 6) * 1.2e-5, -122.0 + 2.5e-5)

    durations: List[StageDurations] = []
    placements = 0
    for _ in range(iterations):
        measured, placements = _run_iteration(raw, click)
        durations.append(measured)

    return BenchmarkSummary(
        point_count=point_count,
        iterations=iterations,
        placements=placements,
        mean_decode_ms=statistics.fmean(item.decode for item in durations) * 1000.0,
        mean_profile_ms=statistics.fmean(item.profile for item in durations) * 1000.0,
        mean_project_ms=statistics.fmean(item.project for item in durations) * 1000.0,
        mean_cluster_ms=statistics.fmean(item.cluster for item in durations) * 1000.0,
        mean_total_ms=statistics.fmean(item.total for item in durations) * 1000.0,
        worst_total_ms=max(item.total for item in durations) * 1000.0,
    )


def _format_summary(summary: BenchmarkSummary) -> Dict[str, float]:
    """Return a JSON-friendly representation of the benchmark summary."""

    return {
        "point_count": summary.point_count,
        "iterations": summary.iterations,
        "placements": summary.placements,
        "mean_decode_ms": summary.mean_decode_ms,
        "mean_profile_ms": summary.mean_profile_ms,
        "mean_project_ms": summary.mean_project_ms,
        "mean_cluster_ms": summary.mean_cluster_ms,
        "mean_total_ms": summary.mean_total_ms,
        "worst_total_ms": summary.worst_total_ms,
    }


def _parse_args() -> argparse.Namespace:
    """Parse command-line arguments for the benchmark utility."""

    parser = argparse.ArgumentParser(
        description="Benchmark route snapping with large GPX tracks",
    )
    parser.add_argument(
        "--points",
        type=int,
        default=20000,
        help="Number of track points in the synthetic route",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=5,
        help="Number of repetitions for averaging",
    )
    return parser.parse_args()


def main() -> None:
    """Entry point when running the module as a script."""

    args = _parse_args()
    summary = run_benchmark(args.points, args.iterations)
    formatted = _format_summary(summary)
    for key, value in formatted.items():
        if key in {"point_count", "iterations", "placements"}:
            print(f"{key}: {value}")
        else:
            print(f"{key}: {value:.3f}")


if __name__ == "__main__":
    main()
