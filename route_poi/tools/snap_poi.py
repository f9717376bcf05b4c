"""Snap a POI onto route variants from the command line.

Usage examples:

    # Snap a water stop onto the MED and LRG variants
    python -m route_poi big-loop 37.7749 -122.4194 MED,LRG aid "Water Stop 1"

    # List the POIs stored for a route group
    python -m route_poi --list big-loop

    # Use a different data folder
    python -m route_poi --data-root ./fixtures/routes --list big-loop
"""

from __future__ import annotations

import argparse
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from ..errors import PartialSnapError, RoutePoiError
from ..models import MetricArray, PoiDocument, PoiSeed, PointOfInterest
from ..poi_distance import resolve_poi_distance_miles
from ..snapping import load_route_variant, snap_poi
from ..storage import RouteStore
from ..utils import make_poi_id

LOGGER = logging.getLogger(__name__)

SeriesByLabel = Dict[str, MetricArray]

# Column name and fixed width; width 0 leaves the last column unpadded.
_COLUMNS = (
    ("id", 32),
    ("type", 10),
    ("title", 28),
    ("variants", 16),
    ("distanceMi", 0),
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="route-poi",
        description="Snap a point of interest onto one or more route variants",
    )
    parser.add_argument(
        "--list",
        metavar="ROUTE_GROUP_ID",
        dest="list_group",
        help="Print the POIs stored for a route group and exit",
    )
    parser.add_argument(
        "--data-root",
        help="Folder holding route groups (defaults to ROUTES_ROOT)",
    )
    parser.add_argument("--notes", help="Optional notes stored on the POI")
    parser.add_argument(
        "--id",
        dest="poi_id",
        help="POI id to create or update (defaults to a <type>-<title> slug)",
    )
    parser.add_argument("route_group_id", nargs="?", help="Route group id")
    parser.add_argument("lat", nargs="?", type=float, help="Click latitude")
    parser.add_argument("lon", nargs="?", type=float, help="Click longitude")
    parser.add_argument(
        "variants", nargs="?", help="Comma-separated variant labels, e.g. MED,LRG"
    )
    parser.add_argument("poi_type", nargs="?", help="POI type, e.g. aid or turn")
    parser.add_argument("title", nargs="*", help="POI title")
    return parser


def _split_labels(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _variant_series(
    store: RouteStore, route_group_id: str, labels: Iterable[str]
) -> SeriesByLabel:
    """Return distance series for variants whose GPX can be loaded."""

    series: SeriesByLabel = {}
    for label in labels:
        try:
            variant = load_route_variant(route_group_id, label, store=store)
        except RoutePoiError as exc:
            LOGGER.debug("No geometry for %s %s: %s", route_group_id, label, exc)
            continue
        series[label] = variant.stats.distance_series
    return series


def _format_distances(poi: PointOfInterest, series: SeriesByLabel) -> str:
    parts = []
    for label in poi.variants:
        miles = resolve_poi_distance_miles(poi, label, series.get(label))
        parts.append(f"{label}:{miles:.2f}" if miles is not None else f"{label}:-")
    return " ".join(parts)


def format_poi_table(
    pois: Sequence[PointOfInterest], series: Optional[SeriesByLabel] = None
) -> str:
    """Render POIs as a fixed-width text table."""

    series = series or {}
    header = "".join(
        name.ljust(width) if width else name for name, width in _COLUMNS
    )
    lines = [header, "-" * len(header)]
    for poi in pois:
        values = (
            poi.id,
            poi.type,
            poi.title,
            ",".join(poi.variants),
            _format_distances(poi, series),
        )
        row = "".join(
            str(value)[: width - 1].ljust(width) if width else str(value)
            for value, (_, width) in zip(values, _COLUMNS)
        )
        lines.append(row.rstrip())
    return "\n".join(lines)


def _print_document(
    store: RouteStore, document: PoiDocument, pois: Sequence[PointOfInterest]
) -> None:
    labels = {label for poi in pois for label in poi.variants}
    series = _variant_series(store, document.route_group_id, sorted(labels))
    print(format_poi_table(pois, series))


def list_pois(store: RouteStore, route_group_id: str) -> int:
    document = store.load_poi_document(route_group_id)
    if not document.pois:
        LOGGER.info("No POIs stored for %s", route_group_id)
        return 0
    _print_document(store, document, document.pois)
    return 0


def snap_from_args(store: RouteStore, args: argparse.Namespace) -> int:
    title = " ".join(args.title).strip()
    poi_id = args.poi_id or make_poi_id(args.poi_type, title)
    seed = PoiSeed(id=poi_id, title=title, type=args.poi_type, notes=args.notes)
    labels = _split_labels(args.variants)
    try:
        document = snap_poi(
            args.route_group_id,
            seed,
            (args.lat, args.lon),
            labels,
            store=store,
        )
    except PartialSnapError as exc:
        if exc.document is not None:
            poi = exc.document.find(poi_id)
            if poi is not None:
                _print_document(store, exc.document, [poi])
        raise

    poi = document.find(poi_id)
    if poi is None:  # pragma: no cover - snap_poi always upserts
        raise RoutePoiError(f"POI {poi_id} missing after save")
    for label in labels:
        placement_set = poi.variants.get(label.upper())
        if placement_set is None:
            continue
        for placement in placement_set:
            LOGGER.info(
                "%s pass %s: %.3f mi (snap index %d)%s",
                label.upper(),
                placement.pass_index,
                placement.distance_miles,
                placement.snap_index,
                " [fallback]" if placement.fallback else "",
            )
    _print_document(store, document, [poi])
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )

    store = RouteStore(args.data_root)
    if args.list_group:
        try:
            return list_pois(store, args.list_group)
        except RoutePoiError as exc:
            LOGGER.error("%s", exc)
            return 1

    required = (args.route_group_id, args.lat, args.lon, args.variants, args.poi_type)
    if any(value is None for value in required) or not args.title:
        parser.error("route_group_id, lat, lon, variants, type and title are required")

    try:
        return snap_from_args(store, args)
    except RoutePoiError as exc:
        LOGGER.error("%s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
