"""Snap map clicks onto one or more route variants and merge them into POIs."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import POI_DOCUMENT_VERSION, ROUTE_VARIANT_LABELS
from .errors import PartialSnapError, RoutePoiError, ValidationError
from .geometry.cache import RouteGeometryCache
from .geometry.clustering import build_placement_set
from .geometry.gpx import decode_track_points
from .geometry.profile import compute_stats
from .geometry.projection import project, validate_coordinate
from .models import (
    LatLon,
    PlacementSet,
    PoiDocument,
    PoiSeed,
    PointOfInterest,
    RouteVariant,
)
from .storage import RouteStore

_LOG = logging.getLogger(__name__)

_DEFAULT_CACHE = RouteGeometryCache()

SnapResults = Dict[str, PlacementSet]
SnapFailures = Dict[str, RoutePoiError]


def normalize_labels(
    labels: Iterable[str],
    allowed: Sequence[str] = ROUTE_VARIANT_LABELS,
) -> List[str]:
    """Return upper-cased, de-duplicated labels in request order.

    Raises:
        ValidationError: If no label is given or any label is not allowed.
    """

    if isinstance(labels, str):
        labels = [labels]
    normalized: List[str] = []
    for raw in labels:
        label = str(raw).strip().upper()
        if label and label not in normalized:
            normalized.append(label)
    if not normalized:
        raise ValidationError("At least one variant label is required")
    unknown = [label for label in normalized if label not in allowed]
    if unknown:
        raise ValidationError(
            f"Unknown variant label(s) {', '.join(unknown)}; "
            f"expected one of {', '.join(allowed)}"
        )
    return normalized


def load_route_variant(
    route_group_id: str,
    label: str,
    *,
    store: Optional[RouteStore] = None,
    cache: Optional[RouteGeometryCache] = None,
) -> RouteVariant:
    """Read a variant's canonical GPX and build its geometry.

    The GPX file is read on every call. A cache only short-circuits decoding
    when it holds an entry for identical file content.
    """

    store = store or RouteStore()
    cache = cache if cache is not None else _DEFAULT_CACHE
    raw = store.load_variant_gpx(route_group_id, label)
    cached = cache.get(route_group_id, label, raw)
    if cached is not None:
        _LOG.debug("Geometry cache hit for %s %s", route_group_id, label)
        return cached
    points = decode_track_points(raw, f"{route_group_id}-{label}.gpx")
    variant = RouteVariant(
        route_group_id=route_group_id,
        label=label,
        points=points,
        stats=compute_stats(points),
    )
    cache.put(raw, variant)
    return variant


def snap_to_variant(click: LatLon, variant: RouteVariant) -> PlacementSet:
    """Project ``click`` onto a loaded variant and reduce hits to passes."""

    hits = project(click, variant.points, variant.stats.distance_series)
    placement_set = build_placement_set(hits)
    _LOG.debug(
        "Snapped (%.6f, %.6f) to %s %s: %d hit(s) -> %d pass(es)",
        click[0],
        click[1],
        variant.route_group_id,
        variant.label,
        len(hits),
        len(placement_set),
    )
    return placement_set


def snap_point_to_route_variant(
    route_group_id: str,
    label: str,
    click: LatLon,
    *,
    store: Optional[RouteStore] = None,
    cache: Optional[RouteGeometryCache] = None,
) -> PlacementSet:
    """Return the placement set of ``click`` on a single variant."""

    click = validate_coordinate(click)
    variant = load_route_variant(route_group_id, label, store=store, cache=cache)
    return snap_to_variant(click, variant)


def _snap_each(
    route_group_id: str,
    labels: Sequence[str],
    click: LatLon,
    store: RouteStore,
    cache: Optional[RouteGeometryCache],
) -> Tuple[SnapResults, SnapFailures]:
    placements: SnapResults = {}
    failures: SnapFailures = {}
    for label in labels:
        try:
            placements[label] = snap_point_to_route_variant(
                route_group_id, label, click, store=store, cache=cache
            )
        except RoutePoiError as exc:
            _LOG.error("Snapping %s %s failed: %s", route_group_id, label, exc)
            failures[label] = exc
    return placements, failures


def snap_point_to_variants(
    route_group_id: str,
    labels: Iterable[str],
    click: LatLon,
    *,
    store: Optional[RouteStore] = None,
    cache: Optional[RouteGeometryCache] = None,
) -> SnapResults:
    """Snap ``click`` onto every requested variant independently.

    Raises:
        ValidationError: For invalid labels or click coordinates.
        NotFoundError: If the route group does not exist, or the only
            requested variant has no GPX file.
        PartialSnapError: If some variants failed; successful placements are
            available on the exception.
    """

    store = store or RouteStore()
    normalized = normalize_labels(labels)
    click = validate_coordinate(click)
    store.require_route_group(route_group_id)

    placements, failures = _snap_each(route_group_id, normalized, click, store, cache)
    _raise_failures(placements, failures)
    return placements


def snap_poi(
    route_group_id: str,
    seed: PoiSeed,
    click: LatLon,
    labels: Iterable[str],
    *,
    store: Optional[RouteStore] = None,
    cache: Optional[RouteGeometryCache] = None,
) -> PoiDocument:
    """Create or update a POI with placements for the requested variants.

    Only the requested labels are written; placements stored for other
    variants of the POI are left untouched. The full document is saved
    whenever at least one variant snapped.
    """

    store = store or RouteStore()
    if not seed.id or not seed.id.strip():
        raise ValidationError("POI id is required")
    normalized = normalize_labels(labels)
    click = validate_coordinate(click)
    store.require_route_group(route_group_id)

    placements, failures = _snap_each(route_group_id, normalized, click, store, cache)
    if not placements:
        _raise_failures(placements, failures)

    document = store.load_poi_document(route_group_id)
    poi = _upsert_poi(document, seed)
    poi.original_click = click
    poi.variants.update(placements)
    if document.version is None:
        document.version = POI_DOCUMENT_VERSION
    store.save_poi_document(document)
    _LOG.info(
        "POI %s snapped on %s for variant(s) %s",
        poi.id,
        route_group_id,
        ", ".join(placements),
    )

    if failures:
        raise PartialSnapError(placements, failures, document=document)
    return document


def _upsert_poi(document: PoiDocument, seed: PoiSeed) -> PointOfInterest:
    poi = document.find(seed.id)
    if poi is None:
        poi = PointOfInterest(
            id=seed.id, title=seed.title, type=seed.type, notes=seed.notes
        )
        document.pois.append(poi)
        return poi
    poi.title = seed.title
    poi.type = seed.type
    if seed.notes is not None:
        poi.notes = seed.notes
    return poi


def _raise_failures(placements: SnapResults, failures: SnapFailures) -> None:
    if not failures:
        return
    if not placements and len(failures) == 1:
        raise next(iter(failures.values()))
    raise PartialSnapError(placements, failures)
