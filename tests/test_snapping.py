"""Tests for the multi-variant snap coordinator."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import ROUTE_GROUP_ID, meters_to_lat_degrees
from route_poi.errors import NotFoundError, PartialSnapError, ValidationError
from route_poi.geometry.cache import RouteGeometryCache
from route_poi.models import PoiSeed
from route_poi.serialization import placement_set_to_payload
from route_poi.snapping import (
    load_route_variant,
    normalize_labels,
    snap_point_to_route_variant,
    snap_point_to_variants,
    snap_poi,
)
from route_poi.storage import RouteStore

SEED = PoiSeed(id="aid-water", title="Water", type="aid")


def test_normalize_labels_upper_cases_and_dedupes() -> None:
    assert normalize_labels(["med", "LRG", "MED", " xl "]) == ["MED", "LRG", "XL"]
    assert normalize_labels("lrg") == ["LRG"]


@pytest.mark.parametrize("labels", [[], ["", "  "], ["MED", "HUGE"]])
def test_normalize_labels_rejects_empty_or_unknown(labels) -> None:
    with pytest.raises(ValidationError):
        normalize_labels(labels)


def test_snap_single_variant(store: RouteStore) -> None:
    placements = snap_point_to_route_variant(
        ROUTE_GROUP_ID, "MED", (meters_to_lat_degrees(3.0), 0.0013), store=store
    )

    assert len(placements) == 1
    assert placements.primary.distance_m == pytest.approx(1.3 * 111.19, rel=1e-3)
    assert placements.primary.snap_index == 1


def test_snap_point_to_variants_returns_each_label(store: RouteStore) -> None:
    result = snap_point_to_variants(ROUTE_GROUP_ID, ["lrg", "med"], (0.0, 0.0), store=store)

    assert list(result) == ["LRG", "MED"]
    assert len(result["LRG"]) == 2
    assert len(result["MED"]) == 1


def test_missing_route_group_raises_not_found(store: RouteStore) -> None:
    with pytest.raises(NotFoundError):
        snap_point_to_variants("missing-group", ["MED"], (0.0, 0.0), store=store)


def test_invalid_click_is_rejected_before_any_io(store: RouteStore) -> None:
    with pytest.raises(ValidationError):
        snap_point_to_variants("missing-group", ["MED"], (95.0, 0.0), store=store)


def test_single_missing_variant_raises_its_own_error(store: RouteStore) -> None:
    with pytest.raises(NotFoundError):
        snap_point_to_variants(ROUTE_GROUP_ID, ["XL"], (0.0, 0.0), store=store)


def test_partial_failure_carries_successful_placements(store: RouteStore) -> None:
    with pytest.raises(PartialSnapError) as excinfo:
        snap_point_to_variants(ROUTE_GROUP_ID, ["MED", "XL"], (0.0, 0.0005), store=store)

    assert set(excinfo.value.placements) == {"MED"}
    assert isinstance(excinfo.value.failures["XL"], NotFoundError)
    assert excinfo.value.document is None


def test_broken_variant_does_not_block_others(routes_root: Path, store: RouteStore) -> None:
    (routes_root / ROUTE_GROUP_ID / "XL.gpx").write_text("<gpx>", encoding="utf-8")

    with pytest.raises(PartialSnapError) as excinfo:
        snap_point_to_variants(ROUTE_GROUP_ID, ["XL", "MED"], (0.0, 0.0005), store=store)

    assert list(excinfo.value.placements) == ["MED"]
    assert "XL" in str(excinfo.value)


def test_snap_poi_creates_document(store: RouteStore) -> None:
    document = snap_poi(ROUTE_GROUP_ID, SEED, (0.0, 0.0015), ["MED"], store=store)

    poi = document.find("aid-water")
    assert poi is not None
    assert poi.original_click == (0.0, 0.0015)
    assert set(poi.variants) == {"MED"}
    stored = json.loads(store.poi_document_path(ROUTE_GROUP_ID).read_text(encoding="utf-8"))
    assert stored["version"] == 1
    assert stored["pois"][0]["drop"] == {"lat": 0.0, "lon": 0.0015}


def test_resnapping_one_variant_leaves_others_untouched(store: RouteStore) -> None:
    snap_poi(ROUTE_GROUP_ID, SEED, (0.0, 0.0015), ["MED"], store=store)
    before = store.load_poi_document(ROUTE_GROUP_ID).find("aid-water")
    med_before = placement_set_to_payload(before.variants["MED"])

    document = snap_poi(ROUTE_GROUP_ID, SEED, (0.0, 0.0), ["LRG"], store=store)

    poi = document.find("aid-water")
    assert placement_set_to_payload(poi.variants["MED"]) == med_before
    assert len(poi.variants["LRG"]) == 2
    assert poi.original_click == (0.0, 0.0)
    reloaded = store.load_poi_document(ROUTE_GROUP_ID).find("aid-water")
    assert placement_set_to_payload(reloaded.variants["MED"]) == med_before


def test_snap_poi_updates_identity_and_keeps_flags(store: RouteStore) -> None:
    snap_poi(ROUTE_GROUP_ID, PoiSeed("aid-water", "Water", "aid", notes="cups"), (0.0, 0.001), ["MED"], store=store)
    document = store.load_poi_document(ROUTE_GROUP_ID)
    document.find("aid-water").locked = True
    store.save_poi_document(document)

    updated = snap_poi(ROUTE_GROUP_ID, PoiSeed("aid-water", "Water & Gels", "aid"), (0.0, 0.001), ["MED"], store=store)

    poi = updated.find("aid-water")
    assert poi.title == "Water & Gels"
    assert poi.notes == "cups"
    assert poi.locked is True
    assert len(updated.pois) == 1


def test_snap_poi_saves_successes_then_raises_partial(store: RouteStore) -> None:
    with pytest.raises(PartialSnapError) as excinfo:
        snap_poi(ROUTE_GROUP_ID, SEED, (0.0, 0.0005), ["MED", "XL"], store=store)

    saved = store.load_poi_document(ROUTE_GROUP_ID).find("aid-water")
    assert set(saved.variants) == {"MED"}
    assert excinfo.value.document is not None


def test_snap_poi_writes_nothing_when_every_variant_fails(store: RouteStore) -> None:
    with pytest.raises(NotFoundError):
        snap_poi(ROUTE_GROUP_ID, SEED, (0.0, 0.0005), ["XL"], store=store)

    assert not store.poi_document_path(ROUTE_GROUP_ID).exists()


def test_snap_poi_requires_id(store: RouteStore) -> None:
    with pytest.raises(ValidationError):
        snap_poi(ROUTE_GROUP_ID, PoiSeed(" ", "Water", "aid"), (0.0, 0.0), ["MED"], store=store)


def test_out_of_tolerance_click_is_flagged_fallback(store: RouteStore) -> None:
    placements = snap_point_to_variants(
        ROUTE_GROUP_ID, ["MED"], (meters_to_lat_degrees(40.0), 0.0031), store=store
    )["MED"]

    assert placements.primary.fallback
    assert placements.primary.snap_index == 3


def test_geometry_is_recomputed_without_cache(routes_root: Path, store: RouteStore) -> None:
    first = load_route_variant(ROUTE_GROUP_ID, "MED", store=store)
    second = load_route_variant(ROUTE_GROUP_ID, "MED", store=store)

    assert first is not second


def test_cache_reuses_geometry_until_file_changes(routes_root: Path, store: RouteStore) -> None:
    cache = RouteGeometryCache(max_entries=4)
    first = load_route_variant(ROUTE_GROUP_ID, "MED", store=store, cache=cache)
    assert load_route_variant(ROUTE_GROUP_ID, "MED", store=store, cache=cache) is first

    gpx_path = routes_root / ROUTE_GROUP_ID / "MED.gpx"
    gpx_path.write_text(gpx_path.read_text(encoding="utf-8") + "\n", encoding="utf-8")

    assert load_route_variant(ROUTE_GROUP_ID, "MED", store=store, cache=cache) is not first
