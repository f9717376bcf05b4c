"""Tests for the file-backed route store."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import ROUTE_GROUP_ID, write_route_group
from route_poi.errors import NotFoundError, StorageError, ValidationError
from route_poi.models import PoiDocument, PointOfInterest
from route_poi.storage import RouteStore


def test_variant_gpx_prefers_label_file_then_group_prefixed(store: RouteStore) -> None:
    assert store.variant_gpx_path(ROUTE_GROUP_ID, "MED").name == "MED.gpx"
    assert store.variant_gpx_path(ROUTE_GROUP_ID, "LRG").name == f"{ROUTE_GROUP_ID}-LRG.gpx"
    assert "<gpx" in store.load_variant_gpx(ROUTE_GROUP_ID, "MED")


def test_missing_variant_raises_not_found(store: RouteStore) -> None:
    with pytest.raises(NotFoundError):
        store.load_variant_gpx(ROUTE_GROUP_ID, "XL")


def test_missing_route_group_raises_not_found(store: RouteStore) -> None:
    assert not store.route_group_exists("nope")
    with pytest.raises(NotFoundError):
        store.require_route_group("nope")


@pytest.mark.parametrize("group_id", ["", "../etc", "a/b", ".hidden", "x..y"])
def test_unsafe_group_ids_are_rejected(store: RouteStore, group_id: str) -> None:
    with pytest.raises(ValidationError):
        store.group_dir(group_id)


def test_route_meta_and_listing(routes_root: Path, store: RouteStore) -> None:
    write_route_group(routes_root, "second-route", variants=("xl",))
    (routes_root / "not-a-group").mkdir()

    groups = store.list_route_groups()

    assert [meta.route_group_id for meta in groups] == ["second-route", ROUTE_GROUP_ID]
    meta = store.get_route_meta(ROUTE_GROUP_ID)
    assert meta.name == "Test Loop"
    assert meta.variants == ("MED", "LRG")
    assert groups[0].variants == ("XL",)


def test_absent_poi_document_loads_empty(store: RouteStore) -> None:
    document = store.load_poi_document(ROUTE_GROUP_ID)

    assert document.route_group_id == ROUTE_GROUP_ID
    assert document.pois == []
    assert document.version == 1


def test_save_is_atomic_and_round_trips(store: RouteStore) -> None:
    document = PoiDocument(
        route_group_id=ROUTE_GROUP_ID,
        version=1,
        pois=[PointOfInterest(id="turn-left", title="Left", type="turn", notes="sharp")],
    )

    path = store.save_poi_document(document)

    assert path.name == "route.pois.json"
    assert not path.with_name(path.name + ".tmp").exists()
    assert json.loads(path.read_text(encoding="utf-8"))["routeGroupId"] == ROUTE_GROUP_ID
    reloaded = store.load_poi_document(ROUTE_GROUP_ID)
    assert reloaded.find("turn-left").notes == "sharp"


def test_corrupt_poi_document_raises_storage_error(store: RouteStore) -> None:
    store.poi_document_path(ROUTE_GROUP_ID).write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageError):
        store.load_poi_document(ROUTE_GROUP_ID)


def test_invalid_placement_in_document_raises_storage_error(store: RouteStore) -> None:
    payload = {"pois": [{"id": "x", "variants": {"MED": []}}]}
    store.poi_document_path(ROUTE_GROUP_ID).write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(StorageError, match="MED"):
        store.load_poi_document(ROUTE_GROUP_ID)


def test_relative_root_resolves_against_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert RouteStore("data/routes").root == tmp_path / "data" / "routes"


def test_failed_save_removes_temp_file_and_keeps_previous_document(
    store: RouteStore,
) -> None:
    good = PoiDocument(
        route_group_id=ROUTE_GROUP_ID,
        version=1,
        pois=[PointOfInterest(id="turn-left", title="Left", type="turn")],
    )
    path = store.save_poi_document(good)
    before = path.read_text(encoding="utf-8")
    bad = PoiDocument(
        route_group_id=ROUTE_GROUP_ID,
        version=1,
        pois=[PointOfInterest(id="x", title="X", type="aid", extras={"blob": object()})],
    )

    with pytest.raises(StorageError):
        store.save_poi_document(bad)

    assert not path.with_name(path.name + ".tmp").exists()
    assert path.read_text(encoding="utf-8") == before


def test_non_finite_values_are_not_written(store: RouteStore) -> None:
    bad = PoiDocument(
        route_group_id=ROUTE_GROUP_ID,
        pois=[PointOfInterest(id="x", title="X", type="aid", extras={"score": float("nan")})],
    )

    with pytest.raises(StorageError):
        store.save_poi_document(bad)

    path = store.poi_document_path(ROUTE_GROUP_ID)
    assert not path.exists()
    assert not path.with_name(path.name + ".tmp").exists()
