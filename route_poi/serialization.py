"""Conversion between model objects and the stored JSON document shapes.

Stored documents use camelCase keys. A placement set holding a single
placement is written as a bare object; multi-pass sets are written as a
list. Keys this package does not model are preserved on round-trip.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional, Union

from .config import METERS_PER_MILE
from .errors import ValidationError
from .models import (
    LatLon,
    Placement,
    PlacementSet,
    PoiDocument,
    PointOfInterest,
    meters_to_miles,
)

PlacementPayload = Dict[str, Any]
PlacementSetPayload = Union[PlacementPayload, List[PlacementPayload]]

_PLACEMENT_KEYS = {
    "lat",
    "lon",
    "snapIndex",
    "distanceM",
    "distanceMi",
    "passIndex",
    "fallback",
    "direction",
}
_POI_KEYS = {"id", "title", "type", "notes", "system", "locked", "drop", "variants"}
_DOCUMENT_KEYS = {"version", "routeGroupId", "pois"}


def placement_to_payload(placement: Placement) -> PlacementPayload:
    payload: PlacementPayload = dict(placement.extras)
    payload.update(
        {
            "lat": placement.lat,
            "lon": placement.lon,
            "distanceMi": placement.distance_miles,
            "distanceM": placement.distance_m,
            "snapIndex": placement.snap_index,
        }
    )
    if placement.pass_index is not None:
        payload["passIndex"] = placement.pass_index
    if placement.direction is not None:
        payload["direction"] = placement.direction
    if placement.fallback:
        payload["fallback"] = True
    return payload


def placement_from_payload(payload: Mapping[str, Any]) -> Placement:
    if not isinstance(payload, Mapping):
        raise ValidationError(
            f"Placement must be an object, got {type(payload).__name__}"
        )
    lat = _require_float(payload, "lat")
    lon = _require_float(payload, "lon")
    distance_m = _optional_float(payload.get("distanceM"))
    distance_mi = _optional_float(payload.get("distanceMi"))
    if distance_m is None and distance_mi is None:
        raise ValidationError("Placement needs distanceM or distanceMi")
    if distance_m is None:
        distance_m = distance_mi * METERS_PER_MILE  # type: ignore[operator]
    if distance_mi is None:
        distance_mi = meters_to_miles(distance_m)
    snap_index = _optional_int(payload.get("snapIndex"))
    if snap_index is None:
        raise ValidationError("Placement needs an integer snapIndex")
    direction = payload.get("direction")
    return Placement(
        lat=lat,
        lon=lon,
        snap_index=snap_index,
        distance_m=distance_m,
        distance_miles=distance_mi,
        pass_index=_optional_int(payload.get("passIndex")),
        fallback=bool(payload.get("fallback", False)),
        direction=str(direction) if direction is not None else None,
        extras={k: v for k, v in payload.items() if k not in _PLACEMENT_KEYS},
    )


def placement_set_to_payload(placement_set: PlacementSet) -> PlacementSetPayload:
    """Serialize a placement set, collapsing singletons to a bare object."""

    payloads = [placement_to_payload(p) for p in placement_set]
    if len(payloads) == 1:
        return payloads[0]
    return payloads


def placement_set_from_payload(payload: Any) -> PlacementSet:
    """Accept either a bare placement object or a non-empty list of them."""

    if isinstance(payload, list):
        if not payload:
            raise ValidationError("Placement list must not be empty")
        return PlacementSet(tuple(placement_from_payload(item) for item in payload))
    return PlacementSet((placement_from_payload(payload),))


def poi_to_payload(poi: PointOfInterest) -> Dict[str, Any]:
    payload: Dict[str, Any] = dict(poi.extras)
    payload.update({"id": poi.id, "title": poi.title, "type": poi.type})
    if poi.system is not None:
        payload["system"] = poi.system
    if poi.locked is not None:
        payload["locked"] = poi.locked
    if poi.notes is not None:
        payload["notes"] = poi.notes
    if poi.original_click is not None:
        payload["drop"] = {"lat": poi.original_click[0], "lon": poi.original_click[1]}
    payload["variants"] = {
        label: placement_set_to_payload(placement_set)
        for label, placement_set in poi.variants.items()
    }
    return payload


def poi_from_payload(payload: Mapping[str, Any]) -> PointOfInterest:
    if not isinstance(payload, Mapping):
        raise ValidationError(f"POI must be an object, got {type(payload).__name__}")
    poi_id = str(payload.get("id") or "").strip()
    if not poi_id:
        raise ValidationError("POI is missing an id")
    raw_variants = payload.get("variants") or {}
    if not isinstance(raw_variants, Mapping):
        raise ValidationError(f"POI {poi_id} variants must be an object")
    variants: Dict[str, PlacementSet] = {}
    for label, value in raw_variants.items():
        try:
            variants[str(label)] = placement_set_from_payload(value)
        except ValidationError as exc:
            raise ValidationError(f"POI {poi_id} variant {label}: {exc}") from exc
    return PointOfInterest(
        id=poi_id,
        title=str(payload.get("title") or ""),
        type=str(payload.get("type") or ""),
        variants=variants,
        original_click=_drop_from_payload(payload.get("drop")),
        notes=payload.get("notes"),
        system=payload.get("system"),
        locked=payload.get("locked"),
        extras={k: v for k, v in payload.items() if k not in _POI_KEYS},
    )


def poi_document_to_payload(document: PoiDocument) -> Dict[str, Any]:
    payload: Dict[str, Any] = dict(document.extras)
    if document.version is not None:
        payload["version"] = document.version
    payload["routeGroupId"] = document.route_group_id
    payload["pois"] = [poi_to_payload(poi) for poi in document.pois]
    return payload


def poi_document_from_payload(
    payload: Mapping[str, Any], route_group_id: Optional[str] = None
) -> PoiDocument:
    if not isinstance(payload, Mapping):
        raise ValidationError("POI document must be a JSON object")
    raw_pois = payload.get("pois") or []
    if not isinstance(raw_pois, list):
        raise ValidationError("POI document 'pois' must be a list")
    version = _optional_int(payload.get("version"))
    return PoiDocument(
        route_group_id=str(payload.get("routeGroupId") or route_group_id or ""),
        pois=[poi_from_payload(item) for item in raw_pois],
        version=version,
        extras={k: v for k, v in payload.items() if k not in _DOCUMENT_KEYS},
    )


def _drop_from_payload(value: Any) -> Optional[LatLon]:
    if not isinstance(value, Mapping):
        return None
    lat = _optional_float(value.get("lat"))
    lon = _optional_float(value.get("lon"))
    if lat is None or lon is None:
        return None
    return lat, lon


def _require_float(payload: Mapping[str, Any], key: str) -> float:
    value = _optional_float(payload.get(key))
    if value is None:
        raise ValidationError(f"Placement field '{key}' must be a finite number")
    return value


def _optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
