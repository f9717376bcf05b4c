"""Route geometry engine for snapping points of interest onto GPX routes."""

from .errors import (
    GeometryDegenerateError,
    GpxParseError,
    NotFoundError,
    PartialSnapError,
    RoutePoiError,
    StorageError,
    ValidationError,
)
from .geometry import parse_gpx
from .models import Placement, PlacementSet, PoiDocument, PoiSeed, PointOfInterest
from .snapping import snap_point_to_route_variant, snap_point_to_variants, snap_poi
from .storage import RouteStore

__all__ = [
    "GeometryDegenerateError",
    "GpxParseError",
    "NotFoundError",
    "PartialSnapError",
    "Placement",
    "PlacementSet",
    "PoiDocument",
    "PoiSeed",
    "PointOfInterest",
    "RoutePoiError",
    "RouteStore",
    "StorageError",
    "ValidationError",
    "parse_gpx",
    "snap_point_to_route_variant",
    "snap_point_to_variants",
    "snap_poi",
]
