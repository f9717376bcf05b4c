"""Dataclasses describing route geometry, snap results and POI documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from .config import FEET_PER_METER, METERS_PER_MILE

LatLon = Tuple[float, float]
MetricArray = NDArray[np.float64]


def meters_to_miles(meters: float) -> float:
    return meters / METERS_PER_MILE


def meters_to_feet(meters: float) -> float:
    return meters * FEET_PER_METER


@dataclass(frozen=True, slots=True)
class TrackPoint:
    """Single decoded GPX point. Elevation is metres or ``None`` when absent."""

    lat: float
    lon: float
    elevation: Optional[float] = None


@dataclass(slots=True)
class RouteStats:
    """Along-route distance and elevation profile of a point sequence."""

    distance_m: float
    distance_series: MetricArray
    elevation_series: MetricArray
    elevation_gain_m: float

    @property
    def distance_miles(self) -> float:
        return meters_to_miles(self.distance_m)

    @property
    def elevation_gain_feet(self) -> float:
        return meters_to_feet(self.elevation_gain_m)


@dataclass(slots=True)
class ParsedRoute:
    """Result of decoding GPX text and building its profile."""

    points: List[TrackPoint]
    distance_series: MetricArray
    elevation_series: MetricArray
    total_distance_miles: float
    elevation_gain_feet: float


@dataclass(slots=True)
class RouteVariant:
    """One distance tier of a route group, built from its canonical GPX."""

    route_group_id: str
    label: str
    points: List[TrackPoint]
    stats: RouteStats


@dataclass(slots=True)
class ProjectionHit:
    """Candidate attachment of a query point to one route segment."""

    lat: float
    lon: float
    distance_m: float
    snap_index: int
    distance_to_query_m: float
    fallback: bool = False


@dataclass(slots=True)
class Placement:
    """Physical attachment of a POI to one route variant.

    ``fallback`` marks placements produced by the nearest-vertex search when
    no segment was within snap tolerance. ``direction`` and ``extras`` are
    only carried through from stored documents.
    """

    lat: float
    lon: float
    snap_index: int
    distance_m: float
    distance_miles: float
    pass_index: Optional[int] = None
    fallback: bool = False
    direction: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_hit(cls, hit: ProjectionHit, pass_index: int) -> "Placement":
        return cls(
            lat=hit.lat,
            lon=hit.lon,
            snap_index=hit.snap_index,
            distance_m=hit.distance_m,
            distance_miles=meters_to_miles(hit.distance_m),
            pass_index=pass_index,
            fallback=hit.fallback,
        )


@dataclass(slots=True)
class PlacementSet:
    """Non-empty ordered collection of placements for one variant."""

    placements: Tuple[Placement, ...]

    def __post_init__(self) -> None:
        self.placements = tuple(self.placements)
        if not self.placements:
            raise ValueError("PlacementSet requires at least one placement")

    def __iter__(self) -> Iterator[Placement]:
        return iter(self.placements)

    def __len__(self) -> int:
        return len(self.placements)

    def __getitem__(self, index: int) -> Placement:
        return self.placements[index]

    @property
    def primary(self) -> Placement:
        return self.placements[0]

    @property
    def is_multi_pass(self) -> bool:
        return len(self.placements) > 1


@dataclass(slots=True)
class PointOfInterest:
    """Aid station, turn or landmark attached to one or more route variants."""

    id: str
    title: str
    type: str
    variants: Dict[str, PlacementSet] = field(default_factory=dict)
    original_click: Optional[LatLon] = None
    notes: Optional[str] = None
    system: Optional[bool] = None
    locked: Optional[bool] = None
    extras: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class PoiSeed:
    """Identity fields supplied with a snap request."""

    id: str
    title: str
    type: str
    notes: Optional[str] = None


@dataclass(slots=True)
class PoiDocument:
    """Canonical POI document stored per route group."""

    route_group_id: str
    pois: List[PointOfInterest] = field(default_factory=list)
    version: Optional[int] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    def find(self, poi_id: str) -> Optional[PointOfInterest]:
        for poi in self.pois:
            if poi.id == poi_id:
                return poi
        return None


@dataclass(slots=True)
class RouteMeta:
    """Route group metadata read from ``route.meta.json``."""

    route_group_id: str
    name: str = ""
    location: str = ""
    source: str = ""
    notes: str = ""
    variants: Sequence[str] = ()
