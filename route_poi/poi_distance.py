"""Helpers for reading a POI's along-route distance on one variant."""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence

from .config import METERS_PER_MILE
from .models import Placement, PointOfInterest


def resolve_poi_distance_miles(
    poi: PointOfInterest,
    label: str,
    distance_series: Optional[Sequence[float]] = None,
) -> Optional[float]:
    """Return the along-route distance of ``poi`` on variant ``label`` in miles.

    The label is matched as given, then lower-cased. For multi-pass POIs the
    first placement that yields a distance wins. Each placement is read from
    ``distance_miles``, then ``distance_m``, then by looking up its
    ``snap_index`` in ``distance_series`` (clamped to the series bounds).

    Returns:
        The distance in miles, or ``None`` when the POI has no usable
        placement on that variant.
    """

    placement_set = poi.variants.get(label)
    if placement_set is None:
        placement_set = poi.variants.get(label.lower())
    if placement_set is None:
        return None
    for placement in placement_set:
        miles = _placement_miles(placement, distance_series)
        if miles is not None:
            return miles
    return None


def _placement_miles(
    placement: Placement,
    distance_series: Optional[Sequence[float]],
) -> Optional[float]:
    miles = _finite(placement.distance_miles)
    if miles is not None:
        return miles
    meters = _finite(placement.distance_m)
    if meters is not None:
        return meters / METERS_PER_MILE
    if distance_series is None or len(distance_series) == 0:
        return None
    index = min(max(int(placement.snap_index), 0), len(distance_series) - 1)
    meters = _finite(distance_series[index])
    if meters is None:
        return None
    return meters / METERS_PER_MILE


def _finite(value: Any) -> Optional[float]:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


__all__ = ["resolve_poi_distance_miles"]
