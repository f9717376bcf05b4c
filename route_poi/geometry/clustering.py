"""Reduction of raw projection hits into ordered passes."""

from __future__ import annotations

from typing import List, Sequence

from ..config import CLUSTER_TOLERANCE_M, DEDUPE_TOLERANCE_M
from ..models import Placement, PlacementSet, ProjectionHit
from .profile import haversine_m


def sort_hits(hits: Sequence[ProjectionHit]) -> List[ProjectionHit]:
    """Return hits ordered by along-route distance (stable on ties)."""

    return sorted(hits, key=lambda hit: hit.distance_m)


def dedupe_hits(
    hits: Sequence[ProjectionHit],
    tolerance_m: float = DEDUPE_TOLERANCE_M,
    *,
    pass_gap_m: float = CLUSTER_TOLERANCE_M,
) -> List[ProjectionHit]:
    """Drop hits that repeat the physical location of the last kept hit.

    ``hits`` must already be sorted by along-route distance. A hit is kept
    when its projected point lies more than ``tolerance_m`` from the last
    kept hit, or when its along-route gap to the preceding hit exceeds
    ``pass_gap_m`` (it starts another pass over the same ground).
    """

    if len(hits) <= 1:
        return list(hits)
    kept: List[ProjectionHit] = [hits[0]]
    previous = hits[0]
    for hit in hits[1:]:
        last = kept[-1]
        new_pass = hit.distance_m - previous.distance_m > pass_gap_m
        previous = hit
        if not new_pass:
            separation = haversine_m((last.lat, last.lon), (hit.lat, hit.lon))
            if separation <= tolerance_m:
                continue
        kept.append(hit)
    return kept


def cluster_hits(
    hits: Sequence[ProjectionHit],
    tolerance_m: float = CLUSTER_TOLERANCE_M,
) -> List[ProjectionHit]:
    """Collapse runs of hits with small along-route gaps to their best member.

    Consecutive hits stay in one bucket while their along-route distances
    differ by at most ``tolerance_m``. Each bucket is reduced to the member
    closest to the query; the earliest one wins ties.
    """

    if len(hits) <= 1:
        return list(hits)
    merged: List[ProjectionHit] = []
    bucket: List[ProjectionHit] = []
    for hit in hits:
        if bucket and abs(hit.distance_m - bucket[-1].distance_m) > tolerance_m:
            merged.append(_best_of(bucket))
            bucket = []
        bucket.append(hit)
    if bucket:
        merged.append(_best_of(bucket))
    return merged


def _best_of(bucket: Sequence[ProjectionHit]) -> ProjectionHit:
    best = bucket[0]
    for candidate in bucket[1:]:
        if candidate.distance_to_query_m < best.distance_to_query_m:
            best = candidate
    return best


def build_placement_set(
    hits: Sequence[ProjectionHit],
    *,
    dedupe_tolerance_m: float = DEDUPE_TOLERANCE_M,
    cluster_tolerance_m: float = CLUSTER_TOLERANCE_M,
) -> PlacementSet:
    """Reduce raw hits to a placement set with pass indices 0..n-1."""

    if not hits:
        raise ValueError("Cannot build a placement set without hits")
    ordered = sort_hits(hits)
    deduped = dedupe_hits(
        ordered, dedupe_tolerance_m, pass_gap_m=cluster_tolerance_m
    )
    passes = cluster_hits(deduped, cluster_tolerance_m)
    return PlacementSet(
        tuple(Placement.from_hit(hit, index) for index, hit in enumerate(passes))
    )
