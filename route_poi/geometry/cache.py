"""Opt-in cache for decoded route variants keyed by GPX content."""

from __future__ import annotations

from hashlib import sha256
from threading import RLock
from typing import Optional, Tuple

from cachetools import LRUCache

from ..config import ROUTE_GEOMETRY_CACHE_SIZE
from ..models import RouteVariant

_CacheKey = Tuple[str, str, str]


def content_digest(raw: str) -> str:
    return sha256(raw.encode("utf-8")).hexdigest()


class RouteGeometryCache:
    """Thread-safe LRU cache of :class:`RouteVariant` objects.

    Keys combine the route group, the variant label and a SHA-256 of the GPX
    text, so an edited file never matches an older entry. ``max_entries=0``
    disables caching.
    """

    def __init__(self, max_entries: int = ROUTE_GEOMETRY_CACHE_SIZE) -> None:
        self._max_entries = max(0, max_entries)
        self._lock = RLock()
        self._store: Optional[LRUCache[_CacheKey, RouteVariant]] = (
            LRUCache(maxsize=self._max_entries) if self._max_entries else None
        )

    @property
    def enabled(self) -> bool:
        return self._store is not None

    def get(self, route_group_id: str, label: str, raw: str) -> Optional[RouteVariant]:
        if self._store is None:
            return None
        key = (route_group_id, label, content_digest(raw))
        with self._lock:
            return self._store.get(key)

    def put(self, raw: str, variant: RouteVariant) -> None:
        if self._store is None:
            return
        key = (variant.route_group_id, variant.label, content_digest(raw))
        with self._lock:
            self._store[key] = variant

    def clear(self) -> None:
        if self._store is None:
            return
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        if self._store is None:
            return 0
        with self._lock:
            return len(self._store)
