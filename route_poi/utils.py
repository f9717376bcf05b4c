"""General utility helpers shared across modules."""

from __future__ import annotations

import re

from .config import POI_ID_MAX_LENGTH, POI_SLUG_MAX_LENGTH


def slugify(value: str, max_length: int = POI_SLUG_MAX_LENGTH) -> str:
    """Return a lowercase ``a-z0-9`` slug joined by single hyphens."""

    slug = re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")
    return slug[:max_length]


def make_poi_id(poi_type: str, title: str) -> str:
    """Build the ``<type>-<title>`` identifier used for new POIs."""

    poi_id = f"{slugify(poi_type)}-{slugify(title)}"[:POI_ID_MAX_LENGTH]
    return poi_id.strip("-")
