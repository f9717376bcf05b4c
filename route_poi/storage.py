"""File-backed access to route groups, variant GPX files and POI documents.

Layout under ``ROUTES_ROOT``::

    <routeGroupId>/route.meta.json
    <routeGroupId>/<LABEL>.gpx          (or <routeGroupId>-<LABEL>.gpx)
    <routeGroupId>/route.pois.json
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .config import (
    POI_DOCUMENT_VERSION,
    ROUTE_META_FILENAME,
    ROUTE_POIS_FILENAME,
    ROUTES_ROOT,
)
from .errors import NotFoundError, StorageError, ValidationError
from .models import PoiDocument, RouteMeta
from .serialization import poi_document_from_payload, poi_document_to_payload

_LOG = logging.getLogger(__name__)
_GROUP_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")

PathLike = Union[str, Path]


class RouteStore:
    """Read/write access to the route groups stored below one root folder."""

    def __init__(self, root: Optional[PathLike] = None) -> None:
        base = Path(root if root is not None else ROUTES_ROOT)
        self._root = base if base.is_absolute() else Path.cwd() / base

    @property
    def root(self) -> Path:
        return self._root

    def group_dir(self, route_group_id: str) -> Path:
        valid = bool(route_group_id) and _GROUP_ID_PATTERN.match(route_group_id)
        if not valid or ".." in route_group_id:
            raise ValidationError(f"Invalid route group id {route_group_id!r}")
        return self._root / route_group_id

    def route_group_exists(self, route_group_id: str) -> bool:
        return self.group_dir(route_group_id).is_dir()

    def require_route_group(self, route_group_id: str) -> Path:
        path = self.group_dir(route_group_id)
        if not path.is_dir():
            raise NotFoundError(
                f"Route group {route_group_id} not found under {self._root}"
            )
        return path

    def list_route_groups(self) -> List[RouteMeta]:
        """Return metadata for every readable route group, sorted by id."""

        if not self._root.is_dir():
            return []
        groups: List[RouteMeta] = []
        for entry in sorted(self._root.iterdir()):
            if not entry.is_dir() or not (entry / ROUTE_META_FILENAME).is_file():
                continue
            try:
                groups.append(self.get_route_meta(entry.name))
            except (StorageError, ValidationError) as exc:
                _LOG.warning("Skipping route group %s: %s", entry.name, exc)
        return groups

    def get_route_meta(self, route_group_id: str) -> RouteMeta:
        group_dir = self.require_route_group(route_group_id)
        meta_path = group_dir / ROUTE_META_FILENAME
        if not meta_path.is_file():
            raise NotFoundError(
                f"Route group {route_group_id} has no {ROUTE_META_FILENAME}"
            )
        payload = _read_json(meta_path)
        if not isinstance(payload, dict):
            raise StorageError(f"{meta_path} must hold a JSON object")
        variants = payload.get("variants") or []
        return RouteMeta(
            route_group_id=str(payload.get("routeGroupId") or route_group_id),
            name=str(payload.get("name") or ""),
            location=str(payload.get("location") or ""),
            source=str(payload.get("source") or ""),
            notes=str(payload.get("notes") or ""),
            variants=tuple(str(label).upper() for label in variants),
        )

    def variant_gpx_path(self, route_group_id: str, label: str) -> Path:
        """Return the canonical GPX path for a variant.

        Raises:
            NotFoundError: If the route group or the variant file is missing.
        """

        group_dir = self.require_route_group(route_group_id)
        candidates = (
            group_dir / f"{label}.gpx",
            group_dir / f"{route_group_id}-{label}.gpx",
        )
        for path in candidates:
            if path.is_file():
                return path
        raise NotFoundError(f"No GPX found for {route_group_id} variant {label}")

    def load_variant_gpx(self, route_group_id: str, label: str) -> str:
        path = self.variant_gpx_path(route_group_id, label)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Failed reading {path}: {exc}") from exc

    def poi_document_path(self, route_group_id: str) -> Path:
        return self.group_dir(route_group_id) / ROUTE_POIS_FILENAME

    def load_poi_document(self, route_group_id: str) -> PoiDocument:
        """Return the stored POI document, or an empty one when none exists."""

        self.require_route_group(route_group_id)
        path = self.poi_document_path(route_group_id)
        if not path.is_file():
            return PoiDocument(
                route_group_id=route_group_id, version=POI_DOCUMENT_VERSION
            )
        payload = _read_json(path)
        try:
            return poi_document_from_payload(payload, route_group_id)
        except ValidationError as exc:
            raise StorageError(f"Invalid POI document {path}: {exc}") from exc

    def save_poi_document(self, document: PoiDocument) -> Path:
        """Persist ``document`` via a temp file and an atomic rename."""

        self.require_route_group(document.route_group_id)
        path = self.poi_document_path(document.route_group_id)
        try:
            _write_json(path, poi_document_to_payload(document))
        except (OSError, TypeError, ValueError) as exc:
            raise StorageError(f"Failed writing {path}: {exc}") from exc
        _LOG.info(
            "Saved %d POIs for route group %s to %s",
            len(document.pois),
            document.route_group_id,
            path,
        )
        return path


def _read_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError as exc:
        raise NotFoundError(f"File not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise StorageError(f"Failed to parse JSON: {path} ({exc})") from exc


def _write_json(path: Path, payload: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(path.name + ".tmp")
    try:
        with temp_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2, allow_nan=False)
        temp_path.replace(path)
    except (OSError, TypeError, ValueError):
        temp_path.unlink(missing_ok=True)
        raise
