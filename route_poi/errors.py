"""Central error types used across the application."""

from __future__ import annotations

from typing import Any, Mapping


class RoutePoiError(RuntimeError):
    """Base error for route geometry and POI snapping failures."""


class GpxParseError(RoutePoiError):
    """Raised when GPX text is malformed or yields fewer than two points."""


class NotFoundError(RoutePoiError):
    """Raised when a route group or a variant's GPX file does not exist."""


class ValidationError(RoutePoiError, ValueError):
    """Raised for invalid variant labels, click coordinates or stored values."""


class GeometryDegenerateError(RoutePoiError):
    """Raised when a point sequence is too short to form a segment."""


class StorageError(RoutePoiError):
    """Raised when a stored JSON document cannot be read or decoded."""


class PartialSnapError(RoutePoiError):
    """Raised when some requested variants failed while others snapped.

    ``placements`` maps each successful label to its placement set and
    ``failures`` maps each failed label to the error it raised. When the
    successful variants were persisted, ``document`` holds the saved POI
    document.
    """

    def __init__(
        self,
        placements: Mapping[str, Any],
        failures: Mapping[str, RoutePoiError],
        document: Any = None,
    ) -> None:
        self.placements = dict(placements)
        self.failures = dict(failures)
        self.document = document
        detail = ", ".join(
            f"{label}: {error}" for label, error in sorted(self.failures.items())
        )
        super().__init__(
            f"Snapping failed for {len(self.failures)} variant(s): {detail}"
        )


__all__ = [
    "RoutePoiError",
    "GpxParseError",
    "NotFoundError",
    "ValidationError",
    "GeometryDegenerateError",
    "StorageError",
    "PartialSnapError",
]
