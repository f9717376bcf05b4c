"""Command line tools for managing route POIs."""

from .snap_poi import main as snap_poi_main

__all__ = ["snap_poi_main"]
