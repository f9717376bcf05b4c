#!/usr/bin/env python3
"""Convenience runner for the route POI snapping tool.

Usage:
    python run.py <routeGroupId> <lat> <lon> <variants> <type> <title...>
    python run.py --list <routeGroupId>
"""
import logging
from route_poi.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
