"""Entry point for the route POI snapping tool."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .tools.snap_poi import main as _snap_poi_main


def _setup_logging() -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def main(argv: Optional[Sequence[str]] = None) -> int:
    _setup_logging()
    return _snap_poi_main(argv)


if __name__ == "__main__":
    raise SystemExit(main())
