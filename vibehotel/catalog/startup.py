from __future__ import annotations

import os
from pathlib import Path

from vibehotel.catalog.registry import Catalog, load_catalog


def catalog_root() -> Path:
    """Directory holding `assets/catalog.csv`; `VIBEHOTEL_CATALOG_ROOT` overrides it."""

    override = os.getenv("VIBEHOTEL_CATALOG_ROOT", "").strip()
    if override:
        return Path(override)
    # project root is two levels up from this file: vibehotel/catalog/startup.py
    return Path(__file__).resolve().parents[2]


def init_catalog_for_app() -> Catalog:
    return load_catalog(root=catalog_root())
