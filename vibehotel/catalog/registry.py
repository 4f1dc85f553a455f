from __future__ import annotations

import csv
import os
import re
from dataclasses import dataclass
from pathlib import Path


FALLBACK_ITEM_NAME = "Item"


def _slug_id(s: str) -> str:
    s = s.strip().casefold()
    s = re.sub(r"[^a-z0-9]+", "_", s)
    return s.strip("_")


def parse_color(raw: str) -> int:
    """Parse a 24-bit color written as `0xff4444`, `#ff4444` or a decimal int."""

    s = raw.strip().casefold()
    try:
        if s.startswith("0x"):
            value = int(s[2:], 16)
        elif s.startswith("#"):
            value = int(s[1:], 16)
        else:
            value = int(s)
    except ValueError as e:
        raise CatalogLoadError(f"Invalid color: {raw!r}") from e

    if not 0 <= value <= 0xFFFFFF:
        raise CatalogLoadError(f"Color out of 24-bit range: {raw!r}")
    return value


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    id: str
    name: str
    cost: int
    color: int


@dataclass(frozen=True, slots=True)
class Catalog:
    """Fixed vocabulary of purchasable item types.

    Entry order is the display order of the shop. IDs are canonical (network),
    names are for display.
    """

    entries: tuple[CatalogEntry, ...]
    _by_id: dict[str, CatalogEntry]

    @staticmethod
    def from_rows(rows: list[CatalogEntry]) -> "Catalog":
        by_id: dict[str, CatalogEntry] = {}
        for e in rows:
            if e.id in by_id:
                raise CatalogLoadError(f"Duplicate catalog id: {e.id}")
            if e.cost < 0:
                raise CatalogLoadError(f"Negative cost for catalog id: {e.id}")
            by_id[e.id] = e
        return Catalog(entries=tuple(rows), _by_id=by_id)

    def get(self, id: str) -> CatalogEntry | None:
        return self._by_id.get(id)

    def __getitem__(self, id: str) -> CatalogEntry:
        return self._by_id[id]

    def name_for(self, type_id: str) -> str:
        entry = self._by_id.get(type_id)
        return entry.name if entry is not None else FALLBACK_ITEM_NAME

    def __contains__(self, item: object) -> bool:
        return isinstance(item, str) and item in self._by_id

    def __len__(self) -> int:
        return len(self.entries)


class CatalogLoadError(RuntimeError):
    pass


def _read_csv_rows(path: Path) -> list[list[str]]:
    try:
        with path.open(encoding="utf-8-sig", newline="") as f:
            rows = [[c.strip() for c in row] for row in csv.reader(f)]
    except FileNotFoundError as e:
        raise CatalogLoadError(f"Catalog file not found: {path}") from e

    return [row for row in rows if any(cell.strip() for cell in row)]


def load_catalog_csv(path: Path) -> Catalog:
    rows = _read_csv_rows(path)
    if not rows:
        raise CatalogLoadError(f"Empty catalog CSV: {path}")

    header = [c.casefold() for c in rows[0]]
    if header[:4] != ["id", "name", "cost", "color"]:
        raise CatalogLoadError(f"Unexpected header in {path}: {rows[0]}")

    out: list[CatalogEntry] = []
    for row in rows[1:]:
        if len(row) < 4:
            continue
        rid, name, cost, color = row[0], row[1], row[2], row[3]
        if not name:
            continue
        if not rid:
            rid = _slug_id(name)
        try:
            cost_value = int(cost)
        except ValueError as e:
            raise CatalogLoadError(f"Invalid cost for {rid!r} in {path}: {cost!r}") from e
        out.append(CatalogEntry(id=rid, name=name, cost=cost_value, color=parse_color(color)))

    if not out:
        raise CatalogLoadError(f"No catalog entries in {path}")
    return Catalog.from_rows(out)


def _fallback_catalog() -> Catalog:
    """Built-in shop used when `assets/catalog.csv` is missing."""

    return Catalog.from_rows(
        [
            CatalogEntry(id="chair_red", name="Red Chair", cost=5, color=0xFF4444),
            CatalogEntry(id="chair_blue", name="Blue Chair", cost=5, color=0x4444FF),
            CatalogEntry(id="table_wood", name="Wooden Table", cost=15, color=0xAA8866),
            CatalogEntry(id="plant_green", name="Small Plant", cost=10, color=0x44AA44),
        ]
    )


def load_catalog(*, root: Path) -> Catalog:
    # Default behavior: fall back to the built-in catalog when the CSV is missing or broken.
    # Strict mode (VIBEHOTEL_STRICT_CATALOG=1) turns that into a startup failure.
    strict = os.getenv("VIBEHOTEL_STRICT_CATALOG", "").strip().lower() in {"1", "true", "yes"}

    try:
        return load_catalog_csv(root / "assets" / "catalog.csv")
    except CatalogLoadError:
        if strict:
            raise
        return _fallback_catalog()
