from __future__ import annotations

from pathlib import Path

import pytest

from vibehotel.catalog.registry import (
    CatalogLoadError,
    load_catalog,
    load_catalog_csv,
    parse_color,
)
from vibehotel.catalog.startup import catalog_root, init_catalog_for_app

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def test_catalog_loads_and_looks_up() -> None:
    root = Path(__file__).resolve().parent
    catalog = load_catalog(root=root)

    assert [e.id for e in catalog.entries][:4] == ["chair_red", "chair_blue", "table_wood", "plant_green"]

    chair = catalog.get("chair_red")
    assert chair is not None
    assert chair.name == "Red Chair"
    assert chair.cost == 5
    assert chair.color == 0xFF4444

    # Blank ids are derived from the name.
    throne = catalog.get("golden_throne")
    assert throne is not None
    assert throne.color == 0xFFD700

    assert "chair_blue" in catalog
    assert "sofa" not in catalog
    assert catalog.name_for("plant_green") == "Small Plant"
    assert catalog.name_for("sofa") == "Item"
    assert catalog["chair_blue"].cost == 5
    with pytest.raises(KeyError):
        catalog["sofa"]


def test_parse_color_formats() -> None:
    assert parse_color("0xFF4444") == 0xFF4444
    assert parse_color("#44aa44") == 0x44AA44
    assert parse_color("16777215") == 0xFFFFFF

    with pytest.raises(CatalogLoadError):
        parse_color("0x1000000")
    with pytest.raises(CatalogLoadError):
        parse_color("red")


def test_duplicate_and_negative_entries_rejected(tmp_path: Path) -> None:
    dup = tmp_path / "dup.csv"
    dup.write_text("id,name,cost,color\na,Chair,1,0x0\na,Chair again,1,0x0\n", encoding="utf-8")
    with pytest.raises(CatalogLoadError, match="Duplicate"):
        load_catalog_csv(dup)

    neg = tmp_path / "neg.csv"
    neg.write_text("id,name,cost,color\na,Chair,-1,0x0\n", encoding="utf-8")
    with pytest.raises(CatalogLoadError, match="Negative"):
        load_catalog_csv(neg)


def test_bad_header_rejected(tmp_path: Path) -> None:
    path = tmp_path / "catalog.csv"
    path.write_text("name,id,cost,color\nChair,a,1,0x0\n", encoding="utf-8")
    with pytest.raises(CatalogLoadError, match="Unexpected header"):
        load_catalog_csv(path)


def test_missing_catalog_falls_back_unless_strict(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIBEHOTEL_STRICT_CATALOG", "0")
    catalog = load_catalog(root=tmp_path)
    assert [e.id for e in catalog.entries] == ["chair_red", "chair_blue", "table_wood", "plant_green"]

    monkeypatch.setenv("VIBEHOTEL_STRICT_CATALOG", "1")
    with pytest.raises(CatalogLoadError, match="not found"):
        load_catalog(root=tmp_path)


def test_app_catalog_loads_shop_data_in_default_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("VIBEHOTEL_STRICT_CATALOG", raising=False)
    monkeypatch.delenv("VIBEHOTEL_CATALOG_ROOT", raising=False)

    assert catalog_root() == PROJECT_ROOT
    catalog = init_catalog_for_app()
    assert [e.id for e in catalog.entries] == ["chair_red", "chair_blue", "table_wood", "plant_green"]
    assert catalog["table_wood"].cost == 15


def test_catalog_root_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("VIBEHOTEL_STRICT_CATALOG", raising=False)
    (tmp_path / "assets").mkdir()
    (tmp_path / "assets" / "catalog.csv").write_text("id,name,cost,color\nlamp,Lamp,3,#ffffff\n", encoding="utf-8")
    monkeypatch.setenv("VIBEHOTEL_CATALOG_ROOT", str(tmp_path))

    catalog = init_catalog_for_app()
    assert [e.id for e in catalog.entries] == ["lamp"]


def test_csv_with_bom_crlf_and_quoted_newline(tmp_path: Path) -> None:
    path = tmp_path / "catalog.csv"
    path.write_bytes(b'\xef\xbb\xbfid,name,cost,color\r\nsofa,"Big\nSofa",30,0x112233\r\n\r\nrug,Rug,2,0x0\r\n')

    catalog = load_catalog_csv(path)
    assert [e.id for e in catalog.entries] == ["sofa", "rug"]
    assert catalog["sofa"].name == "Big\nSofa"
    assert catalog["sofa"].color == 0x112233
