"""Unit tests for input item discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import RefineryDiscoveryError
from ingest.item_resolver import classify_item_format, resolve_items, write_item_info_file
from tests.fixture_paths import write_input_files


def test_classify_item_format_prefers_secondary_marker() -> None:
    """Names mentioning both markers should be secondary."""
    assert [
        classify_item_format(name) for name in ("a.mat", "b.SBML", "c_sbml.mat", "d.json")
    ] == ["primary", "secondary", "secondary", None]


def test_resolve_items_scans_recursively_in_sorted_order(tmp_path: Path) -> None:
    """Discovery should walk subdirectories and keep sorted path order."""
    write_input_files(tmp_path, ["b.mat", "a.sbml", "notes.txt"])
    write_input_files(tmp_path / "sub", ["c.mat"])

    discovery = resolve_items(str(tmp_path))

    assert [(item.item_id, item.item_format) for item in discovery.items] == [
        ("a", "secondary"),
        ("b", "primary"),
        ("c", "primary"),
    ] and discovery.scanned_count == 3


def test_resolve_items_drops_colliding_ids(tmp_path: Path) -> None:
    """Files whose ids collide should keep the first in path order."""
    write_input_files(tmp_path, ["m1.mat", "m1.sbml.xml"])
    write_input_files(tmp_path / "z", ["m1.mat"])

    discovery = resolve_items(str(tmp_path))

    assert (
        [Path(item.source_path).name for item in discovery.items] == ["m1.mat"]
        and discovery.dropped_duplicates == 2
    )


def test_resolve_items_uses_custom_canonicalizer(tmp_path: Path) -> None:
    """A plugin canonicalizer should decide item ids."""
    write_input_files(tmp_path, ["alpha.mat"])

    discovery = resolve_items(str(tmp_path), canonicalize=lambda name: name.upper())

    assert discovery.items[0].item_id == "ALPHA.MAT"


def test_resolve_items_raises_for_missing_directory(tmp_path: Path) -> None:
    """A missing input directory should be fatal."""
    with pytest.raises(RefineryDiscoveryError):
        resolve_items(str(tmp_path / "missing"))


def test_resolve_items_raises_for_empty_canonical_id(tmp_path: Path) -> None:
    """An id that canonicalizes to nothing should be rejected."""
    write_input_files(tmp_path, ["--.mat"])

    with pytest.raises(RefineryDiscoveryError, match="empty canonical id"):
        resolve_items(str(tmp_path))


def test_write_item_info_file_lists_ids_under_header(tmp_path: Path) -> None:
    """Generated info file should hold the header and one id per line."""
    write_input_files(tmp_path / "in", ["x.mat", "y.sbml"])
    discovery = resolve_items(str(tmp_path / "in"))

    info_path = write_item_info_file(tmp_path / "summary" / "item_info.txt", discovery.items)

    assert info_path.read_text(encoding="utf-8") == "MicrobeID\nx\ny\n"
