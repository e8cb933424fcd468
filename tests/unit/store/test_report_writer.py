"""Unit tests for report file writing."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.types import FieldTable
from store.report_writer import report_path_for, write_field_table, write_report


def test_write_field_table_writes_headerless_tab_rows(tmp_path: Path) -> None:
    """Rows should be tab-delimited without a header line."""
    table = FieldTable(field_name="addedRxns", rows=(("A", "r1", ""), ("B", "r2", "r3")))

    report_path = write_field_table(table, tmp_path)

    assert report_path.name == "addedRxns.txt" and report_path.read_text(
        encoding="utf-8"
    ) == "A\tr1\t\nB\tr2\tr3\n"


def test_write_report_continues_after_field_failure(tmp_path: Path) -> None:
    """A failing field should be reported without blocking other fields."""
    tables = {
        "../escape": FieldTable(field_name="../escape", rows=(("A", "x"),)),
        "status": FieldTable(field_name="status", rows=(("A", "ok"),)),
    }

    result = write_report(tables, tmp_path)

    assert (
        [Path(path).name for path in result.written_paths] == ["status.txt"]
        and [failure.field_name for failure in result.failures] == ["../escape"]
        and (tmp_path / "status.txt").exists()
    )


def test_write_report_records_missing_directory_failures(tmp_path: Path) -> None:
    """Write errors from the filesystem should become field failures."""
    tables = {"status": FieldTable(field_name="status", rows=(("A", "ok"),))}

    result = write_report(tables, tmp_path / "missing")

    assert result.written_paths == () and result.failures[0].field_name == "status"


def test_report_path_for_rejects_separators(tmp_path: Path) -> None:
    """Field names with path separators cannot become file names."""
    with pytest.raises(ValueError):
        report_path_for(tmp_path, "a/b")
