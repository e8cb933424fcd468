"""Delimited report files for aggregated summary fields.

This module writes one headerless tab-delimited file per field table.
Each field is written independently so one failure does not block the
remaining fields.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Mapping

from core.constants import REPORT_DELIMITER, REPORT_FILE_SUFFIX
from core.logging_config import get_logger
from core.types import FieldTable, ReportFieldFailure, ReportWriteResult

_LOGGER = get_logger(__name__)


def write_report(tables: Mapping[str, FieldTable], summary_dir: Path) -> ReportWriteResult:
    """Write every field table to the summary directory.

    Args:
        tables: Field name to aggregated table.
        summary_dir: Destination directory.

    Returns:
        Written file paths and per-field failures.
    """
    written_paths: list[str] = []
    failures: list[ReportFieldFailure] = []
    for field_name, table in tables.items():
        try:
            written_paths.append(str(write_field_table(table, summary_dir)))
        except (OSError, ValueError, csv.Error) as error:
            failure = ReportFieldFailure(field_name=field_name, message=str(error))
            failures.append(failure)
            _LOGGER.error(
                "report_field_failed",
                field_name=field_name,
                summary_dir=str(summary_dir),
                error=failure.message,
            )
    _LOGGER.info(
        "report_written",
        summary_dir=str(summary_dir),
        field_count=len(tables),
        written_count=len(written_paths),
        failure_count=len(failures),
    )
    return ReportWriteResult(written_paths=tuple(written_paths), failures=tuple(failures))


def write_field_table(table: FieldTable, summary_dir: Path) -> Path:
    """Write one field table as a headerless delimited file.

    Args:
        table: Aggregated field table.
        summary_dir: Destination directory.

    Returns:
        Written file path.

    Raises:
        ValueError: If the field name cannot be used as a file name.
        OSError: If the file cannot be written.
    """
    report_path = report_path_for(summary_dir, table.field_name)
    with report_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, delimiter=REPORT_DELIMITER, lineterminator="\n")
        writer.writerows(table.rows)
    return report_path


def report_path_for(summary_dir: Path, field_name: str) -> Path:
    """Return the report file path for a field name.

    Raises:
        ValueError: If the field name contains path separators.
    """
    if not field_name or field_name in {".", ".."} or "/" in field_name or "\\" in field_name:
        raise ValueError(
            f"Field name {field_name!r} cannot be used as a report file name."
        )
    return summary_dir / f"{field_name}{REPORT_FILE_SUFFIX}"
