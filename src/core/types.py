"""Shared typed models.

This module defines immutable data models used by discovery, worker,
ledger, and report layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Mapping, Union

from core.constants import DEFAULT_RESOURCE_VERSION, DEFAULT_UNMAPPED_FIELDS

ExecutorKind = Literal["process", "thread"]
ItemFormat = Literal["primary", "secondary"]
SummaryValue = Union[int, float, str, tuple[str, ...]]
SummaryRecord = Mapping[str, SummaryValue]


@dataclass(frozen=True)
class ResolvedItem:
    """One discovered input artifact.

    Attributes:
        item_id: Canonical identifier derived from the file name.
        source_path: Absolute path of the input file.
        item_format: Source format, ``primary`` or ``secondary``.
    """

    item_id: str
    source_path: str
    item_format: ItemFormat


@dataclass(frozen=True)
class ItemDiscovery:
    """Result of scanning an input directory.

    Attributes:
        items: Items with unique ids in discovery order.
        scanned_count: Number of accepted files before deduplication.
        dropped_duplicates: Number of files dropped because their id collided.
    """

    items: tuple[ResolvedItem, ...]
    scanned_count: int
    dropped_duplicates: int


@dataclass(frozen=True)
class RefinementOptions:
    """Refine command options.

    Attributes:
        input_dir: Directory scanned recursively for input artifacts.
        plugin_path: Python file providing the refinement hooks.
        refined_dir: Output directory for refined artifacts.
        translated_dir: Output directory for translated secondary-format artifacts.
        summary_dir: Output directory for the ledger and report files.
        info_file_path: Identifier-mapping file; generated when omitted.
        input_data_dir: Auxiliary data directory handed to the plugin.
        num_workers: Worker count; config default when omitted, 0 runs serially.
        resource_version: Label used to version the ledger snapshot.
        export_dir: Optional directory for the plugin export step.
        overwrite: Reprocess items whose refined artifact already exists.
        executor: Pool flavour; config default when omitted.
        unmapped_fields: Summary fields flattened into one deduplicated list.
    """

    input_dir: str
    plugin_path: str
    refined_dir: str | None = None
    translated_dir: str | None = None
    summary_dir: str | None = None
    info_file_path: str | None = None
    input_data_dir: str | None = None
    num_workers: int | None = None
    resource_version: str = DEFAULT_RESOURCE_VERSION
    export_dir: str | None = None
    overwrite: bool = False
    executor: ExecutorKind | None = None
    unmapped_fields: tuple[str, ...] = DEFAULT_UNMAPPED_FIELDS


@dataclass(frozen=True)
class OutputLayout:
    """Resolved output directories for one run."""

    refined_dir: Path
    translated_dir: Path
    summary_dir: Path
    export_dir: Path | None = None


@dataclass(frozen=True)
class RefinementContext:
    """Read-only context handed to every worker invocation.

    Attributes:
        input_data_dir: Auxiliary data directory, passed through opaquely.
        info_file_path: Identifier-mapping file path.
        resource_version: Resource version label of the run.
        solver_state: Value returned by the plugin ``initialize`` hook.
    """

    input_data_dir: str | None
    info_file_path: str | None
    resource_version: str
    solver_state: object = None


@dataclass(frozen=True)
class ItemTask:
    """Unit of work submitted to the worker pool."""

    item: ResolvedItem
    plugin_path: str
    context: RefinementContext


@dataclass(frozen=True)
class ItemOutcome:
    """Completed work for one item, awaiting flush.

    Attributes:
        item_id: Canonical item id.
        item_format: Source format of the item.
        refined_artifact: Artifact returned by the plugin ``refine`` hook.
        summary: Validated summary record.
        translated_artifact: Translated artifact for secondary-format items.
    """

    item_id: str
    item_format: ItemFormat
    refined_artifact: object
    summary: SummaryRecord
    translated_artifact: object | None = None


@dataclass(frozen=True)
class FieldTable:
    """Aggregated rows for one summary field.

    Attributes:
        field_name: Summary field name.
        rows: Rectangular rows; per-item rows start with the ledger key.
        flattened: Whether rows are a deduplicated single-column value list.
    """

    field_name: str
    rows: tuple[tuple[str, ...], ...]
    flattened: bool = False


@dataclass(frozen=True)
class ReportFieldFailure:
    """One report field that could not be written."""

    field_name: str
    message: str


@dataclass(frozen=True)
class ReportWriteResult:
    """Outcome of writing all report field files."""

    written_paths: tuple[str, ...]
    failures: tuple[ReportFieldFailure, ...] = ()


@dataclass(frozen=True)
class RefinementRunResult:
    """Refine command output summary.

    Attributes:
        discovered_count: Items with unique ids found in the input directory.
        dropped_duplicates: Input files dropped by id deduplication.
        completed_count: Items skipped because their artifact already existed.
        processed_count: Items refined during this run.
        chunk_count: Number of chunks executed during this run.
        ledger_path: Persisted ledger snapshot path.
        report: Report write outcome.
    """

    discovered_count: int
    dropped_duplicates: int
    completed_count: int
    processed_count: int
    chunk_count: int
    ledger_path: str
    report: ReportWriteResult
