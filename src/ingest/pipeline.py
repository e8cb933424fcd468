"""Refinement orchestration for resumable batch runs.

This module coordinates item discovery, completed-work detection,
chunked parallel refinement, per-chunk checkpoints, and the final
summary report and export steps.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

from core.config import RefineryConfig
from core.constants import (
    DEFAULT_REFINED_DIR_NAME,
    DEFAULT_SUMMARY_DIR_NAME,
    DEFAULT_TRANSLATED_DIR_NAME,
    DEFAULT_UNMAPPED_FIELDS,
    ITEM_INFO_FILE_NAME,
)
from core.errors import (
    RefineryConfigError,
    RefineryError,
    RefineryPersistError,
    RefineryPluginError,
    RefineryReportError,
)
from core.logging_config import get_logger
from core.types import (
    ItemDiscovery,
    OutputLayout,
    RefinementContext,
    RefinementOptions,
    RefinementRunResult,
    ReportWriteResult,
    ResolvedItem,
    SummaryRecord,
)
from ingest.chunked_worker_pool import ChunkedWorkerPool
from ingest.item_resolver import resolve_items, write_item_info_file
from ingest.progress_store import select_pending_items
from ingest.refinement_hooks import resolve_refinement_hooks
from store.chunk_flusher import ChunkFlusher
from store.report_writer import write_report
from store.summary_ledger import SummaryLedger
from transforms.summary_aggregation import aggregate_summaries

_LOGGER = get_logger(__name__)


class RefinementPipelineRunner:
    """Stateful runner for one resumable refinement run."""

    def __init__(self, options: RefinementOptions, config: RefineryConfig) -> None:
        self._options = options
        self._num_workers = (
            options.num_workers if options.num_workers is not None else config.num_workers
        )
        self._executor_kind = options.executor or config.executor_kind
        _validate_options(options, self._num_workers)
        self._hooks = resolve_refinement_hooks(options.plugin_path)
        self._layout = resolve_output_layout(options, config)

    def run(self) -> RefinementRunResult:
        """Execute the refinement run and return its summary."""
        discovery = resolve_items(self._options.input_dir, self._hooks.canonicalize)
        _prepare_output_dirs(self._layout)
        info_file_path = self._resolve_info_file(discovery.items)
        ledger = SummaryLedger.load(self._layout.summary_dir, self._options.resource_version)
        selection = select_pending_items(
            discovery.items,
            self._layout.refined_dir,
            self._hooks.artifact_suffix,
            self._options.overwrite,
            is_recorded=ledger.has_item,
        )
        self._check_required_hooks(selection.pending_items)
        context = self._build_context(info_file_path)
        chunk_count = self._refine_pending(selection.pending_items, context, ledger)
        report = write_summary_report(
            ledger.entries(), self._layout.summary_dir, self._options.unmapped_fields
        )
        self._export_if_requested()
        result = RefinementRunResult(
            discovered_count=len(discovery.items),
            dropped_duplicates=discovery.dropped_duplicates,
            completed_count=len(discovery.items) - len(selection.pending_items),
            processed_count=len(selection.pending_items),
            chunk_count=chunk_count,
            ledger_path=str(ledger.path),
            report=report,
        )
        _log_refinement_completion(self._options, self._layout, discovery, result)
        return result

    def _resolve_info_file(self, items: Sequence[ResolvedItem]) -> str:
        if self._options.info_file_path:
            return str(Path(self._options.info_file_path).expanduser().resolve())
        info_path = self._layout.summary_dir / ITEM_INFO_FILE_NAME
        return str(write_item_info_file(info_path, items))

    def _check_required_hooks(self, pending_items: Sequence[ResolvedItem]) -> None:
        plugin_path = self._hooks.plugin_path
        if self._hooks.translate is None and any(
            item.item_format == "secondary" for item in pending_items
        ):
            raise RefineryPluginError(
                f"Refinement plugin at {plugin_path} defines no translate(artifact) hook, "
                "but secondary-format items are pending. Add the hook or remove those inputs."
            )
        if self._layout.export_dir is not None and self._hooks.export is None:
            raise RefineryPluginError(
                f"Refinement plugin at {plugin_path} defines no export(refined_dir, export_dir) "
                "hook, but an export directory was requested."
            )

    def _build_context(self, info_file_path: str) -> RefinementContext:
        input_data_dir = (
            str(Path(self._options.input_data_dir).expanduser().resolve())
            if self._options.input_data_dir
            else None
        )
        solver_state = None
        if self._hooks.initialize is not None:
            settings: dict[str, object] = {
                "input_data_dir": input_data_dir,
                "info_file_path": info_file_path,
                "resource_version": self._options.resource_version,
                "num_workers": self._num_workers,
            }
            try:
                solver_state = self._hooks.initialize(settings)
            except Exception as error:
                raise RefineryPluginError(
                    f"Refinement plugin initialize() failed: {error}. "
                    "Fix the solver or environment setup and retry."
                ) from error
        return RefinementContext(
            input_data_dir=input_data_dir,
            info_file_path=info_file_path,
            resource_version=self._options.resource_version,
            solver_state=solver_state,
        )

    def _refine_pending(
        self,
        pending_items: Sequence[ResolvedItem],
        context: RefinementContext,
        ledger: SummaryLedger,
    ) -> int:
        if not pending_items:
            return 0
        flusher = ChunkFlusher(
            refined_dir=self._layout.refined_dir,
            translated_dir=self._layout.translated_dir,
            ledger=ledger,
            store_artifact=self._hooks.store_artifact,
            artifact_suffix=self._hooks.artifact_suffix,
        )
        chunk_count = 0
        with ChunkedWorkerPool(
            plugin_path=self._hooks.plugin_path,
            context=context,
            num_workers=self._num_workers,
            executor_kind=self._executor_kind,
        ) as pool:
            for chunk_index, outcomes in pool.iter_chunk_outcomes(pending_items):
                flusher.flush(outcomes)
                chunk_count = chunk_index
        return chunk_count

    def _export_if_requested(self) -> None:
        export_dir = self._layout.export_dir
        if export_dir is None or self._hooks.export is None:
            return
        try:
            self._hooks.export(str(self._layout.refined_dir), str(export_dir))
        except RefineryError:
            raise
        except Exception as error:
            raise RefineryPersistError(
                f"Export of {self._layout.refined_dir} to {export_dir} failed: {error}. "
                "Refined artifacts are complete; rerun to retry the export."
            ) from error
        _LOGGER.info(
            "export_completed",
            refined_dir=str(self._layout.refined_dir),
            export_dir=str(export_dir),
        )


def refine_items(options: RefinementOptions, config: RefineryConfig) -> RefinementRunResult:
    """Run the refinement pipeline and write the summary report.

    Args:
        options: Refine request options.
        config: Runtime configuration.

    Returns:
        Run summary with counts, ledger path, and report outcome.

    Raises:
        RefineryDiscoveryError: If input or output directories cannot be read.
        RefineryPluginError: If the plugin is missing or incomplete.
        RefineryTransformError: If any item fails; earlier chunks stay checkpointed.
        RefineryPersistError: If artifacts, the ledger, or the export cannot be written.
    """
    runner = RefinementPipelineRunner(options, config)
    return runner.run()


def rebuild_summary_report(
    summary_dir: str,
    resource_version: str,
    unmapped_fields: Iterable[str] = DEFAULT_UNMAPPED_FIELDS,
    strict: bool = False,
) -> ReportWriteResult:
    """Rebuild report files from a persisted ledger without refining.

    Args:
        summary_dir: Summary directory holding the ledger snapshot.
        resource_version: Resource version label of the ledger.
        unmapped_fields: Summary fields flattened into one value list.
        strict: Raise when any field file could not be written.

    Returns:
        Report write outcome.

    Raises:
        RefineryPersistError: If the ledger snapshot is missing or invalid.
        RefineryReportError: If strict and any field write failed.
    """
    summary_path = Path(summary_dir).expanduser().resolve()
    ledger = SummaryLedger.load(summary_path, resource_version)
    if not ledger.path.exists():
        raise RefineryPersistError(
            f"Summary ledger not found at {ledger.path}. "
            "Run refine first or pass the matching --resource-version."
        )
    report = write_summary_report(ledger.entries(), summary_path, unmapped_fields)
    if strict and report.failures:
        failed_fields = ", ".join(failure.field_name for failure in report.failures)
        raise RefineryReportError(
            f"Failed to write report files for fields: {failed_fields}. "
            "Check the summary directory permissions and field names, then rerun report."
        )
    return report


def write_summary_report(
    entries: dict[str, SummaryRecord],
    summary_dir: Path,
    unmapped_fields: Iterable[str],
) -> ReportWriteResult:
    """Aggregate ledger entries and write one report file per field."""
    tables = aggregate_summaries(entries, unmapped_fields)
    return write_report(tables, summary_dir)


def resolve_output_layout(options: RefinementOptions, config: RefineryConfig) -> OutputLayout:
    """Resolve output directories, defaulting under the configured work root."""
    return OutputLayout(
        refined_dir=_resolve_dir(options.refined_dir, config.work_root / DEFAULT_REFINED_DIR_NAME),
        translated_dir=_resolve_dir(
            options.translated_dir, config.work_root / DEFAULT_TRANSLATED_DIR_NAME
        ),
        summary_dir=_resolve_dir(options.summary_dir, config.work_root / DEFAULT_SUMMARY_DIR_NAME),
        export_dir=Path(options.export_dir).expanduser().resolve() if options.export_dir else None,
    )


def _resolve_dir(value: str | None, default_path: Path) -> Path:
    if value:
        return Path(value).expanduser().resolve()
    return default_path


def _validate_options(options: RefinementOptions, num_workers: int) -> None:
    if num_workers < 0:
        raise RefineryConfigError(
            f"Invalid worker count {num_workers}: use 0 for serial execution "
            "or a positive number of workers."
        )
    if not options.resource_version.strip() or "/" in options.resource_version:
        raise RefineryConfigError(
            f"Invalid resource version '{options.resource_version}': "
            "use a non-empty label without path separators."
        )


def _prepare_output_dirs(layout: OutputLayout) -> None:
    directories = [layout.refined_dir, layout.translated_dir, layout.summary_dir]
    if layout.export_dir is not None:
        directories.append(layout.export_dir)
    for directory in directories:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise RefineryPersistError(
                f"Failed to create output directory {directory}: {error}. "
                "Check permissions or choose another output location."
            ) from error


def _log_refinement_completion(
    options: RefinementOptions,
    layout: OutputLayout,
    discovery: ItemDiscovery,
    result: RefinementRunResult,
) -> None:
    """Log pipeline completion with contextual metadata."""
    _LOGGER.info(
        "refinement_completed",
        input_dir=options.input_dir,
        refined_dir=str(layout.refined_dir),
        summary_dir=str(layout.summary_dir),
        resource_version=options.resource_version,
        scanned_count=discovery.scanned_count,
        discovered_count=result.discovered_count,
        dropped_duplicates=result.dropped_duplicates,
        completed_count=result.completed_count,
        processed_count=result.processed_count,
        chunk_count=result.chunk_count,
        report_failures=len(result.report.failures),
    )
