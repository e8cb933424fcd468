"""Refinery CLI entry points.
This module exposes commands for discovery, refinement, and reporting.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from typing import Any, Sequence

from core.config import RefineryConfig
from core.constants import (
    DEFAULT_RESOURCE_VERSION,
    DEFAULT_UNMAPPED_FIELDS,
    SUPPORTED_EXECUTOR_KINDS,
)
from core.types import ItemDiscovery, RefinementOptions, RefinementRunResult, ReportWriteResult
from store.refinery_sdk import RefineryClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="refinery", description="Refinery batch refinement CLI")
    parser.add_argument("--work-root", help="Override REFINERY_WORK_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_refine_command(subparsers)
    _add_report_command(subparsers)
    _add_discover_command(subparsers)
    _add_params_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Refinery CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    client = _build_client(args.work_root)
    if args.command == "refine":
        return _run_refine_command(client, args)
    if args.command == "report":
        return _run_report_command(client, args)
    if args.command == "discover":
        return _run_discover_command(client, args)
    if args.command == "run":
        return _run_params_command(client, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(work_root: str | None) -> RefineryClient:
    """Build SDK client with optional work-root override.

    Args:
        work_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    client = RefineryClient(RefineryConfig.from_env())
    return client.with_work_root(work_root) if work_root else client


def _run_refine_command(client: RefineryClient, args: argparse.Namespace) -> int:
    """Handle refine command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code, 1 when any report file failed to write.
    """
    options = RefinementOptions(
        input_dir=args.input_dir,
        plugin_path=args.plugin,
        refined_dir=args.refined_dir,
        translated_dir=args.translated_dir,
        summary_dir=args.summary_dir,
        info_file_path=args.info_file,
        input_data_dir=args.input_data_dir,
        num_workers=args.num_workers,
        resource_version=args.resource_version,
        export_dir=args.export_dir,
        overwrite=args.overwrite,
        executor=args.executor,
        unmapped_fields=tuple(args.unmapped_field or DEFAULT_UNMAPPED_FIELDS),
    )
    result = client.refine(options)
    _print_lines(_refinement_lines(result))
    return 1 if result.report.failures else 0


def _run_report_command(client: RefineryClient, args: argparse.Namespace) -> int:
    """Handle report command."""
    report = client.report(
        summary_dir=args.summary_dir,
        resource_version=args.resource_version,
        unmapped_fields=tuple(args.unmapped_field or DEFAULT_UNMAPPED_FIELDS),
    )
    _print_lines(_report_lines(report))
    return 1 if report.failures else 0


def _run_discover_command(client: RefineryClient, args: argparse.Namespace) -> int:
    """Handle discover command."""
    discovery = client.discover(args.input_dir, args.plugin)
    _print_lines(_discovery_lines(discovery))
    return 0


def _run_params_command(client: RefineryClient, args: argparse.Namespace) -> int:
    """Handle run command for a pipeline parameter file."""
    result = client.refine_from_params(args.params_file)
    _print_lines(_refinement_lines(result))
    return 1 if result.report.failures else 0


def _print_lines(lines: Sequence[str]) -> None:
    for line in lines:
        print(line)


def _discovery_lines(discovery: ItemDiscovery) -> list[str]:
    rows = [f"{item.item_id}\t{item.item_format}\t{item.source_path}" for item in discovery.items]
    rows.append(f"dropped_duplicates={discovery.dropped_duplicates}")
    return rows


def _refinement_lines(result: RefinementRunResult) -> list[str]:
    return [
        f"discovered_count={result.discovered_count}",
        f"dropped_duplicates={result.dropped_duplicates}",
        f"completed_count={result.completed_count}",
        f"processed_count={result.processed_count}",
        f"chunk_count={result.chunk_count}",
        f"ledger_path={result.ledger_path}",
        *_report_lines(result.report),
    ]


def _report_lines(report: ReportWriteResult) -> list[str]:
    failed_fields = ",".join(failure.field_name for failure in report.failures)
    return [
        f"report_files={len(report.written_paths)}",
        f"report_failures={failed_fields or '-'}",
    ]


def _add_refine_command(subparsers: Any) -> None:
    """Register refine subcommand."""
    parser = subparsers.add_parser("refine", help="Refine every pending item of a directory")
    parser.add_argument("input_dir", help="Directory of input artifacts, scanned recursively")
    parser.add_argument("--plugin", required=True, help="Python file with refinement hooks")
    parser.add_argument("--refined-dir", help="Refined artifact directory")
    parser.add_argument("--translated-dir", help="Translated artifact directory")
    parser.add_argument("--summary-dir", help="Ledger and report directory")
    parser.add_argument("--info-file", help="Existing item info file to pass to the plugin")
    parser.add_argument("--input-data-dir", help="Auxiliary input data directory for the plugin")
    parser.add_argument(
        "--num-workers",
        type=int,
        help="Parallel workers, 0 for serial execution (default REFINERY_NUM_WORKERS)",
    )
    parser.add_argument(
        "--executor",
        choices=SUPPORTED_EXECUTOR_KINDS,
        help="Worker pool flavour (default REFINERY_EXECUTOR)",
    )
    parser.add_argument(
        "--resource-version",
        default=DEFAULT_RESOURCE_VERSION,
        help="Resource version label stamped on the ledger",
    )
    parser.add_argument("--export-dir", help="Run the plugin export hook into this directory")
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Reprocess items that already have refined artifacts",
    )
    _add_unmapped_field_argument(parser)


def _add_report_command(subparsers: Any) -> None:
    """Register report subcommand."""
    parser = subparsers.add_parser("report", help="Rebuild report files from a summary ledger")
    parser.add_argument("--summary-dir", required=True, help="Directory holding the ledger")
    parser.add_argument(
        "--resource-version",
        default=DEFAULT_RESOURCE_VERSION,
        help="Resource version label of the ledger",
    )
    _add_unmapped_field_argument(parser)


def _add_discover_command(subparsers: Any) -> None:
    """Register discover subcommand."""
    parser = subparsers.add_parser("discover", help="List items a refine run would consider")
    parser.add_argument("input_dir", help="Directory of input artifacts, scanned recursively")
    parser.add_argument("--plugin", help="Optional plugin whose canonicalize hook names items")


def _add_params_command(subparsers: Any) -> None:
    """Register run subcommand."""
    parser = subparsers.add_parser("run", help="Refine with arguments from a YAML parameter file")
    parser.add_argument("params_file", help="Path to YAML pipeline parameter file")


def _add_unmapped_field_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--unmapped-field",
        action="append",
        help="Summary field flattened into one value list (repeatable)",
    )
