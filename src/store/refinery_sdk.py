"""Python SDK for refinement runs.

This module exposes high-level APIs for discovery, resumable refinement,
report rebuilding, and parameter-file runs on top of the pipeline runner.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Iterable

from core.config import RefineryConfig
from core.constants import (
    DEFAULT_RESOURCE_VERSION,
    DEFAULT_SUMMARY_DIR_NAME,
    DEFAULT_UNMAPPED_FIELDS,
)
from core.pipeline_params import load_pipeline_params
from core.types import ItemDiscovery, RefinementOptions, RefinementRunResult, ReportWriteResult
from ingest.item_resolver import resolve_items
from ingest.pipeline import rebuild_summary_report, refine_items
from ingest.refinement_hooks import resolve_refinement_hooks


class RefineryClient:
    """Primary SDK entry point for refinement workflows."""

    def __init__(self, config: RefineryConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or RefineryConfig.from_env()

    @property
    def config(self) -> RefineryConfig:
        return self._config

    def refine(self, options: RefinementOptions) -> RefinementRunResult:
        """Refine every pending item of an input directory.

        Args:
            options: Refine request options.

        Returns:
            Run summary.

        Raises:
            RefineryDiscoveryError: If the input directory cannot be scanned.
            RefineryPluginError: If the plugin cannot be loaded.
            RefineryTransformError: If an item fails to refine.
            RefineryPersistError: If outputs cannot be written.
        """
        return refine_items(options, self._config)

    def discover(self, input_dir: str, plugin_path: str | None = None) -> ItemDiscovery:
        """List the items a refine run would consider.

        Args:
            input_dir: Input directory to scan.
            plugin_path: Optional plugin whose canonicalize hook names items.

        Returns:
            Discovered items after duplicate removal.
        """
        if plugin_path is None:
            return resolve_items(input_dir)
        hooks = resolve_refinement_hooks(plugin_path)
        return resolve_items(input_dir, hooks.canonicalize)

    def report(
        self,
        summary_dir: str | None = None,
        resource_version: str = DEFAULT_RESOURCE_VERSION,
        unmapped_fields: Iterable[str] = DEFAULT_UNMAPPED_FIELDS,
        strict: bool = False,
    ) -> ReportWriteResult:
        """Rebuild report files from a persisted ledger.

        Args:
            summary_dir: Summary directory, defaults under the work root.
            resource_version: Resource version label of the ledger.
            unmapped_fields: Summary fields flattened into one value list.
            strict: Raise when any field file could not be written.

        Returns:
            Report write outcome.
        """
        if summary_dir is None:
            summary_dir = str(self._config.work_root / DEFAULT_SUMMARY_DIR_NAME)
        return rebuild_summary_report(summary_dir, resource_version, unmapped_fields, strict)

    def with_work_root(self, work_root: str) -> "RefineryClient":
        """Clone the client with a different work root.

        Args:
            work_root: New work root path.

        Returns:
            New SDK client instance.
        """
        resolved_root = Path(work_root).expanduser().resolve()
        updated_config = replace(self._config, work_root=resolved_root)
        return RefineryClient(updated_config)

    def refine_from_params(self, params_file: str) -> RefinementRunResult:
        """Refine using the arguments stored in a parameter file.

        Args:
            params_file: Path to YAML parameter file.

        Returns:
            Run summary.

        Raises:
            RefineryParamsError: If the parameter file is invalid.
        """
        return self.refine(load_pipeline_params(params_file))
