"""Completed-work detection for resumable runs.

This module inspects the refined artifact directory to find items that
a previous run already finished and checkpointed, so a restart skips them.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from core.errors import RefineryDiscoveryError
from core.logging_config import get_logger
from core.types import ResolvedItem

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ProgressSelection:
    """Selection output for a resumable run."""

    pending_items: list[ResolvedItem]
    completed_ids: frozenset[str]
    requeued_ids: tuple[str, ...] = ()


def completed_item_ids(refined_dir: Path, artifact_suffix: str) -> frozenset[str]:
    """Return ids whose refined artifact already exists.

    Args:
        refined_dir: Refined artifact directory.
        artifact_suffix: Extension of persisted artifact files.

    Returns:
        Ids recovered from artifact file names.

    Raises:
        RefineryDiscoveryError: If the directory is missing or unreadable.
    """
    if not refined_dir.is_dir():
        raise RefineryDiscoveryError(
            f"Failed to read refined directory {refined_dir}: directory does not exist. "
            "Create the output directory before selecting pending items."
        )
    try:
        entries = list(refined_dir.iterdir())
    except OSError as error:
        raise RefineryDiscoveryError(
            f"Failed to read refined directory {refined_dir}: {error}. "
            "Check directory permissions and retry."
        ) from error
    return frozenset(
        entry.name.removesuffix(artifact_suffix)
        for entry in entries
        if entry.is_file() and _is_artifact_name(entry.name, artifact_suffix)
    )


def select_pending_items(
    items: Sequence[ResolvedItem],
    refined_dir: Path,
    artifact_suffix: str,
    overwrite: bool,
    is_recorded: Callable[[str], bool] | None = None,
) -> ProgressSelection:
    """Select items that still require refinement.

    An item counts as finished only when its refined artifact exists and,
    if ``is_recorded`` is given, its summary is in the ledger. Artifacts
    left behind by a chunk that never reached its ledger checkpoint are
    refined again.

    Args:
        items: Deduplicated candidate items.
        refined_dir: Refined artifact directory.
        artifact_suffix: Extension of persisted artifact files.
        overwrite: Return every candidate, even when already refined.
        is_recorded: Optional ledger membership check by item id.

    Returns:
        Pending items in input order plus the ids found on disk.
    """
    completed_ids = completed_item_ids(refined_dir, artifact_suffix)
    requeued_ids: tuple[str, ...] = ()
    if overwrite:
        pending_items = list(items)
    else:
        pending_items = [
            item
            for item in items
            if item.item_id not in completed_ids
            or (is_recorded is not None and not is_recorded(item.item_id))
        ]
        requeued_ids = tuple(
            item.item_id for item in pending_items if item.item_id in completed_ids
        )
    if requeued_ids:
        _LOGGER.warning(
            "unrecorded_artifacts_requeued",
            refined_dir=str(refined_dir),
            requeued_count=len(requeued_ids),
            sample_ids=list(requeued_ids[:10]),
        )
    _LOGGER.info(
        "pending_items_selected",
        refined_dir=str(refined_dir),
        candidate_count=len(items),
        completed_count=len(completed_ids),
        pending_count=len(pending_items),
        overwrite=overwrite,
    )
    return ProgressSelection(
        pending_items=pending_items,
        completed_ids=completed_ids,
        requeued_ids=requeued_ids,
    )


def _is_artifact_name(file_name: str, artifact_suffix: str) -> bool:
    return file_name.endswith(artifact_suffix) and len(file_name) > len(artifact_suffix)
