"""Single-writer persistence of completed chunks.

This module is the only writer of refined artifacts, translated
artifacts, and the summary ledger. A chunk is checkpointed once all of
its artifacts are stored and the ledger snapshot has been rewritten.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

from core.errors import RefineryError, RefineryPersistError
from core.logging_config import get_logger
from core.types import ItemOutcome
from store.summary_ledger import SummaryLedger

_LOGGER = get_logger(__name__)


class ChunkFlusher:
    """Persist chunk outcomes and checkpoint the summary ledger."""

    def __init__(
        self,
        refined_dir: Path,
        translated_dir: Path,
        ledger: SummaryLedger,
        store_artifact: Callable[[str, object], None],
        artifact_suffix: str,
    ) -> None:
        self._refined_dir = refined_dir
        self._translated_dir = translated_dir
        self._ledger = ledger
        self._store_artifact = store_artifact
        self._artifact_suffix = artifact_suffix

    def flush(self, outcomes: Sequence[ItemOutcome]) -> Path:
        """Persist one chunk and rewrite the ledger snapshot.

        Args:
            outcomes: Completed chunk outcomes in item order.

        Returns:
            Ledger snapshot path.

        Raises:
            RefineryPersistError: If an artifact or the ledger cannot be
                written. The ledger is not rewritten when any artifact
                write fails.
        """
        for outcome in outcomes:
            self._store(self._refined_dir, outcome.item_id, outcome.refined_artifact)
            if outcome.translated_artifact is not None:
                self._store(self._translated_dir, outcome.item_id, outcome.translated_artifact)
        for outcome in outcomes:
            self._ledger.record(outcome.item_id, outcome.summary)
        ledger_path = self._ledger.save()
        _LOGGER.info(
            "chunk_checkpointed",
            item_count=len(outcomes),
            ledger_entries=len(self._ledger),
            ledger_path=str(ledger_path),
        )
        return ledger_path

    def artifact_path(self, output_dir: Path, item_id: str) -> Path:
        """Return the artifact path for an item in an output directory."""
        return output_dir / f"{item_id}{self._artifact_suffix}"

    def _store(self, output_dir: Path, item_id: str, artifact: object) -> None:
        artifact_path = self.artifact_path(output_dir, item_id)
        try:
            self._store_artifact(str(artifact_path), artifact)
        except RefineryError:
            raise
        except Exception as error:
            raise RefineryPersistError(
                f"Failed to store artifact for item '{item_id}' at {artifact_path}: {error}. "
                "Fix the plugin store_artifact() hook or output permissions and rerun to resume."
            ) from error
