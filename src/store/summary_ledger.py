"""Persisted summary ledger.

This module keeps the mapping from item id to summary record for a
resource version. The whole ledger is rewritten after every chunk, so a
restart reloads it in one step and resumes from the last checkpoint.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping

from core.constants import (
    LEDGER_FILE_PREFIX,
    LEDGER_FILE_SUFFIX,
    LEDGER_SCHEMA_VERSION,
)
from core.errors import RefineryPersistError
from core.types import SummaryRecord
from store.summary_payload import summary_record_from_payload, summary_record_to_payload
from transforms.item_deduplication import ledger_key


def ledger_path_for(summary_dir: Path, resource_version: str) -> Path:
    """Return the ledger snapshot path for a resource version."""
    return summary_dir / f"{LEDGER_FILE_PREFIX}{resource_version}{LEDGER_FILE_SUFFIX}"


class SummaryLedger:
    """Filesystem-backed ledger of per-item summary records."""

    def __init__(
        self,
        ledger_path: Path,
        resource_version: str,
        entries: Mapping[str, SummaryRecord] | None = None,
    ) -> None:
        self._ledger_path = ledger_path
        self._resource_version = resource_version
        self._entries: dict[str, SummaryRecord] = dict(entries or {})

    @classmethod
    def load(cls, summary_dir: Path, resource_version: str) -> "SummaryLedger":
        """Load the ledger snapshot, or start an empty ledger.

        Args:
            summary_dir: Summary output directory.
            resource_version: Resource version label.

        Returns:
            Ledger with any previously checkpointed entries.

        Raises:
            RefineryPersistError: If an existing snapshot cannot be parsed.
        """
        ledger_path = ledger_path_for(summary_dir, resource_version)
        if not ledger_path.exists():
            return cls(ledger_path, resource_version)
        entries = _read_ledger_entries(ledger_path)
        return cls(ledger_path, resource_version, entries)

    @property
    def path(self) -> Path:
        return self._ledger_path

    @property
    def resource_version(self) -> str:
        return self._resource_version

    def __len__(self) -> int:
        return len(self._entries)

    def has_item(self, item_id: str) -> bool:
        """Return whether an item id already has a ledger entry."""
        return ledger_key(item_id) in self._entries

    def record(self, item_id: str, summary: SummaryRecord) -> str:
        """Insert or overwrite the summary for an item.

        Args:
            item_id: Canonical item id.
            summary: Validated summary record.

        Returns:
            Ledger key used for the entry.
        """
        key = ledger_key(item_id)
        self._entries[key] = dict(summary)
        return key

    def entries(self) -> dict[str, SummaryRecord]:
        """Return a copy of ledger entries in insertion order."""
        return dict(self._entries)

    def save(self) -> Path:
        """Rewrite the full ledger snapshot atomically.

        Returns:
            Snapshot path.

        Raises:
            RefineryPersistError: If the snapshot cannot be written.
        """
        payload = {
            "schema_version": LEDGER_SCHEMA_VERSION,
            "resource_version": self._resource_version,
            "summaries": {
                key: summary_record_to_payload(summary) for key, summary in self._entries.items()
            },
        }
        temp_path = self._ledger_path.with_name(self._ledger_path.name + ".tmp")
        try:
            self._ledger_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
            os.replace(temp_path, self._ledger_path)
        except (OSError, TypeError, ValueError) as error:
            raise RefineryPersistError(
                f"Failed to write summary ledger at {self._ledger_path}: {error}. "
                "Check free disk space and permissions, then rerun to resume."
            ) from error
        return self._ledger_path


def _read_ledger_entries(ledger_path: Path) -> dict[str, SummaryRecord]:
    """Read and validate ledger entries from a snapshot file."""
    try:
        payload = json.loads(ledger_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as error:
        raise RefineryPersistError(
            f"Failed to read summary ledger at {ledger_path}: {error}. "
            "Restore the ledger file or delete it and rerun with --overwrite."
        ) from error
    summaries = payload.get("summaries") if isinstance(payload, dict) else None
    if not isinstance(summaries, dict):
        raise RefineryPersistError(
            f"Invalid summary ledger at {ledger_path}: expected a 'summaries' object. "
            "Restore the ledger file or delete it and rerun with --overwrite."
        )
    entries: dict[str, SummaryRecord] = {}
    for key, summary_payload in summaries.items():
        try:
            entries[str(key)] = summary_record_from_payload(summary_payload, f"ledger entry {key}")
        except ValueError as error:
            raise RefineryPersistError(
                f"Invalid summary ledger at {ledger_path}: {error}"
            ) from error
    return entries

