"""Public SDK surface for Refinery.

This module provides a stable import path for library users.
It re-exports the primary client and typed option models.
"""

from __future__ import annotations

from core.config import RefineryConfig
from core.types import (
    ItemDiscovery,
    RefinementContext,
    RefinementOptions,
    RefinementRunResult,
    ReportWriteResult,
    ResolvedItem,
)
from ingest.chunked_worker_pool import chunk_size_for, partition_chunks
from store.refinery_sdk import RefineryClient
from store.summary_ledger import SummaryLedger
from transforms.item_deduplication import canonical_item_id, ledger_key

__all__ = [
    "ItemDiscovery",
    "RefineryClient",
    "RefineryConfig",
    "RefinementContext",
    "RefinementOptions",
    "RefinementRunResult",
    "ReportWriteResult",
    "ResolvedItem",
    "SummaryLedger",
    "canonical_item_id",
    "chunk_size_for",
    "ledger_key",
    "partition_chunks",
]
