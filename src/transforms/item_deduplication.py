"""Canonical item ids and id-based deduplication.

This module derives stable item ids from input file names and removes
items whose ids or ledger keys collide. It is the first transform in the
refine pipeline.
"""

from __future__ import annotations

import re
from pathlib import PurePath
from typing import Iterable

from core.constants import CANONICAL_ID_STRIP_SUFFIXES, NUMERIC_ID_PREFIX
from core.types import ResolvedItem

_INVALID_ID_CHARACTERS = re.compile(r"[^A-Za-z0-9_]+")
_NUMERIC_ID = re.compile(r"\d+(?:\.\d+)?")


def canonical_item_id(file_name: str) -> str:
    """Build the default canonical id for an input file name.

    Args:
        file_name: File name, optionally with directory components.

    Returns:
        Identifier with format suffixes removed and unsafe characters
        collapsed to underscores. Empty when nothing usable remains.
    """
    base_name = PurePath(file_name).name
    stem = _strip_format_suffixes(base_name)
    return _INVALID_ID_CHARACTERS.sub("_", stem).strip("_")


def ledger_key(item_id: str) -> str:
    """Return the ledger key for an item id.

    Ids written as plain decimal numbers get a non-numeric prefix so
    that downstream tabular tools keep them as text.

    Args:
        item_id: Canonical item id.

    Returns:
        Ledger key.
    """
    if _NUMERIC_ID.fullmatch(item_id):
        return f"{NUMERIC_ID_PREFIX}{item_id}"
    return item_id


def remove_duplicate_items(items: Iterable[ResolvedItem]) -> tuple[list[ResolvedItem], int]:
    """Remove items whose ledger key was already seen.

    Equal canonical ids share a ledger key, and so do ids such as
    ``123`` and ``m123`` once the numeric prefix is applied.

    Args:
        items: Items in discovery order.

    Returns:
        Ordered unique items and the number of dropped duplicates.
    """
    unique_items: list[ResolvedItem] = []
    seen_keys: set[str] = set()
    dropped_count = 0
    for item in items:
        item_key = ledger_key(item.item_id)
        if item_key in seen_keys:
            dropped_count += 1
            continue
        seen_keys.add(item_key)
        unique_items.append(item)
    return unique_items, dropped_count


def _strip_format_suffixes(file_name: str) -> str:
    """Drop the extension and any trailing format markers."""
    stem = file_name
    while True:
        lowered = stem.lower()
        matched_suffix = next(
            (suffix for suffix in CANONICAL_ID_STRIP_SUFFIXES if lowered.endswith(suffix)),
            None,
        )
        if matched_suffix is None:
            break
        stem = stem[: -len(matched_suffix)]
    if stem == file_name:
        stem = PurePath(file_name).stem
    return stem
