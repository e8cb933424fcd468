"""Input artifact discovery.

This module scans an input directory for accepted artifact files,
assigns canonical ids, classifies source formats, and drops items
whose ids collide with an earlier file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable

from core.constants import (
    ITEM_INFO_HEADER,
    PRIMARY_FORMAT_MARKER,
    SECONDARY_FORMAT_MARKER,
)
from core.errors import RefineryDiscoveryError, RefineryPersistError
from core.logging_config import get_logger
from core.types import ItemDiscovery, ItemFormat, ResolvedItem
from transforms.item_deduplication import canonical_item_id, remove_duplicate_items

_LOGGER = get_logger(__name__)


def resolve_items(
    input_dir: str,
    canonicalize: Callable[[str], str] = canonical_item_id,
) -> ItemDiscovery:
    """Discover input items with unique canonical ids.

    Args:
        input_dir: Root directory scanned recursively.
        canonicalize: Maps a file name to its canonical id.

    Returns:
        Items in sorted path order with duplicates removed.

    Raises:
        RefineryDiscoveryError: If the directory is missing or unreadable,
            or a file name canonicalizes to an empty id.
    """
    root_path = Path(input_dir).expanduser().resolve()
    if not root_path.is_dir():
        raise RefineryDiscoveryError(
            f"Failed to scan input directory {root_path}: directory does not exist. "
            "Provide an existing directory of input artifacts."
        )
    candidates = list(_iter_candidate_items(root_path, canonicalize))
    unique_items, dropped_count = remove_duplicate_items(candidates)
    if dropped_count:
        _LOGGER.warning(
            "duplicates_dropped",
            input_dir=str(root_path),
            dropped_count=dropped_count,
        )
    _LOGGER.info(
        "items_discovered",
        input_dir=str(root_path),
        scanned_count=len(candidates),
        unique_count=len(unique_items),
    )
    return ItemDiscovery(
        items=tuple(unique_items),
        scanned_count=len(candidates),
        dropped_duplicates=dropped_count,
    )


def classify_item_format(file_name: str) -> ItemFormat | None:
    """Classify a file name into a source format.

    Args:
        file_name: Base file name.

    Returns:
        ``secondary`` for names mentioning the secondary marker,
        ``primary`` for names mentioning the primary marker, else None.
    """
    lowered = file_name.lower()
    if SECONDARY_FORMAT_MARKER in lowered:
        return "secondary"
    if PRIMARY_FORMAT_MARKER in lowered:
        return "primary"
    return None


def write_item_info_file(info_path: Path, items: Iterable[ResolvedItem]) -> Path:
    """Write the generated identifier-mapping file.

    Args:
        info_path: Destination file path.
        items: Items whose ids are listed, one per line.

    Returns:
        Path of the written file.

    Raises:
        RefineryPersistError: If the file cannot be written.
    """
    lines = [ITEM_INFO_HEADER, *(item.item_id for item in items)]
    try:
        info_path.parent.mkdir(parents=True, exist_ok=True)
        info_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as error:
        raise RefineryPersistError(
            f"Failed to write identifier-mapping file at {info_path}: {error}. "
            "Check directory permissions or pass an existing info file."
        ) from error
    return info_path


def _iter_candidate_items(
    root_path: Path,
    canonicalize: Callable[[str], str],
) -> Iterable[ResolvedItem]:
    for file_path in _list_files(root_path):
        item_format = classify_item_format(file_path.name)
        if item_format is None:
            continue
        item_id = canonicalize(file_path.name)
        if not item_id:
            raise RefineryDiscoveryError(
                f"File {file_path} produced an empty canonical id. "
                "Rename the file or adjust the plugin canonicalize() hook."
            )
        yield ResolvedItem(
            item_id=item_id,
            source_path=str(file_path),
            item_format=item_format,
        )


def _list_files(root_path: Path) -> list[Path]:
    try:
        return sorted(path for path in root_path.rglob("*") if path.is_file())
    except OSError as error:
        raise RefineryDiscoveryError(
            f"Failed to scan input directory {root_path}: {error}. "
            "Check directory permissions and retry."
        ) from error
