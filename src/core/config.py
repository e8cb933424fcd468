"""Runtime configuration model for Refinery.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_EXECUTOR_KIND,
    DEFAULT_NUM_WORKERS,
    DEFAULT_WORK_ROOT,
    SUPPORTED_EXECUTOR_KINDS,
)
from core.errors import RefineryConfigError
from core.types import ExecutorKind


@dataclass(frozen=True)
class RefineryConfig:
    """Validated runtime configuration.

    Attributes:
        work_root: Base directory for default refined/translated/summary folders.
        num_workers: Default worker count for the refinement pool.
        executor_kind: Default pool flavour, ``process`` or ``thread``.
    """

    work_root: Path
    num_workers: int
    executor_kind: ExecutorKind

    @classmethod
    def from_env(cls) -> "RefineryConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            RefineryConfigError: If environment values are invalid.
        """
        work_root_value = os.getenv("REFINERY_WORK_ROOT", str(DEFAULT_WORK_ROOT))
        num_workers = parse_num_workers(
            os.getenv("REFINERY_NUM_WORKERS", str(DEFAULT_NUM_WORKERS)),
            source="REFINERY_NUM_WORKERS",
        )
        executor_kind = parse_executor_kind(
            os.getenv("REFINERY_EXECUTOR", DEFAULT_EXECUTOR_KIND),
            source="REFINERY_EXECUTOR",
        )
        return cls(
            work_root=Path(work_root_value).expanduser().resolve(),
            num_workers=num_workers,
            executor_kind=executor_kind,
        )


def parse_num_workers(raw_value: str | int, source: str) -> int:
    """Parse a worker count.

    Args:
        raw_value: Raw string from environment or an explicit integer.
        source: Name of the setting, used in error messages.

    Returns:
        Parsed non-negative worker count.

    Raises:
        RefineryConfigError: If value is not a non-negative integer.
    """
    try:
        num_workers = int(raw_value)
    except ValueError as error:
        raise RefineryConfigError(
            f"Invalid {source} value: expected integer, got '{raw_value}'. "
            f"Set {source} to a non-negative number of workers."
        ) from error
    if num_workers < 0:
        raise RefineryConfigError(
            f"Invalid {source} value: {num_workers} is negative. "
            "Use 0 for serial execution or a positive worker count."
        )
    return num_workers


def parse_executor_kind(raw_value: str, source: str) -> ExecutorKind:
    """Parse the worker pool flavour.

    Args:
        raw_value: Raw executor kind string.
        source: Name of the setting, used in error messages.

    Returns:
        Validated executor kind.

    Raises:
        RefineryConfigError: If value is not a supported executor kind.
    """
    normalized_value = raw_value.strip().lower()
    if normalized_value == "process":
        return "process"
    if normalized_value == "thread":
        return "thread"
    supported_rows = ", ".join(SUPPORTED_EXECUTOR_KINDS)
    raise RefineryConfigError(
        f"Invalid {source} value '{raw_value}'. Use one of: {supported_rows}."
    )
