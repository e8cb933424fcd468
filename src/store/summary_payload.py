"""Summary record validation and JSON serialization.

This module normalizes plugin summaries into the tagged value shape
(number, string, or tuple of strings) and converts them to and from
JSON-safe payloads for the ledger snapshot.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

from core.constants import SUMMARY_FLOAT_SIGNIFICANT_DIGITS
from core.types import SummaryRecord, SummaryValue


def coerce_summary_record(raw_summary: object, context: str) -> dict[str, SummaryValue]:
    """Validate a plugin summary and normalize list values to tuples.

    Args:
        raw_summary: Mapping returned by the plugin.
        context: Description of the source used in error messages.

    Returns:
        Ordered summary record.

    Raises:
        ValueError: If the summary is not a string-keyed mapping of
            numbers, strings, or lists of strings.
    """
    if not isinstance(raw_summary, Mapping):
        raise ValueError(
            f"Invalid summary for {context}: expected mapping, got {type(raw_summary).__name__}."
        )
    summary: dict[str, SummaryValue] = {}
    for field_name, value in raw_summary.items():
        if not isinstance(field_name, str) or not field_name:
            raise ValueError(
                f"Invalid summary for {context}: field names must be non-empty strings, "
                f"got {field_name!r}."
            )
        summary[field_name] = _coerce_summary_value(value, f"{context} field '{field_name}'")
    return summary


def summary_record_to_payload(summary: SummaryRecord) -> dict[str, object]:
    """Serialize a summary record into a JSON-safe payload."""
    return {
        field_name: list(value) if isinstance(value, tuple) else value
        for field_name, value in summary.items()
    }


def summary_record_from_payload(payload: Any, context: str) -> dict[str, SummaryValue]:
    """Deserialize a ledger payload into a summary record.

    Raises:
        ValueError: If the payload does not match the summary value shape.
    """
    return coerce_summary_record(payload, context)


def format_summary_scalar(value: int | float | str) -> str:
    """Render a scalar summary value as a report cell.

    Args:
        value: Number or string value.

    Returns:
        Strings unchanged, integral numbers without decimals, other
        numbers with up to ten significant digits.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return format(value, f".{SUMMARY_FLOAT_SIGNIFICANT_DIGITS}g")


def is_empty_summary_value(value: SummaryValue) -> bool:
    """Return whether a value counts as absent in the report."""
    if isinstance(value, (str, tuple)):
        return len(value) == 0
    return False


def _coerce_summary_value(value: object, context: str) -> SummaryValue:
    if isinstance(value, bool):
        raise ValueError(f"Invalid summary value for {context}: booleans are not supported.")
    if isinstance(value, (int, float, str)):
        return value
    if isinstance(value, (list, tuple)):
        if not all(isinstance(entry, str) for entry in value):
            raise ValueError(
                f"Invalid summary value for {context}: list entries must all be strings."
            )
        return tuple(value)
    raise ValueError(
        f"Invalid summary value for {context}: expected number, string, or list of "
        f"strings, got {type(value).__name__}."
    )
