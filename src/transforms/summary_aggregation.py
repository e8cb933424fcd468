"""Pivot heterogeneous summary records into per-field tables.

This module unions the field names of every ledger entry and builds one
rectangular table per field. Unmapped-entity fields are flattened into a
single deduplicated value list instead of per-item rows.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from core.constants import DEFAULT_UNMAPPED_FIELDS
from core.types import FieldTable, SummaryRecord, SummaryValue
from store.summary_payload import format_summary_scalar, is_empty_summary_value


def aggregate_summaries(
    entries: Mapping[str, SummaryRecord],
    unmapped_fields: Iterable[str] = DEFAULT_UNMAPPED_FIELDS,
) -> dict[str, FieldTable]:
    """Build report tables from ledger entries.

    Args:
        entries: Ledger key to summary record, in ledger order.
        unmapped_fields: Field names flattened into a single value list.

    Returns:
        Field name to table, ordered by sorted field name.
    """
    flattened_fields = frozenset(unmapped_fields)
    tables: dict[str, FieldTable] = {}
    for field_name in collect_field_names(entries.values()):
        if field_name in flattened_fields:
            tables[field_name] = _build_flattened_table(field_name, entries)
        else:
            tables[field_name] = _build_item_table(field_name, entries)
    return tables


def collect_field_names(summaries: Iterable[SummaryRecord]) -> list[str]:
    """Return the sorted union of field names across summaries."""
    field_names: set[str] = set()
    for summary in summaries:
        field_names.update(summary.keys())
    return sorted(field_names)


def _build_item_table(field_name: str, entries: Mapping[str, SummaryRecord]) -> FieldTable:
    rows: list[tuple[str, ...]] = []
    for key, summary in entries.items():
        value = summary.get(field_name)
        if value is None or is_empty_summary_value(value):
            continue
        rows.append((key, *_value_cells(value)))
    return FieldTable(field_name=field_name, rows=_pad_rows(rows))


def _build_flattened_table(field_name: str, entries: Mapping[str, SummaryRecord]) -> FieldTable:
    seen_values: set[str] = set()
    rows: list[tuple[str, ...]] = []
    for summary in entries.values():
        value = summary.get(field_name)
        if value is None:
            continue
        for cell in _value_cells(value):
            if not cell or cell in seen_values:
                continue
            seen_values.add(cell)
            rows.append((cell,))
    return FieldTable(field_name=field_name, rows=tuple(rows), flattened=True)


def _value_cells(value: SummaryValue) -> tuple[str, ...]:
    if isinstance(value, tuple):
        return value
    return (format_summary_scalar(value),)


def _pad_rows(rows: list[tuple[str, ...]]) -> tuple[tuple[str, ...], ...]:
    """Right-pad rows with empty cells to the widest row."""
    width = max((len(row) for row in rows), default=0)
    return tuple(row + ("",) * (width - len(row)) for row in rows)
