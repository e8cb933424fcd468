"""Unit tests for summary aggregation into field tables."""

from __future__ import annotations

from transforms.summary_aggregation import aggregate_summaries, collect_field_names


def test_aggregate_summaries_pads_list_rows_and_skips_missing_items() -> None:
    """Field F should have rows for A and B only, padded to two columns."""
    entries = {
        "A": {"F": "x"},
        "B": {"F": ("y", "z")},
        "C": {"G": 1},
    }

    tables = aggregate_summaries(entries, unmapped_fields=())

    assert tables["F"].rows == (("A", "x", ""), ("B", "y", "z")) and tables["G"].rows == (
        ("C", "1"),
    )


def test_aggregate_summaries_skips_empty_values() -> None:
    """Empty strings and empty lists should not produce rows."""
    entries = {"A": {"F": ""}, "B": {"F": ()}, "C": {"F": 0}}

    tables = aggregate_summaries(entries, unmapped_fields=())

    assert tables["F"].rows == (("C", "0"),)


def test_aggregate_summaries_formats_numbers() -> None:
    """Integral floats drop decimals and other floats keep ten significant digits."""
    entries = {"A": {"F": 3.0}, "B": {"F": 0.123456789012345}}

    tables = aggregate_summaries(entries, unmapped_fields=())

    assert tables["F"].rows == (("A", "3"), ("B", "0.123456789"))


def test_aggregate_summaries_flattens_unmapped_fields() -> None:
    """Unmapped fields become one deduplicated column in encounter order."""
    entries = {
        "A": {"untranslatedMets": ("glc", "atp")},
        "B": {"untranslatedMets": ("atp", "nad", "")},
        "C": {"untranslatedMets": "glc"},
    }

    tables = aggregate_summaries(entries)

    assert tables["untranslatedMets"].flattened and tables["untranslatedMets"].rows == (
        ("glc",),
        ("atp",),
        ("nad",),
    )


def test_collect_field_names_returns_sorted_union() -> None:
    """Field names should be unioned across heterogeneous records and sorted."""
    field_names = collect_field_names([{"b": 1, "a": 2}, {"c": "x"}, {}])

    assert field_names == ["a", "b", "c"]


def test_aggregate_summaries_empty_ledger_has_no_tables() -> None:
    """An empty ledger should aggregate to no tables."""
    assert aggregate_summaries({}) == {}
