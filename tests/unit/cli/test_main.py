"""Unit tests for CLI command handling."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from cli.main import main
from core.errors import RefineryPersistError
from tests.fixture_paths import fixture_path, install_plugin_fixture, write_input_files


def test_cli_refine_prints_run_summary(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """CLI refine should print key=value lines and exit zero."""
    write_input_files(tmp_path / "in", ["a.mat", "b.sbml"])
    plugin_path = install_plugin_fixture("counting_plugin", tmp_path / "plugin")
    args = [
        "--work-root",
        str(tmp_path / "work"),
        "refine",
        str(tmp_path / "in"),
        "--plugin",
        str(plugin_path),
        "--num-workers",
        "0",
    ]

    exit_code = main(args)
    output = capsys.readouterr().out.strip().splitlines()

    assert (
        exit_code == 0
        and "processed_count=2" in output
        and "report_failures=-" in output
        and (tmp_path / "work" / "summary" / "summaries_Reconstructions.json").exists()
    )


def test_cli_refine_exits_nonzero_on_report_failure(tmp_path: Path, capsys) -> None:
    """Report write failures should surface as exit code one."""
    write_input_files(tmp_path / "in", ["a.mat"])
    plugin_path = tmp_path / "slash_plugin.py"
    plugin_path.write_text(
        "def load_artifact(path):\n    return path\n"
        "def refine(artifact, item_id, context):\n"
        "    return artifact, {'ok': 1, 'bad/name': 2}\n",
        encoding="utf-8",
    )

    exit_code = main(
        [
            "--work-root",
            str(tmp_path / "work"),
            "refine",
            str(tmp_path / "in"),
            "--plugin",
            str(plugin_path),
            "--num-workers",
            "0",
        ]
    )
    output = capsys.readouterr().out.strip().splitlines()

    assert exit_code == 1 and "report_failures=bad/name" in output


def test_cli_discover_lists_items_and_duplicates(tmp_path: Path, capsys) -> None:
    """CLI discover should print one tab-separated row per unique item."""
    write_input_files(tmp_path / "in", ["a.mat", "b.sbml"])
    write_input_files(tmp_path / "in" / "dup", ["a.mat"])

    exit_code = main(["discover", str(tmp_path / "in")])
    rows = [line.split("\t") for line in capsys.readouterr().out.strip().splitlines()]

    assert exit_code == 0 and [row[:2] for row in rows[:-1]] == [
        ["a", "primary"],
        ["b", "secondary"],
    ] and rows[-1] == ["dropped_duplicates=1"]


def test_cli_report_rebuilds_files(tmp_path: Path, capsys) -> None:
    """CLI report should rebuild field files from an existing ledger."""
    write_input_files(tmp_path / "in", ["a.mat"])
    plugin_path = install_plugin_fixture("counting_plugin", tmp_path / "plugin")
    summary_dir = tmp_path / "summary"
    main(
        [
            "--work-root",
            str(tmp_path / "work"),
            "refine",
            str(tmp_path / "in"),
            "--plugin",
            str(plugin_path),
            "--summary-dir",
            str(summary_dir),
            "--resource-version",
            "v9",
            "--num-workers",
            "0",
            "--unmapped-field",
            "untranslatedMets",
        ]
    )
    (summary_dir / "solver.txt").unlink()
    capsys.readouterr()

    exit_code = main(["report", "--summary-dir", str(summary_dir), "--resource-version", "v9"])
    output = capsys.readouterr().out.strip().splitlines()

    assert exit_code == 0 and output[0] == "report_files=4" and (summary_dir / "solver.txt").exists()


def test_cli_report_missing_ledger_raises_error(tmp_path: Path) -> None:
    """CLI report should fail when no ledger exists for the version."""
    with pytest.raises(RefineryPersistError):
        main(["report", "--summary-dir", str(tmp_path)])


def test_cli_refine_requires_plugin(tmp_path: Path) -> None:
    """The refine command should reject a missing --plugin flag."""
    with pytest.raises(SystemExit):
        main(["refine", str(tmp_path)])


def test_cli_run_refines_from_parameter_file(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """The run command should refine with paths relative to the parameter file."""
    write_input_files(tmp_path / "drafts", ["a.mat", "b.sbml"])
    install_plugin_fixture("counting_plugin", tmp_path / "plugins")
    params_path = tmp_path / "pipeline.yaml"
    shutil.copyfile(fixture_path("params/pipeline.yaml"), params_path)

    exit_code = main(["--work-root", str(tmp_path / "work"), "run", str(params_path)])
    output = capsys.readouterr().out.strip().splitlines()
    summary_dir = tmp_path / "out" / "refinementSummary"

    assert (
        exit_code == 0
        and "processed_count=2" in output
        and (summary_dir / "summaries_v2.json").exists()
        and (summary_dir / "untranslatedMets.txt").read_text(encoding="utf-8") == "glc\natp\n"
        and sorted(path.name for path in (tmp_path / "out" / "refinedReconstructions").iterdir())
        == ["a.json", "b.json"]
    )
