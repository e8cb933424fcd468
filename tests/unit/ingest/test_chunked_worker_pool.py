"""Unit tests for chunking and the worker pool."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import RefineryConfigError, RefineryPluginError, RefineryTransformError
from core.types import ItemTask, RefinementContext, ResolvedItem
from ingest.chunked_worker_pool import (
    ChunkedWorkerPool,
    chunk_size_for,
    partition_chunks,
    refine_item,
)
from tests.fixture_paths import install_plugin_fixture, recorded_refine_calls, write_input_files


def _context() -> RefinementContext:
    return RefinementContext(
        input_data_dir=None,
        info_file_path=None,
        resource_version="v1",
        solver_state={"solver": "fake-lp"},
    )


def _items(input_dir: Path, *file_names: str) -> list[ResolvedItem]:
    write_input_files(input_dir, list(file_names))
    return [
        ResolvedItem(
            item_id=Path(file_name).name.split(".")[0],
            source_path=str(input_dir / file_name),
            item_format="secondary" if "sbml" in file_name else "primary",
        )
        for file_name in file_names
    ]


def test_chunk_size_for_switches_at_threshold() -> None:
    """Batches above 200 items should use chunks of 100, others 25."""
    assert [chunk_size_for(count) for count in (0, 200, 201)] == [25, 25, 100]


def test_partition_chunks_covers_every_item_in_order() -> None:
    """Chunks should be contiguous, full-sized except the last, and complete."""
    items = list(range(53))

    chunks = partition_chunks(items, 25)

    assert [len(chunk) for chunk in chunks] == [25, 25, 3] and [
        item for chunk in chunks for item in chunk
    ] == items


def test_partition_chunks_rejects_non_positive_size() -> None:
    """Chunk sizes below one should raise config error."""
    with pytest.raises(RefineryConfigError):
        partition_chunks([1, 2], 0)


def test_refine_item_translates_secondary_items(tmp_path: Path) -> None:
    """Secondary-format items should carry a translated artifact."""
    plugin_path = install_plugin_fixture("counting_plugin", tmp_path / "plugin")
    item = _items(tmp_path / "in", "beta.sbml")[0]

    outcome = refine_item(ItemTask(item=item, plugin_path=str(plugin_path), context=_context()))

    assert (
        outcome.translated_artifact == {"translated_from": "beta.sbml"}
        and outcome.summary["solver"] == "fake-lp"
        and outcome.summary["addedRxns"] == ("beta_r1", "beta_r2")
    )


def test_refine_item_requires_translate_hook_for_secondary_items(tmp_path: Path) -> None:
    """Secondary-format items without a translate hook should fail."""
    plugin_path = install_plugin_fixture("minimal_plugin", tmp_path / "plugin")
    item = _items(tmp_path / "in", "beta.sbml")[0]

    with pytest.raises(RefineryPluginError, match="translate"):
        refine_item(ItemTask(item=item, plugin_path=str(plugin_path), context=_context()))


def test_refine_item_wraps_plugin_failures(tmp_path: Path) -> None:
    """Plugin exceptions should become transform errors naming the item."""
    plugin_path = install_plugin_fixture("counting_plugin", tmp_path / "plugin")
    (tmp_path / "plugin" / "fail_on.txt").write_text("alpha\n", encoding="utf-8")
    item = _items(tmp_path / "in", "alpha.mat")[0]

    with pytest.raises(RefineryTransformError, match="alpha"):
        refine_item(ItemTask(item=item, plugin_path=str(plugin_path), context=_context()))


def test_refine_item_rejects_invalid_refine_result(tmp_path: Path) -> None:
    """refine() must return an (artifact, summary) pair."""
    plugin_path = tmp_path / "plugin" / "bad_result.py"
    plugin_path.parent.mkdir()
    plugin_path.write_text(
        "def load_artifact(path):\n    return path\n"
        "def refine(artifact, item_id, context):\n    return {'only': 'summary'}\n",
        encoding="utf-8",
    )
    item = _items(tmp_path / "in", "alpha.mat")[0]

    with pytest.raises(RefineryTransformError, match="tuple"):
        refine_item(ItemTask(item=item, plugin_path=str(plugin_path), context=_context()))


def test_pool_serial_mode_yields_chunks_in_order(tmp_path: Path) -> None:
    """Zero workers should run items inline in chunk order."""
    plugin_path = install_plugin_fixture("counting_plugin", tmp_path / "plugin")
    items = _items(tmp_path / "in", *(f"item{index:02d}.mat" for index in range(30)))

    with ChunkedWorkerPool(str(plugin_path), _context(), 0, "process") as pool:
        chunks = list(pool.iter_chunk_outcomes(items))

    assert [(index, len(outcomes)) for index, outcomes in chunks] == [
        (1, 25),
        (2, 5),
    ] and recorded_refine_calls(plugin_path) == [item.item_id for item in items]


def test_pool_thread_mode_returns_outcomes_in_item_order(tmp_path: Path) -> None:
    """Parallel chunks should return outcomes in chunk order."""
    plugin_path = install_plugin_fixture("counting_plugin", tmp_path / "plugin")
    items = _items(tmp_path / "in", "c.mat", "a.mat", "b.sbml")

    with ChunkedWorkerPool(str(plugin_path), _context(), 3, "thread") as pool:
        outcomes = pool.run_chunk(items)

    assert [outcome.item_id for outcome in outcomes] == ["c", "a", "b"] and sorted(
        recorded_refine_calls(plugin_path)
    ) == ["a", "b", "c"]


def test_pool_thread_mode_propagates_item_failure(tmp_path: Path) -> None:
    """One failing item should fail the whole chunk."""
    plugin_path = install_plugin_fixture("counting_plugin", tmp_path / "plugin")
    (tmp_path / "plugin" / "fail_on.txt").write_text("b\n", encoding="utf-8")
    items = _items(tmp_path / "in", "a.mat", "b.mat", "c.mat")

    with pytest.raises(RefineryTransformError, match="'b'"):
        with ChunkedWorkerPool(str(plugin_path), _context(), 2, "thread") as pool:
            pool.run_chunk(items)


def test_pool_rejects_negative_workers() -> None:
    """Negative worker counts should raise config error."""
    with pytest.raises(RefineryConfigError):
        ChunkedWorkerPool("plugin.py", _context(), -1, "thread")


def test_refine_item_translates_artifact_before_refine_mutates_it(tmp_path: Path) -> None:
    """Translation should see the loaded artifact even when refine() edits it in place."""
    plugin_path = tmp_path / "plugin" / "in_place.py"
    plugin_path.parent.mkdir()
    plugin_path.write_text(
        "def load_artifact(path):\n    return {'source': path.rsplit('/', 1)[-1]}\n"
        "def refine(artifact, item_id, context):\n"
        "    artifact['source'] = 'REFINED'\n"
        "    return artifact, {'status': 'ok'}\n"
        "def translate(artifact):\n    return {'translated_from': artifact['source']}\n",
        encoding="utf-8",
    )
    item = _items(tmp_path / "in", "gamma.sbml")[0]

    outcome = refine_item(ItemTask(item=item, plugin_path=str(plugin_path), context=_context()))

    assert outcome.translated_artifact == {"translated_from": "gamma.sbml"} and (
        outcome.refined_artifact == {"source": "REFINED"}
    )
