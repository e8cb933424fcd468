"""Chunked parallel execution of the refinement plugin.

This module partitions pending items into bounded chunks and refines the
items of one chunk concurrently. Chunks run strictly in order, and the
next chunk is only submitted after the caller has flushed the previous
one, so a crash loses at most one chunk of work.
"""

from __future__ import annotations

from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from types import TracebackType
from typing import Iterator, Sequence, TypeVar

from core.constants import LARGE_BATCH_CHUNK_SIZE, LARGE_BATCH_THRESHOLD, SMALL_BATCH_CHUNK_SIZE
from core.errors import (
    RefineryConfigError,
    RefineryError,
    RefineryPluginError,
    RefineryTransformError,
)
from core.logging_config import get_logger
from core.types import ExecutorKind, ItemOutcome, ItemTask, RefinementContext, ResolvedItem
from ingest.refinement_hooks import TranslateCallable, resolve_refinement_hooks
from store.summary_payload import coerce_summary_record

_LOGGER = get_logger(__name__)

ItemT = TypeVar("ItemT")


def chunk_size_for(item_count: int) -> int:
    """Return the chunk size for a pending work list.

    Args:
        item_count: Number of pending items.

    Returns:
        Large chunks for big batches, small chunks otherwise.
    """
    if item_count > LARGE_BATCH_THRESHOLD:
        return LARGE_BATCH_CHUNK_SIZE
    return SMALL_BATCH_CHUNK_SIZE


def partition_chunks(items: Sequence[ItemT], chunk_size: int) -> list[list[ItemT]]:
    """Split items into contiguous chunks.

    Args:
        items: Ordered work list.
        chunk_size: Maximum items per chunk.

    Returns:
        ``ceil(len(items) / chunk_size)`` chunks covering every item once.

    Raises:
        RefineryConfigError: If chunk size is smaller than one.
    """
    if chunk_size < 1:
        raise RefineryConfigError(
            f"Invalid chunk size {chunk_size}: expected a positive integer."
        )
    return [list(items[start : start + chunk_size]) for start in range(0, len(items), chunk_size)]


def refine_item(task: ItemTask) -> ItemOutcome:
    """Load, optionally translate, and refine one item.

    This runs inside pool workers. Hooks are resolved from the plugin
    path in the worker itself and the context is read-only. Secondary
    items are translated from the artifact as loaded, before refine()
    sees it.

    Args:
        task: Item plus plugin path and shared context.

    Returns:
        Completed outcome awaiting flush.

    Raises:
        RefineryTransformError: If any plugin step fails or the summary
            has an unsupported shape.
        RefineryPluginError: If a secondary-format item has no translate hook.
    """
    hooks = resolve_refinement_hooks(task.plugin_path)
    item = task.item
    try:
        artifact = hooks.load_artifact(item.source_path)
    except Exception as error:
        raise RefineryTransformError(
            f"Loading failed for item '{item.item_id}' ({item.source_path}): {error}"
        ) from error
    translated_artifact = None
    if item.item_format == "secondary":
        # refine() may mutate the loaded artifact in place.
        translated_artifact = _translate_item(hooks.translate, artifact, item)
    try:
        refine_result = hooks.refine(artifact, item.item_id, task.context)
    except Exception as error:
        raise RefineryTransformError(
            f"Refinement failed for item '{item.item_id}' ({item.source_path}): {error}"
        ) from error
    refined_artifact, raw_summary = _unpack_refine_result(refine_result, item)
    try:
        summary = coerce_summary_record(raw_summary, f"item '{item.item_id}'")
    except ValueError as error:
        raise RefineryTransformError(str(error)) from error
    return ItemOutcome(
        item_id=item.item_id,
        item_format=item.item_format,
        refined_artifact=refined_artifact,
        summary=summary,
        translated_artifact=translated_artifact,
    )


class ChunkedWorkerPool:
    """Bounded worker pool reused across the chunks of one run."""

    def __init__(
        self,
        plugin_path: str,
        context: RefinementContext,
        num_workers: int,
        executor_kind: ExecutorKind,
    ) -> None:
        if num_workers < 0:
            raise RefineryConfigError(
                f"Invalid worker count {num_workers}: use 0 for serial execution "
                "or a positive number of workers."
            )
        self._plugin_path = plugin_path
        self._context = context
        self._num_workers = num_workers
        self._executor_kind = executor_kind
        self._executor: Executor | None = None

    def __enter__(self) -> "ChunkedWorkerPool":
        if self._num_workers > 0:
            self._executor = _create_executor(self._executor_kind, self._num_workers)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None

    def iter_chunk_outcomes(
        self,
        items: Sequence[ResolvedItem],
    ) -> Iterator[tuple[int, list[ItemOutcome]]]:
        """Yield completed outcomes one chunk at a time.

        Args:
            items: Pending items in processing order.

        Yields:
            One-based chunk index and the chunk outcomes in item order.
        """
        chunk_size = chunk_size_for(len(items))
        chunks = partition_chunks(items, chunk_size)
        for chunk_index, chunk in enumerate(chunks, 1):
            _LOGGER.info(
                "chunk_started",
                chunk_index=chunk_index,
                chunk_count=len(chunks),
                chunk_size=len(chunk),
                first_item_id=chunk[0].item_id,
            )
            yield chunk_index, self.run_chunk(chunk)

    def run_chunk(self, chunk: Sequence[ResolvedItem]) -> list[ItemOutcome]:
        """Refine every item of a chunk and wait for all of them.

        Args:
            chunk: Items of one chunk.

        Returns:
            Outcomes in the same order as the chunk items.

        Raises:
            RefineryTransformError: If any item fails; remaining queued
                items of the chunk are cancelled.
        """
        tasks = [
            ItemTask(item=item, plugin_path=self._plugin_path, context=self._context)
            for item in chunk
        ]
        if self._executor is None:
            return [refine_item(task) for task in tasks]
        futures = [self._executor.submit(refine_item, task) for task in tasks]
        outcomes: list[ItemOutcome] = []
        for task, future in zip(tasks, futures):
            try:
                outcomes.append(future.result())
            except RefineryError:
                _cancel_pending(futures)
                raise
            except Exception as error:
                _cancel_pending(futures)
                raise RefineryTransformError(
                    f"Worker failed while refining item '{task.item.item_id}': {error}. "
                    "Completed chunks are checkpointed; rerun to resume."
                ) from error
        return outcomes


def _create_executor(executor_kind: ExecutorKind, num_workers: int) -> Executor:
    if executor_kind == "thread":
        return ThreadPoolExecutor(max_workers=num_workers, thread_name_prefix="refinery-worker")
    return ProcessPoolExecutor(max_workers=num_workers)


def _cancel_pending(futures: Sequence[Future[ItemOutcome]]) -> None:
    for future in futures:
        future.cancel()


def _unpack_refine_result(refine_result: object, item: ResolvedItem) -> tuple[object, object]:
    if not isinstance(refine_result, tuple) or len(refine_result) != 2:
        raise RefineryTransformError(
            f"Invalid refine() result for item '{item.item_id}': "
            "expected a (artifact, summary) tuple."
        )
    return refine_result[0], refine_result[1]


def _translate_item(
    translate: TranslateCallable | None,
    artifact: object,
    item: ResolvedItem,
) -> object:
    if translate is None:
        raise RefineryPluginError(
            f"Item '{item.item_id}' is in the secondary format but the plugin "
            "defines no translate(artifact) hook."
        )
    try:
        return translate(artifact)
    except Exception as error:
        raise RefineryTransformError(
            f"Translation failed for item '{item.item_id}' ({item.source_path}): {error}"
        ) from error
