from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence
from typing import Protocol

from ..core.context import RunContext
from ..core.logging import log_event
from ..docs.extractor import CodeBlock
from .model import ExecutionResult, WorkItem


class Progress(Protocol):
    def item_started(self, item: WorkItem) -> None: ...

    def item_finished(self, item: WorkItem, result: ExecutionResult) -> None: ...


Execute = Callable[[CodeBlock], ExecutionResult]


class Scheduler:
    """Bounded worker pool over a fixed list of work items.

    Workers share one cursor guarded by a lock and write each result at the
    item's `original_index`, so the returned tuple follows discovery order no
    matter which block finishes first.
    """

    def __init__(
        self,
        items: Sequence[WorkItem],
        concurrency: int,
        execute: Execute,
        progress: Progress | None = None,
        ctx: RunContext | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self._items = list(items)
        self._concurrency = concurrency
        self._execute = execute
        self._progress = progress
        self._ctx = ctx
        self._cursor = 0
        self._lock = threading.Lock()
        self._results: list[ExecutionResult | None] = [None] * len(self._items)

    @property
    def worker_count(self) -> int:
        return min(self._concurrency, len(self._items))

    def _claim(self) -> WorkItem | None:
        with self._lock:
            if self._cursor >= len(self._items):
                return None
            item = self._items[self._cursor]
            self._cursor += 1
            return item

    def _run_one(self, item: WorkItem) -> ExecutionResult:
        started = time.monotonic()
        try:
            return self._execute(item.block)
        except Exception as exc:
            return ExecutionResult.failure(
                item.block,
                f"internal error: {exc}",
                int((time.monotonic() - started) * 1000),
            )

    def _worker(self) -> None:
        while True:
            item = self._claim()
            if item is None:
                return
            if self._progress is not None:
                self._progress.item_started(item)
            result = self._run_one(item)
            self._results[item.original_index] = result
            if self._progress is not None:
                self._progress.item_finished(item, result)

    def run(self) -> tuple[ExecutionResult, ...]:
        workers = self.worker_count
        if self._ctx is not None and self._ctx.verbose:
            log_event(self._ctx, "info", "scheduler", "start", items=len(self._items), workers=workers)
        threads = [
            threading.Thread(target=self._worker, name=f"scribe-worker-{idx}", daemon=True) for idx in range(workers)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        missing = [idx for idx, row in enumerate(self._results) if row is None]
        if missing:
            raise RuntimeError(f"scheduler finished with unfilled result slots: {missing}")
        if self._ctx is not None and self._ctx.verbose:
            log_event(self._ctx, "info", "scheduler", "finish", items=len(self._items))
        return tuple(row for row in self._results if row is not None)
