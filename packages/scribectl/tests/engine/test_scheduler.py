from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from scribectl.docs.extractor import CodeBlock
from scribectl.engine.model import ExecutionResult, WorkItem
from scribectl.engine.scheduler import Scheduler


def _items(count: int) -> list[WorkItem]:
    return [
        WorkItem(
            block=CodeBlock(language="js", source_text=f"// {idx}\n", origin_file=Path("a.md"), start_line=idx + 1),
            display_label=f"a.md:{idx + 1}",
            original_index=idx,
        )
        for idx in range(count)
    ]


class Recorder:
    """Instrumented executor: sleeps per block and tracks overlapping windows."""

    def __init__(self, delays: dict[int, float] | None = None, default: float = 0.01) -> None:
        self.delays = delays or {}
        self.default = default
        self.lock = threading.Lock()
        self.active = 0
        self.max_active = 0
        self.calls: list[int] = []
        self.finished: list[int] = []

    def __call__(self, block: CodeBlock) -> ExecutionResult:
        idx = block.start_line - 1
        with self.lock:
            self.calls.append(idx)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(self.delays.get(idx, self.default))
        with self.lock:
            self.active -= 1
            self.finished.append(idx)
        return ExecutionResult(block=block, success=idx % 2 == 0, output=str(idx))


class Progress:
    def __init__(self) -> None:
        self.events: list[tuple[str, int]] = []
        self.lock = threading.Lock()

    def item_started(self, item: WorkItem) -> None:
        with self.lock:
            self.events.append(("start", item.original_index))

    def item_finished(self, item: WorkItem, result: ExecutionResult) -> None:
        with self.lock:
            self.events.append(("finish", item.original_index))


@pytest.mark.parametrize("concurrency", [1, 2, 4, 16])
def test_each_item_runs_exactly_once_and_results_keep_order(concurrency: int) -> None:
    items = _items(10)
    recorder = Recorder()
    results = Scheduler(items, concurrency, recorder).run()
    assert sorted(recorder.calls) == list(range(10))
    assert [row.output for row in results] == [str(idx) for idx in range(10)]
    assert recorder.max_active <= concurrency


def test_concurrency_is_actually_used() -> None:
    recorder = Recorder(default=0.05)
    Scheduler(_items(8), 4, recorder).run()
    assert recorder.max_active >= 2


def test_run_in_band_never_overlaps() -> None:
    recorder = Recorder()
    Scheduler(_items(5), 1, recorder).run()
    assert recorder.max_active == 1
    assert recorder.calls == [0, 1, 2, 3, 4]


def test_slow_block_does_not_block_the_others() -> None:
    # one 500ms block plus four 50ms blocks on two lanes
    recorder = Recorder(delays={0: 0.5}, default=0.05)
    results = Scheduler(_items(5), 2, recorder).run()
    assert recorder.finished[-1] == 0
    assert set(recorder.finished[:4]) == {1, 2, 3, 4}
    assert [row.output for row in results] == ["0", "1", "2", "3", "4"]


def test_worker_count_is_bounded_by_items() -> None:
    assert Scheduler(_items(3), 8, Recorder()).worker_count == 3
    assert Scheduler([], 8, Recorder()).run() == ()


def test_progress_sees_start_before_finish() -> None:
    progress = Progress()
    Scheduler(_items(6), 3, Recorder(), progress=progress).run()
    for idx in range(6):
        assert progress.events.index(("start", idx)) < progress.events.index(("finish", idx))
    assert len(progress.events) == 12


def test_unexpected_exception_becomes_failing_result() -> None:
    def explode(block: CodeBlock) -> ExecutionResult:
        if block.start_line == 2:
            raise ValueError("boom")
        return ExecutionResult(block=block, success=True)

    results = Scheduler(_items(3), 2, explode).run()
    assert [row.success for row in results] == [True, False, True]
    assert results[1].error == "internal error: boom"


def test_invalid_concurrency() -> None:
    with pytest.raises(ValueError):
        Scheduler(_items(1), 0, Recorder())


def test_three_blocks_on_three_lanes_overlap() -> None:
    barrier = threading.Barrier(3, timeout=5)

    def wait_for_peers(block: CodeBlock) -> ExecutionResult:
        barrier.wait()
        return ExecutionResult(block=block, success=True)

    results = Scheduler(_items(3), 3, wait_for_peers).run()
    assert [row.success for row in results] == [True, True, True]
