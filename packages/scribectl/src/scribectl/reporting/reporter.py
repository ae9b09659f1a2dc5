from __future__ import annotations

import sys
import threading
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import TextIO

from ..core.env import ci_present
from ..engine.denoise import clean_error_message
from ..engine.model import ExecutionResult, RunSummary, WorkItem

SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
TICK_SECONDS = 0.08


class Colors:
    GREEN = "\033[32m"
    RED = "\033[31m"
    YELLOW = "\033[33m"
    GRAY = "\033[90m"
    END = "\033[0m"


ERASE_LINE_UP = "\033[1A\033[2K"
HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"


class ReporterState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    RUNNING = "running"
    SUMMARIZED = "summarized"
    DONE = "done"


class ItemState(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"


_NEXT_STATES: dict[ReporterState, frozenset[ReporterState]] = {
    ReporterState.IDLE: frozenset({ReporterState.SCANNING}),
    ReporterState.SCANNING: frozenset({ReporterState.RUNNING, ReporterState.SUMMARIZED}),
    ReporterState.RUNNING: frozenset({ReporterState.SUMMARIZED}),
    ReporterState.SUMMARIZED: frozenset({ReporterState.DONE}),
    ReporterState.DONE: frozenset(),
}


def _stream_is_tty(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    if isatty is None:
        return False
    try:
        return bool(isatty())
    except ValueError:
        return False


def detect_interactive(stream: TextIO, env: Mapping[str, str] | None = None, verbose: bool = False) -> bool:
    """Interactive output needs a terminal, no CI marker and no structured logging."""
    return _stream_is_tty(stream) and not ci_present(env) and not verbose


class Reporter:
    """Progress output for one run.

    In interactive mode a live region listing in-flight blocks sits below the
    permanent lines and is redrawn by a tick thread; otherwise only permanent
    lines are written. Every write happens under one lock.
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        err_stream: TextIO | None = None,
        *,
        env: Mapping[str, str] | None = None,
        verbose: bool = False,
        quiet: bool = False,
        color: bool = True,
        interactive: bool | None = None,
        tick_seconds: float = TICK_SECONDS,
    ) -> None:
        self._out = stream or sys.stdout
        self._err = err_stream or sys.stderr
        self._quiet = quiet
        self._color = color
        self._tick_seconds = tick_seconds
        self.interactive = (
            detect_interactive(self._out, env=env, verbose=verbose) if interactive is None else interactive
        )
        self._lock = threading.RLock()
        self._state = ReporterState.IDLE
        self._items: dict[int, ItemState] = {}
        self._in_flight: dict[int, str] = {}
        self._frame = 0
        self._drawn = 0
        self._cursor_hidden = False
        self._stop = threading.Event()
        self._ticker: threading.Thread | None = None

    @property
    def state(self) -> ReporterState:
        return self._state

    def item_state(self, index: int) -> ItemState:
        return self._items[index]

    def in_flight(self) -> list[str]:
        with self._lock:
            return [self._in_flight[idx] for idx in sorted(self._in_flight)]

    def _advance(self, target: ReporterState) -> None:
        if target not in _NEXT_STATES[self._state]:
            raise RuntimeError(f"invalid reporter transition: {self._state.value} -> {target.value}")
        self._state = target

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{Colors.END}" if self._color else text

    def _write(self, text: str) -> None:
        self._out.write(text)
        self._out.flush()

    # live region

    def _erase(self) -> None:
        if self._drawn:
            self._out.write(ERASE_LINE_UP * self._drawn)
            self._drawn = 0

    def _draw(self) -> None:
        if not self._in_flight:
            return
        glyph = self._paint(SPINNER_FRAMES[self._frame % len(SPINNER_FRAMES)], Colors.YELLOW)
        if not self._cursor_hidden:
            self._out.write(HIDE_CURSOR)
            self._cursor_hidden = True
        for idx in sorted(self._in_flight):
            self._out.write(f"  {glyph} {self._in_flight[idx]}\n")
        self._drawn = len(self._in_flight)

    def _redraw(self) -> None:
        self._erase()
        self._draw()
        self._out.flush()

    def _tick(self) -> None:
        while not self._stop.wait(self._tick_seconds):
            with self._lock:
                self._frame += 1
                if self._in_flight:
                    self._redraw()

    def _stop_live_region(self) -> None:
        self._stop.set()
        ticker = self._ticker
        if ticker is not None and ticker is not threading.current_thread():
            ticker.join()
        self._ticker = None
        with self._lock:
            self._erase()
            if self._cursor_hidden:
                self._out.write(SHOW_CURSOR)
                self._cursor_hidden = False
            self._out.flush()

    # run lifecycle

    def scanning(self, is_directory: bool) -> None:
        with self._lock:
            self._advance(ReporterState.SCANNING)
            if is_directory:
                self._write("Scanning for markdown files...\n")

    def found(self, documents: int, workers: int) -> None:
        with self._lock:
            self._write(f"Found {documents} markdown file(s) ({workers} workers)\n\n")

    def warning(self, message: str) -> None:
        with self._lock:
            self._err.write(f"warning: {message}\n")
            self._err.flush()

    def error(self, message: str) -> None:
        with self._lock:
            self._err.write(f"Error: {message}\n")
            self._err.flush()

    def no_blocks(self) -> None:
        with self._lock:
            self._write("No testable code blocks found.\n")

    def start(self, items: Sequence[WorkItem]) -> None:
        with self._lock:
            self._advance(ReporterState.RUNNING)
            self._items = {item.original_index: ItemState.QUEUED for item in items}
        if self.interactive and items:
            self._stop.clear()
            self._ticker = threading.Thread(target=self._tick, name="scribe-spinner", daemon=True)
            self._ticker.start()

    def item_started(self, item: WorkItem) -> None:
        with self._lock:
            self._move_item(item.original_index, ItemState.QUEUED, ItemState.RUNNING)
            self._in_flight[item.original_index] = item.display_label
            if self.interactive:
                self._redraw()

    def item_finished(self, item: WorkItem, result: ExecutionResult) -> None:
        with self._lock:
            done = ItemState.PASSED if result.success else ItemState.FAILED
            self._move_item(item.original_index, ItemState.RUNNING, done)
            self._in_flight.pop(item.original_index, None)
            if self.interactive:
                self._erase()
            if result.success:
                if not self._quiet:
                    self._out.write(f"{self._paint('✓', Colors.GREEN)} {item.display_label}\n")
            else:
                self._out.write(f"{self._paint('✗', Colors.RED)} {item.display_label}\n")
                error = clean_error_message(result.error or "")
                if error:
                    self._out.write(f"  {self._paint(error, Colors.GRAY)}\n")
            if self.interactive:
                self._draw()
            self._out.flush()

    def _move_item(self, index: int, expected: ItemState, target: ItemState) -> None:
        current = self._items.get(index)
        if current is not expected:
            state = current.value if current is not None else "unknown"
            raise RuntimeError(f"invalid item transition for #{index}: {state} -> {target.value}")
        self._items[index] = target

    def summary(self, summary: RunSummary) -> None:
        """Close the live region and print the totals line (skipped for aborted or empty runs)."""
        if self.interactive:
            self._stop_live_region()
        with self._lock:
            self._advance(ReporterState.SUMMARIZED)
            if summary.error is None and summary.total > 0:
                color = Colors.RED if summary.failed > 0 else Colors.GREEN
                self._write("\n" + self._paint(f"Results: {summary.passed}/{summary.total} passed", color) + "\n")

    def close(self) -> None:
        with self._lock:
            self._advance(ReporterState.DONE)
