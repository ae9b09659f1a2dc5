from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..config import ScribeConfig
from ..core.context import RunContext
from ..core.errors import PathNotFoundError
from ..core.logging import log_event
from ..docs.extractor import CodeBlock, extract_blocks
from ..docs.filter import filter_testable_blocks
from ..docs.scanner import display_base, find_documents, relative_label
from ..reporting.reporter import Reporter
from .model import ExecutionResult, RunSummary, WorkItem
from .sandbox import SandboxExecutor
from .scheduler import Scheduler


@dataclass(frozen=True)
class RunOptions:
    target: Path
    concurrency: int


@dataclass(frozen=True)
class Discovery:
    documents: tuple[Path, ...]
    items: tuple[WorkItem, ...]


def discover(
    target: Path,
    config: ScribeConfig,
    reporter: Reporter | None = None,
    ctx: RunContext | None = None,
) -> Discovery:
    """Scan `target` and turn every eligible block into a numbered work item."""
    documents = find_documents(target, extensions=config.extensions, skip_dirs=config.skip_dirs)
    base = display_base(target)
    extracted = extract_blocks(documents)
    for warning in extracted.warnings:
        label = f"{relative_label(warning.origin_file, base)}:{warning.start_line}"
        if reporter is not None:
            reporter.warning(f"unterminated code fence at {label}")
        if ctx is not None and ctx.verbose:
            log_event(ctx, "warning", "extractor", "unterminated-fence", label=label)
    eligible = filter_testable_blocks(extracted.blocks, languages=config.languages, opt_out=config.opt_out_marker)
    items = tuple(
        WorkItem(
            block=block,
            display_label=f"{relative_label(block.origin_file, base)}:{block.start_line}",
            original_index=index,
        )
        for index, block in enumerate(eligible)
    )
    if ctx is not None and ctx.verbose:
        log_event(ctx, "info", "scanner", "discover", documents=len(documents), blocks=len(items))
    return Discovery(documents=tuple(documents), items=items)


def run(
    options: RunOptions,
    config: ScribeConfig,
    reporter: Reporter,
    ctx: RunContext | None = None,
    execute: Callable[[CodeBlock], ExecutionResult] | None = None,
) -> RunSummary:
    started = time.monotonic()
    target = options.target
    if not target.exists():
        error = PathNotFoundError(target)
        reporter.error(error.message)
        reporter.scanning(False)
        summary = RunSummary.aborted(target, error.message)
        reporter.summary(summary)
        reporter.close()
        return summary

    reporter.scanning(target.is_dir())
    found = discover(target, config, reporter=reporter, ctx=ctx)
    reporter.found(len(found.documents), options.concurrency)

    if not found.items:
        reporter.no_blocks()
        summary = RunSummary.from_results(
            (),
            (),
            documents=len(found.documents),
            duration_ms=_elapsed_ms(started),
            target=target,
            concurrency=options.concurrency,
        )
        reporter.summary(summary)
        reporter.close()
        return summary

    runner = execute or SandboxExecutor(config, ctx).run_block
    reporter.start(found.items)
    results = Scheduler(found.items, options.concurrency, runner, progress=reporter, ctx=ctx).run()
    summary = RunSummary.from_results(
        found.items,
        results,
        documents=len(found.documents),
        duration_ms=_elapsed_ms(started),
        target=target,
        concurrency=options.concurrency,
    )
    reporter.summary(summary)
    reporter.close()
    return summary


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
