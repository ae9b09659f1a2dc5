from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..docs.extractor import CodeBlock


class BlockStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"


@dataclass(frozen=True)
class WorkItem:
    block: CodeBlock
    display_label: str
    original_index: int


@dataclass(frozen=True)
class BundledUnit:
    code: str
    filename: str
    transpiled: bool = False
    bundled: bool = False


@dataclass(frozen=True)
class ExecutionResult:
    block: CodeBlock
    success: bool
    output: str = ""
    error: str | None = None
    duration_ms: int = 0
    timed_out: bool = False

    @property
    def status(self) -> BlockStatus:
        return BlockStatus.PASS if self.success else BlockStatus.FAIL

    @classmethod
    def failure(cls, block: CodeBlock, error: str, duration_ms: int = 0, timed_out: bool = False) -> "ExecutionResult":
        return cls(block=block, success=False, output="", error=error, duration_ms=duration_ms, timed_out=timed_out)


@dataclass(frozen=True)
class RunSummary:
    total: int
    passed: int
    failed: int
    results: tuple[ExecutionResult, ...] = ()
    items: tuple[WorkItem, ...] = ()
    documents: int = 0
    duration_ms: int = 0
    target: Path | None = None
    error: str | None = None
    concurrency: int = 1

    @property
    def ok(self) -> bool:
        return self.failed == 0

    @classmethod
    def from_results(
        cls,
        items: tuple[WorkItem, ...],
        results: tuple[ExecutionResult, ...],
        *,
        documents: int,
        duration_ms: int,
        target: Path,
        concurrency: int,
    ) -> "RunSummary":
        passed = sum(1 for row in results if row.success)
        return cls(
            total=len(results),
            passed=passed,
            failed=len(results) - passed,
            results=results,
            items=items,
            documents=documents,
            duration_ms=duration_ms,
            target=target,
            concurrency=concurrency,
        )

    @classmethod
    def aborted(cls, target: Path, error: str) -> "RunSummary":
        return cls(total=0, passed=0, failed=1, target=target, error=error)
