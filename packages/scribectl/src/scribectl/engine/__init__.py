"""Bundling, sandboxed execution and scheduling of code blocks."""

from .model import BlockStatus, BundledUnit, ExecutionResult, RunSummary, WorkItem

__all__ = ["BlockStatus", "BundledUnit", "ExecutionResult", "RunSummary", "WorkItem"]
