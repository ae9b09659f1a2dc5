from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from .env import ci_present, getenv
from .process import run_command

OutputFormat = Literal["text", "json"]


def read_git_sha(cwd: Path) -> str:
    try:
        res = run_command(["git", "rev-parse", "--short", "HEAD"], cwd, timeout_seconds=5)
    except OSError:
        return "unknown"
    sha = res.stdout.strip() if res.code == 0 else ""
    return sha or "unknown"


def make_run_id(cwd: Path, prefix: str = "scribe") -> str:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return f"{prefix}-{ts}-{read_git_sha(cwd)}"


@dataclass(frozen=True)
class RunContext:
    run_id: str
    cwd: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool
    ci: bool

    @classmethod
    def from_args(
        cls,
        run_id: str | None = None,
        cwd: Path | None = None,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
    ) -> "RunContext":
        root = (cwd or Path.cwd()).resolve()
        resolved_run_id = run_id or getenv("RUN_ID") or make_run_id(root)
        return cls(
            run_id=resolved_run_id,
            cwd=root,
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json,
            ci=ci_present(),
        )
