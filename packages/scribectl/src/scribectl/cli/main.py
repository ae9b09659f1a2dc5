from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .. import __version__
from ..config import ScribeConfig, load_config
from ..core.context import RunContext
from ..core.errors import PathNotFoundError, ScriptError
from ..core.exit_codes import ERR_FAILED, ERR_INTERNAL, OK
from ..core.logging import log_event
from ..engine.model import RunSummary
from ..engine.run import RunOptions, discover, run
from ..reporting.report import build_report_payload, write_json_report, write_junitxml
from ..reporting.reporter import Reporter
from .output import color_enabled, emit, render_error


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got `{raw}`") from exc
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="scribectl", description="Run the JavaScript and TypeScript code fences found in markdown docs.")
    p.add_argument("--version", action="version", version=f"scribectl {__version__}")
    p.add_argument("path", help="markdown file or directory to test")
    lanes = p.add_mutually_exclusive_group()
    lanes.add_argument("-i", "--runInBand", dest="run_in_band", action="store_true", help="run blocks one at a time")
    lanes.add_argument("-j", "--parallel", type=_positive_int, default=None, help="number of concurrent workers (default: CPU count)")
    p.add_argument("--timeout-ms", type=_positive_int, default=None, help="per-block execution timeout in milliseconds")
    p.add_argument("--config", help="explicit scribe.yaml or pyproject.toml")
    p.add_argument("--list", dest="list_only", action="store_true", help="list eligible blocks without running them")
    p.add_argument("--json", action="store_true", help="print the run report as JSON on stdout")
    p.add_argument("--report", help="write the JSON run report to this path")
    p.add_argument("--junitxml", help="write a JUnit XML report to this path")
    p.add_argument("--run-id", help="run identifier for logs and reports")
    p.add_argument("--log-json", action="store_true", help="emit verbose log events as JSON lines")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable structured diagnostics on stderr")
    vg.add_argument("--quiet", action="store_true", help="only print failures and the summary")
    return p


def _load_config(ctx: RunContext, ns: argparse.Namespace) -> ScribeConfig:
    overrides = {
        "timeout_ms": ns.timeout_ms,
        "concurrency": 1 if ns.run_in_band else ns.parallel,
    }
    config_path = Path(ns.config) if ns.config else None
    return load_config(ctx.cwd, config_path=config_path, overrides=overrides)


def _list_blocks(ctx: RunContext, config: ScribeConfig, target: Path, as_json: bool) -> int:
    if not target.exists():
        raise PathNotFoundError(target)
    found = discover(target, config, ctx=ctx)
    if as_json:
        emit(
            {
                "schema_version": 1,
                "tool": "scribectl",
                "kind": "block-list",
                "run_id": ctx.run_id,
                "documents": len(found.documents),
                "blocks": [
                    {"label": item.display_label, "language": item.block.language, "info": item.block.info_string}
                    for item in found.items
                ],
            },
            True,
        )
        return OK
    for item in found.items:
        print(f"{item.display_label}\t{item.block.language}")
    return OK


def _write_artifacts(ctx: RunContext, ns: argparse.Namespace, summary: RunSummary) -> None:
    if not (ns.json or ns.report or ns.junitxml):
        return
    payload = build_report_payload(ctx, summary)
    if ns.report:
        write_json_report(Path(ns.report), payload)
    if ns.junitxml:
        write_junitxml(Path(ns.junitxml), summary)
    if ns.json:
        emit(payload, True)


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    ns = p.parse_args(argv)
    ctx = RunContext.from_args(
        run_id=ns.run_id,
        output_format="json" if ns.json else "text",
        verbose=ns.verbose,
        quiet=ns.quiet,
        log_json=ns.log_json,
    )
    try:
        config = _load_config(ctx, ns)
        target = Path(ns.path)
        if ctx.verbose:
            log_event(
                ctx,
                "info",
                "cli",
                "start",
                target=str(target),
                config=config.source,
                concurrency=config.effective_concurrency,
                timeout_ms=config.timeout_ms,
            )
        if ns.list_only:
            return _list_blocks(ctx, config, target, ns.json)
        reporter = Reporter(
            sys.stderr if ns.json else sys.stdout,
            sys.stderr,
            verbose=ctx.verbose,
            quiet=ctx.quiet,
            color=color_enabled(),
        )
        summary = run(RunOptions(target=target, concurrency=config.effective_concurrency), config, reporter, ctx)
        _write_artifacts(ctx, ns, summary)
        if ctx.verbose:
            log_event(
                ctx,
                "info",
                "cli",
                "finish",
                total=summary.total,
                passed=summary.passed,
                failed=summary.failed,
                duration_ms=summary.duration_ms,
            )
        return OK if summary.ok else ERR_FAILED
    except ScriptError as exc:
        message = f"Error: {exc}" if isinstance(exc, PathNotFoundError) else str(exc)
        print(render_error(as_json=(ctx.output_format == "json"), message=message, code=exc.code), file=sys.stderr)
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(
            render_error(as_json=(ctx.output_format == "json"), message=f"internal error: {exc}", code=ERR_INTERNAL),
            file=sys.stderr,
        )
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
