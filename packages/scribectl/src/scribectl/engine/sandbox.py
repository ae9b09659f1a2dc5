from __future__ import annotations

import json
import re
import time
from pathlib import Path

from ..config import ScribeConfig
from ..core.context import RunContext
from ..core.errors import BundleError
from ..core.logging import log_event
from ..core.process import run_command
from ..docs.extractor import CodeBlock
from .bundler import Bundler
from .denoise import HOST_SCRIPT_NAME, clean_error_message
from .model import BundledUnit, ExecutionResult

HOST_SCRIPT = Path(__file__).with_name(HOST_SCRIPT_NAME)
# Extra wall-clock allowance for node startup before the process is killed.
KILL_GRACE_MS = 2000

_DOM_RE = re.compile(
    r"\b(?:document|window|localStorage|sessionStorage|navigator|location|Element|Node|HTML\w*Element)\b"
)
_COMMENT_RE = re.compile(r"/\*.*?\*/|(?<![:\w])//[^\n]*", re.DOTALL)


def uses_dom(source: str) -> bool:
    """Whether the code (comments excluded) names a DOM global."""
    return _DOM_RE.search(_COMMENT_RE.sub("", source)) is not None


def host_payload(unit: BundledUnit, block: CodeBlock, config: ScribeConfig) -> dict[str, object]:
    return {
        "code": unit.code,
        "filename": unit.filename,
        "timeoutMs": config.timeout_ms,
        "resolveDir": str(block.origin_file.parent.resolve()),
        "dom": uses_dom(block.source_text),
        "allowedModules": list(config.allowed_modules),
    }


def _parse_host_line(stdout: str) -> dict[str, object] | None:
    for line in reversed(stdout.splitlines()):
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(payload, dict) and "success" in payload:
            return payload
    return None


class SandboxExecutor:
    """Runs one code block per fresh `node` process.

    `run_block` is the failure boundary of a block: bundling errors, node
    crashes, timeouts and runtime exceptions all come back as a failing
    `ExecutionResult`.
    """

    def __init__(self, config: ScribeConfig, ctx: RunContext | None = None, bundler: Bundler | None = None) -> None:
        self._config = config
        self._ctx = ctx
        self._bundler = bundler or Bundler(config, ctx)

    def run_block(self, block: CodeBlock) -> ExecutionResult:
        started = time.monotonic()
        try:
            result = self._run(block, started)
        except BundleError as exc:
            result = ExecutionResult.failure(block, clean_error_message(str(exc)), _elapsed_ms(started))
        except OSError as exc:
            result = ExecutionResult.failure(block, f"node runtime not available: {exc}", _elapsed_ms(started))
        if self._ctx is not None and self._ctx.verbose:
            log_event(
                self._ctx,
                "info",
                "sandbox",
                "run-block",
                file=str(block.origin_file),
                line=block.start_line,
                status=result.status.value,
                duration_ms=result.duration_ms,
                timed_out=result.timed_out,
            )
        return result

    def _run(self, block: CodeBlock, started: float) -> ExecutionResult:
        unit = self._bundler.bundle(block)
        cfg = self._config
        proc = run_command(
            [cfg.node, str(HOST_SCRIPT)],
            block.origin_file.parent.resolve(),
            timeout_seconds=(cfg.timeout_ms + KILL_GRACE_MS) / 1000.0,
            input_text=json.dumps(host_payload(unit, block, cfg)),
            ctx=self._ctx,
        )
        if proc.timed_out:
            return ExecutionResult.failure(
                block, f"Timed out after {cfg.timeout_ms}ms", _elapsed_ms(started), timed_out=True
            )
        payload = _parse_host_line(proc.stdout)
        if payload is None:
            message = clean_error_message(proc.stderr) or f"node exited with code {proc.code}"
            return ExecutionResult.failure(block, message, _elapsed_ms(started))
        if payload.get("success") is True:
            return ExecutionResult(
                block=block,
                success=True,
                output=str(payload.get("output") or ""),
                duration_ms=_elapsed_ms(started),
            )
        error = clean_error_message(str(payload.get("error") or "")) or "Unknown error"
        return ExecutionResult.failure(
            block, error, _elapsed_ms(started), timed_out=bool(payload.get("timedOut"))
        )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
