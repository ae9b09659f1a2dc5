from __future__ import annotations

import os
import re
import shutil
from collections.abc import Iterable
from pathlib import Path

from ..config import ScribeConfig
from ..core.context import RunContext
from ..core.errors import BundleError
from ..core.process import run_command
from ..docs.extractor import CodeBlock
from .denoise import clean_error_message
from .model import BundledUnit

TYPESCRIPT_LANGUAGES = frozenset({"ts", "typescript"})
ESBUILD_ENV = "SCRIBE_ESBUILD"

_MODULE_SYNTAX_RE = re.compile(
    r"""
    ^\s*import\s+(?:type\s+)?[\w*{}\s,$]+\s+from\s*['"]   # import x from '...'
    | ^\s*import\s*['"]                                   # import '...'
    | ^\s*export\s+(?:type\s+)?(?:\*|\{[^}]*\})(?:\s+as\s+\w+)?\s+from\s*['"]
    | \brequire\s*\(\s*['"]
    | \bimport\s*\(\s*['"]
    """,
    re.MULTILINE | re.VERBOSE,
)
_ESM_SYNTAX_RE = re.compile(
    r"""
    ^\s*import\s+(?:type\s+)?[\w*{}\s,$]+\s+from\s*['"]
    | ^\s*import\s*['"]
    | ^\s*export\s+(?:type\s+)?(?:\*|\{[^}]*\})(?:\s+as\s+\w+)?\s+from\s*['"]
    | \bimport\s*\(\s*['"]
    """,
    re.MULTILINE | re.VERBOSE,
)
_REQUIRE_RE = re.compile(r"""\brequire\s*\(\s*['"]([^'"]+)['"]\s*\)""")


def is_typescript(block: CodeBlock) -> bool:
    return block.language.lower() in TYPESCRIPT_LANGUAGES


def has_module_syntax(source: str) -> bool:
    return _MODULE_SYNTAX_RE.search(source) is not None


def required_specifiers(source: str) -> list[str]:
    return _REQUIRE_RE.findall(source)


def needs_bundling(source: str, allowed_modules: Iterable[str] = ()) -> bool:
    """True when module references must be resolved by esbuild.

    Blocks whose only module references are `require` calls for `node:` or
    allow-listed built-ins run as-is; the sandbox loader serves those.
    """
    if not has_module_syntax(source):
        return False
    if _ESM_SYNTAX_RE.search(source) is not None:
        return True
    allowed = set(allowed_modules)
    return any(not spec.startswith("node:") and spec not in allowed for spec in required_specifiers(source))


def locate_esbuild(start_dir: Path, configured: str | None = None) -> str | None:
    explicit = configured or os.environ.get(ESBUILD_ENV)
    if explicit:
        return shutil.which(explicit) or (explicit if Path(explicit).is_file() else None)
    names = ("esbuild.cmd", "esbuild") if os.name == "nt" else ("esbuild",)
    cur = start_dir.resolve()
    while True:
        for name in names:
            candidate = cur / "node_modules" / ".bin" / name
            if candidate.is_file():
                return str(candidate)
        if cur.parent == cur:
            break
        cur = cur.parent
    return shutil.which("esbuild")


class Bundler:
    """Turns one block into a single CommonJS unit runnable by the sandbox host."""

    def __init__(self, config: ScribeConfig, ctx: RunContext | None = None) -> None:
        self._config = config
        self._ctx = ctx

    def command_for(self, esbuild: str, block: CodeBlock, bundle: bool) -> list[str]:
        cmd = [
            esbuild,
            f"--loader={'ts' if is_typescript(block) else 'js'}",
            "--format=cjs",
            f"--target={self._config.target}",
            "--log-level=error",
            "--charset=utf8",
            f"--sourcefile={block.origin_file.name}:{block.start_line}",
        ]
        if bundle:
            cmd.extend(["--bundle", "--platform=node"])
        return cmd

    def bundle(self, block: CodeBlock) -> BundledUnit:
        filename = f"{block.origin_file.name}:{block.start_line}"
        transpile = is_typescript(block)
        bundle = needs_bundling(block.source_text, self._config.allowed_modules)
        if not transpile and not bundle:
            return BundledUnit(code=block.source_text, filename=filename)

        resolve_dir = block.origin_file.parent.resolve()
        esbuild = locate_esbuild(resolve_dir, self._config.esbuild)
        if esbuild is None:
            raise BundleError(f"esbuild executable not found; install esbuild or set {ESBUILD_ENV}")
        try:
            result = run_command(
                self.command_for(esbuild, block, bundle),
                resolve_dir,
                timeout_seconds=self._config.bundle_timeout_ms / 1000.0,
                input_text=block.source_text,
                ctx=self._ctx,
            )
        except OSError as exc:
            raise BundleError(f"unable to start esbuild: {exc}") from exc
        if result.timed_out:
            raise BundleError(f"Bundling timed out after {self._config.bundle_timeout_ms}ms")
        if result.code != 0:
            raise BundleError(clean_error_message(result.stderr) or f"esbuild exited with code {result.code}")
        return BundledUnit(code=result.stdout, filename=filename, transpiled=transpile, bundled=bundle)
