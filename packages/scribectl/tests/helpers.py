from __future__ import annotations

import os
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[3]

NODE = shutil.which("node")
requires_node = pytest.mark.skipif(NODE is None, reason="node runtime not installed")


def esbuild_available() -> bool:
    return shutil.which("esbuild") is not None or (ROOT / "node_modules/.bin/esbuild").is_file()


requires_esbuild = pytest.mark.skipif(not esbuild_available(), reason="esbuild not installed")


def run_scribectl(*args: str, cwd: Path | None = None, env: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    merged = os.environ.copy()
    merged["PYTHONPATH"] = str(ROOT / "packages/scribectl/src")
    merged.setdefault("RUN_ID", "pytest-run")
    merged.setdefault("NO_COLOR", "1")
    merged.pop("CI", None)
    merged.pop("GITHUB_ACTIONS", None)
    if env:
        merged.update(env)
    return subprocess.run(
        [sys.executable, "-m", "scribectl", *args],
        cwd=(cwd or ROOT),
        env=merged,
        text=True,
        capture_output=True,
        check=False,
    )


def write_doc(path: Path, *blocks: tuple[str, str]) -> Path:
    """Write a markdown file made of (fence header, body) pairs."""
    parts = ["# Example", ""]
    for header, body in blocks:
        parts.extend([f"```{header}", body.rstrip("\n"), "```", ""])
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(parts), encoding="utf-8")
    return path
