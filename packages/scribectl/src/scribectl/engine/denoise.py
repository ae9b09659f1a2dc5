from __future__ import annotations

import re

HOST_SCRIPT_NAME = "sandbox_host.js"

_INLINE_MARKERS = (
    re.compile(r"file://\S+\[eval\d*\]:\d+"),
    re.compile(r"\[stdin\]:\d+"),
)
_NOISE_MARKERS = ("node:internal", "node:vm", "file://", HOST_SCRIPT_NAME)
_STACK_FRAME_RE = re.compile(r"^\s*at\s")
_ESBUILD_PREFIX_RE = re.compile(r"^(?:✘\s*)?\[ERROR\]\s*")


def clean_error_message(error: str) -> str:
    """Reduce an error dump to its first meaningful line."""
    text = error
    for pattern in _INLINE_MARKERS:
        text = pattern.sub("", text)
    for line in text.splitlines():
        if any(marker in line for marker in _NOISE_MARKERS) or _STACK_FRAME_RE.match(line):
            continue
        stripped = _ESBUILD_PREFIX_RE.sub("", line.strip())
        if stripped:
            return stripped
    return ""
