from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

FENCE = "```"
_OPENING_RE = re.compile(r"^```(\w*)(.*)$", re.ASCII)


@dataclass(frozen=True)
class CodeBlock:
    language: str
    source_text: str
    origin_file: Path
    start_line: int
    info_string: str = ""


@dataclass(frozen=True)
class FenceWarning:
    origin_file: Path
    start_line: int
    info_string: str = ""

    @property
    def message(self) -> str:
        return f"unterminated code fence at {self.origin_file}:{self.start_line}"


@dataclass(frozen=True)
class ExtractionResult:
    blocks: tuple[CodeBlock, ...] = ()
    warnings: tuple[FenceWarning, ...] = field(default_factory=tuple)


def parse_markdown(text: str, origin_file: Path) -> ExtractionResult:
    """Extract fenced blocks from one document.

    An opening fence is a line starting with three backticks followed by an
    optional word-character language tag and a free-form info string; the
    block closes at the next line starting with three backticks. Fences left
    open at end of document yield a `FenceWarning` instead of a block.
    """
    blocks: list[CodeBlock] = []
    warnings: list[FenceWarning] = []
    lines = text.split("\n")
    idx = 0
    while idx < len(lines):
        match = _OPENING_RE.match(lines[idx].rstrip("\r"))
        if match is None:
            idx += 1
            continue
        start_line = idx + 1
        language = (match.group(1) or "text").lower()
        info = match.group(2).strip()
        close = next((pos for pos in range(idx + 1, len(lines)) if lines[pos].startswith(FENCE)), None)
        if close is None:
            warnings.append(FenceWarning(origin_file=origin_file, start_line=start_line, info_string=info))
            idx += 1
            continue
        body = lines[idx + 1 : close]
        blocks.append(
            CodeBlock(
                language=language,
                source_text="\n".join(body) + "\n" if body else "",
                origin_file=origin_file,
                start_line=start_line,
                info_string=info,
            )
        )
        idx = close + 1
    return ExtractionResult(blocks=tuple(blocks), warnings=tuple(warnings))


def _read_utf8(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def extract_blocks(files: Iterable[Path], read: Callable[[Path], str] = _read_utf8) -> ExtractionResult:
    blocks: list[CodeBlock] = []
    warnings: list[FenceWarning] = []
    for path in files:
        result = parse_markdown(read(path), path)
        blocks.extend(result.blocks)
        warnings.extend(result.warnings)
    return ExtractionResult(blocks=tuple(blocks), warnings=tuple(warnings))
