from __future__ import annotations

import re
from collections.abc import Iterable

from .extractor import CodeBlock

TESTABLE_LANGUAGES = ("typescript", "ts", "javascript", "js")
OPT_OUT_MARKER = "nocheck"


def is_opted_out(info_string: str, marker: str = OPT_OUT_MARKER) -> bool:
    return re.search(rf"(?<![\w-]){re.escape(marker)}(?![\w-])", info_string) is not None


def filter_testable_blocks(
    blocks: Iterable[CodeBlock],
    languages: Iterable[str] = TESTABLE_LANGUAGES,
    opt_out: str = OPT_OUT_MARKER,
) -> list[CodeBlock]:
    allowed = {lang.lower() for lang in languages}
    return [
        block
        for block in blocks
        if block.language.lower() in allowed and not is_opted_out(block.info_string, opt_out)
    ]
