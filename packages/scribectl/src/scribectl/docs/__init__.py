"""Document discovery and fenced code block extraction."""

from .extractor import CodeBlock, ExtractionResult, FenceWarning, extract_blocks, parse_markdown
from .filter import filter_testable_blocks, is_opted_out
from .scanner import find_documents

__all__ = [
    "CodeBlock",
    "ExtractionResult",
    "FenceWarning",
    "extract_blocks",
    "filter_testable_blocks",
    "find_documents",
    "is_opted_out",
    "parse_markdown",
]
