from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from ..core.errors import PathNotFoundError

DEFAULT_EXTENSIONS = (".md", ".mdx")
DEFAULT_SKIP_DIRS = ("node_modules",)


def _walk(directory: Path, suffixes: frozenset[str], skip_dirs: frozenset[str], out: list[Path]) -> None:
    for entry in sorted(directory.iterdir(), key=lambda item: item.name):
        if entry.is_dir():
            if entry.name.startswith(".") or entry.name in skip_dirs:
                continue
            _walk(entry, suffixes, skip_dirs, out)
        elif entry.is_file() and entry.suffix in suffixes:
            out.append(entry)


def find_documents(
    path: Path,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
) -> list[Path]:
    """Return documentation files under `path` in deterministic discovery order.

    A file path is returned as-is; a directory is walked depth-first over
    name-sorted entries, skipping hidden and dependency directories.
    """
    if not path.exists():
        raise PathNotFoundError(path)
    if path.is_file():
        return [path]
    found: list[Path] = []
    _walk(path, frozenset(extensions), frozenset(skip_dirs), found)
    return found


def display_base(path: Path) -> Path:
    return path.parent if path.is_file() else path


def relative_label(file: Path, base: Path) -> str:
    try:
        return file.relative_to(base).as_posix()
    except ValueError:
        return file.as_posix()
