from __future__ import annotations

from pathlib import Path

import pytest

from scribectl.core.errors import PathNotFoundError
from scribectl.docs.scanner import display_base, find_documents, relative_label


def test_directory_scan_is_sorted_and_skips_hidden_and_dependencies(docs_tree: Path) -> None:
    found = find_documents(docs_tree)
    assert [path.relative_to(docs_tree).as_posix() for path in found] == ["guide/intro.mdx", "index.md"]


def test_single_file_is_returned_regardless_of_extension(docs_tree: Path) -> None:
    target = docs_tree / "guide" / "notes.txt"
    assert find_documents(target) == [target]


def test_missing_path_raises(tmp_path: Path) -> None:
    with pytest.raises(PathNotFoundError) as excinfo:
        find_documents(tmp_path / "missing")
    assert "Path not found" in excinfo.value.message
    assert excinfo.value.path == tmp_path / "missing"


def test_configurable_extensions_and_skip_dirs(docs_tree: Path) -> None:
    found = find_documents(docs_tree, extensions=(".txt", ".md"), skip_dirs=("guide",))
    assert [path.relative_to(docs_tree).as_posix() for path in found] == ["index.md", "node_modules/pkg/README.md"]


def test_labels_are_relative_to_scanned_directory(docs_tree: Path) -> None:
    intro = docs_tree / "guide" / "intro.mdx"
    assert relative_label(intro, display_base(docs_tree)) == "guide/intro.mdx"
    assert relative_label(intro, display_base(intro)) == "intro.mdx"


def test_extension_match_is_case_sensitive(tmp_path: Path) -> None:
    (tmp_path / "README.MD").write_text("```js\n1\n```\n", encoding="utf-8")
    (tmp_path / "guide.md").write_text("```js\n1\n```\n", encoding="utf-8")
    assert [path.name for path in find_documents(tmp_path)] == ["guide.md"]
