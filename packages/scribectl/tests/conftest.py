from __future__ import annotations

import socket
from pathlib import Path

import pytest
from hypothesis import settings
from hypothesis.database import DirectoryBasedExampleDatabase

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

_ROOT = Path(__file__).resolve().parents[3]
_HYPOTHESIS_DB = _ROOT / "artifacts/scribectl/.hypothesis/examples"
_HYPOTHESIS_DB.parent.mkdir(parents=True, exist_ok=True)
settings.register_profile("scribe", database=DirectoryBasedExampleDatabase(_HYPOTHESIS_DB), deadline=None)
settings.load_profile("scribe")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture(autouse=True)
def clean_scribe_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CI", "GITHUB_ACTIONS", "SCRIBE_TIMEOUT_MS", "SCRIBE_BUNDLE_TIMEOUT_MS", "SCRIBE_CONCURRENCY", "SCRIBE_NODE", "SCRIBE_ESBUILD", "NO_COLOR"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("RUN_ID", "pytest-run")


@pytest.fixture
def docs_tree(tmp_path: Path) -> Path:
    root = tmp_path / "docs"
    (root / "guide").mkdir(parents=True)
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / ".cache").mkdir()
    (root / "index.md").write_text("# Index\n\n```js\nconsole.log('index')\n```\n", encoding="utf-8")
    (root / "guide" / "intro.mdx").write_text("```ts\nconst n: number = 1\n```\n", encoding="utf-8")
    (root / "guide" / "notes.txt").write_text("```js\nthrow new Error('ignored')\n```\n", encoding="utf-8")
    (root / "node_modules" / "pkg" / "README.md").write_text("```js\n1\n```\n", encoding="utf-8")
    (root / ".cache" / "hidden.md").write_text("```js\n1\n```\n", encoding="utf-8")
    return root
