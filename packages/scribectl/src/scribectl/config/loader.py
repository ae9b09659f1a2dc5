"""Layered configuration: defaults, pyproject, scribe.yaml, environment, CLI."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..contracts import CONFIG, validate
from ..core.errors import ConfigError, ScriptError

CONFIG_FILENAMES = ("scribe.yaml", ".scribe.yaml", "scribe.yml", ".scribe.yml")
DEFAULT_LANGUAGES = ("typescript", "ts", "javascript", "js")
DEFAULT_ALLOWED_MODULES = ("assert", "buffer", "events", "path", "querystring", "string_decoder", "url", "util")

_ENV_INT_KEYS = {
    "SCRIBE_TIMEOUT_MS": "timeout_ms",
    "SCRIBE_BUNDLE_TIMEOUT_MS": "bundle_timeout_ms",
    "SCRIBE_CONCURRENCY": "concurrency",
}
_ENV_STR_KEYS = {
    "SCRIBE_NODE": "node",
    "SCRIBE_ESBUILD": "esbuild",
}


def default_concurrency() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class ScribeConfig:
    timeout_ms: int = 5_000
    bundle_timeout_ms: int = 30_000
    concurrency: int = 0
    languages: tuple[str, ...] = DEFAULT_LANGUAGES
    opt_out_marker: str = "nocheck"
    extensions: tuple[str, ...] = (".md", ".mdx")
    skip_dirs: tuple[str, ...] = ("node_modules",)
    allowed_modules: tuple[str, ...] = DEFAULT_ALLOWED_MODULES
    node: str = "node"
    esbuild: str | None = None
    target: str = "node18"
    source: str = "defaults"

    @property
    def effective_concurrency(self) -> int:
        return self.concurrency if self.concurrency > 0 else default_concurrency()

    def merged(self, raw: Mapping[str, Any], source: str) -> "ScribeConfig":
        try:
            validate(CONFIG, dict(raw))
        except ScriptError as exc:
            raise ConfigError(f"invalid configuration in {source}: {exc.message}") from exc
        known = {item.name for item in fields(self)} - {"source"}
        updates: dict[str, Any] = {}
        for key, value in raw.items():
            if key not in known:
                continue
            if isinstance(value, list):
                value = tuple(str(item).lower() if key == "languages" else str(item) for item in value)
            updates[key] = value
        return replace(self, source=source, **updates)


def _read_pyproject(path: Path) -> dict[str, Any]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"unable to parse {path}: {exc}") from exc
    section = data.get("tool", {}).get("scribe", {})
    if not isinstance(section, dict):
        raise ConfigError(f"{path}: [tool.scribe] must be a table")
    return section


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigError(f"unable to parse {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: root must be mapping")
    return data


def discover_config_file(cwd: Path) -> Path | None:
    for name in CONFIG_FILENAMES:
        candidate = cwd / name
        if candidate.is_file():
            return candidate
    return None


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    raw: dict[str, Any] = {}
    for name, key in _ENV_INT_KEYS.items():
        value = env.get(name)
        if value is None or not value.strip():
            continue
        try:
            raw[key] = int(value)
        except ValueError as exc:
            raise ConfigError(f"{name} must be an integer, got `{value}`") from exc
    for name, key in _ENV_STR_KEYS.items():
        value = env.get(name)
        if value:
            raw[key] = value
    return raw


def load_config(
    cwd: Path,
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ScribeConfig:
    config = ScribeConfig()
    pyproject = cwd / "pyproject.toml"
    if config_path is None and pyproject.is_file():
        section = _read_pyproject(pyproject)
        if section:
            config = config.merged(section, str(pyproject))
    if config_path is not None and not config_path.is_file():
        raise ConfigError(f"config file not found: {config_path}")
    yaml_path = config_path or discover_config_file(cwd)
    if yaml_path is not None:
        if yaml_path.suffix == ".toml":
            config = config.merged(_read_pyproject(yaml_path), str(yaml_path))
        else:
            config = config.merged(_read_yaml(yaml_path), str(yaml_path))
    env_raw = _env_overrides(env if env is not None else os.environ)
    if env_raw:
        config = config.merged(env_raw, "environment")
    cli_raw = {key: value for key, value in (overrides or {}).items() if value is not None}
    if cli_raw:
        config = config.merged(cli_raw, "command line")
    return config
