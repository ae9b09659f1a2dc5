"""Centralized environment variable helpers."""

from __future__ import annotations

import os
from collections.abc import Mapping

_TRUTHY = {"1", "true", "yes"}


def getenv(name: str, default: str | None = None) -> str | None:
    return os.environ.get(name, default)


def ci_present(env: Mapping[str, str] | None = None) -> bool:
    source = os.environ if env is None else env
    if str(source.get("CI", "")).strip().lower() in _TRUTHY:
        return True
    return str(source.get("GITHUB_ACTIONS", "")).strip().lower() == "true"
