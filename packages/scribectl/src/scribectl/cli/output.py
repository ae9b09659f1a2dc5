"""CLI payload output helpers."""

from __future__ import annotations

from collections.abc import Mapping

from ..core.env import getenv
from ..core.serialize import dumps_json


def emit(payload: dict[str, object], as_json: bool) -> None:
    print(dumps_json(payload, pretty=not as_json))


def color_enabled(env: Mapping[str, str] | None = None) -> bool:
    if env is not None:
        return not env.get("NO_COLOR")
    return not getenv("NO_COLOR")


def render_error(*, as_json: bool, message: str, code: int) -> str:
    if as_json:
        return dumps_json(
            {
                "schema_name": "scribe.error.v1",
                "schema_version": 1,
                "tool": "scribectl",
                "status": "error",
                "errors": [{"code": code, "message": message}],
            },
            pretty=False,
        )
    return message
