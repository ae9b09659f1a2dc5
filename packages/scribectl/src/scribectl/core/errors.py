from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .exit_codes import ERR_CONFIG, ERR_FAILED


@dataclass
class ScriptError(Exception):
    message: str
    code: int
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message


class PathNotFoundError(ScriptError):
    def __init__(self, path: Path | str) -> None:
        super().__init__(f"Path not found: {path}", ERR_FAILED, "path_not_found")
        self.path = Path(path)


class ConfigError(ScriptError):
    def __init__(self, message: str) -> None:
        super().__init__(message, ERR_CONFIG, "config_error")


class BundleError(Exception):
    """Transpile or module-resolution failure scoped to a single block."""
