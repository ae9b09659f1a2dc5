"""JSON Schema contracts for configuration files and run reports."""

from .ids import CONFIG, RUN_REPORT
from .validate import validate, validate_file

__all__ = ["CONFIG", "RUN_REPORT", "validate", "validate_file"]
