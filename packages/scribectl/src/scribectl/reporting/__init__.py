"""Progress output and run report artifacts."""

from .report import build_report_payload, write_json_report, write_junitxml
from .reporter import ItemState, Reporter, ReporterState, detect_interactive

__all__ = [
    "ItemState",
    "Reporter",
    "ReporterState",
    "build_report_payload",
    "detect_interactive",
    "write_json_report",
    "write_junitxml",
]
