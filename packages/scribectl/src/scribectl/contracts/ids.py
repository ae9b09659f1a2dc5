from __future__ import annotations

CONFIG = "scribe.config.v1"
RUN_REPORT = "scribe.run-report.v1"
