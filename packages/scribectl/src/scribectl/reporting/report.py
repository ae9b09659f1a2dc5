from __future__ import annotations

from pathlib import Path
from xml.etree.ElementTree import Element, SubElement, tostring

from ..contracts import RUN_REPORT, validate
from ..core.context import RunContext
from ..core.serialize import dumps_json
from ..engine.model import RunSummary

SUITE_NAME = "scribectl"


def _status(summary: RunSummary) -> str:
    if summary.error is not None:
        return "error"
    return "pass" if summary.ok else "fail"


def build_report_payload(ctx: RunContext, summary: RunSummary) -> dict[str, object]:
    rows: list[dict[str, object]] = []
    for item, result in zip(summary.items, summary.results):
        rows.append(
            {
                "index": item.original_index,
                "label": item.display_label,
                "file": str(item.block.origin_file),
                "line": item.block.start_line,
                "language": item.block.language,
                "status": result.status.value,
                "duration_ms": result.duration_ms,
                "timed_out": result.timed_out,
                "output": result.output,
                "error": result.error,
            }
        )
    payload: dict[str, object] = {
        "schema_name": RUN_REPORT,
        "schema_version": 1,
        "tool": "scribectl",
        "kind": "run-report",
        "run_id": ctx.run_id,
        "status": _status(summary),
        "target": str(summary.target) if summary.target is not None else "",
        "concurrency": max(1, summary.concurrency),
        "summary": {
            "total": summary.total,
            "passed": summary.passed,
            "failed": summary.failed,
            "documents": summary.documents,
            "duration_ms": summary.duration_ms,
        },
        "results": rows,
    }
    if summary.error is not None:
        payload["error"] = summary.error
    validate(RUN_REPORT, payload)
    return payload


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def write_json_report(path: Path, payload: dict[str, object]) -> None:
    _write_text(path, dumps_json(payload, pretty=True) + "\n")


def write_junitxml(path: Path, summary: RunSummary) -> None:
    suite = Element(
        "testsuite",
        name=SUITE_NAME,
        tests=str(summary.total),
        failures=str(summary.failed if summary.error is None else 0),
        errors=str(1 if summary.error is not None else 0),
        time=f"{summary.duration_ms / 1000.0:.6f}",
    )
    for item, result in zip(summary.items, summary.results):
        case = SubElement(
            suite,
            "testcase",
            classname=f"{SUITE_NAME}.{item.block.origin_file.stem}",
            name=item.display_label,
            time=f"{result.duration_ms / 1000.0:.6f}",
        )
        if not result.success:
            failure = SubElement(case, "failure", message=result.error or "failed")
            failure.text = result.error or "failed"
        elif result.output:
            out = SubElement(case, "system-out")
            out.text = result.output
    if summary.error is not None:
        SubElement(suite, "error", message=summary.error).text = summary.error
    _write_text(path, tostring(suite, encoding="unicode"))
