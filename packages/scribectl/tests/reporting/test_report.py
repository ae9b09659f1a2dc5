from __future__ import annotations

import json
from pathlib import Path
from xml.etree.ElementTree import fromstring

from scribectl.contracts import RUN_REPORT, validate_file
from scribectl.core.context import RunContext
from scribectl.docs.extractor import CodeBlock
from scribectl.engine.model import ExecutionResult, RunSummary, WorkItem
from scribectl.reporting.report import build_report_payload, write_json_report, write_junitxml


def _summary(tmp_path: Path) -> RunSummary:
    doc = tmp_path / "guide.md"
    items = []
    results = []
    for idx, ok in enumerate([True, False]):
        block = CodeBlock(language="ts", source_text="1\n", origin_file=doc, start_line=3 + idx * 4)
        items.append(WorkItem(block=block, display_label=f"guide.md:{block.start_line}", original_index=idx))
        results.append(
            ExecutionResult(block=block, success=True, output="hi\n", duration_ms=4)
            if ok
            else ExecutionResult.failure(block, "Error: X", duration_ms=6)
        )
    return RunSummary.from_results(
        tuple(items), tuple(results), documents=1, duration_ms=12, target=tmp_path, concurrency=2
    )


def _ctx(tmp_path: Path) -> RunContext:
    return RunContext.from_args(run_id="report-run", cwd=tmp_path)


def test_payload_matches_schema_and_order(tmp_path: Path) -> None:
    payload = build_report_payload(_ctx(tmp_path), _summary(tmp_path))
    assert payload["schema_name"] == RUN_REPORT
    assert payload["status"] == "fail"
    assert payload["summary"] == {"total": 2, "passed": 1, "failed": 1, "documents": 1, "duration_ms": 12}
    rows = payload["results"]
    assert [row["label"] for row in rows] == ["guide.md:3", "guide.md:7"]
    assert rows[1]["error"] == "Error: X"
    out = tmp_path / "out" / "report.json"
    write_json_report(out, payload)
    validate_file(RUN_REPORT, out)
    assert json.loads(out.read_text(encoding="utf-8"))["run_id"] == "report-run"


def test_aborted_run_reports_error_status(tmp_path: Path) -> None:
    summary = RunSummary.aborted(tmp_path / "missing", "Path not found: missing")
    payload = build_report_payload(_ctx(tmp_path), summary)
    assert payload["status"] == "error"
    assert payload["error"] == "Path not found: missing"
    assert payload["summary"]["failed"] == 1
    assert payload["results"] == []


def test_junit_xml_has_one_case_per_block(tmp_path: Path) -> None:
    out = tmp_path / "junit.xml"
    write_junitxml(out, _summary(tmp_path))
    suite = fromstring(out.read_text(encoding="utf-8"))
    assert suite.tag == "testsuite"
    assert suite.get("name") == "scribectl"
    assert suite.get("tests") == "2"
    assert suite.get("failures") == "1"
    cases = suite.findall("testcase")
    assert [case.get("name") for case in cases] == ["guide.md:3", "guide.md:7"]
    assert cases[0].find("failure") is None
    failure = cases[1].find("failure")
    assert failure is not None and failure.get("message") == "Error: X"
