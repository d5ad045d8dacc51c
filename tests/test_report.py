"""
Tests for the ReportAggregator and the report renderers.
"""
import json

from py_gaf_validator.engine import LineKind, LineResult
from py_gaf_validator.models import Severity, ValidationIssue
from py_gaf_validator.renderers import render_json, render_markdown, write_json_report, write_markdown_report
from py_gaf_validator.report import ReportAggregator


def _issue(rule_id, line_number, severity=Severity.ERROR):
    return ValidationIssue(rule_id=rule_id, severity=severity, line_number=line_number, field="term", message=f"issue on {line_number}")


def test_counts_and_capped_samples():
    aggregator = ReportAggregator("goa_test.gaf", sample_cap=2)
    for line_number in range(1, 6):
        aggregator.count_record()
        aggregator.record(_issue("term-existence", line_number))
    aggregator.record(_issue("deprecated-term", 6, Severity.WARNING))

    report = aggregator.finalize()

    assert report.name == "goa_test.gaf"
    assert report.total_records == 5
    assert report.counts_by_rule == {"term-existence": 5, "deprecated-term": 1}
    assert report.counts_by_severity == {Severity.ERROR: 5, Severity.WARNING: 1}
    # Capped per rule, arrival order kept
    assert [(i.rule_id, i.line_number) for i in report.samples] == [
        ("term-existence", 1), ("term-existence", 2), ("deprecated-term", 6)
    ]


def test_add_line_result_counts_by_kind():
    aggregator = ReportAggregator()
    malformed = _issue("malformed-record", 3)
    aggregator.add_line_result(LineResult(line_number=1, kind=LineKind.COMMENT, output="!comment"))
    aggregator.add_line_result(LineResult(line_number=2, kind=LineKind.RECORD, output="..."))
    aggregator.add_line_result(LineResult(line_number=3, kind=LineKind.MALFORMED, issues=(malformed,)))
    aggregator.add_line_result(LineResult(line_number=4, kind=LineKind.BLANK))

    report = aggregator.finalize()
    assert report.total_records == 2
    assert report.malformed_records == 1
    assert report.counts_by_rule == {"malformed-record": 1}
    assert report.error_count == 1
    assert report.warning_count == 0


def test_empty_report_has_zero_severity_counts():
    report = ReportAggregator("empty").finalize()
    assert report.counts_by_severity == {Severity.ERROR: 0, Severity.WARNING: 0}
    assert report.samples == ()


def test_markdown_rendering():
    aggregator = ReportAggregator("goa_test.gaf", sample_cap=1)
    for line_number in (1, 2):
        aggregator.count_record()
        aggregator.record(_issue("term-existence", line_number))
    aggregator.count_malformed()
    aggregator.record(_issue("malformed-record", 3))

    markdown = render_markdown(aggregator.finalize())

    assert markdown.startswith("## goa_test.gaf Report\n")
    assert "* lines: 3" in markdown
    assert "* skipped: 1" in markdown
    assert "* valid: 2" in markdown
    # Rule sections sorted by rule id
    assert markdown.index("### malformed-record") < markdown.index("### term-existence")
    assert "_Showing 1 of 2 issues._" in markdown
    assert "* Error - line 1 (term): issue on 1" in markdown
    assert "issue on 2" not in markdown


def test_json_rendering_round_trips_counts():
    aggregator = ReportAggregator("goa_test.gaf")
    aggregator.count_record()
    aggregator.record(_issue("reference-presence", 1))
    data = json.loads(render_json(aggregator.finalize()))
    assert data["total_records"] == 1
    assert data["counts_by_rule"] == {"reference-presence": 1}
    assert data["counts_by_severity"] == {"Error": 1, "Warning": 0}
    assert data["samples"][0]["line_number"] == 1


def test_report_writers(tmp_path):
    report = ReportAggregator("goa_test.gaf").finalize()
    write_json_report(report, tmp_path / "out" / "report.json")
    write_markdown_report(report, tmp_path / "out" / "report.md")
    assert json.loads((tmp_path / "out" / "report.json").read_text())["name"] == "goa_test.gaf"
    assert (tmp_path / "out" / "report.md").read_text().startswith("## goa_test.gaf Report")
