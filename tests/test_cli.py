"""
Tests for the Typer command line.
"""
import json

from typer.testing import CliRunner

from py_gaf_validator.cli import app

runner = CliRunner()


def _write_gaf(tmp_path, lines):
    path = tmp_path / "goa_test.gaf"
    path.write_text("!gaf-version: 2.2\n" + "".join(line + "\n" for line in lines))
    return path


def test_validate_command(tmp_path, input_files, make_line):
    ontology_path, context_path = input_files
    annotations = _write_gaf(tmp_path, [make_line(), make_line(term="GO:0000001")])
    output = tmp_path / "out.gaf"
    report_json = tmp_path / "report.json"

    result = runner.invoke(app, [
        "validate",
        "-r", str(ontology_path),
        "-c", str(context_path),
        "-f", str(annotations),
        "-o", str(output),
        "--report-json", str(report_json),
        "--workers", "1",
    ])

    assert result.exit_code == 0, result.output
    assert "Validation Complete" in result.output
    assert output.exists()
    assert json.loads(report_json.read_text())["counts_by_rule"] == {"deprecated-term": 1}


def test_errors_do_not_fail_the_run_by_default(tmp_path, input_files, make_line):
    ontology_path, context_path = input_files
    annotations = _write_gaf(tmp_path, [make_line(references="")])
    args = ["validate", "-r", str(ontology_path), "-c", str(context_path), "-f", str(annotations), "-w", "1"]

    result = runner.invoke(app, args)
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, args + ["--fail-on-error"])
    assert result.exit_code == 1
    assert "Validation Failed" in result.output


def test_fail_on_error_from_environment(tmp_path, input_files, make_line, monkeypatch):
    from py_gaf_validator.config import settings
    monkeypatch.setattr(settings, "fail_on_error", True)
    ontology_path, context_path = input_files
    annotations = _write_gaf(tmp_path, [make_line(references="")])

    result = runner.invoke(app, ["validate", "-r", str(ontology_path), "-c", str(context_path),
                                 "-f", str(annotations), "-w", "1"])
    assert result.exit_code == 1


def test_missing_context_exits_nonzero_without_outputs(tmp_path, input_files, make_line):
    ontology_path, _ = input_files
    annotations = _write_gaf(tmp_path, [make_line()])
    output = tmp_path / "out.gaf"

    result = runner.invoke(app, [
        "validate", "-r", str(ontology_path), "-c", str(tmp_path / "nope.jsonld"),
        "-f", str(annotations), "-o", str(output),
    ])

    assert result.exit_code == 1
    assert "Validation Aborted" in result.output
    assert not output.exists()


def test_tolerant_flag(tmp_path, input_files, make_line, ontology_document):
    _, context_path = input_files
    ontology_document["graphs"][0]["edges"].append(
        {"sub": "http://purl.obolibrary.org/obo/GO_0006915", "pred": "is_a", "obj": "http://purl.obolibrary.org/obo/GO_404"}
    )
    ontology_path = tmp_path / "dangling.json"
    ontology_path.write_text(json.dumps(ontology_document))
    annotations = _write_gaf(tmp_path, [make_line()])
    args = ["validate", "-r", str(ontology_path), "-c", str(context_path), "-f", str(annotations), "-w", "1"]

    assert runner.invoke(app, args).exit_code == 1
    assert runner.invoke(app, args + ["--tolerant"]).exit_code == 0


def test_ontology_summary(input_files):
    ontology_path, _ = input_files
    result = runner.invoke(app, ["ontology-summary", "-r", str(ontology_path)])
    assert result.exit_code == 0, result.output
    assert "biological_process" in result.output
    assert "cellular_component" in result.output


def test_ontology_summary_load_failure(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{}")
    result = runner.invoke(app, ["ontology-summary", "-r", str(path)])
    assert result.exit_code == 1
