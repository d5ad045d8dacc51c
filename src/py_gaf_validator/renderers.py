# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
Turns a finalized Report into JSON and Markdown, and writes report files.
"""
from collections import defaultdict
from pathlib import Path
from typing import Dict, List

from rich.console import Console
from rich.table import Table

from .models import Report, Severity, ValidationIssue
from .ontology import OntologyGraph

console = Console()


def render_json(report: Report) -> str:
    return report.model_dump_json(indent=2)


def render_markdown(report: Report) -> str:
    """Markdown summary followed by the sampled issues of each rule, rules sorted by id."""
    lines = [
        f"## {report.name} Report",
        f"* lines: {report.total_records}",
        f"* skipped: {report.malformed_records}",
        f"* valid: {report.total_records - report.malformed_records}",
        f"* errors: {report.error_count}",
        f"* warnings: {report.warning_count}",
        "",
    ]

    by_rule: Dict[str, List[ValidationIssue]] = defaultdict(list)
    for issue in report.samples:
        by_rule[issue.rule_id].append(issue)

    for rule_id in sorted(report.counts_by_rule):
        shown = len(by_rule[rule_id])
        total = report.counts_by_rule[rule_id]
        lines.append(f"### {rule_id}")
        lines.append("")
        if shown < total:
            lines.append(f"_Showing {shown} of {total} issues._")
            lines.append("")
        for issue in by_rule[rule_id]:
            field = f" ({issue.field})" if issue.field else ""
            lines.append(f"* {issue.severity.value} - line {issue.line_number}{field}: {issue.message}")
        lines.append("")

    return "\n".join(lines)


def summary_table(report: Report) -> Table:
    """Per-rule counts for the terminal."""
    table = Table(title=f"{report.name} validation summary")
    table.add_column("Rule", style="cyan")
    table.add_column("Issues", justify="right")
    for rule_id, count in sorted(report.counts_by_rule.items()):
        table.add_row(rule_id, str(count))
    table.add_section()
    table.add_row("[red]Errors[/red]", str(report.counts_by_severity.get(Severity.ERROR, 0)))
    table.add_row("[yellow]Warnings[/yellow]", str(report.counts_by_severity.get(Severity.WARNING, 0)))
    table.add_row("Records", str(report.total_records))
    table.add_row("Malformed", str(report.malformed_records))
    return table


def _write(path: Path, text: str):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    console.log(f"Wrote report to {path}")


def write_json_report(report: Report, path: Path):
    _write(path, render_json(report))


def write_markdown_report(report: Report, path: Path):
    _write(path, render_markdown(report) + "\n")


def ontology_table(ontology: OntologyGraph) -> Table:
    """Node and deprecated-node counts per namespace."""
    table = Table(title="Ontology summary")
    table.add_column("Namespace", style="cyan")
    table.add_column("Nodes", justify="right")
    table.add_column("Deprecated", justify="right")
    for namespace in ontology.namespaces():
        members = ontology.nodes_in_namespace(namespace)
        deprecated = sum(1 for term_id in members if ontology.lookup(term_id).deprecated)
        table.add_row(namespace, str(len(members)), str(deprecated))
    unassigned = sum(1 for node in ontology if node.namespace is None)
    if unassigned:
        table.add_row("[dim](none)[/dim]", str(unassigned), str(sum(1 for node in ontology if node.namespace is None and node.deprecated)))
    table.add_section()
    table.add_row("Total", str(len(ontology)), str(sum(1 for node in ontology if node.deprecated)))
    table.add_row("Edges", str(ontology.edge_count), "")
    return table
