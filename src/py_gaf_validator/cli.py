# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
from pathlib import Path
from typing import Optional
import typer
from rich.console import Console
from rich.panel import Panel

# We wrap the settings import in a try-except block to provide a nicer
# error message if an environment variable holds an invalid value.
try:
    from .config import settings
except Exception as e:
    console = Console()
    console.print(Panel(
        f"[bold red]Configuration Error:[/bold red]\n{e}\n\nPlease check your .env file and any [bold cyan]PYGAFVALIDATOR_*[/bold cyan] environment variables.",
        title="[bold red]Initialization Failed[/bold red]",
        border_style="red"
    ))
    raise SystemExit(1)

from .errors import GafValidatorError
from .ontology import load_ontology
from .pipeline import ValidationPipeline
from .renderers import ontology_table, summary_table


app = typer.Typer(
    name="py-gaf-validator",
    help="Validate GO annotation (GAF) files against an ontology and report the issues found."
)
console = Console()


@app.command(name="validate", help="Validate a GAF file, writing a corrected file and reports.")
def validate(
    ontology: Path = typer.Option(..., "--ontology", "-r", help="Ontology in OBO Graphs JSON format (e.g. go.json)."),
    context: Path = typer.Option(..., "--context", "-c", help="JSON-LD prefix context (e.g. go_context.jsonld)."),
    annotations: Path = typer.Option(..., "--annotations", "-f", help="GAF 2.1 or 2.2 annotation file."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Corrected GAF output. Defaults to <name>.corrected.gaf beside the input."
    ),
    report_md: Optional[Path] = typer.Option(None, "--report-md", help="Write a Markdown report to this path."),
    report_json: Optional[Path] = typer.Option(None, "--report-json", help="Write a JSON report to this path."),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", min=1, help="Worker processes for validation. 1 validates in this process."
    ),
    tolerant: bool = typer.Option(
        False, "--tolerant", help="Drop ontology edges that reference unknown nodes instead of failing."
    ),
    fail_on_error: bool = typer.Option(
        False, "--fail-on-error", help="Exit with status 1 if any Error issue was recorded."
    )
):
    """
    Loads the context and ontology, validates every annotation line in order,
    and writes the corrected annotations. Validation issues are data: the exit
    status is 0 unless loading fails or --fail-on-error is given.
    """
    console.print(Panel(f"[bold cyan]Validating {annotations}[/bold cyan]", border_style="cyan"))

    overrides = {}
    if workers is not None:
        overrides["max_parallel_processes"] = workers
    if tolerant:
        overrides["ontology_load_policy"] = "tolerant"
    if fail_on_error:
        overrides["fail_on_error"] = True
    run_settings = settings.model_copy(update=overrides)

    try:
        pipeline = ValidationPipeline(run_settings)
        report = pipeline.run(
            ontology, context, annotations, output_path=output, report_md=report_md, report_json=report_json
        )
    except (GafValidatorError, OSError) as e:
        console.print(Panel(f"[bold red]{e}", title="[bold red]Validation Aborted[/bold red]", border_style="red"))
        raise typer.Exit(code=1)
    except Exception as e:
        console.print_exception()
        console.print(Panel(f"[bold red]An unexpected error occurred: {e}", title="[bold red]Error[/bold red]"))
        raise typer.Exit(code=1)

    console.print(summary_table(report))
    if run_settings.fail_on_error and report.error_count:
        console.print(Panel(
            f"[bold red]{report.error_count} error(s) recorded.[/bold red]",
            title="[bold red]Validation Failed[/bold red]",
            border_style="red"
        ))
        raise typer.Exit(code=1)

    console.print(Panel(
        f"[bold green]Validated {report.total_records} records "
        f"({report.error_count} errors, {report.warning_count} warnings).[/bold green]",
        title="[bold green]Validation Complete[/bold green]"
    ))


@app.command(name="ontology-summary", help="Load an ontology and show node counts per namespace.")
def ontology_summary(
    ontology: Path = typer.Option(..., "--ontology", "-r", help="Ontology in OBO Graphs JSON format."),
    tolerant: bool = typer.Option(
        False, "--tolerant", help="Drop ontology edges that reference unknown nodes instead of failing."
    )
):
    policy = "tolerant" if tolerant else settings.ontology_load_policy
    try:
        graph = load_ontology(ontology, policy=policy, replacement_depth_bound=settings.replacement_depth_bound)
    except (GafValidatorError, OSError) as e:
        console.print(Panel(f"[bold red]{e}", title="[bold red]Ontology Load Failed[/bold red]", border_style="red"))
        raise typer.Exit(code=1)

    console.print(ontology_table(graph))
    if graph.load_warnings:
        console.print(f"[yellow]{len(graph.load_warnings)} load warning(s).[/yellow]")


if __name__ == "__main__":
    app()
