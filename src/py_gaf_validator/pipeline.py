# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
import os
from pathlib import Path
from typing import Iterable, Iterator, Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn

from .config import Settings, settings as default_settings
from .context import load_context
from .engine import ExecutorFactory, ValidationEngine
from .models import Report
from .ontology import load_ontology
from .renderers import write_json_report, write_markdown_report
from .report import ReportAggregator
from .rules import build_rules

console = Console()


def default_output_path(annotations_path: Path) -> Path:
    """`goa_human.gaf` -> `goa_human.corrected.gaf`"""
    annotations_path = Path(annotations_path)
    return annotations_path.with_name(f"{annotations_path.stem}.corrected{annotations_path.suffix}")


class ValidationPipeline:
    """
    Loads the prefix context and the ontology, then streams an annotation file
    through the validation engine, writing the corrected file and the reports.

    Load errors propagate before any output file is opened.
    """

    def __init__(self, settings: Optional[Settings] = None, executor_factory: Optional[ExecutorFactory] = None):
        self.settings = settings or default_settings
        self.executor_factory = executor_factory

    def _track(self, lines: Iterable[bytes], progress: Progress, task) -> Iterator[bytes]:
        for line in lines:
            progress.update(task, advance=len(line))
            yield line

    def run(
        self,
        ontology_path: Path,
        context_path: Path,
        annotations_path: Path,
        output_path: Optional[Path] = None,
        report_md: Optional[Path] = None,
        report_json: Optional[Path] = None
    ) -> Report:
        console.log("Starting annotation validation...")
        annotations_path = Path(annotations_path)

        # Step 1: Load the read-only inputs. Any failure here aborts the run.
        context = load_context(context_path)
        ontology = load_ontology(
            ontology_path,
            policy=self.settings.ontology_load_policy,
            replacement_depth_bound=self.settings.replacement_depth_bound
        )
        if not annotations_path.is_file():
            raise FileNotFoundError(f"Annotation file not found: {annotations_path}")

        engine_kwargs = {}
        if self.executor_factory is not None:
            engine_kwargs["executor_factory"] = self.executor_factory
        engine = ValidationEngine(
            ontology,
            context,
            rules=build_rules(self.settings),
            max_workers=self.settings.max_parallel_processes,
            chunk_size=self.settings.chunk_size,
            **engine_kwargs
        )
        aggregator = ReportAggregator(annotations_path.name, sample_cap=self.settings.sample_cap)

        # Step 2: Stream the annotations in input order into the output file and the aggregator
        output_path = Path(output_path) if output_path else default_output_path(annotations_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        console.log(f"Validating {annotations_path} with {engine.max_workers} worker(s)...")

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            "[progress.percentage]{task.percentage:>3.0f}%",
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task = progress.add_task(f"Validating {annotations_path.name}...", total=os.path.getsize(annotations_path))
            # Raw bytes; the engine decodes line by line
            with open(annotations_path, "rb") as source, \
                    open(output_path, "w", encoding="utf-8", newline="\n") as sink:
                for result in engine.iter_results(self._track(source, progress, task)):
                    if result.output is not None:
                        sink.write(result.output)
                        sink.write("\n")
                    aggregator.add_line_result(result)

        if engine.gaf_version:
            console.log(f"Input declared gaf-version {engine.gaf_version}.")
        console.log(f"Wrote corrected annotations to {output_path}")

        # Step 3: Reports
        report = aggregator.finalize()
        if report_json:
            write_json_report(report, report_json)
        if report_md:
            write_markdown_report(report, report_md)

        console.log(
            f"[green]Validated {report.total_records} records: "
            f"{report.error_count} errors, {report.warning_count} warnings.[/green]"
        )
        return report
