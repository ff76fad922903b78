"""evalbench compare -- A/B comparison of two stored runs."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from evalbench.cli.common import load_suite_or_exit, open_project
from evalbench.cli.output import output_json, render_comparison
from evalbench.cli.report_cmd import select_results
from evalbench.evaluation.aggregation import aggregate, compare_reports

console = Console(stderr=True)


def compare(
    baseline: str = typer.Argument(..., help="Baseline run ID (or prompt version with --by-version)"),
    candidate: str = typer.Argument(..., help="Candidate run ID (or prompt version with --by-version)"),
    by_version: bool = typer.Option(
        False, "--by-version", help="Treat BASELINE and CANDIDATE as prompt versions instead of run IDs"
    ),
    suite_path: Optional[str] = typer.Option(
        None, "--suite", help="Suite whose rubric defines the metrics and their kinds"
    ),
    include_failed: bool = typer.Option(False, "--include-failed", help="Include results whose scoring failed"),
    format_json: bool = typer.Option(False, "--json", help="Output pure JSON to stdout"),
) -> None:
    """Compare the aggregated metrics of two runs or prompt versions."""
    rubric = None
    if suite_path is not None:
        rubric = load_suite_or_exit(Path(suite_path), console).rubric

    project = open_project()
    sides = {}
    for label in (baseline, candidate):
        if by_version:
            results = select_results(project.store, prompt_version=label, include_failed=include_failed)
        else:
            results = select_results(project.store, run_id=label, include_failed=include_failed)
        if not results:
            kind = "prompt version" if by_version else "run"
            console.print(f"[yellow]No results found for {kind}[/yellow] [bold]{escape(label)}[/bold].")
            raise typer.Exit(code=1)
        sides[label] = aggregate(results, rubric)

    comparison = compare_reports(sides[baseline], sides[candidate], baseline, candidate)
    if format_json:
        output_json(comparison.model_dump(mode="json"))
    else:
        render_comparison(comparison, Console())
