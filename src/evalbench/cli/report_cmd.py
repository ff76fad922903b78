"""evalbench report -- aggregate stored score results."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from evalbench.cli.common import load_suite_or_exit, open_project
from evalbench.cli.output import output_json, render_report
from evalbench.evaluation.aggregation import aggregate
from evalbench.models.result import ScoreResult
from evalbench.storage.json_store import RecordStore

console = Console(stderr=True)


def select_results(
    store: RecordStore,
    *,
    entry: str | None = None,
    run_id: str | None = None,
    prompt_version: str | None = None,
    include_failed: bool = False,
) -> list[ScoreResult]:
    """Stored results matching every filter that is set."""
    results = store.results.where("run_id", run_id) if run_id is not None else store.results.to_array()
    if entry is not None:
        results = [r for r in results if r.dataset_entry_id == entry]
    if prompt_version is not None:
        results = [r for r in results if r.prompt_version == prompt_version]
    if not include_failed:
        results = [r for r in results if not r.failed]
    return results


def report(
    entry: Optional[str] = typer.Option(None, "--entry", "-e", help="Only include results for this dataset entry ID"),
    run_id: Optional[str] = typer.Option(None, "--run", "-r", help="Only include results from this run ID"),
    prompt_version: Optional[str] = typer.Option(
        None, "--prompt-version", help="Only include results for this prompt version"
    ),
    suite_path: Optional[str] = typer.Option(
        None, "--suite", help="Suite whose rubric defines the metrics and their kinds"
    ),
    include_failed: bool = typer.Option(False, "--include-failed", help="Include results whose scoring failed"),
    format_json: bool = typer.Option(False, "--json", help="Output pure JSON to stdout"),
) -> None:
    """Aggregate stored score results into a per-metric report."""
    rubric = None
    if suite_path is not None:
        rubric = load_suite_or_exit(Path(suite_path), console).rubric

    project = open_project()
    results = select_results(
        project.store,
        entry=entry,
        run_id=run_id,
        prompt_version=prompt_version,
        include_failed=include_failed,
    )

    if not results:
        console.print("[yellow]No results found.[/yellow] Run [bold]evalbench run[/bold] first.")
        raise typer.Exit(code=1)

    aggregated = aggregate(results, rubric)
    if format_json:
        output_json(aggregated.model_dump(mode="json"))
    else:
        render_report(aggregated, Console())
