"""evalbench run -- generate and score every dataset entry of a suite.

Validates the suite, resolves the dataset, runs the EvaluationDriver
with a progress bar, persists transcripts and results under the
project storage directory, and prints the aggregated report.
"""

from __future__ import annotations

import asyncio
import dataclasses
import signal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from evalbench.adapters.registry import get_adapter
from evalbench.cli.common import load_entries_or_exit, load_suite_or_exit, open_project
from evalbench.cli.output import create_progress, format_usage, output_json, render_failures, render_report
from evalbench.evaluation.aggregation import aggregate
from evalbench.execution.driver import EvaluationDriver, ProgressUpdate

console = Console(stderr=True)


def run(
    suite_path: str = typer.Argument(..., help="Path to suite YAML file"),
    max_turns: Optional[int] = typer.Option(None, "--max-turns", min=1, help="Override the suite's turn budget"),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Only run the first N entries"),
    prompt_version: Optional[str] = typer.Option(
        None, "--prompt-version", help="Label for the prompt variant (overrides the suite's prompt_version)"
    ),
    format_json: bool = typer.Option(False, "--json", help="Output pure JSON to stdout"),
) -> None:
    """Run a suite: generate, score and report every dataset entry."""
    asyncio.run(
        _run_async(
            Path(suite_path),
            max_turns=max_turns,
            limit=limit,
            prompt_version=prompt_version,
            format_json=format_json,
        )
    )


async def _run_async(
    suite_path: Path,
    *,
    max_turns: int | None,
    limit: int | None,
    prompt_version: str | None,
    format_json: bool,
) -> None:
    suite = load_suite_or_exit(suite_path, console)
    entries = load_entries_or_exit(suite, suite_path, console)
    if limit is not None:
        entries = entries[:limit]

    project = open_project(suite_path)
    driver = EvaluationDriver(
        resolve_adapter=get_adapter,
        store=project.store,
        api_keys=project.config.api_key_lookup(),
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, stop_event.set)
    except (NotImplementedError, RuntimeError):
        pass

    run_kwargs = dict(
        entries=entries,
        generation_config=suite.generation,
        rubric=suite.rubric,
        judge_config=suite.judge or project.config.judge,
        user_config=suite.user_simulator,
        max_turns=max_turns or suite.max_turns,
        stop_event=stop_event,
        prompt_version=prompt_version or suite.prompt_version,
    )

    progress = None if format_json else create_progress(console)
    try:
        if progress is not None:
            with progress:
                task = progress.add_task("Evaluating", total=len(entries))

                def on_progress(update: ProgressUpdate) -> None:
                    progress.update(task, completed=update.current_index, description=update.description)

                batch = await driver.run_batch(**run_kwargs, on_progress=on_progress)
        else:
            batch = await driver.run_batch(**run_kwargs)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass

    if not batch.success:
        console.print(f"[bold red]Configuration error:[/bold red] {batch.error}")
        raise typer.Exit(code=2)

    report = aggregate(batch.results, suite.rubric)

    if format_json:
        output_json(
            {
                "report": report.model_dump(mode="json"),
                "results": [r.model_dump(mode="json") for r in batch.results],
                "failures": [{"entry_id": f.entry_id, "reason": f.reason} for f in batch.failures],
                "cancelled": batch.cancelled,
                "run_id": batch.run_id,
                "prompt_version": batch.prompt_version,
                "usage": dataclasses.asdict(batch.usage),
            }
        )
    else:
        output_console = Console()
        render_report(report, output_console)
        render_failures(batch.failures, output_console)
        if batch.cancelled:
            output_console.print("[yellow]Run cancelled before all entries were processed.[/yellow]")
        label = f" (prompt {escape(batch.prompt_version)})" if batch.prompt_version else ""
        output_console.print(f"[bold]Run:[/bold] {batch.run_id}{label}")
        output_console.print(f"[bold]Generation usage:[/bold] {format_usage(batch.usage)}")
        output_console.print(f"[dim]Results saved under {project.store.root}[/dim]")

    if batch.failures:
        raise typer.Exit(code=1)
