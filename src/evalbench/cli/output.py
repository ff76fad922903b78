"""Rich terminal output for reports, failures and transcripts."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from evalbench.models.transcript import Role

if TYPE_CHECKING:
    from evalbench.execution.driver import EntryFailure
    from evalbench.loader.validator import ValidationErrorDetail
    from evalbench.adapters.base import TokenUsage
    from evalbench.models.result import AggregatedReport, MetricAggregation, ReportComparison
    from evalbench.models.transcript import Turn

_ROLE_STYLES: dict[Role, str] = {
    Role.user: "bold cyan",
    Role.assistant: "bold green",
    Role.system: "dim",
}

# Distribution entries shown per metric before eliding the rest.
_MAX_DISTRIBUTION_ITEMS = 8


def create_progress(console: Console) -> Progress | None:
    """Progress bar for batch runs, or None when not attached to a terminal."""
    if not console.is_terminal:
        return None
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def _format_number(value: float) -> str:
    return f"{value:g}"


def _summary(aggregation: MetricAggregation) -> str:
    if aggregation.stats is not None:
        s = aggregation.stats
        return (
            f"avg={s.avg:.2f} min={_format_number(s.min)} max={_format_number(s.max)} "
            f"median={_format_number(s.median)} p90={_format_number(s.p90)}"
        )
    if aggregation.kind == "boolean":
        true_count = aggregation.distribution.get("true", 0)
        rate = true_count / aggregation.count if aggregation.count else 0.0
        return f"true={true_count} false={aggregation.distribution.get('false', 0)} ({rate:.0%})"
    items = sorted(aggregation.distribution.items(), key=lambda kv: (-kv[1], kv[0]))
    shown = ", ".join(f"{label}: {count}" for label, count in items[:_MAX_DISTRIBUTION_ITEMS])
    if len(items) > _MAX_DISTRIBUTION_ITEMS:
        shown += f", ... ({len(items) - _MAX_DISTRIBUTION_ITEMS} more)"
    return shown


def render_report(report: AggregatedReport, console: Console) -> None:
    """Render an aggregated report as a metric table."""
    console.print()
    console.print(f"[bold]Runs:[/bold] {report.total_runs}")
    if not report.metrics:
        console.print("[dim]No metrics to report.[/dim]")
        return

    table = Table(box=box.SIMPLE, padding=(0, 2))
    table.add_column("Metric", style="bold")
    table.add_column("Kind")
    table.add_column("Count", justify="right")
    table.add_column("Summary")
    for name, aggregation in report.metrics.items():
        table.add_row(name, aggregation.kind, str(aggregation.count), _summary(aggregation))
    console.print(table)


def _headline_cell(aggregation: MetricAggregation | None) -> str:
    if aggregation is None:
        return "-"
    if aggregation.stats is not None:
        return f"avg={aggregation.stats.avg:.2f} (n={aggregation.count})"
    if aggregation.kind == "boolean" and aggregation.count:
        rate = aggregation.distribution.get("true", 0) / aggregation.count
        return f"{rate:.0%} true (n={aggregation.count})"
    return f"{len(aggregation.distribution)} distinct (n={aggregation.count})"


def _delta_cell(delta: float | None, kind: str) -> str:
    if delta is None:
        return "-"
    text = f"{delta:+.0%}" if kind == "boolean" else f"{delta:+.2f}"
    if delta > 0:
        return f"[green]{text}[/green]"
    if delta < 0:
        return f"[red]{text}[/red]"
    return text


def render_comparison(comparison: ReportComparison, console: Console) -> None:
    """Render two runs side by side with the candidate's change per metric."""
    console.print()
    console.print(
        f"[bold]Baseline:[/bold] {escape(comparison.baseline_label)} ({comparison.baseline_runs} runs)  "
        f"[bold]Candidate:[/bold] {escape(comparison.candidate_label)} ({comparison.candidate_runs} runs)"
    )
    if not comparison.metrics:
        console.print("[dim]No metrics to compare.[/dim]")
        return

    table = Table(box=box.SIMPLE, padding=(0, 2))
    table.add_column("Metric", style="bold")
    table.add_column("Kind")
    table.add_column("Baseline")
    table.add_column("Candidate")
    table.add_column("Delta", justify="right")
    for name, metric in comparison.metrics.items():
        table.add_row(
            name,
            metric.kind,
            _headline_cell(metric.baseline),
            _headline_cell(metric.candidate),
            _delta_cell(metric.delta, metric.kind),
        )
    console.print(table)


def format_usage(usage: TokenUsage) -> str:
    return f"{usage.total_tokens} tokens ({usage.input_tokens} in, {usage.output_tokens} out)"


def render_failures(failures: list[EntryFailure], console: Console) -> None:
    if not failures:
        return
    console.print(f"[bold red]{len(failures)} entr{'y' if len(failures) == 1 else 'ies'} failed[/bold red]")
    for failure in failures:
        console.print(f"  {failure.entry_id}: {failure.reason}")


def render_turn(turn: Turn, console: Console) -> None:
    style = _ROLE_STYLES.get(turn.role, "bold")
    console.print(f"[{style}]{turn.role.value.upper()}[/{style}]: {escape(turn.content)}", highlight=False)


def print_validation_errors(errors: list[ValidationErrorDetail], console: Console) -> None:
    console.print("[bold red]Suite validation errors:[/bold red]")
    for err in errors:
        loc = f" (line {err.line})" if err.line else ""
        console.print(f"  {err.field}: {err.message}{loc}")


def output_json(payload: Any) -> None:
    """Write a JSON document to stdout with no markup."""
    sys.stdout.write(json.dumps(payload, indent=2, ensure_ascii=False, default=str))
    sys.stdout.write("\n")
