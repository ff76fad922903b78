"""Tests for evalbench.cli.output - rich report and transcript rendering."""

from __future__ import annotations

import json
from io import StringIO

from rich.console import Console

from evalbench.cli.output import (
    create_progress,
    output_json,
    render_failures,
    render_report,
    render_turn,
)
from evalbench.evaluation.aggregation import aggregate
from evalbench.execution.driver import EntryFailure
from evalbench.models.result import AggregatedReport, ScoreResult
from evalbench.models.transcript import Role, Turn


def _console() -> tuple[Console, StringIO]:
    buffer = StringIO()
    return Console(file=buffer, width=120, force_terminal=False, color_system=None), buffer


class TestRenderReport:
    def test_number_boolean_and_string_rows(self):
        report = aggregate(
            [
                ScoreResult(metrics={"score": 2, "passed": True, "tone": "warm"}),
                ScoreResult(metrics={"score": 4, "passed": False, "tone": "warm"}),
            ]
        )
        console, buffer = _console()
        render_report(report, console)
        text = buffer.getvalue()

        assert "Runs: 2" in text
        assert "avg=3.00 min=2 max=4 median=2 p90=4" in text
        assert "true=1 false=1 (50%)" in text
        assert "warm: 2" in text

    def test_empty_report(self):
        console, buffer = _console()
        render_report(AggregatedReport(total_runs=0), console)
        assert "No metrics to report." in buffer.getvalue()

    def test_long_distribution_elided(self):
        report = aggregate([ScoreResult(metrics={"label": f"v{i}"}) for i in range(10)])
        console, buffer = _console()
        render_report(report, console)
        assert "(2 more)" in buffer.getvalue()


class TestRenderHelpers:
    def test_failures(self):
        console, buffer = _console()
        render_failures([EntryFailure("a", "RuntimeError: boom"), EntryFailure("b", "x")], console)
        text = buffer.getvalue()
        assert "2 entries failed" in text
        assert "a: RuntimeError: boom" in text

    def test_no_failures_prints_nothing(self):
        console, buffer = _console()
        render_failures([], console)
        assert buffer.getvalue() == ""

    def test_turn_content_is_not_markup(self):
        console, buffer = _console()
        render_turn(Turn(role=Role.user, content="[bold]literal[/bold] text"), console)
        assert buffer.getvalue().strip() == "USER: [bold]literal[/bold] text"

    def test_progress_disabled_off_terminal(self):
        console, _ = _console()
        assert create_progress(console) is None


def test_output_json(capsys):
    output_json({"total_runs": 1, "when": ScoreResult(metrics={}).timestamp})
    payload = json.loads(capsys.readouterr().out)
    assert payload["total_runs"] == 1
    assert isinstance(payload["when"], str)
