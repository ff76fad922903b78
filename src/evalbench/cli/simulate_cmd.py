"""evalbench simulate -- run one simulated conversation and print it live."""

from __future__ import annotations

import asyncio
import dataclasses
import signal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from evalbench.adapters.registry import get_adapter
from evalbench.cli.common import load_suite_or_exit, open_project
from evalbench.cli.output import format_usage, output_json, render_report, render_turn
from evalbench.errors import ConfigurationError, SimulationError
from evalbench.evaluation.aggregation import aggregate
from evalbench.evaluation.scorer import RubricScorer
from evalbench.execution.simulator import ConversationSimulator, StopReason
from evalbench.models.result import TranscriptRecord, new_id
from evalbench.models.transcript import Transcript, Turn

console = Console(stderr=True)


def simulate(
    suite_path: str = typer.Argument(..., help="Path to suite YAML file"),
    max_turns: Optional[int] = typer.Option(None, "--max-turns", min=1, help="Override the suite's turn budget"),
    seed: Optional[str] = typer.Option(None, "--seed", help="Opening message (overrides simulation.seed_message)"),
    score: bool = typer.Option(False, "--score", help="Score the finished conversation with the suite rubric"),
    format_json: bool = typer.Option(False, "--json", help="Output pure JSON to stdout"),
) -> None:
    """Simulate a conversation between the suite's assistant and a simulated user."""
    asyncio.run(
        _simulate_async(Path(suite_path), max_turns=max_turns, seed=seed, score=score, format_json=format_json)
    )


async def _simulate_async(
    suite_path: Path,
    *,
    max_turns: int | None,
    seed: str | None,
    score: bool,
    format_json: bool,
) -> None:
    suite = load_suite_or_exit(suite_path, console)
    project = open_project(suite_path)
    api_keys = project.config.api_key_lookup()
    settings = suite.simulation
    user_config = suite.user_simulator or suite.generation
    output_console = Console()

    def on_turn(turn: Turn, transcript: Transcript) -> None:
        if not format_json:
            render_turn(turn, output_console)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, stop_event.set)
    except (NotImplementedError, RuntimeError):
        pass

    simulator = ConversationSimulator(get_adapter, api_keys=api_keys)
    try:
        result = await simulator.simulate(
            assistant_config=suite.generation,
            user_config=user_config,
            assistant_instruction=suite.generation.system_instruction,
            user_instruction=settings.user_instruction,
            max_turns=max_turns or suite.max_turns,
            seed_message=seed if seed is not None else settings.seed_message,
            who_starts_first=settings.who_starts_first,
            stop_event=stop_event,
            on_turn=on_turn,
        )
    except ConfigurationError as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        raise typer.Exit(code=2)
    except SimulationError as exc:
        console.print(f"[bold red]Simulation failed:[/bold red] {exc.reason}")
        console.print(f"[dim]{exc.turns_taken} turn(s) completed before the failure.[/dim]")
        raise typer.Exit(code=1)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass

    run_id = new_id("run")
    record = TranscriptRecord(
        provider=suite.generation.provider,
        model=suite.generation.model,
        kind="multi-turn",
        simulated_user=True,
        messages=list(result.transcript),
        turn_count=len(result.transcript),
        stop_reason=result.stop_reason.value,
        run_id=run_id,
        prompt_version=suite.prompt_version,
        usage=result.usage,
    )
    project.store.transcripts.add(record)

    score_result = None
    cancelled = result.stop_reason is StopReason.cancelled
    if score and not cancelled:
        scorer = RubricScorer(get_adapter, store=project.store, api_keys=api_keys)
        try:
            score_result = await scorer.score(
                result.transcript,
                rubric=suite.rubric,
                judge_config=suite.judge or project.config.judge,
                transcript_id=record.id,
                eval_type="multi-turn",
                run_id=run_id,
                prompt_version=suite.prompt_version,
            )
        except ConfigurationError as exc:
            console.print(f"[bold red]Configuration error:[/bold red] {exc}")
            raise typer.Exit(code=2)

    if format_json:
        output_json(
            {
                "transcript": record.model_dump(mode="json"),
                "stop_reason": result.stop_reason.value,
                "turns_taken": result.turns_taken,
                "terminated_by": result.terminated_by.value if result.terminated_by else None,
                "usage": dataclasses.asdict(result.usage),
                "score": score_result.model_dump(mode="json") if score_result else None,
            }
        )
        return

    output_console.print()
    output_console.print(
        f"[dim]Stopped: {result.stop_reason.value} after {result.turns_taken} generated turn(s). "
        f"Transcript saved: {record.id}[/dim]"
    )
    output_console.print(f"[dim]Usage: {format_usage(result.usage)}[/dim]")
    if score and cancelled:
        output_console.print("[yellow]Conversation cancelled; not scored.[/yellow]")
    if score_result is not None:
        render_report(aggregate([score_result], suite.rubric), output_console)
