"""EvaluationDriver: sequence dataset entries through generation and scoring.

For each entry, the driver produces a transcript (one generated reply
for single-turn entries, a simulated conversation for multi-turn ones),
persists it, scores it with the judge and collects the result. Entries
run strictly one after another. A failing entry is logged and recorded
but never stops the batch; configuration problems are caught before the
first model call and fail the whole batch instead.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from evalbench.adapters.base import BaseAdapter, TokenUsage
from evalbench.adapters.registry import AdapterResolver, ApiKeySource, get_adapter, resolve_agent_adapter
from evalbench.errors import ConfigurationError
from evalbench.evaluation.scorer import RubricScorer
from evalbench.execution.generation import generate_single_turn
from evalbench.execution.simulator import ConversationSimulator, SimulationResult, StopReason
from evalbench.models.config import AgentConfig, JudgeConfig
from evalbench.models.dataset import DatasetEntry
from evalbench.models.result import ScoreResult, TranscriptRecord, new_id
from evalbench.models.rubric import Rubric
from evalbench.models.suite import DEFAULT_USER_INSTRUCTION
from evalbench.models.transcript import Role, Transcript

if TYPE_CHECKING:
    from evalbench.storage.json_store import RecordStore

log = structlog.get_logger()


@dataclass(frozen=True)
class ProgressUpdate:
    """Progress after an entry finished (successfully or not)."""

    current_index: int
    total: int
    description: str
    percent_complete: float


@dataclass(frozen=True)
class EntryFailure:
    entry_id: str
    reason: str


@dataclass
class BatchResult:
    """Outcome of run_batch.

    success is False only for batch-level failures (configuration errors
    caught before any model call). Individual entry failures are listed
    in failures and excluded from results. usage sums the tokens spent
    generating transcripts; judge calls are not counted.
    """

    success: bool
    run_id: str | None = None
    prompt_version: str | None = None
    results: list[ScoreResult] = field(default_factory=list)
    transcripts: list[TranscriptRecord] = field(default_factory=list)
    failures: list[EntryFailure] = field(default_factory=list)
    error: str | None = None
    cancelled: bool = False
    usage: TokenUsage = field(default_factory=TokenUsage)


ProgressCallback = Callable[[ProgressUpdate], None]


def user_instruction_for(entry: DatasetEntry) -> str:
    """Simulated-user instruction for a multi-turn entry."""
    return entry.prompt or entry.input or DEFAULT_USER_INSTRUCTION


class EvaluationDriver:
    """Runs batches of dataset entries through generation and scoring."""

    def __init__(
        self,
        resolve_adapter: AdapterResolver = get_adapter,
        store: RecordStore | None = None,
        api_keys: ApiKeySource = None,
    ) -> None:
        self._resolve_adapter = resolve_adapter
        self._store = store
        self._api_keys = api_keys

    def _resolve(self, config: AgentConfig | JudgeConfig) -> BaseAdapter:
        return resolve_agent_adapter(config, self._resolve_adapter, self._api_keys)

    async def run_batch(
        self,
        entries: Sequence[DatasetEntry],
        generation_config: AgentConfig,
        rubric: Rubric | None = None,
        judge_config: JudgeConfig | None = None,
        user_config: AgentConfig | None = None,
        max_turns: int = 10,
        stop_event: asyncio.Event | None = None,
        on_progress: ProgressCallback | None = None,
        run_id: str | None = None,
        prompt_version: str | None = None,
    ) -> BatchResult:
        """Generate, persist and score every entry in order.

        Args:
            entries: Dataset entries to process.
            generation_config: The agent under evaluation.
            rubric: Metrics for the judge; None scores free-form.
            judge_config: Judge settings; defaults to JudgeConfig().
            user_config: Simulated-user agent for multi-turn entries;
                defaults to generation_config.
            max_turns: Turn budget per simulated conversation.
            stop_event: Checked between entries and between simulated
                turns. When set the batch stops, and a conversation cut
                short is persisted but not scored.
            on_progress: Called after each entry.
            run_id: Label stamped on every record; generated when omitted.
            prompt_version: Label of the prompt variant under evaluation.

        Returns:
            BatchResult with the score results of successful entries.
        """
        judge_config = judge_config or JudgeConfig()
        user_config = user_config or generation_config
        needs_user = any(entry.type == "multi-turn" for entry in entries)
        run_id = run_id or new_id("run")
        user_adapter: BaseAdapter | None = None

        try:
            if needs_user and max_turns < 1:
                raise ConfigurationError(f"max_turns must be at least 1, got {max_turns}")
            generation_adapter = self._resolve(generation_config)
            if needs_user:
                user_adapter = self._resolve(user_config)
            judge_adapter = self._resolve(judge_config)
        except ConfigurationError as exc:
            log.error("batch.configuration_invalid", error=str(exc))
            return BatchResult(success=False, run_id=run_id, prompt_version=prompt_version, error=str(exc))

        scorer = RubricScorer(self._resolve_adapter, store=self._store, api_keys=self._api_keys)
        simulator = ConversationSimulator(self._resolve_adapter, api_keys=self._api_keys)
        batch = BatchResult(success=True, run_id=run_id, prompt_version=prompt_version)
        total = len(entries)
        log.info("batch.started", run_id=run_id, total=total, model=generation_config.model)

        for index, entry in enumerate(entries):
            if stop_event is not None and stop_event.is_set():
                batch.cancelled = True
                log.info("batch.cancelled", completed=index, total=total)
                break

            structlog.contextvars.bind_contextvars(dataset_entry_id=entry.id)
            try:
                if entry.type == "multi-turn":
                    simulation = await self._simulate(
                        simulator,
                        entry,
                        generation_config,
                        user_config,
                        max_turns,
                        stop_event,
                        assistant_adapter=generation_adapter,
                        user_adapter=user_adapter,
                    )
                    transcript, usage = simulation.transcript, simulation.usage
                    stop_reason: str | None = simulation.stop_reason.value
                else:
                    generated = await generate_single_turn(
                        generation_adapter, generation_config, entry.input or ""
                    )
                    transcript, usage = generated.transcript, generated.usage
                    stop_reason = None

                batch.usage = batch.usage + usage
                record = self._persist_transcript(
                    entry, generation_config, transcript, stop_reason, usage, run_id, prompt_version
                )
                batch.transcripts.append(record)

                if stop_reason == StopReason.cancelled.value:
                    # A partial conversation is kept but never judged.
                    batch.cancelled = True
                    log.info("batch.cancelled", completed=index, total=total)
                    break

                result = await scorer.score(
                    transcript,
                    entry,
                    rubric,
                    judge_config,
                    transcript_id=record.id,
                    adapter=judge_adapter,
                    run_id=run_id,
                    prompt_version=prompt_version,
                )
                batch.results.append(result)
            except Exception as exc:
                reason = f"{type(exc).__name__}: {exc}"
                log.warning("batch.entry_failed", reason=reason)
                batch.failures.append(EntryFailure(entry_id=entry.id, reason=reason))
            finally:
                structlog.contextvars.unbind_contextvars("dataset_entry_id")

            if on_progress is not None:
                on_progress(
                    ProgressUpdate(
                        current_index=index + 1,
                        total=total,
                        description=f"Processing entry {index + 1}/{total}: {entry.description()}",
                        percent_complete=(index + 1) / total * 100,
                    )
                )

        log.info(
            "batch.completed",
            results=len(batch.results),
            failures=len(batch.failures),
            cancelled=batch.cancelled,
        )
        return batch

    async def _simulate(
        self,
        simulator: ConversationSimulator,
        entry: DatasetEntry,
        generation_config: AgentConfig,
        user_config: AgentConfig,
        max_turns: int,
        stop_event: asyncio.Event | None,
        assistant_adapter: BaseAdapter | None = None,
        user_adapter: BaseAdapter | None = None,
    ) -> SimulationResult:
        seed = entry.conversation[0] if entry.conversation else None
        first = Role.user
        if seed is not None and seed.role is Role.assistant:
            first = Role.assistant

        return await simulator.simulate(
            assistant_config=generation_config,
            user_config=user_config,
            assistant_instruction=generation_config.system_instruction,
            user_instruction=user_instruction_for(entry),
            max_turns=max_turns,
            seed_message=seed.content if seed is not None else None,
            who_starts_first=first,
            stop_event=stop_event,
            assistant_adapter=assistant_adapter,
            user_adapter=user_adapter,
        )

    def _persist_transcript(
        self,
        entry: DatasetEntry,
        config: AgentConfig,
        transcript: Transcript,
        stop_reason: str | None,
        usage: TokenUsage,
        run_id: str | None,
        prompt_version: str | None,
    ) -> TranscriptRecord:
        record = TranscriptRecord(
            dataset_entry_id=entry.id,
            provider=config.provider,
            model=config.model,
            kind=entry.type,
            simulated_user=entry.type == "multi-turn",
            messages=list(transcript),
            turn_count=len(transcript),
            stop_reason=stop_reason,
            run_id=run_id,
            prompt_version=prompt_version,
            usage=usage,
        )
        if self._store is not None:
            try:
                self._store.transcripts.add(record)
            except Exception as exc:
                log.warning("batch.transcript_persist_failed", transcript_id=record.id, error=str(exc))
        return record
