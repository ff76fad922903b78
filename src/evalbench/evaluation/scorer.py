"""RubricScorer: score a finished transcript with a judge model.

The scorer builds the judge prompt and (when the rubric declares
metrics) a schema, then tries each scoring strategy in order until one
yields a metrics mapping. When every strategy fails, the result carries
the sentinel mapping ``{"error": <reason>}`` instead of raising, so one
bad judgement never aborts a batch.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import structlog

from evalbench.adapters.base import BaseAdapter
from evalbench.adapters.registry import AdapterResolver, ApiKeySource, get_adapter, resolve_agent_adapter
from evalbench.evaluation.judge.prompt import build_scoring_context
from evalbench.evaluation.judge.schema import build_metrics_model
from evalbench.evaluation.judge.strategies import (
    ScoringOutcome,
    ScoringRequest,
    ScoringStrategy,
    default_strategies,
)
from evalbench.models.config import JudgeConfig
from evalbench.models.dataset import DatasetEntry
from evalbench.models.result import SCORING_ERROR_KEY, ScoreResult
from evalbench.models.rubric import Rubric
from evalbench.models.transcript import Transcript

if TYPE_CHECKING:
    from evalbench.storage.json_store import RecordStore

log = structlog.get_logger()


class RubricScorer:
    """Scores transcripts against a rubric using a judge model."""

    def __init__(
        self,
        resolve_adapter: AdapterResolver = get_adapter,
        store: RecordStore | None = None,
        api_keys: ApiKeySource = None,
        strategies: list[ScoringStrategy] | None = None,
    ) -> None:
        self._resolve_adapter = resolve_adapter
        self._store = store
        self._api_keys = api_keys
        self._strategies = strategies if strategies is not None else default_strategies()

    async def score(
        self,
        transcript: Transcript,
        entry: DatasetEntry | None = None,
        rubric: Rubric | None = None,
        judge_config: JudgeConfig | None = None,
        transcript_id: str | None = None,
        adapter: BaseAdapter | None = None,
        eval_type: Literal["single-turn", "multi-turn"] | None = None,
        run_id: str | None = None,
        prompt_version: str | None = None,
    ) -> ScoreResult:
        """Score one transcript.

        Args:
            transcript: The conversation to judge.
            entry: Dataset entry supplying input and expected behaviour.
            rubric: Metrics to request. None or an empty rubric means the
                judge's free-text JSON is taken as-is.
            judge_config: Judge model settings; defaults to JudgeConfig().
            transcript_id: ID of the persisted transcript, if any.
            adapter: Pre-resolved judge adapter. Resolved from
                judge_config when omitted.
            eval_type: Kind of evaluation that produced the transcript;
                defaults to the entry's type.
            run_id: Batch run the result belongs to.
            prompt_version: Label of the prompt variant under evaluation.

        Returns:
            A ScoreResult. On total failure its metrics are the sentinel
            ``{"error": reason}``.

        Raises:
            ConfigurationError: If the judge adapter cannot be resolved.
        """
        rubric = rubric or Rubric()
        judge_config = judge_config or JudgeConfig()
        if adapter is None:
            adapter = resolve_agent_adapter(judge_config, self._resolve_adapter, self._api_keys)

        request = ScoringRequest(
            context=build_scoring_context(transcript, entry),
            instructions=rubric.instructions,
            judge_config=judge_config,
            schema=build_metrics_model(rubric) if rubric.has_metrics else None,
        )

        outcome: ScoringOutcome | None = None
        for strategy in self._strategies:
            if not strategy.applies_to(request):
                continue
            outcome = await strategy.attempt(adapter, request)
            if outcome.succeeded:
                break

        if outcome is not None and outcome.succeeded:
            metrics = outcome.metrics
            strategy_name: str | None = outcome.strategy
        else:
            reason = outcome.reason if outcome is not None else "No scoring strategy applied"
            metrics = {SCORING_ERROR_KEY: reason}
            strategy_name = None
            log.warning(
                "scoring.failed",
                dataset_entry_id=entry.id if entry else None,
                reason=reason,
            )

        result = ScoreResult(
            metrics=metrics,
            transcript_id=transcript_id,
            dataset_entry_id=entry.id if entry else None,
            judge_provider=judge_config.provider,
            judge_model=judge_config.model,
            strategy=strategy_name,
            eval_type=eval_type or (entry.type if entry else None),
            run_id=run_id,
            prompt_version=prompt_version,
        )

        if self._store is not None:
            try:
                self._store.results.add(result)
            except Exception as exc:
                log.warning("scoring.persist_failed", result_id=result.id, error=str(exc))

        log.info(
            "scoring.completed",
            result_id=result.id,
            strategy=strategy_name,
            failed=result.failed,
        )
        return result
