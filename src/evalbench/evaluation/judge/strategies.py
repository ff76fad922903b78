"""Scoring strategies tried in order by the RubricScorer.

Each strategy makes one judge call and reports either a metrics mapping
or the reason it failed. Strategies never raise for model or parsing
failures; the scorer decides what to do when all of them fail.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import BaseModel

from evalbench.adapters.base import BaseAdapter, Message
from evalbench.evaluation.judge.extraction import extract_json_object
from evalbench.evaluation.judge.prompt import with_json_directive
from evalbench.models.config import JudgeConfig

log = structlog.get_logger()

PARSE_FAILURE_REASON = "Failed to parse JSON"


@dataclass(frozen=True)
class ScoringRequest:
    """Everything a strategy needs for one judge call."""

    context: str
    instructions: str
    judge_config: JudgeConfig
    schema: type[BaseModel] | None = None


@dataclass(frozen=True)
class ScoringOutcome:
    """Result of one strategy attempt: metrics on success, reason on failure."""

    strategy: str
    metrics: dict[str, Any] | None = None
    reason: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.metrics is not None


class ScoringStrategy(ABC):
    """One way of turning a judge call into a metrics mapping."""

    name: str = "base"

    def applies_to(self, request: ScoringRequest) -> bool:
        return True

    @abstractmethod
    async def attempt(self, adapter: BaseAdapter, request: ScoringRequest) -> ScoringOutcome:
        ...

    def _failed(self, reason: str) -> ScoringOutcome:
        log.warning("scoring.strategy_failed", strategy=self.name, reason=reason)
        return ScoringOutcome(strategy=self.name, reason=reason)


class StructuredStrategy(ScoringStrategy):
    """Ask the judge for an object that matches the rubric schema."""

    name = "structured"

    def applies_to(self, request: ScoringRequest) -> bool:
        return request.schema is not None

    async def attempt(self, adapter: BaseAdapter, request: ScoringRequest) -> ScoringOutcome:
        if request.schema is None:
            return self._failed("No rubric schema to request")
        try:
            metrics = await adapter.generate_structured(
                request.context,
                request.instructions or None,
                request.schema,
                request.judge_config.to_adapter_config(),
            )
        except Exception as exc:
            return self._failed(f"{type(exc).__name__}: {exc}")
        if not isinstance(metrics, dict):
            return self._failed(f"Judge returned {type(metrics).__name__}, expected an object")
        return ScoringOutcome(strategy=self.name, metrics=dict(metrics))


class TextJsonStrategy(ScoringStrategy):
    """Ask for JSON in plain text at temperature 0 and extract the first object."""

    name = "text_json"

    async def attempt(self, adapter: BaseAdapter, request: ScoringRequest) -> ScoringOutcome:
        messages: list[Message] = []
        if request.instructions:
            messages.append(Message(role="system", content=request.instructions))
        messages.append(Message(role="user", content=with_json_directive(request.context)))

        try:
            result = await adapter.generate_text(
                messages, request.judge_config.to_adapter_config(temperature=0.0)
            )
        except Exception as exc:
            return self._failed(f"{type(exc).__name__}: {exc}")

        metrics = extract_json_object(result.content)
        if metrics is None:
            return self._failed(PARSE_FAILURE_REASON)
        return ScoringOutcome(strategy=self.name, metrics=metrics)


def default_strategies() -> list[ScoringStrategy]:
    return [StructuredStrategy(), TextJsonStrategy()]
