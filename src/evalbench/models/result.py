"""Result data models for evalbench outputs.

TranscriptRecord and ScoreResult are persisted records, created once
and never mutated. AggregatedReport is derived from a set of
ScoreResults and can be recomputed at any time.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from evalbench.adapters.base import TokenUsage
from evalbench.models.transcript import Transcript, Turn

# Metrics key recorded when every scoring strategy failed.
SCORING_ERROR_KEY = "error"


def new_id(prefix: str) -> str:
    """Generate a record ID such as ``res_3f2a...``."""
    return f"{prefix}_{uuid4().hex}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TranscriptRecord(BaseModel):
    """A persisted transcript produced for one dataset entry."""

    model_config = {"extra": "forbid", "frozen": True}

    id: str = Field(default_factory=lambda: new_id("conv"))
    dataset_entry_id: str | None = None
    provider: str
    model: str
    kind: Literal["single-turn", "multi-turn"]
    simulated_user: bool = False
    messages: list[Turn]
    turn_count: int
    stop_reason: str | None = None
    run_id: str | None = None
    prompt_version: str | None = None
    usage: TokenUsage = Field(default_factory=TokenUsage)
    created_at: datetime = Field(default_factory=_utcnow)

    def to_transcript(self) -> Transcript:
        return Transcript(self.messages)


class ScoreResult(BaseModel):
    """Judge metrics for one transcript. Never mutated after creation."""

    model_config = {"extra": "forbid", "frozen": True}

    id: str = Field(default_factory=lambda: new_id("res"))
    metrics: dict[str, Any]
    transcript_id: str | None = None
    dataset_entry_id: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)
    judge_provider: str | None = None
    judge_model: str | None = None
    strategy: str | None = None
    eval_type: Literal["single-turn", "multi-turn"] | None = None
    run_id: str | None = None
    prompt_version: str | None = None

    @property
    def failed(self) -> bool:
        """True when the metrics mapping is the scoring-failure sentinel."""
        return set(self.metrics) == {SCORING_ERROR_KEY}


class MetricStats(BaseModel):
    """Numeric summary for a number-kind metric."""

    avg: float
    min: float
    max: float
    median: float
    p90: float


class MetricAggregation(BaseModel):
    """Aggregate of one metric across a batch of results."""

    kind: Literal["number", "boolean", "string"]
    count: int
    stats: MetricStats | None = None
    distribution: dict[str, int] = Field(default_factory=dict)


class AggregatedReport(BaseModel):
    """Per-metric statistics across a batch of ScoreResults."""

    total_runs: int
    metrics: dict[str, MetricAggregation] = Field(default_factory=dict)


class MetricComparison(BaseModel):
    """One metric aggregated for two runs side by side.

    delta is candidate minus baseline: the average for number metrics,
    the true rate for boolean metrics, and None for strings or when the
    metric is missing from either side.
    """

    kind: Literal["number", "boolean", "string"]
    baseline: MetricAggregation | None = None
    candidate: MetricAggregation | None = None
    delta: float | None = None


class ReportComparison(BaseModel):
    """A/B comparison of two aggregated reports."""

    baseline_label: str
    candidate_label: str
    baseline_runs: int
    candidate_runs: int
    metrics: dict[str, MetricComparison] = Field(default_factory=dict)
