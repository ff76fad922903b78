"""evalbench data models - re-exports all public model classes."""

from evalbench.models.config import AgentConfig, JudgeConfig, ProjectConfig
from evalbench.models.dataset import DatasetEntry
from evalbench.models.result import (
    AggregatedReport,
    MetricAggregation,
    MetricComparison,
    MetricStats,
    ReportComparison,
    ScoreResult,
    TranscriptRecord,
)
from evalbench.models.rubric import BooleanKind, EnumKind, NumberKind, Rubric, TextKind
from evalbench.models.suite import EvalSuite, SimulationSettings
from evalbench.models.transcript import Role, Transcript, Turn

__all__ = [
    "AgentConfig",
    "AggregatedReport",
    "BooleanKind",
    "DatasetEntry",
    "EnumKind",
    "EvalSuite",
    "JudgeConfig",
    "MetricAggregation",
    "MetricComparison",
    "MetricStats",
    "NumberKind",
    "ProjectConfig",
    "ReportComparison",
    "Role",
    "Rubric",
    "ScoreResult",
    "SimulationSettings",
    "TextKind",
    "Transcript",
    "TranscriptRecord",
    "Turn",
]
