"""Transcript scoring and result aggregation."""

from evalbench.evaluation.aggregation import aggregate, compare_reports
from evalbench.evaluation.scorer import RubricScorer

__all__ = ["RubricScorer", "aggregate", "compare_reports"]
