"""Aggregate per-metric statistics across many score results.

Pure functions: no I/O, no judge calls. Malformed values never raise;
values that do not fit a field's kind are skipped.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable
from typing import Any, Literal

from evalbench.models.result import (
    AggregatedReport,
    MetricAggregation,
    MetricComparison,
    MetricStats,
    ReportComparison,
    ScoreResult,
)
from evalbench.models.rubric import Rubric, kind_label

MAX_LABEL_LENGTH = 50

KindLabel = Literal["number", "boolean", "string"]


def _infer_kind(value: Any) -> KindLabel:
    # bool before int: bool is an int subtype
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _number_label(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _string_label(value: Any) -> str:
    text = value if isinstance(value, str) else str(value)
    if len(text) > MAX_LABEL_LENGTH:
        return text[:MAX_LABEL_LENGTH] + "..."
    return text


def number_stats(values: list[float]) -> MetricStats:
    """Summary statistics over a non-empty list of numbers.

    Median is the lower-middle element for even counts; p90 is the
    element at index floor(0.9 * n), clamped to the last index.
    """
    ordered = sorted(values)
    n = len(ordered)
    return MetricStats(
        avg=sum(ordered) / n,
        min=ordered[0],
        max=ordered[-1],
        median=ordered[(n - 1) // 2],
        p90=ordered[min(math.floor(0.9 * n), n - 1)],
    )


def aggregate_metric(kind: KindLabel, values: list[Any]) -> MetricAggregation | None:
    """Aggregate one field's values. Returns None if none are usable."""
    if kind == "number":
        numbers = [v for v in values if _is_number(v)]
        if not numbers:
            return None
        return MetricAggregation(
            kind="number",
            count=len(numbers),
            stats=number_stats(numbers),
            distribution=dict(Counter(_number_label(v) for v in sorted(numbers))),
        )

    if kind == "boolean":
        flags = [v for v in values if isinstance(v, bool)]
        if not flags:
            return None
        true_count = sum(1 for v in flags if v)
        return MetricAggregation(
            kind="boolean",
            count=len(flags),
            distribution={"true": true_count, "false": len(flags) - true_count},
        )

    if not values:
        return None
    return MetricAggregation(
        kind="string",
        count=len(values),
        distribution=dict(Counter(_string_label(v) for v in values)),
    )


def aggregate(results: Iterable[ScoreResult], rubric: Rubric | None = None) -> AggregatedReport:
    """Aggregate metrics across score results.

    Args:
        results: Score results to summarize.
        rubric: When given (with metrics), defines the field set and each
            field's kind. Otherwise fields are the union of observed keys
            and kinds are inferred from the first value seen.

    Returns:
        AggregatedReport with fields in lexical order. Fields without any
        usable value are omitted.
    """
    results = list(results)
    if not results:
        return AggregatedReport(total_runs=0)

    if rubric is not None and rubric.has_metrics:
        fields = sorted(rubric.metrics)
    else:
        fields = sorted({key for result in results for key in result.metrics})

    metrics: dict[str, MetricAggregation] = {}
    for field in fields:
        values = [
            result.metrics[field]
            for result in results
            if result.metrics.get(field) is not None
        ]
        if not values:
            continue

        if rubric is not None and field in rubric.metrics:
            kind: KindLabel = kind_label(rubric.metrics[field])
        else:
            kind = _infer_kind(values[0])

        aggregation = aggregate_metric(kind, values)
        if aggregation is not None:
            metrics[field] = aggregation

    return AggregatedReport(total_runs=len(results), metrics=metrics)


def headline(aggregation: MetricAggregation) -> float | None:
    """Single figure used to compare a metric across runs.

    The average for number metrics and the true rate for boolean
    metrics. String metrics have no headline.
    """
    if aggregation.kind == "number" and aggregation.stats is not None:
        return aggregation.stats.avg
    if aggregation.kind == "boolean" and aggregation.count:
        return aggregation.distribution.get("true", 0) / aggregation.count
    return None


def compare_reports(
    baseline: AggregatedReport,
    candidate: AggregatedReport,
    baseline_label: str = "baseline",
    candidate_label: str = "candidate",
) -> ReportComparison:
    """Pair up the metrics of two reports and compute candidate deltas.

    Metrics present in only one report are kept with the other side
    empty. A metric whose kind differs between the reports has no delta.
    """
    metrics: dict[str, MetricComparison] = {}
    for name in sorted(set(baseline.metrics) | set(candidate.metrics)):
        before = baseline.metrics.get(name)
        after = candidate.metrics.get(name)
        delta: float | None = None
        if before is not None and after is not None and before.kind == after.kind:
            before_value, after_value = headline(before), headline(after)
            if before_value is not None and after_value is not None:
                delta = after_value - before_value
        kind = after.kind if after is not None else baseline.metrics[name].kind
        metrics[name] = MetricComparison(kind=kind, baseline=before, candidate=after, delta=delta)

    return ReportComparison(
        baseline_label=baseline_label,
        candidate_label=candidate_label,
        baseline_runs=baseline.total_runs,
        candidate_runs=candidate.total_runs,
        metrics=metrics,
    )
