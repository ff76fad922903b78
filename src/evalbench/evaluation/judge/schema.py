"""Dynamic pydantic schema for a rubric's metrics.

Each metric becomes a required field typed by its kind. Fields are
declared under positional internal names and aliased to the metric
name, so any metric name (including ones that are not Python
identifiers or that clash with BaseModel attributes) is accepted.
Dump with ``by_alias=True`` to get metric names back.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, create_model

from evalbench.models.rubric import BooleanKind, EnumKind, NumberKind, Rubric, TextKind

SCHEMA_NAME = "RubricMetrics"


def _field_for(name: str, kind: NumberKind | BooleanKind | EnumKind | TextKind) -> tuple[Any, Any]:
    match kind:
        case NumberKind():
            return float, Field(alias=name, description=f"Score for {name}")
        case BooleanKind():
            return bool, Field(alias=name, description=f"True if {name} is met")
        case EnumKind(options=options):
            return Literal[options], Field(alias=name, description=f"One of: {', '.join(options)}")
        case TextKind():
            return str, Field(alias=name, description=f"Analysis/Value for {name}")


def build_metrics_model(rubric: Rubric) -> type[BaseModel]:
    """Build a pydantic model with one required field per rubric metric.

    Args:
        rubric: Rubric whose metrics define the fields, in declared order.

    Returns:
        A dynamically created BaseModel subclass named RubricMetrics.
    """
    fields = {
        f"metric_{index}": _field_for(name, kind)
        for index, (name, kind) in enumerate(rubric.metrics.items())
    }
    return create_model(SCHEMA_NAME, **fields)
