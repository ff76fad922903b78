"""Rubric models: named metrics with a tagged union of value kinds.

A rubric is declared by the caller per evaluation, usually in YAML:

    rubric:
      instructions: "Rate the assistant's answer."
      metrics:
        score: number
        passed: boolean
        category: enum:low,medium,high
        notes: text

Each declaration is parsed into one of NumberKind, BooleanKind,
EnumKind, or TextKind. Code that dispatches on kind matches over the
union exhaustively.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator

from evalbench.errors import RubricError


class NumberKind(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["number"] = "number"


class BooleanKind(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["boolean"] = "boolean"


class EnumKind(BaseModel):
    """Closed one-of-N value; options keep their declared order."""

    model_config = {"frozen": True}

    kind: Literal["enum"] = "enum"
    options: tuple[str, ...]


class TextKind(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["text"] = "text"


MetricKind = Annotated[
    Union[NumberKind, BooleanKind, EnumKind, TextKind],
    Field(discriminator="kind"),
]

_NUMBER_ALIASES = frozenset({"number", "numeric", "float", "int", "integer"})
_BOOLEAN_ALIASES = frozenset({"boolean", "bool"})


def _enum_or_text(options: list[Any]) -> EnumKind | TextKind:
    cleaned = [str(o).strip() for o in options if str(o).strip()]
    if not cleaned:
        return TextKind()
    return EnumKind(options=tuple(dict.fromkeys(cleaned)))


def parse_kind(name: str, declaration: Any) -> NumberKind | BooleanKind | EnumKind | TextKind:
    """Parse a declarative metric kind into the tagged union.

    Accepted forms: "number", "boolean", "enum:a,b,c", a list of option
    strings, {"enum": [...]}, an already-built kind, or a kind dict
    ({"kind": "enum", "options": [...]}). Any other string is free text,
    as is "enum:" with no options.

    Raises:
        RubricError: If the declaration is not a string, list, or dict.
    """
    if isinstance(declaration, (NumberKind, BooleanKind, EnumKind, TextKind)):
        return declaration

    if isinstance(declaration, str):
        text = declaration.strip()
        lowered = text.lower()
        if lowered in _NUMBER_ALIASES:
            return NumberKind()
        if lowered in _BOOLEAN_ALIASES:
            return BooleanKind()
        if lowered.startswith("enum:"):
            return _enum_or_text(text[len("enum:"):].split(","))
        return TextKind()

    if isinstance(declaration, list):
        return _enum_or_text(declaration)

    if isinstance(declaration, dict):
        if "enum" in declaration and isinstance(declaration["enum"], list):
            return _enum_or_text(declaration["enum"])
        kind = declaration.get("kind")
        if kind == "enum":
            return _enum_or_text(list(declaration.get("options") or []))
        if isinstance(kind, str):
            return parse_kind(name, kind)

    raise RubricError(
        f"Metric '{name}' has an unsupported kind declaration: {declaration!r}"
    )


def kind_label(kind: NumberKind | BooleanKind | EnumKind | TextKind) -> str:
    """Return the aggregation family for a kind: number, boolean, or string."""
    match kind:
        case NumberKind():
            return "number"
        case BooleanKind():
            return "boolean"
        case EnumKind() | TextKind():
            return "string"


def declaration_of(kind: NumberKind | BooleanKind | EnumKind | TextKind) -> str:
    """Return the short declarative form of a kind ("enum:a,b" etc.)."""
    match kind:
        case NumberKind():
            return "number"
        case BooleanKind():
            return "boolean"
        case EnumKind(options=options):
            return "enum:" + ",".join(options)
        case TextKind():
            return "text"


class Rubric(BaseModel):
    """Caller-declared set of named metrics plus judge instructions.

    An empty rubric (no metrics) is valid: scoring then falls back to
    best-effort JSON extraction from the judge's free text.
    """

    model_config = {"extra": "forbid", "frozen": True}

    instructions: str = ""
    metrics: dict[str, MetricKind] = Field(default_factory=dict)

    @field_validator("metrics", mode="before")
    @classmethod
    def _parse_declarations(cls, value: Any) -> Any:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise RubricError("Rubric metrics must be a mapping of name -> kind")
        parsed: dict[str, Any] = {}
        for name, declaration in value.items():
            if not isinstance(name, str) or not name.strip():
                raise RubricError(f"Rubric metric names must be non-empty strings, got {name!r}")
            parsed[name] = parse_kind(name, declaration)
        return parsed

    @classmethod
    def from_mapping(cls, metrics: dict[str, Any], instructions: str = "") -> Rubric:
        """Build a rubric from a plain name -> declaration mapping."""
        return cls(instructions=instructions, metrics=metrics)

    def declarations(self) -> dict[str, str]:
        """Return metrics in their short declarative form."""
        return {name: declaration_of(kind) for name, kind in self.metrics.items()}

    @property
    def has_metrics(self) -> bool:
        return bool(self.metrics)
