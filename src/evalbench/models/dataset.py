"""Dataset entry model and dataset file loading.

Entries are either single-turn (one input, one generated reply) or
multi-turn (a simulated conversation). Datasets are stored as JSONL
(one entry per line) or YAML (a list of entries, or a mapping with an
``entries`` key).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from evalbench.models.transcript import Turn


class DatasetEntry(BaseModel):
    """A single test case fed through generation and scoring."""

    model_config = {"extra": "forbid"}

    id: str
    type: Literal["single-turn", "multi-turn"] = "single-turn"
    title: str | None = None
    input: str | None = None
    prompt: str | None = None
    expected_behavior: str | None = None
    conversation: list[Turn] = Field(default_factory=list)

    def description(self) -> str:
        """Short human-readable label used in progress reporting."""
        if self.title:
            return self.title
        if self.input:
            return self.input[:50]
        return "Untitled"


def load_dataset(path: Path) -> list[DatasetEntry]:
    """Load dataset entries from a JSONL or YAML file.

    Args:
        path: Path to a .jsonl, .yaml, or .yml file.

    Returns:
        Validated entries in file order.

    Raises:
        ValueError: If the extension is unsupported or the YAML shape is wrong.
        pydantic.ValidationError: If an entry fails validation.
    """
    text = path.read_text(encoding="utf-8")

    if path.suffix == ".jsonl":
        return [
            DatasetEntry.model_validate(json.loads(line))
            for line in text.splitlines()
            if line.strip()
        ]

    if path.suffix in (".yaml", ".yml"):
        raw = yaml.safe_load(text)
        if isinstance(raw, dict):
            raw = raw.get("entries")
        if not isinstance(raw, list):
            raise ValueError(
                f"{path}: expected a list of entries or a mapping with an 'entries' list"
            )
        return [DatasetEntry.model_validate(item) for item in raw]

    raise ValueError(f"Unsupported dataset format '{path.suffix}' (use .jsonl or .yaml)")
