"""Evaluation suite model: the user-facing YAML contract for a batch run.

A suite names the generation agent, the optional simulated-user agent,
the judge, the rubric, and the dataset (inline or in a separate file).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from evalbench.models.config import AgentConfig, JudgeConfig
from evalbench.models.dataset import DatasetEntry, load_dataset
from evalbench.models.rubric import Rubric

DEFAULT_USER_INSTRUCTION = "You are a simulated user."


class SimulationSettings(BaseModel):
    """Settings for a standalone simulated conversation."""

    model_config = {"extra": "forbid"}

    user_instruction: str = DEFAULT_USER_INSTRUCTION
    seed_message: str | None = None
    who_starts_first: Literal["assistant", "user"] = "assistant"


class EvalSuite(BaseModel):
    """A complete evaluation suite definition loaded from YAML."""

    model_config = {"extra": "forbid"}

    description: str = ""
    prompt_version: str | None = None
    generation: AgentConfig
    user_simulator: AgentConfig | None = None
    judge: JudgeConfig | None = None
    rubric: Rubric = Field(default_factory=Rubric)
    max_turns: int = Field(default=10, ge=1, le=100)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    dataset: list[DatasetEntry] = Field(default_factory=list)
    dataset_file: str | None = None

    def resolve_entries(self, base_dir: Path) -> list[DatasetEntry]:
        """Return inline entries followed by entries from dataset_file.

        Args:
            base_dir: Directory that a relative dataset_file is resolved against.
        """
        entries = list(self.dataset)
        if self.dataset_file:
            path = Path(self.dataset_file)
            if not path.is_absolute():
                path = base_dir / path
            entries.extend(load_dataset(path))
        return entries
