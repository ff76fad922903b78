"""Agent, judge, and project configuration models for evalbench.

AgentConfig describes one conversational role (model + sampling +
system instruction). ProjectConfig captures evalbench.yaml fields with
sensible defaults for project-level settings like storage and API keys.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from evalbench.adapters.base import AdapterConfig

PROJECT_CONFIG_FILE = "evalbench.yaml"
DEFAULT_STORAGE_DIR = ".evalbench"


class AgentConfig(BaseModel):
    """Model configuration for one conversational role.

    Immutable for the duration of a run. The api_key, when given,
    overrides the project settings and environment lookup and is never
    serialized.
    """

    model_config = {"extra": "forbid", "frozen": True}

    provider: str = "openai"
    model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=500, ge=1, le=32768)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    system_instruction: str = ""
    api_key: str | None = Field(default=None, exclude=True, repr=False)

    def to_adapter_config(self) -> AdapterConfig:
        """Build the per-call AdapterConfig for this agent."""
        return AdapterConfig(
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            top_p=self.top_p,
        )


class JudgeConfig(BaseModel):
    """Configuration for the judge model that scores transcripts."""

    model_config = {"extra": "forbid", "frozen": True}

    provider: str = "openai"
    model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=1000, ge=1, le=32768)
    api_key: str | None = Field(default=None, exclude=True, repr=False)

    def to_adapter_config(self, temperature: float | None = None) -> AdapterConfig:
        """Build the per-call AdapterConfig, optionally overriding temperature."""
        return AdapterConfig(
            model=self.model,
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=self.max_tokens,
        )


class ProjectConfig(BaseModel):
    """Project-level configuration loaded from evalbench.yaml."""

    model_config = {"extra": "forbid"}

    default_provider: str = "openai"
    default_model: str = "gpt-4o-mini"
    storage_dir: str = DEFAULT_STORAGE_DIR
    log_format: Literal["console", "json"] = "console"
    judge: JudgeConfig = Field(default_factory=JudgeConfig)
    api_keys: dict[str, str] = Field(default_factory=dict)

    def api_key_lookup(self) -> Callable[[str], str | None]:
        """Return a settings lookup mapping provider name to API key."""
        keys = {name.lower(): value for name, value in self.api_keys.items()}

        def lookup(provider: str) -> str | None:
            return keys.get(provider.lower())

        return lookup


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from start (default: cwd) looking for evalbench.yaml or .evalbench/.

    Args:
        start: Starting path (file or directory). Defaults to cwd.

    Returns:
        Path to the project root directory, or cwd if none is found.
    """
    current = (start or Path.cwd()).resolve()
    if current.is_file():
        current = current.parent
    while current != current.parent:
        if (current / PROJECT_CONFIG_FILE).exists() or (current / DEFAULT_STORAGE_DIR).exists():
            return current
        current = current.parent
    return Path.cwd()


def load_project_config(project_root: Path | None = None) -> ProjectConfig:
    """Load ProjectConfig from evalbench.yaml. Returns defaults if not found.

    Args:
        project_root: Path to the project root directory. If None,
            uses find_project_root() to locate it.

    Returns:
        Validated ProjectConfig instance.
    """
    if project_root is None:
        project_root = find_project_root()
    config_path = project_root / PROJECT_CONFIG_FILE
    if not config_path.exists():
        return ProjectConfig()
    import yaml

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if raw is None:
        return ProjectConfig()
    return ProjectConfig.model_validate(raw)
