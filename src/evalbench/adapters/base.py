"""BaseAdapter ABC and unified message/result dataclasses.

All provider adapters (OpenAI, Anthropic, custom) subclass BaseAdapter
and implement generate_text() and generate_structured(). These two call
shapes are the only thing the engine knows about a model provider.

These are plain dataclasses (not Pydantic) to avoid overhead in the
hot path of adapter calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel


@dataclass
class TokenUsage:
    """Token usage counts from a single adapter call."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


@dataclass
class AdapterTurnResult:
    """Result of a single generate_text() call to a provider adapter.

    Captures the model's response content, token usage, the raw
    provider response (for debugging), and the finish reason.
    """

    content: str | None
    usage: TokenUsage
    raw_response: dict[str, Any]
    finish_reason: str


@dataclass
class Message:
    """A single message sent to a model.

    Roles: system, user, assistant.
    """

    role: str
    content: str


@dataclass
class AdapterConfig:
    """Generation parameters passed to an adapter for a single call.

    Holds model name, sampling parameters, and provider-specific
    extras passed through to the SDK unchanged.
    """

    model: str
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    extras: dict[str, Any] = field(default_factory=dict)


class BaseAdapter(ABC):
    """Abstract base class for all provider adapters.

    Subclasses receive an optional API key at construction time; when
    None, the provider SDK reads its own environment variable.
    """

    def __init__(self, api_key: str | None = None) -> None:
        self._api_key = api_key

    @abstractmethod
    async def generate_text(
        self,
        messages: list[Message],
        config: AdapterConfig,
    ) -> AdapterTurnResult:
        """Send a conversation to the model and return its text reply.

        Args:
            messages: Conversation history, system message first if any.
            config: Model name and generation parameters.

        Returns:
            AdapterTurnResult with the model's response.
        """
        ...

    @abstractmethod
    async def generate_structured(
        self,
        prompt: str,
        system: str | None,
        schema: type[BaseModel],
        config: AdapterConfig,
    ) -> dict[str, Any]:
        """Ask the model for an object matching schema.

        Args:
            prompt: User-role prompt text.
            system: Optional system instruction.
            schema: Pydantic model describing the expected object.
            config: Model name and generation parameters.

        Returns:
            The validated object as a plain dict.

        Raises:
            Exception: If the model refuses, returns no object, or the
                object does not validate against schema.
        """
        ...

    def provider_name(self) -> str:
        """Return the provider name for this adapter.

        Default implementation returns the class name.
        Subclasses may override for custom naming.
        """
        return type(self).__name__
