"""OpenAI adapter for the evalbench model gateway.

Converts unified Message types to OpenAI chat completion format and
uses JSON-schema response formats for structured generation.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from evalbench.adapters.base import (
    AdapterConfig,
    AdapterTurnResult,
    BaseAdapter,
    Message,
    TokenUsage,
)


class OpenAIAdapter(BaseAdapter):
    """Adapter for OpenAI chat completion API.

    Uses a lazy-initialized AsyncOpenAI client. When no API key was
    supplied, the SDK reads OPENAI_API_KEY from the environment.
    """

    def __init__(self, api_key: str | None = None) -> None:
        super().__init__(api_key)
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily initialize and return the AsyncOpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert unified Messages to OpenAI chat format.

        Args:
            messages: List of unified Message objects.

        Returns:
            List of dicts in OpenAI chat completion message format.
        """
        return [
            {"role": msg.role, "content": msg.content}
            for msg in messages
            if msg.role in ("system", "user", "assistant")
        ]

    def _build_kwargs(
        self, messages: list[dict[str, Any]], config: AdapterConfig
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": config.model,
            "messages": messages,
        }

        if config.temperature is not None:
            kwargs["temperature"] = config.temperature

        if config.max_tokens is not None:
            kwargs["max_tokens"] = config.max_tokens

        if config.top_p is not None:
            kwargs["top_p"] = config.top_p

        # Pass through provider-specific extras
        kwargs.update(config.extras)
        return kwargs

    async def generate_text(
        self,
        messages: list[Message],
        config: AdapterConfig,
    ) -> AdapterTurnResult:
        """Send a conversation to the OpenAI API.

        Args:
            messages: Conversation history as unified Message objects.
            config: Adapter configuration.

        Returns:
            AdapterTurnResult with the model's response.
        """
        client = self._get_client()
        kwargs = self._build_kwargs(self._convert_messages(messages), config)

        response = await client.chat.completions.create(**kwargs)

        choice = response.choices[0]

        usage = TokenUsage(
            input_tokens=response.usage.prompt_tokens,
            output_tokens=response.usage.completion_tokens,
            total_tokens=response.usage.total_tokens,
        )

        return AdapterTurnResult(
            content=choice.message.content,
            usage=usage,
            raw_response=response.model_dump(),
            finish_reason=choice.finish_reason,
        )

    async def generate_structured(
        self,
        prompt: str,
        system: str | None,
        schema: type[BaseModel],
        config: AdapterConfig,
    ) -> dict[str, Any]:
        """Request a JSON object constrained by schema and validate it.

        Raises:
            ValueError: If the model refuses or returns no content.
            pydantic.ValidationError: If the object does not match schema.
        """
        client = self._get_client()

        messages: list[dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs = self._build_kwargs(messages, config)
        kwargs["response_format"] = {
            "type": "json_schema",
            "json_schema": {
                "name": schema.__name__,
                "schema": schema.model_json_schema(),
            },
        }

        response = await client.chat.completions.create(**kwargs)
        message = response.choices[0].message

        refusal = getattr(message, "refusal", None)
        if isinstance(refusal, str) and refusal:
            raise ValueError(f"Model refused structured output: {refusal}")
        if not message.content:
            raise ValueError("Model returned no structured content")

        return schema.model_validate(json.loads(message.content)).model_dump(by_alias=True)

    def provider_name(self) -> str:
        """Return the provider name."""
        return "openai"
