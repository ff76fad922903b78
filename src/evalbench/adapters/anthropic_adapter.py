"""Anthropic adapter for the evalbench model gateway.

Converts unified Message types to Anthropic messages format. Structured
generation forces a single tool call whose input schema is the requested
Pydantic model.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from evalbench.adapters.base import (
    AdapterConfig,
    AdapterTurnResult,
    BaseAdapter,
    Message,
    TokenUsage,
)

_DEFAULT_MAX_TOKENS = 4096
_STRUCTURED_TOOL_NAME = "submit_result"


class AnthropicAdapter(BaseAdapter):
    """Adapter for Anthropic messages API.

    Uses a lazy-initialized AsyncAnthropic client. When no API key was
    supplied, the SDK reads ANTHROPIC_API_KEY from the environment.
    """

    def __init__(self, api_key: str | None = None) -> None:
        super().__init__(api_key)
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily initialize and return the AsyncAnthropic client."""
        if self._client is None:
            from anthropic import AsyncAnthropic

            self._client = AsyncAnthropic(api_key=self._api_key)
        return self._client

    def _extract_system(
        self, messages: list[Message]
    ) -> tuple[str | None, list[Message]]:
        """Extract system message from the message list.

        Anthropic uses a separate 'system' parameter instead of a system
        message in the messages array. Multiple system messages are
        joined with blank lines.

        Args:
            messages: List of unified Message objects.

        Returns:
            Tuple of (system_prompt or None, remaining messages).
        """
        system_parts: list[str] = []
        remaining: list[Message] = []
        for msg in messages:
            if msg.role == "system":
                system_parts.append(msg.content)
            else:
                remaining.append(msg)
        system_prompt = "\n\n".join(system_parts) if system_parts else None
        return system_prompt, remaining

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert non-system Messages to Anthropic format.

        Anthropic rejects consecutive messages with the same role, so
        adjacent same-role messages are merged.
        """
        result: list[dict[str, Any]] = []
        for msg in messages:
            role = "assistant" if msg.role == "assistant" else "user"
            if result and result[-1]["role"] == role:
                result[-1]["content"] += "\n\n" + msg.content
            else:
                result.append({"role": role, "content": msg.content})
        return result

    def _build_kwargs(
        self,
        system_prompt: str | None,
        messages: list[dict[str, Any]],
        config: AdapterConfig,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": config.model,
            "messages": messages,
            "max_tokens": config.max_tokens if config.max_tokens is not None else _DEFAULT_MAX_TOKENS,
        }

        if system_prompt is not None:
            kwargs["system"] = system_prompt

        if config.temperature is not None:
            kwargs["temperature"] = config.temperature

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
        """Send a conversation to the Anthropic API.

        Args:
            messages: Conversation history as unified Message objects.
            config: Adapter configuration.

        Returns:
            AdapterTurnResult with the model's response.
        """
        client = self._get_client()

        system_prompt, remaining_messages = self._extract_system(messages)
        kwargs = self._build_kwargs(
            system_prompt, self._convert_messages(remaining_messages), config
        )

        response = await client.messages.create(**kwargs)

        content_parts = [block.text for block in response.content if block.type == "text"]
        content = "\n".join(content_parts) if content_parts else None

        usage = TokenUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            total_tokens=response.usage.input_tokens + response.usage.output_tokens,
        )

        return AdapterTurnResult(
            content=content,
            usage=usage,
            raw_response=response.model_dump(),
            finish_reason=response.stop_reason,
        )

    async def generate_structured(
        self,
        prompt: str,
        system: str | None,
        schema: type[BaseModel],
        config: AdapterConfig,
    ) -> dict[str, Any]:
        """Force a tool call carrying the object and validate its input.

        Raises:
            ValueError: If the response contains no matching tool call.
            pydantic.ValidationError: If the tool input does not match schema.
        """
        client = self._get_client()

        kwargs = self._build_kwargs(
            system, [{"role": "user", "content": prompt}], config
        )
        kwargs["tools"] = [
            {
                "name": _STRUCTURED_TOOL_NAME,
                "description": f"Submit the {schema.__name__} object.",
                "input_schema": schema.model_json_schema(),
            }
        ]
        kwargs["tool_choice"] = {"type": "tool", "name": _STRUCTURED_TOOL_NAME}

        response = await client.messages.create(**kwargs)

        for block in response.content:
            if block.type == "tool_use" and block.name == _STRUCTURED_TOOL_NAME:
                # block.input is already a dict, no json.loads needed
                return schema.model_validate(block.input).model_dump(by_alias=True)

        raise ValueError(
            f"Model returned no '{_STRUCTURED_TOOL_NAME}' tool call "
            f"(stop_reason={response.stop_reason})"
        )

    def provider_name(self) -> str:
        """Return the provider name."""
        return "anthropic"
