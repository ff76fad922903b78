"""Single-shot generation: one assistant reply to one user input."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from evalbench.adapters.base import BaseAdapter, Message, TokenUsage
from evalbench.errors import GenerationError
from evalbench.models.config import AgentConfig
from evalbench.models.transcript import Role, Transcript

log = structlog.get_logger()


@dataclass
class GenerationResult:
    """Transcript of a single-shot generation and the tokens it used."""

    transcript: Transcript
    usage: TokenUsage = field(default_factory=TokenUsage)


async def generate_single_turn(
    adapter: BaseAdapter,
    config: AgentConfig,
    user_input: str,
    system_instruction: str | None = None,
) -> GenerationResult:
    """Generate one assistant reply to user_input.

    Returns:
        GenerationResult whose transcript holds two turns: the user
        input, then the reply.

    Raises:
        GenerationError: If the adapter call fails or returns no content.
    """
    instruction = config.system_instruction if system_instruction is None else system_instruction
    messages: list[Message] = []
    if instruction:
        messages.append(Message(role=Role.system.value, content=instruction))
    messages.append(Message(role=Role.user.value, content=user_input))

    try:
        result = await adapter.generate_text(messages, config.to_adapter_config())
    except Exception as exc:
        log.warning("generation.failed", provider=config.provider, model=config.model, error=str(exc))
        raise GenerationError(f"{type(exc).__name__}: {exc}", Transcript()) from exc

    if result.content is None:
        raise GenerationError("Model returned no content", Transcript())

    transcript = Transcript()
    transcript.add(Role.user, user_input)
    transcript.add(Role.assistant, result.content)
    return GenerationResult(transcript=transcript, usage=result.usage)
