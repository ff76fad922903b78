"""ConversationSimulator: two-agent turn-taking loop.

Drives a conversation between an assistant agent and a simulated-user
agent, each with its own model config and system instruction, until an
agent signals the end, the turn budget is exhausted, or the caller
cancels. State is created per simulate() call and discarded after.

Turn budget: ``max_turns`` counts individually generated turns (an
assistant reply and a user reply are two turns). A seed message is not
generated and does not count against the budget.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

import structlog

from evalbench.adapters.base import BaseAdapter, Message, TokenUsage
from evalbench.adapters.registry import AdapterResolver, ApiKeySource, get_adapter, resolve_agent_adapter
from evalbench.errors import ConfigurationError, SimulationError
from evalbench.execution.perspective import flip_role, remap
from evalbench.execution.termination import is_conversation_over
from evalbench.models.config import AgentConfig
from evalbench.models.transcript import Role, Transcript, Turn

log = structlog.get_logger()

TurnCallback = Callable[[Turn, Transcript], None]


class StopReason(str, Enum):
    """Why a simulation ended."""

    terminated = "terminated"
    budget_exhausted = "budget_exhausted"
    cancelled = "cancelled"


@dataclass
class SimulationState:
    """Mutable run state owned by a single simulate() call.

    Invariants: turns_taken never exceeds max_turns; active goes from
    True to False exactly once.
    """

    max_turns: int
    turns_taken: int = 0
    active: bool = True
    current_speaker: Role | None = None

    def record_turn(self) -> None:
        if not self.active:
            raise RuntimeError("Cannot record a turn on a finished simulation")
        if self.turns_taken >= self.max_turns:
            raise RuntimeError("Turn budget already exhausted")
        self.turns_taken += 1

    @property
    def budget_exhausted(self) -> bool:
        return self.turns_taken >= self.max_turns

    def finish(self) -> None:
        if not self.active:
            raise RuntimeError("Simulation already finished")
        self.active = False
        self.current_speaker = None


@dataclass
class SimulationResult:
    """Outcome of a completed (or cancelled) simulation."""

    transcript: Transcript
    stop_reason: StopReason
    turns_taken: int
    terminated_by: Role | None = None
    usage: TokenUsage = field(default_factory=TokenUsage)


class ConversationSimulator:
    """Runs simulated conversations between two model agents.

    Adapters are resolved from each agent's provider before the first
    turn, so configuration errors surface before any model call. Callers
    that already hold resolved adapters pass them in instead.
    """

    def __init__(
        self,
        resolve_adapter: AdapterResolver = get_adapter,
        api_keys: ApiKeySource = None,
    ) -> None:
        self._resolve_adapter = resolve_adapter
        self._api_keys = api_keys

    async def simulate(
        self,
        assistant_config: AgentConfig,
        user_config: AgentConfig,
        assistant_instruction: str | None = None,
        user_instruction: str | None = None,
        max_turns: int = 10,
        seed_message: str | None = None,
        who_starts_first: Role | str = Role.assistant,
        stop_event: asyncio.Event | None = None,
        on_turn: TurnCallback | None = None,
        assistant_adapter: BaseAdapter | None = None,
        user_adapter: BaseAdapter | None = None,
    ) -> SimulationResult:
        """Run one conversation to completion.

        Args:
            assistant_config: Model config for the assistant role.
            user_config: Model config for the simulated-user role.
            assistant_instruction: System instruction for the assistant;
                defaults to assistant_config.system_instruction.
            user_instruction: System instruction for the simulated user;
                defaults to user_config.system_instruction.
            max_turns: Maximum number of generated turns.
            seed_message: Optional opening message attributed to
                who_starts_first and used verbatim; the other role then
                generates first.
            who_starts_first: Role that opens the conversation.
            stop_event: Cancellation signal checked before every turn.
            on_turn: Called with each appended turn and the transcript.
            assistant_adapter: Pre-resolved adapter for the assistant.
            user_adapter: Pre-resolved adapter for the simulated user.

        Returns:
            SimulationResult with the transcript, stop reason and summed
            token usage of the generated turns.

        Raises:
            ConfigurationError: If max_turns < 1, the starting role is not
                assistant/user, or an adapter cannot be resolved.
            SimulationError: If a model call fails. The error carries the
                transcript as it stood before the failed turn.
        """
        if max_turns < 1:
            raise ConfigurationError(f"max_turns must be at least 1, got {max_turns}")

        first = Role(who_starts_first)
        if first is Role.system:
            raise ConfigurationError("who_starts_first must be 'assistant' or 'user'")

        if assistant_adapter is None:
            assistant_adapter = resolve_agent_adapter(assistant_config, self._resolve_adapter, self._api_keys)
        if user_adapter is None:
            user_adapter = resolve_agent_adapter(user_config, self._resolve_adapter, self._api_keys)

        agents = {
            Role.assistant: (
                assistant_config,
                assistant_config.system_instruction if assistant_instruction is None else assistant_instruction,
                assistant_adapter,
            ),
            Role.user: (
                user_config,
                user_config.system_instruction if user_instruction is None else user_instruction,
                user_adapter,
            ),
        }

        transcript = Transcript()
        state = SimulationState(max_turns=max_turns)
        usage = TokenUsage()
        speaker = first

        if seed_message:
            seed = transcript.add(speaker, seed_message)
            if on_turn is not None:
                on_turn(seed, transcript)
            speaker = flip_role(speaker)

        stop_reason: StopReason
        terminated_by: Role | None = None

        while True:
            if stop_event is not None and stop_event.is_set():
                stop_reason = StopReason.cancelled
                break

            state.current_speaker = speaker
            config, instruction, adapter = agents[speaker]

            messages: list[Message] = []
            if instruction:
                messages.append(Message(role=Role.system.value, content=instruction))
            messages.extend(remap(transcript, speaker))

            try:
                result = await adapter.generate_text(messages, config.to_adapter_config())
            except Exception as exc:
                state.finish()
                log.warning(
                    "simulation.turn_failed",
                    speaker=speaker.value,
                    turn=state.turns_taken + 1,
                    error=str(exc),
                )
                raise SimulationError(
                    f"{speaker.value} turn {state.turns_taken + 1} failed: "
                    f"{type(exc).__name__}: {exc}",
                    transcript=transcript,
                    turns_taken=state.turns_taken,
                ) from exc

            if result.content is None:
                state.finish()
                raise SimulationError(
                    f"{speaker.value} turn {state.turns_taken + 1} returned no content",
                    transcript=transcript,
                    turns_taken=state.turns_taken,
                )

            turn = transcript.add(speaker, result.content)
            state.record_turn()
            usage = usage + result.usage
            log.debug(
                "simulation.turn_completed",
                speaker=speaker.value,
                turn=state.turns_taken,
                max_turns=max_turns,
            )
            if on_turn is not None:
                on_turn(turn, transcript)

            if is_conversation_over(result.content):
                stop_reason = StopReason.terminated
                terminated_by = speaker
                break

            if state.budget_exhausted:
                stop_reason = StopReason.budget_exhausted
                break

            speaker = flip_role(speaker)

        turns_taken = state.turns_taken
        state.finish()
        log.info(
            "simulation.completed",
            stop_reason=stop_reason.value,
            turns_taken=turns_taken,
            transcript_length=len(transcript),
            total_tokens=usage.total_tokens,
        )

        return SimulationResult(
            transcript=transcript,
            stop_reason=stop_reason,
            turns_taken=turns_taken,
            terminated_by=terminated_by,
            usage=usage,
        )
