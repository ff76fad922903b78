"""Tests for evalbench.execution.simulator - ConversationSimulator turn loop."""

from __future__ import annotations

import asyncio

import pytest

from evalbench.adapters.base import AdapterConfig, AdapterTurnResult, BaseAdapter, Message, TokenUsage
from evalbench.errors import ConfigurationError, MissingCredentialsError, SimulationError
from evalbench.execution.simulator import ConversationSimulator, SimulationState, StopReason
from evalbench.models.config import AgentConfig
from evalbench.models.transcript import Role


class ScriptedAdapter(BaseAdapter):
    """Returns scripted replies in order; an Exception entry is raised instead.

    When the script runs out, replies with a numbered filler message.
    """

    def __init__(self, replies: list[str | None | Exception] | None = None, name: str = "agent") -> None:
        super().__init__()
        self._replies = list(replies or [])
        self._name = name
        self.calls: list[tuple[list[Message], AdapterConfig]] = []

    async def generate_text(self, messages, config):
        self.calls.append((list(messages), config))
        reply = self._replies.pop(0) if self._replies else f"{self._name} reply {len(self.calls)}"
        if isinstance(reply, Exception):
            raise reply
        usage = TokenUsage(input_tokens=10, output_tokens=2, total_tokens=12)
        return AdapterTurnResult(content=reply, usage=usage, raw_response={}, finish_reason="stop")

    async def generate_structured(self, prompt, system, schema, config):
        raise NotImplementedError


ASSISTANT = AgentConfig(provider="fake.assistant", model="assistant-model", system_instruction="Be helpful.")
USER = AgentConfig(provider="fake.user", model="user-model", temperature=1.0, system_instruction="Act as a customer.")


def _simulator(assistant: ScriptedAdapter, user: ScriptedAdapter) -> ConversationSimulator:
    adapters = {"fake.assistant": assistant, "fake.user": user}
    return ConversationSimulator(resolve_adapter=lambda provider, api_key: adapters[provider])


class TestSimulationState:
    def test_record_turn_respects_budget(self):
        state = SimulationState(max_turns=1)
        state.record_turn()
        assert state.budget_exhausted
        with pytest.raises(RuntimeError):
            state.record_turn()

    def test_finish_only_once(self):
        state = SimulationState(max_turns=3, current_speaker=Role.user)
        state.finish()
        assert not state.active
        assert state.current_speaker is None
        with pytest.raises(RuntimeError):
            state.finish()


class TestTurnBudget:
    @pytest.mark.asyncio
    async def test_budget_counts_generated_turns(self):
        assistant, user = ScriptedAdapter(name="a"), ScriptedAdapter(name="u")
        result = await _simulator(assistant, user).simulate(ASSISTANT, USER, max_turns=4)

        assert result.stop_reason is StopReason.budget_exhausted
        assert result.turns_taken == 4
        assert [t.role for t in result.transcript] == [Role.assistant, Role.user, Role.assistant, Role.user]
        assert len(assistant.calls) == 2
        assert len(user.calls) == 2

    @pytest.mark.asyncio
    async def test_seed_not_counted(self):
        assistant, user = ScriptedAdapter(name="a"), ScriptedAdapter(name="u")
        result = await _simulator(assistant, user).simulate(
            ASSISTANT, USER, max_turns=3, seed_message="I need a refund", who_starts_first=Role.user
        )

        assert result.turns_taken == 3
        assert len(result.transcript) == 4
        first = result.transcript[0]
        assert (first.role, first.content) == (Role.user, "I need a refund")
        assert result.transcript[1].role is Role.assistant
        # The user agent never generated the seed.
        assert len(user.calls) == 1

    @pytest.mark.asyncio
    async def test_seed_not_checked_for_termination(self):
        assistant, user = ScriptedAdapter(name="a"), ScriptedAdapter(name="u")
        result = await _simulator(assistant, user).simulate(
            ASSISTANT, USER, max_turns=1, seed_message="[END]", who_starts_first="user"
        )
        assert result.stop_reason is StopReason.budget_exhausted
        assert len(result.transcript) == 2

    @pytest.mark.asyncio
    async def test_max_turns_below_one_is_configuration_error(self):
        assistant, user = ScriptedAdapter(), ScriptedAdapter()
        with pytest.raises(ConfigurationError, match="max_turns"):
            await _simulator(assistant, user).simulate(ASSISTANT, USER, max_turns=0)
        assert assistant.calls == []


class TestTermination:
    @pytest.mark.asyncio
    async def test_terminal_turn_kept(self):
        assistant = ScriptedAdapter(["How can I help?", "Glad I could help. [END]"])
        user = ScriptedAdapter(["My order is late."])
        result = await _simulator(assistant, user).simulate(ASSISTANT, USER, max_turns=10)

        assert result.stop_reason is StopReason.terminated
        assert result.terminated_by is Role.assistant
        assert result.turns_taken == 3
        assert result.transcript[-1].content == "Glad I could help. [END]"

    @pytest.mark.asyncio
    async def test_user_can_terminate(self):
        assistant = ScriptedAdapter(["Hello!"])
        user = ScriptedAdapter(["I have no further questions."])
        result = await _simulator(assistant, user).simulate(ASSISTANT, USER, max_turns=10)

        assert result.stop_reason is StopReason.terminated
        assert result.terminated_by is Role.user

    @pytest.mark.asyncio
    async def test_termination_on_last_budgeted_turn_reports_terminated(self):
        assistant = ScriptedAdapter(["Bye [END]"])
        result = await _simulator(assistant, ScriptedAdapter()).simulate(ASSISTANT, USER, max_turns=1)
        assert result.stop_reason is StopReason.terminated


class TestCancellation:
    @pytest.mark.asyncio
    async def test_preset_event_appends_nothing(self):
        assistant, user = ScriptedAdapter(), ScriptedAdapter()
        stop = asyncio.Event()
        stop.set()
        result = await _simulator(assistant, user).simulate(ASSISTANT, USER, max_turns=5, stop_event=stop)

        assert result.stop_reason is StopReason.cancelled
        assert len(result.transcript) == 0
        assert assistant.calls == []

    @pytest.mark.asyncio
    async def test_cancel_between_turns(self):
        assistant, user = ScriptedAdapter(), ScriptedAdapter()
        stop = asyncio.Event()

        def on_turn(turn, transcript):
            if len(transcript) == 2:
                stop.set()

        result = await _simulator(assistant, user).simulate(
            ASSISTANT, USER, max_turns=10, stop_event=stop, on_turn=on_turn
        )

        assert result.stop_reason is StopReason.cancelled
        assert result.turns_taken == 2
        assert len(result.transcript) == 2


class TestFailures:
    @pytest.mark.asyncio
    async def test_gateway_error_keeps_partial_transcript(self):
        assistant = ScriptedAdapter(["Hello!"])
        user = ScriptedAdapter([RuntimeError("503 Service Unavailable")])

        with pytest.raises(SimulationError, match="503") as exc_info:
            await _simulator(assistant, user).simulate(ASSISTANT, USER, max_turns=6)

        error = exc_info.value
        assert error.turns_taken == 1
        assert [t.content for t in error.transcript] == ["Hello!"]
        assert isinstance(error.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_no_content_is_an_error(self):
        assistant = ScriptedAdapter([None])
        with pytest.raises(SimulationError, match="no content") as exc_info:
            await _simulator(assistant, ScriptedAdapter()).simulate(ASSISTANT, USER, max_turns=2)
        assert len(exc_info.value.transcript) == 0

    @pytest.mark.asyncio
    async def test_adapter_resolution_errors_raise_before_any_call(self):
        assistant = ScriptedAdapter()

        def resolver(provider, api_key):
            if provider == "fake.user":
                raise MissingCredentialsError("fake.user")
            return assistant

        with pytest.raises(MissingCredentialsError):
            await ConversationSimulator(resolver).simulate(ASSISTANT, USER, max_turns=2)
        assert assistant.calls == []

    @pytest.mark.asyncio
    async def test_system_cannot_start(self):
        with pytest.raises(ConfigurationError, match="who_starts_first"):
            await _simulator(ScriptedAdapter(), ScriptedAdapter()).simulate(
                ASSISTANT, USER, max_turns=2, who_starts_first=Role.system
            )


class TestMessagesSentToAgents:
    @pytest.mark.asyncio
    async def test_each_agent_sees_its_own_turns_as_assistant(self):
        assistant = ScriptedAdapter(["Hi, how can I help?", "Sure."])
        user = ScriptedAdapter(["Where is my order?"])
        await _simulator(assistant, user).simulate(ASSISTANT, USER, max_turns=3)

        user_messages, user_config = user.calls[0]
        assert user_messages == [
            Message(role="system", content="Act as a customer."),
            Message(role="user", content="Hi, how can I help?"),
        ]
        assert user_config.model == "user-model"
        assert user_config.temperature == 1.0

        assistant_messages, assistant_config = assistant.calls[1]
        assert assistant_messages == [
            Message(role="system", content="Be helpful."),
            Message(role="assistant", content="Hi, how can I help?"),
            Message(role="user", content="Where is my order?"),
        ]
        assert assistant_config.model == "assistant-model"

    @pytest.mark.asyncio
    async def test_explicit_instructions_override_config(self):
        assistant, user = ScriptedAdapter(), ScriptedAdapter()
        await _simulator(assistant, user).simulate(
            ASSISTANT, USER, assistant_instruction="Override", user_instruction="", max_turns=2
        )
        assert assistant.calls[0][0][0] == Message(role="system", content="Override")
        # An empty instruction sends no system message.
        assert all(m.role != "system" for m in user.calls[0][0])

    @pytest.mark.asyncio
    async def test_on_turn_sees_seed_and_generated_turns(self):
        seen: list[tuple[Role, int]] = []
        await _simulator(ScriptedAdapter(), ScriptedAdapter()).simulate(
            ASSISTANT,
            USER,
            max_turns=2,
            seed_message="Hello there",
            who_starts_first=Role.assistant,
            on_turn=lambda turn, transcript: seen.append((turn.role, len(transcript))),
        )
        assert seen == [(Role.assistant, 1), (Role.user, 2), (Role.assistant, 3)]


class TestUsage:
    @pytest.mark.asyncio
    async def test_usage_summed_over_generated_turns(self):
        result = await _simulator(ScriptedAdapter(), ScriptedAdapter()).simulate(
            ASSISTANT, USER, max_turns=3, seed_message="hello", who_starts_first=Role.user
        )

        assert result.turns_taken == 3
        assert result.usage == TokenUsage(input_tokens=30, output_tokens=6, total_tokens=36)

    @pytest.mark.asyncio
    async def test_preset_cancel_uses_no_tokens(self):
        stop = asyncio.Event()
        stop.set()
        result = await _simulator(ScriptedAdapter(), ScriptedAdapter()).simulate(
            ASSISTANT, USER, stop_event=stop
        )
        assert result.usage == TokenUsage()


class TestPreResolvedAdapters:
    @pytest.mark.asyncio
    async def test_given_adapters_skip_resolution(self):
        def resolver(provider, api_key):
            raise AssertionError(f"unexpected resolution of {provider}")

        assistant, user = ScriptedAdapter(name="a"), ScriptedAdapter(name="u")
        result = await ConversationSimulator(resolve_adapter=resolver).simulate(
            ASSISTANT, USER, max_turns=2, assistant_adapter=assistant, user_adapter=user
        )

        assert result.turns_taken == 2
        assert len(assistant.calls) == 1
        assert len(user.calls) == 1

    @pytest.mark.asyncio
    async def test_missing_adapter_still_resolved(self):
        resolved: list[str] = []
        user = ScriptedAdapter(name="u")

        def resolver(provider, api_key):
            resolved.append(provider)
            return user

        await ConversationSimulator(resolve_adapter=resolver).simulate(
            ASSISTANT, USER, max_turns=2, assistant_adapter=ScriptedAdapter(name="a")
        )
        assert resolved == ["fake.user"]
