"""Tests for evalbench.models.transcript - Turn and append-only Transcript."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from evalbench.models.transcript import Role, Transcript, Turn


class TestTurn:
    def test_role_coerced_from_string(self):
        assert Turn(role="user", content="hi").role is Role.user

    def test_frozen(self):
        turn = Turn(role=Role.user, content="hi")
        with pytest.raises(ValidationError):
            turn.content = "changed"

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            Turn(role="tool", content="x")


class TestTranscript:
    def test_starts_empty(self):
        transcript = Transcript()
        assert len(transcript) == 0
        assert transcript.turns == ()

    def test_append_preserves_order(self):
        transcript = Transcript()
        transcript.add(Role.user, "one")
        transcript.add("assistant", "two")
        transcript.append(Turn(role=Role.user, content="three"))
        assert [t.content for t in transcript] == ["one", "two", "three"]
        assert transcript[1].role is Role.assistant

    def test_append_rejects_non_turns(self):
        with pytest.raises(TypeError, match="Turn"):
            Transcript().append({"role": "user", "content": "x"})

    def test_turns_snapshot_is_immutable(self):
        transcript = Transcript([Turn(role=Role.user, content="hi")])
        snapshot = transcript.turns
        transcript.add(Role.assistant, "hello")
        assert len(snapshot) == 1
        assert len(transcript) == 2

    def test_no_removal_api(self):
        transcript = Transcript()
        assert not hasattr(transcript, "pop")
        assert not hasattr(transcript, "remove")
        assert not hasattr(transcript, "insert")

    def test_render(self):
        transcript = Transcript()
        transcript.add(Role.user, "Hi")
        transcript.add(Role.assistant, "Hello!")
        assert transcript.render() == "USER: Hi\n\nASSISTANT: Hello!"

    def test_equality(self):
        a = Transcript([Turn(role=Role.user, content="x")])
        b = Transcript([Turn(role=Role.user, content="x")])
        assert a == b
        b.add(Role.assistant, "y")
        assert a != b
