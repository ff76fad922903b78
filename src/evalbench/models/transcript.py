"""Conversation turn and append-only transcript models.

A Turn is immutable once created. A Transcript only grows by append;
its order is conversational order and is replayed verbatim to models
and to the judge.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum

from pydantic import BaseModel


class Role(str, Enum):
    """Author of a conversational turn."""

    user = "user"
    assistant = "assistant"
    system = "system"


class Turn(BaseModel):
    """A single conversational turn."""

    model_config = {"frozen": True, "extra": "forbid"}

    role: Role
    content: str


class Transcript:
    """Ordered, append-only sequence of turns.

    There is deliberately no API for removing, inserting, or editing
    turns. Callers that need a snapshot use ``turns`` (a tuple).
    """

    def __init__(self, turns: Iterable[Turn] = ()) -> None:
        self._turns: list[Turn] = []
        for turn in turns:
            self.append(turn)

    def append(self, turn: Turn) -> None:
        """Append a turn to the end of the transcript."""
        if not isinstance(turn, Turn):
            raise TypeError(f"Transcript accepts Turn objects, got {type(turn).__name__}")
        self._turns.append(turn)

    def add(self, role: Role | str, content: str) -> Turn:
        """Build a Turn from role and content, append it, and return it."""
        turn = Turn(role=Role(role), content=content)
        self.append(turn)
        return turn

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def render(self) -> str:
        """Render as ``ROLE: content`` lines joined by blank lines."""
        return "\n\n".join(
            f"{turn.role.value.upper()}: {turn.content}" for turn in self._turns
        )

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))

    def __len__(self) -> int:
        return len(self._turns)

    def __getitem__(self, index: int) -> Turn:
        return self._turns[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transcript):
            return NotImplemented
        return self._turns == other._turns

    def __repr__(self) -> str:
        return f"Transcript({len(self._turns)} turns)"
