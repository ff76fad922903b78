"""Role perspective remapping for two-agent conversations.

The same transcript is replayed to both agents. Each agent must see its
own prior turns as "assistant" output and the other party's turns as
"user" input, regardless of which side it actually plays.
"""

from __future__ import annotations

from collections.abc import Iterable

from evalbench.adapters.base import Message
from evalbench.models.transcript import Role, Turn


def flip_role(role: Role) -> Role:
    """Swap user and assistant; system is unchanged.

    flip_role(flip_role(r)) == r for every role.
    """
    if role is Role.user:
        return Role.assistant
    if role is Role.assistant:
        return Role.user
    return role


def remap(turns: Iterable[Turn], viewer: Role) -> list[Message]:
    """Render turns as messages from the viewer's perspective.

    Args:
        turns: Transcript turns in conversational order.
        viewer: The role about to speak (assistant or user).

    Returns:
        Messages where the viewer's own turns are labelled "assistant"
        and the other party's turns "user". System turns pass through.
    """
    messages: list[Message] = []
    for turn in turns:
        if turn.role is Role.system:
            role = Role.system
        elif turn.role is viewer:
            role = Role.assistant
        else:
            role = Role.user
        messages.append(Message(role=role.value, content=turn.content))
    return messages
