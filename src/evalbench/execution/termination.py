"""Heuristic end-of-conversation detection.

Agents are instructed to signal completion in free text. Detection is
best-effort pattern matching, not a protocol: a model that never emits
one of these phrases runs until the turn budget is exhausted.
"""

from __future__ import annotations

import re

# Ordered; the first match wins. All case-insensitive.
END_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\[END\]", re.IGNORECASE),
    re.compile(r"\bEND\b\s*$", re.IGNORECASE),
    re.compile(r"conversation.*complete", re.IGNORECASE | re.DOTALL),
    re.compile(r"nothing.*more.*discuss", re.IGNORECASE | re.DOTALL),
    re.compile(r"\btask\s+(?:is\s+)?complete(?:d)?\b", re.IGNORECASE),
    re.compile(r"\bno\s+further\s+questions\b", re.IGNORECASE),
)


def match_end_pattern(content: str) -> re.Pattern[str] | None:
    """Return the first end pattern matching content, or None."""
    for pattern in END_PATTERNS:
        if pattern.search(content):
            return pattern
    return None


def is_conversation_over(content: str) -> bool:
    """Return True if content signals that the conversation has ended."""
    return match_end_pattern(content) is not None
