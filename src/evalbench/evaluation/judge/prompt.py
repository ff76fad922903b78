"""Judge prompt construction."""

from __future__ import annotations

from evalbench.models.dataset import DatasetEntry
from evalbench.models.transcript import Transcript

JSON_ONLY_DIRECTIVE = "Output valid JSON only."

SEPARATOR = "-----"


def build_scoring_context(transcript: Transcript, entry: DatasetEntry | None = None) -> str:
    """Build the user-side prompt shown to the judge.

    Layout::

        Dataset Context:
        Input: <entry input or prompt, or N/A>
        Expected Behavior/Reference: <only if present>

        Conversation to Evaluate:
        -----
        USER: ...

        ASSISTANT: ...
        -----
    """
    source = None
    if entry is not None:
        source = entry.input or entry.prompt
    lines = ["Dataset Context:", f"Input: {source or 'N/A'}"]
    if entry is not None and entry.expected_behavior:
        lines.append(f"Expected Behavior/Reference: {entry.expected_behavior}")

    return "\n".join(lines) + (
        f"\n\nConversation to Evaluate:\n{SEPARATOR}\n{transcript.render()}\n{SEPARATOR}"
    )


def with_json_directive(context: str) -> str:
    """Append the JSON-only directive used by the text fallback."""
    return f"{context}\n\n{JSON_ONLY_DIRECTIVE}"
