"""JSON object extraction from free-text judge responses.

Used by the text fallback strategy when the judge could not (or was not
asked to) produce structured output.
"""

from __future__ import annotations

import json
from collections.abc import Iterator


def _top_level_objects(text: str) -> Iterator[str]:
    """Yield balanced top-level ``{...}`` spans in order of appearance.

    Braces inside JSON string literals are ignored, so a value such as
    ``"a } b"`` does not close the object early.
    """
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"' and depth > 0:
            in_string = True
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start : index + 1]


def extract_json_object(text: str | None) -> dict | None:
    """Extract the first JSON object embedded in text.

    Tries the full text first, then each balanced top-level ``{...}``
    block in order (which also covers fenced code blocks and prose
    around the object).

    Args:
        text: Raw text content from the judge response.

    Returns:
        The first block that parses to a dict, or None.
    """
    if not text:
        return None

    try:
        result = json.loads(text)
        if isinstance(result, dict):
            return result
    except (json.JSONDecodeError, ValueError):
        pass

    for block in _top_level_objects(text):
        try:
            result = json.loads(block)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(result, dict):
            return result

    return None
