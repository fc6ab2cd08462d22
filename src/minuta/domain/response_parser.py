"""Helpers for pulling structured data out of free-form LLM replies."""

import json
from typing import Any


def extract_json_object(text: str) -> dict[str, Any] | None:
    """
    Extracts the first balanced ``{...}`` object embedded in ``text``.

    Braces inside JSON string literals are ignored. Candidates that are
    balanced but not valid JSON are skipped in favour of the next one.

    Args:
        text: Raw model output, possibly wrapped in prose or code fences.

    Returns:
        The decoded object, or None if no valid object is present.
    """
    start = text.find("{")
    while start != -1:
        end = _matching_brace(text, start)
        if end is None:
            return None
        try:
            value = json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            value = None
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    return None


def _matching_brace(text: str, start: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None
