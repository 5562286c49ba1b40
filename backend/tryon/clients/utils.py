"""Response parsing helpers for remote judges."""

from __future__ import annotations

import json
from typing import Any


def extract_json(text: str) -> Any:
    """
    Parse the JSON object in an LLM reply.

    Tolerates markdown code fences and prose around a single top-level
    object ("Here is my pick: {...}").

    Args:
        text: Raw response text

    Returns:
        Parsed JSON value

    Raises:
        ValueError: If no JSON can be parsed, with a truncated preview
    """
    content = (text or "").strip()

    if content.startswith("```"):
        lines = content.split("\n")
        if len(lines) > 2:
            content = "\n".join(lines[1:-1])
        content = content.replace("```json", "").replace("```", "").strip()

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        start, end = content.find("{"), content.rfind("}")
        if 0 <= start < end:
            try:
                return json.loads(content[start : end + 1])
            except json.JSONDecodeError:
                pass
        preview = content[:500] + "..." if len(content) > 500 else content
        raise ValueError(f"Failed to parse JSON from judge response: {e}\nPreview: {preview}") from e
