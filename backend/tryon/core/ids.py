from __future__ import annotations

import hashlib
import json


def deterministic_id(payload: dict) -> str:
    """Generates a deterministic 16-char hash from a payload dict.

    The hash is stable across calls with identical payloads, so two assemblies
    of the same inputs log the same prompt hash.

    **Fields affecting output (must be in payload for determinism):**
    - `prompt`: Final assembled prompt text
    - `preset`: Preset id used (or "neutral")

    Args:
        payload: Dictionary containing all output-affecting parameters.

    Returns:
        16-character hex hash (truncated SHA256)

    Example:
        >>> payload = {"prompt": "...", "preset": "cinematic_daylight"}
        >>> id1 = deterministic_id(payload)
        >>> id2 = deterministic_id(payload)
        >>> assert id1 == id2  # Deterministic
    """
    s = json.dumps(payload, sort_keys=True, ensure_ascii=False)
    return hashlib.sha256(s.encode("utf-8")).hexdigest()[:16]


def redact(text: str, max_length: int = 300) -> str:
    """
    Truncate text for safe logging.

    Args:
        text: Text to redact
        max_length: Maximum length before truncation

    Returns:
        Truncated text safe for logging (limited length)
    """
    if len(text) > max_length:
        return text[:max_length] + f"... ({len(text)} chars total)"
    return text
