"""Sanitizer for instruction text that could alter protected attributes.

Two independent checks:
- a closed table of forbidden phrases, each rewritten to a safe equivalent
  (applied to preset modifiers, user guidance and the assembled prompt);
- a banned-verb / protected-noun sweep applied to the assembled prompt as a
  last-resort net, rewriting the verb to "preserve".
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field

# Forbidden phrase -> safe replacement (order matters: multi-word phrases first)
FORBIDDEN_PHRASES: dict[str, str] = {
    "change pose": "same pose",
    "alter face": "same face",
    "modify body": "preserve identity",
    "adjust expression": "keep expression unchanged",
    "reconstruct": "preserve identity",
    "reshape": "preserve identity",
    "transform": "apply cinematic ambience",
}

BANNED_VERBS = (
    "add",
    "change",
    "alter",
    "modify",
    "transform",
    "adjust",
    "replace",
    "remove",
    "reposition",
    "rotate",
    "tilt",
)

PROTECTED_NOUNS = (
    "face",
    "body",
    "anatomy",
    "pose",
    "expression",
    "skin",
    "hair",
    "person",
    "subject",
    "identity",
)

NEUTRAL_VERB = "preserve"

# Substring match, case-insensitive, tolerant of repeated whitespace
_PHRASE_PATTERNS: dict[str, re.Pattern[str]] = {
    phrase: re.compile(r"\s+".join(re.escape(w) for w in phrase.split()), re.IGNORECASE)
    for phrase in FORBIDDEN_PHRASES
}

_PROTECTED_VERB_PATTERN = re.compile(
    r"\b(" + "|".join(BANNED_VERBS) + r")\s+(" + "|".join(PROTECTED_NOUNS) + r")(s?)\b",
    re.IGNORECASE,
)

_BARE_VERB_PATTERNS = {verb: re.compile(rf"\b{verb}\b", re.IGNORECASE) for verb in BANNED_VERBS}

MAX_SCRUB_PASSES = 5


class SanitizeResult(BaseModel):
    """Outcome of sanitizing a single string."""

    model_config = ConfigDict(frozen=True)

    sanitized: str
    unsafe: bool = False
    warnings: tuple[str, ...] = Field(default_factory=tuple)


class ListSanitizeResult(BaseModel):
    """Outcome of sanitizing an ordered list of strings."""

    model_config = ConfigDict(frozen=True)

    sanitized: tuple[str, ...] = Field(default_factory=tuple)
    unsafe_found: bool = False
    warnings: tuple[str, ...] = Field(default_factory=tuple)


def find_forbidden_phrases(text: str) -> list[str]:
    """Return the forbidden phrases present in text (case-insensitive)."""
    if not text:
        return []
    return [phrase for phrase, pattern in _PHRASE_PATTERNS.items() if pattern.search(text)]


def sanitize(text: str) -> SanitizeResult:
    """
    Rewrite forbidden phrases in text to their safe replacements.

    Any match marks the text unsafe. Text that still contains a forbidden
    phrase after rewriting is dropped (sanitized to "").

    Args:
        text: Input text to clean

    Returns:
        SanitizeResult with the rewritten text, unsafe flag and warnings
    """
    if not text:
        return SanitizeResult(sanitized="")

    warnings: list[str] = []
    unsafe = False
    cleaned = text

    for phrase, replacement in FORBIDDEN_PHRASES.items():
        pattern = _PHRASE_PATTERNS[phrase]
        if pattern.search(cleaned):
            unsafe = True
            warnings.append(f"Forbidden phrase detected: {phrase}")
            cleaned = pattern.sub(replacement, cleaned)

    residual = find_forbidden_phrases(cleaned)
    if residual:
        warnings.append(f"Dropped text still containing forbidden phrase: {', '.join(residual)}")
        cleaned = ""

    return SanitizeResult(sanitized=cleaned, unsafe=unsafe, warnings=tuple(warnings))


def sanitize_list(items: list[str] | tuple[str, ...]) -> ListSanitizeResult:
    """
    Sanitize each entry of an ordered list, preserving order.

    Entries that could not be neutralized are omitted.

    Args:
        items: Strings to sanitize

    Returns:
        ListSanitizeResult; unsafe_found is True if any entry matched
    """
    sanitized: list[str] = []
    warnings: list[str] = []
    unsafe_found = False

    for item in items:
        result = sanitize(item)
        unsafe_found = unsafe_found or result.unsafe
        warnings.extend(result.warnings)
        if result.sanitized:
            sanitized.append(result.sanitized)

    return ListSanitizeResult(
        sanitized=tuple(sanitized), unsafe_found=unsafe_found, warnings=tuple(warnings)
    )


def find_protected_violations(text: str) -> list[str]:
    """Return every banned verb directly applied to a protected noun in text."""
    if not text:
        return []
    return [m.group(0) for m in _PROTECTED_VERB_PATTERN.finditer(text)]


def enforce_protected_verbs(text: str) -> tuple[str, list[str]]:
    """
    Rewrite banned verbs applied to protected nouns to the neutral verb.

    "change face" becomes "preserve face"; the noun is kept.

    Args:
        text: Input text to clean

    Returns:
        Tuple of (cleaned_text, list_of_rewritten_matches)
    """
    if not text:
        return text, []

    rewritten: list[str] = []

    def _neutralize(m: re.Match[str]) -> str:
        rewritten.append(m.group(0))
        return f"{NEUTRAL_VERB} {m.group(2)}{m.group(3)}"

    cleaned = _PROTECTED_VERB_PATTERN.sub(_neutralize, text)
    return cleaned, rewritten


def scrub(text: str) -> tuple[str, list[str]]:
    """
    Rewrite forbidden phrases until none remain, for whole-prompt passes.

    Unlike sanitize(), the text is never dropped: after MAX_SCRUB_PASSES
    rewriting passes any surviving occurrence is deleted outright.

    Args:
        text: Assembled prompt text

    Returns:
        Tuple of (clean_text, list_of_phrases_found)
    """
    found: list[str] = []
    cleaned = text

    for _ in range(MAX_SCRUB_PASSES):
        hits = find_forbidden_phrases(cleaned)
        if not hits:
            return cleaned, found
        found.extend(hits)
        for phrase in hits:
            cleaned = _PHRASE_PATTERNS[phrase].sub(FORBIDDEN_PHRASES[phrase], cleaned)

    # Each deletion shortens the text, so this terminates
    hits = find_forbidden_phrases(cleaned)
    while hits:
        found.extend(hits)
        for phrase in hits:
            cleaned = _PHRASE_PATTERNS[phrase].sub("", cleaned)
        hits = find_forbidden_phrases(cleaned)

    return cleaned, found


def find_bare_banned_verbs(text: str) -> list[str]:
    """Return banned verbs appearing anywhere in text as whole words (advisory lint)."""
    if not text:
        return []
    return [verb for verb, pattern in _BARE_VERB_PATTERNS.items() if pattern.search(text)]
