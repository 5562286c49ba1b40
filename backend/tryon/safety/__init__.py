"""Instruction-text safety package.

Exports:
    sanitize: Rewrite forbidden phrases in one string
    sanitize_list: Rewrite forbidden phrases in an ordered list
    enforce_protected_verbs: Last-resort banned-verb / protected-noun sweep
"""

from .sanitizer import (
    FORBIDDEN_PHRASES,
    ListSanitizeResult,
    SanitizeResult,
    enforce_protected_verbs,
    find_forbidden_phrases,
    find_protected_violations,
    sanitize,
    sanitize_list,
    scrub,
)

__all__ = [
    "FORBIDDEN_PHRASES",
    "ListSanitizeResult",
    "SanitizeResult",
    "enforce_protected_verbs",
    "find_forbidden_phrases",
    "find_protected_violations",
    "sanitize",
    "sanitize_list",
    "scrub",
]
