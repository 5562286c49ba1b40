from __future__ import annotations


class TryOnError(Exception):
    """Base class for try-on prompt core errors."""

    pass


class CatalogError(TryOnError):
    """Raised when the static preset configuration cannot be loaded."""

    pass


class JudgeError(TryOnError):
    """Raised by judge implementations on transport, parse or schema failures."""

    pass


class MalformedPromptError(TryOnError):
    """Raised when an assembled prompt is empty, too short or missing required elements."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "malformed prompt")
