"""Judge provider selection.

Supports swapping judge implementations via the JUDGE_PROVIDER env var.
"""

from __future__ import annotations

from tryon.core.config import settings

from .grok_judge import GrokJudge, GrokJudgeConfig
from .judge_interface import ScenarioJudge


def _guard_key(provider: str, key: str | None) -> None:
    """Validates that the provider API key is present.

    Raises:
        RuntimeError: If key is missing
    """
    if not key:
        raise RuntimeError(
            f"Scenario judging requires {provider.upper()}_API_KEY. "
            f"Set {provider.upper()}_API_KEY in .env to enable the remote judge."
        )


def judge_client() -> ScenarioJudge:
    """Returns the configured scenario judge.

    Supported providers:
    - grok: xAI Grok (default)

    Returns:
        ScenarioJudge implementation for the selected provider

    Raises:
        RuntimeError: If API key missing or provider unknown
    """
    provider = settings.judge_provider.lower()

    if provider == "grok":
        _guard_key("grok", settings.grok_api_key)
        return GrokJudge(
            api_key=settings.grok_api_key,
            base_url=settings.grok_base_url,
            config=GrokJudgeConfig(
                model=settings.grok_model,
                timeout_read_s=settings.judge_timeout_s,
            ),
        )

    raise RuntimeError(f"Unknown judge provider: {provider}. Supported providers: grok (default).")
