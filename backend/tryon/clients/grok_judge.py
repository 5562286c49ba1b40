"""Scenario judge backed by the xAI chat-completions API.

Only structured text goes over the wire: preset name and description, the
numbered scenario summaries and the analysis attributes. The reply is a JSON
object validated into a JudgeSelection.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from pydantic import ValidationError

from tryon.core.errors import JudgeError
from tryon.core.ids import redact
from tryon.core.logging import log

from .judge_interface import JudgeRequest, JudgeSelection, ScenarioJudge
from .transport import JudgeTransport
from .utils import extract_json

SYSTEM_PROMPT_TEMPLATE = """You are a photography director for a virtual try-on system.

From the structured analysis of the person and the garment:
1. Describe the person's current pose, angle and expression.
2. Describe the garment only (color, pattern, fabric, style). Ignore any face or body shown with the garment.
3. Pick the ONE scenario below that fits the person's current pose and angle and suits the garment,
   so that the person needs as little pose adjustment as possible.

## PRESET: {preset_name}
{preset_description}

## AVAILABLE SCENARIOS:
{scenarios_text}

## SELECTION CRITERIA:
- Standing straight: prefer "standing_straight" or "standing_relaxed" scenarios
- Person at an angle: prefer matching camera angles
- Match garment formality with the background
- Match the person's expression with the mood

Return a JSON object:
{{"personDescription": "...", "garmentDescription": "...", "selectedScenarioId": "<id>", "selectedScenarioNumber": <1-based number>, "reasoning": "..."}}"""


@dataclass(frozen=True)
class GrokJudgeConfig:
    """Configuration constants for the Grok judge."""

    model: str = "grok-2-vision-1212"
    timeout_connect_s: float = 5.0
    timeout_read_s: float = 20.0
    max_retries: int = 1
    rps: float = 2.0
    temperature: float = 0.3
    max_tokens: int = 1500


class GrokJudge(ScenarioJudge):
    """Scenario judge calling Grok with JSON response mode."""

    def __init__(
        self,
        api_key: str,
        model: str = "grok-2-vision-1212",
        base_url: str = "https://api.x.ai/v1",
        config: GrokJudgeConfig | None = None,
        transport: JudgeTransport | None = None,
    ):
        """
        Initialize Grok judge.

        Args:
            api_key: xAI API key
            model: Model ID
            base_url: API base URL
            config: Optional custom configuration (uses defaults if not provided)
            transport: Optional pre-built transport (tests inject a mock)
        """
        if not api_key:
            raise ValueError("Grok API key cannot be empty")

        self.config = config or GrokJudgeConfig(model=model)
        self.transport = transport or JudgeTransport(
            api_key=api_key,
            base_url=base_url,
            timeout_connect_s=self.config.timeout_connect_s,
            timeout_read_s=self.config.timeout_read_s,
            max_retries=self.config.max_retries,
            rps=self.config.rps,
        )

    @staticmethod
    def build_messages(request: JudgeRequest) -> list[dict[str, str]]:
        """Render the system and user messages for one request."""
        system_prompt = SYSTEM_PROMPT_TEMPLATE.format(
            preset_name=request.preset_name,
            preset_description=request.preset_description,
            scenarios_text=request.scenarios_text,
        )

        analysis = request.analysis.model_dump(exclude_none=True)
        user_prompt = (
            f'Select the best scenario for the "{request.preset_name}" preset.\n\n'
            f"ANALYSIS (person identity to preserve, garment to apply):\n"
            f"{json.dumps(analysis, indent=2, sort_keys=True)}"
        )
        if request.user_instruction:
            user_prompt += f"\n\nUSER REQUEST: {request.user_instruction}"

        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    def choose(self, request: JudgeRequest, timeout_s: float) -> JudgeSelection:
        """
        Ask Grok to pick a scenario.

        Args:
            request: Sampled scenario summaries plus analysis
            timeout_s: Per-request HTTP timeout

        Returns:
            Validated JudgeSelection

        Raises:
            JudgeError: On transport failure, missing content or invalid JSON
        """
        payload = {
            "model": self.config.model,
            "messages": self.build_messages(request),
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "response_format": {"type": "json_object"},
        }

        log.info(
            f"JUDGE_CALL provider=grok model={self.config.model} "
            f"preset={request.preset_name!r} options={len(request.scenario_ids)}"
        )

        try:
            response = self.transport.post_json("chat/completions", payload, timeout_s=timeout_s)
        except RuntimeError as e:
            raise JudgeError(f"Grok judge request failed: {e}") from e

        try:
            content = response["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise JudgeError(f"Failed to extract content from Grok response: {e}") from e

        log.debug(f"JUDGE_RESPONSE preview={redact(content, 200)}")

        try:
            data = extract_json(content)
            if not isinstance(data, dict):
                raise ValueError(f"Expected JSON object, got {type(data).__name__}")
            selection = JudgeSelection.model_validate(data)
        except (ValueError, ValidationError) as e:
            raise JudgeError(f"Failed to parse judge selection: {e}") from e

        log.info(
            f"JUDGE_CHOICE id={selection.scenario_id} number={selection.scenario_number}"
        )
        return selection

    def close(self) -> None:
        """Close the HTTP transport."""
        self.transport.close()
