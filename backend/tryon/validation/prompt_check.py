"""Structural check of an assembled prompt before it is sent anywhere.

Errors make the prompt unusable (empty, too short, missing identity,
clothing or realism language); warnings only flag thin prompts.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field

from tryon.core.config import settings
from tryon.core.errors import MalformedPromptError

IDENTITY_TERMS = re.compile(r"identity|face|person|preserve|facial features|skin tone|hair", re.IGNORECASE)
CLOTHING_TERMS = re.compile(r"clothing|garment|fabric|wear|pattern|color|fit", re.IGNORECASE)
QUALITY_TERMS = re.compile(r"realistic|photorealistic|quality|detail|authentic", re.IGNORECASE)

LIGHTING_TERMS = re.compile(r"light|shadow|highlight|illuminat|glow|ambient|diffused|directional", re.IGNORECASE)
CAMERA_TERMS = re.compile(r"lens|aperture|focal length|f/|\d+mm|camera|angle|depth of field|bokeh|framing|composition", re.IGNORECASE)
MICRO_DETAIL_TERMS = re.compile(r"fold|crease|wrinkle|zipper|button|stitch|texture|seam|detail", re.IGNORECASE)
COLOR_TEMPERATURE_TERMS = re.compile(r"warm|cool|neutral|golden hour|color temperature|\d{4}K", re.IGNORECASE)


class PromptCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    errors: tuple[str, ...] = Field(default_factory=tuple)
    warnings: tuple[str, ...] = Field(default_factory=tuple)


def check_prompt(prompt: str, min_chars: int | None = None, max_chars: int | None = None) -> PromptCheck:
    """
    Check that a prompt carries the elements every try-on instruction needs.

    Args:
        prompt: Assembled prompt text
        min_chars: Minimum length (defaults to settings.prompt_min_chars)
        max_chars: Length above which a warning is raised (defaults to settings.prompt_max_chars)

    Returns:
        PromptCheck with errors and warnings
    """
    min_chars = min_chars if min_chars is not None else settings.prompt_min_chars
    max_chars = max_chars if max_chars is not None else settings.prompt_max_chars

    if not prompt or not prompt.strip():
        return PromptCheck(valid=False, errors=("Prompt cannot be empty",))

    errors: list[str] = []
    warnings: list[str] = []

    if len(prompt) < min_chars:
        errors.append(f"Prompt is too short ({len(prompt)} < {min_chars} characters)")
    if len(prompt) > max_chars:
        warnings.append(f"Prompt is very long ({len(prompt)} > {max_chars} characters) and may be truncated")

    if not IDENTITY_TERMS.search(prompt):
        errors.append("Prompt must mention identity preservation (face, skin tone, hair)")
    if not CLOTHING_TERMS.search(prompt):
        errors.append("Prompt must mention clothing details (garment, fabric, color, fit)")
    if not QUALITY_TERMS.search(prompt):
        errors.append("Prompt must mention realism or quality requirements")

    if not LIGHTING_TERMS.search(prompt):
        warnings.append("Prompt should describe lighting (source, direction, quality)")
    if not CAMERA_TERMS.search(prompt):
        warnings.append("Prompt should include camera terminology (lens, angle, framing)")
    if not MICRO_DETAIL_TERMS.search(prompt):
        warnings.append("Prompt should mention micro-details (folds, seams, texture)")
    if not COLOR_TEMPERATURE_TERMS.search(prompt):
        warnings.append("Prompt should specify color temperature or lighting mood")

    return PromptCheck(valid=not errors, errors=tuple(errors), warnings=tuple(warnings))


def ensure_prompt(prompt: str, min_chars: int | None = None) -> PromptCheck:
    """
    Like check_prompt, but a malformed prompt is a hard failure.

    Raises:
        MalformedPromptError: If the prompt has any structural error
    """
    result = check_prompt(prompt, min_chars=min_chars)
    if not result.valid:
        raise MalformedPromptError(list(result.errors))
    return result
