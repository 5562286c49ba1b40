"""Prompt assembler: builds the final try-on instruction.

Pipeline:
1. Sanitize the preset's modifier lists; an unsafe preset is discarded and the
   neutral default substituted (preset_used is None).
2. Build the sections in fixed order (identity lock, clothing rules,
   scene, clothing description, priority footer) and compose them.
3. Scrub forbidden phrases from the whole text and rewrite any banned verb
   applied to a protected noun.

assemble() is pure: identical inputs always yield byte-identical output.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from tryon.analysis.models import AnalysisInput
from tryon.core.ids import deterministic_id
from tryon.core.logging import log
from tryon.presets.catalog import check_preset, neutral_default, with_realism_defaults
from tryon.presets.models import Preset, ScenarioVariation
from tryon.safety.sanitizer import enforce_protected_verbs, find_protected_violations, sanitize, scrub

from .sections import (
    PromptSections,
    build_clothing_description,
    clothing_rules,
    clothing_section,
    compose,
    identity_lock,
    priority_footer,
    scene,
)


class AssemblyResult(BaseModel):
    """Final instruction text plus diagnostics."""

    model_config = ConfigDict(frozen=True)

    final_prompt: str
    preset_used: Preset | None = Field(..., description="None when the requested preset was rejected or absent")
    warnings: tuple[str, ...] = Field(default_factory=tuple)
    blocked: bool = False
    prompt_hash: str
    scenario_id: str | None = None


def _user_guidance(user_instruction: str | None, warnings: list[str]) -> str | None:
    """Sanitized user request, or None when it is empty or unsafe."""
    if not user_instruction or not user_instruction.strip():
        return None

    result = sanitize(user_instruction.strip())
    violations = find_protected_violations(user_instruction)
    if result.unsafe or violations or not result.sanitized:
        warnings.append("User instruction omitted: it asked for changes to protected attributes")
        return None
    return result.sanitized


def _clothing_text(clothing_description: str, analysis: AnalysisInput, warnings: list[str]) -> str:
    """Supplied garment description, sanitized; built from the analysis when blank."""
    if not clothing_description or not clothing_description.strip():
        return build_clothing_description(analysis)

    result = sanitize(clothing_description.strip())
    if result.unsafe:
        warnings.extend(result.warnings)
    return result.sanitized or build_clothing_description(analysis)


def assemble(
    preset: Preset | None,
    scenario: ScenarioVariation | None,
    clothing_description: str,
    identity_context: AnalysisInput,
    user_instruction: str | None = None,
) -> AssemblyResult:
    """
    Assemble the try-on instruction.

    Args:
        preset: Requested preset, or None for the neutral default
        scenario: Chosen scenario of that preset, or None
        clothing_description: Garment description ("" to build one from the analysis)
        identity_context: Analysis of the person and garment
        user_instruction: Optional free-text request (atmosphere only)

    Returns:
        AssemblyResult with the final prompt and diagnostics
    """
    warnings: list[str] = []
    blocked = False
    preset_used: Preset | None = None

    if preset is None:
        style = neutral_default()
        positive, negative = style.positive_modifiers, style.negative_modifiers
        warnings.append("No preset supplied; neutral default used")
    else:
        if preset.deviation != preset.latitude:
            preset = preset.model_copy(update={"deviation": preset.latitude})
        check = check_preset(preset)
        warnings.extend(check.warnings)
        if check.safe:
            style = preset_used = preset
            positive, negative = with_realism_defaults(check.positive, check.negative)
        else:
            blocked = True
            style = neutral_default()
            positive, negative = style.positive_modifiers, style.negative_modifiers
            warnings.append(f"Preset '{preset.id}' rejected as unsafe; neutral default substituted")
            log.warning(f"PRESET_SUBSTITUTED id={preset.id} reason=unsafe_modifiers")

    if scenario is not None and (preset_used is None or scenario.preset_id != preset_used.id):
        warnings.append(f"Scenario '{scenario.id}' ignored: it does not belong to the preset in use")
        scenario = None

    sections = PromptSections(
        identity_lock=identity_lock(identity_context),
        clothing_rules=clothing_rules(),
        scene=scene(style, scenario, positive, negative, _user_guidance(user_instruction, warnings)),
        clothing=clothing_section(_clothing_text(clothing_description, identity_context, warnings)),
        priority=priority_footer(),
    )

    text, found = scrub(compose(sections))
    if found:
        warnings.append(f"Forbidden phrases rewritten in final prompt: {', '.join(sorted(set(found)))}")

    text, rewritten = enforce_protected_verbs(text)
    if rewritten:
        warnings.append(f"Protected attribute verbs rewritten: {', '.join(rewritten)}")

    preset_key = preset_used.id if preset_used else "neutral"
    prompt_hash = deterministic_id({"prompt": text, "preset": preset_key})

    log.info(
        f"PROMPT_ASSEMBLED preset={preset_key} scenario={scenario.id if scenario else None} "
        f"hash={prompt_hash} len={len(text)} blocked={blocked} warnings={len(warnings)}"
    )

    return AssemblyResult(
        final_prompt=text,
        preset_used=preset_used,
        warnings=tuple(warnings),
        blocked=blocked,
        prompt_hash=prompt_hash,
        scenario_id=scenario.id if scenario else None,
    )
