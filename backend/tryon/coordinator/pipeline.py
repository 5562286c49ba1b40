"""Request pipeline: preset lookup -> scenario selection -> assembly,
and post-generation review.

The generative model call sits between prepare_instruction() and
review_generation() and is owned by the caller.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from tryon.analysis.models import AnalysisInput
from tryon.clients.judge_interface import ScenarioJudge
from tryon.core.ids import redact
from tryon.core.logging import log
from tryon.presets.catalog import get_preset
from tryon.prompting.assembler import AssemblyResult, assemble
from tryon.scenarios.selector import SelectionResult, select_scenario
from tryon.validation.prompt_check import ensure_prompt
from tryon.validation.scorer import ValidationResult, validate


class PreparedInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    assembly: AssemblyResult
    selection: SelectionResult | None


def prepare_instruction(
    preset_id: str | None,
    analysis: AnalysisInput,
    judge: ScenarioJudge,
    clothing_description: str | None = None,
    user_instruction: str | None = None,
) -> PreparedInstruction:
    """
    Build the instruction for one try-on request.

    An unknown or unsafe preset id falls through to the neutral default.
    When no clothing description is supplied, the judge's garment
    description is used, then one built from the analysis.

    Args:
        preset_id: Requested preset id (None for neutral)
        analysis: Structured person/garment analysis
        judge: Scenario judge collaborator
        clothing_description: Optional garment description
        user_instruction: Optional free-text request

    Returns:
        PreparedInstruction with the assembly and the scenario selection

    Raises:
        MalformedPromptError: If the assembled prompt is structurally unusable
    """
    preset = get_preset(preset_id) if preset_id else None

    selection = None
    if preset is not None:
        selection = select_scenario(preset, analysis, judge, user_instruction=user_instruction)

    description = clothing_description
    if not description and selection is not None and not selection.fallback:
        description = selection.garment_description

    assembly = assemble(
        preset,
        selection.scenario if selection else None,
        description or "",
        analysis,
        user_instruction=user_instruction,
    )
    if preset_id and preset is None:
        assembly = assembly.model_copy(
            update={"warnings": (f"Preset '{preset_id}' unavailable; neutral default used",) + assembly.warnings}
        )

    ensure_prompt(assembly.final_prompt)

    log.info(
        f"INSTRUCTION_READY preset={preset_id} used={assembly.preset_used.id if assembly.preset_used else 'neutral'} "
        f"hash={assembly.prompt_hash} preview={redact(assembly.final_prompt, 80)!r}"
    )
    return PreparedInstruction(assembly=assembly, selection=selection)


def review_generation(
    analysis: AnalysisInput,
    generated_meta: Any,
    assembly: AssemblyResult,
) -> ValidationResult:
    """Validate a finished generation and log the outcome for telemetry."""
    result = validate(analysis, generated_meta, assembly.preset_used, assembly.final_prompt)
    if result.passed:
        log.info(f"GENERATION_REVIEW hash={assembly.prompt_hash} passed=True score={result.score:.3f}")
    else:
        log.warning(
            f"GENERATION_REVIEW hash={assembly.prompt_hash} passed=False "
            f"score={result.score:.3f} errors={'; '.join(result.errors)}"
        )
    return result
