"""Scenario selection for a preset.

Samples an evenly strided subset of the preset's scenario pool, asks the
injected judge to pick one under a hard deadline, and falls back to the
pool's first scenario on any judge failure. Never raises on judge errors.
"""

from __future__ import annotations

from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tryon.analysis.models import AnalysisInput
from tryon.clients.judge_interface import JudgeRequest, JudgeSelection, ScenarioJudge
from tryon.core.concurrency import DeadlineExceeded, call_with_deadline
from tryon.core.config import settings
from tryon.core.logging import log
from tryon.presets.models import Preset, ScenarioVariation

FALLBACK_PERSON_DESCRIPTION = "the person from the input image"
FALLBACK_GARMENT_DESCRIPTION = "the garment from the reference image"


class SelectionResult(BaseModel):
    """Chosen scenario plus the judge's descriptions."""

    model_config = ConfigDict(frozen=True)

    scenario: ScenarioVariation | None
    person_description: str
    garment_description: str
    reasoning: str
    fallback: bool = False
    sampled_ids: tuple[str, ...] = Field(default_factory=tuple)


def sample_scenarios(pool: Sequence[ScenarioVariation], budget: int) -> tuple[ScenarioVariation, ...]:
    """
    Pick an evenly strided subset of a scenario pool.

    For a pool of N > budget, index i * (N // budget) for i in range(budget);
    otherwise the whole pool.

    Args:
        pool: Ordered scenario pool
        budget: Maximum number of scenarios to hand to the judge (>= 1)

    Returns:
        Sampled scenarios in pool order
    """
    if budget < 1:
        raise ValueError(f"Sampling budget must be >= 1, got {budget}")

    if len(pool) <= budget:
        return tuple(pool)

    step = len(pool) // budget
    return tuple(pool[i * step] for i in range(budget))


def render_options(sample: Sequence[ScenarioVariation]) -> str:
    """Numbered scenario summaries, 1-based, as shown to the judge."""
    return "\n\n".join(f"SCENARIO {n} ({s.id}):\n{s.summary()}" for n, s in enumerate(sample, start=1))


def resolve_choice(selection: JudgeSelection, sample: Sequence[ScenarioVariation]) -> ScenarioVariation | None:
    """Map a judge selection to a sampled scenario by id, then by 1-based number."""
    if selection.scenario_id:
        for scenario in sample:
            if scenario.id == selection.scenario_id:
                return scenario

    number = selection.scenario_number
    if number is not None and 1 <= number <= len(sample):
        return sample[number - 1]

    return None


def _fallback(pool: Sequence[ScenarioVariation], sampled_ids: tuple[str, ...], reasoning: str) -> SelectionResult:
    return SelectionResult(
        scenario=pool[0] if pool else None,
        person_description=FALLBACK_PERSON_DESCRIPTION,
        garment_description=FALLBACK_GARMENT_DESCRIPTION,
        reasoning=reasoning,
        fallback=True,
        sampled_ids=sampled_ids,
    )


def select_scenario(
    preset: Preset,
    analysis: AnalysisInput,
    judge: ScenarioJudge,
    *,
    budget: int | None = None,
    timeout_s: float | None = None,
    user_instruction: str | None = None,
) -> SelectionResult:
    """
    Choose one scenario from a preset's pool.

    Args:
        preset: Preset whose scenario pool is searched
        analysis: Structured person/garment analysis
        judge: Scenario judge collaborator
        budget: Sampling budget (defaults to settings.scenario_sample_budget)
        timeout_s: Hard deadline for the judge (defaults to settings.judge_timeout_s)
        user_instruction: Optional free-text request forwarded to the judge

    Returns:
        SelectionResult; scenario is None only when the preset has no pool
    """
    pool = preset.scenarios
    if not pool:
        log.info(f"SCENARIO_POOL_EMPTY preset={preset.id}")
        return _fallback(pool, (), "Preset has no scenario pool")

    budget = budget if budget is not None else settings.scenario_sample_budget
    timeout_s = timeout_s if timeout_s is not None else settings.judge_timeout_s

    sample = sample_scenarios(pool, budget)
    sampled_ids = tuple(s.id for s in sample)

    request = JudgeRequest(
        preset_name=preset.name,
        preset_description=preset.description,
        scenarios_text=render_options(sample),
        scenario_ids=sampled_ids,
        analysis=analysis,
        user_instruction=user_instruction,
    )

    try:
        selection = call_with_deadline(judge.choose, timeout_s, request, timeout_s)
    except DeadlineExceeded as e:
        log.warning(f"JUDGE_FALLBACK preset={preset.id} reason=timeout detail={e}")
        return _fallback(pool, sampled_ids, "Fallback to default scenario: judge timed out")
    except Exception as e:
        log.warning(f"JUDGE_FALLBACK preset={preset.id} reason={type(e).__name__} detail={e}")
        return _fallback(pool, sampled_ids, "Fallback to default scenario due to judge error")

    if not isinstance(selection, JudgeSelection):
        try:
            selection = JudgeSelection.model_validate(selection)
        except ValidationError as e:
            log.warning(f"JUDGE_FALLBACK preset={preset.id} reason=malformed type={type(selection).__name__}")
            log.debug(f"JUDGE_MALFORMED detail={e}")
            return _fallback(pool, sampled_ids, "Fallback to default scenario: malformed judge selection")

    chosen = resolve_choice(selection, sample)
    unmapped = chosen is None
    if unmapped:
        log.warning(
            f"JUDGE_FALLBACK preset={preset.id} reason=unmapped "
            f"id={selection.scenario_id} number={selection.scenario_number}"
        )
        chosen = sample[0]

    log.info(f"SCENARIO_SELECTED preset={preset.id} scenario={chosen.id} sampled={len(sample)}")

    return SelectionResult(
        scenario=chosen,
        person_description=selection.person_description or FALLBACK_PERSON_DESCRIPTION,
        garment_description=selection.garment_description or FALLBACK_GARMENT_DESCRIPTION,
        reasoning=selection.reasoning,
        fallback=unmapped,
        sampled_ids=sampled_ids,
    )
