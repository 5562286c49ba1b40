"""Smoke tests for the request pipeline with fake judges (no network)."""

from __future__ import annotations

import pytest

from conftest import FailingJudge, FixedJudge
from tryon.clients.judge_interface import JudgeSelection
from tryon.coordinator.pipeline import prepare_instruction, review_generation
from tryon.presets import get_preset
from tryon.safety import find_forbidden_phrases
from tryon.scenarios.selector import FALLBACK_GARMENT_DESCRIPTION


@pytest.fixture
def daylight():
    return get_preset("cinematic_daylight")


def test_prepare_uses_judge_choice(daylight, analysis):
    """Verify the judged scenario and garment description reach the prompt."""
    chosen = daylight.scenarios[10]
    judge = FixedJudge(
        JudgeSelection(
            scenario_id=chosen.id,
            person_description="Woman standing facing camera",
            garment_description="Navy cotton crew-neck t-shirt with ribbed collar",
        )
    )

    prepared = prepare_instruction("cinematic_daylight", analysis, judge)

    assert prepared.selection.scenario == chosen
    assert prepared.assembly.scenario_id == chosen.id
    assert prepared.assembly.preset_used == daylight
    assert "CLOTHING\nNavy cotton crew-neck t-shirt with ribbed collar" in prepared.assembly.final_prompt
    assert find_forbidden_phrases(prepared.assembly.final_prompt) == []
    assert len(judge.requests) == 1


def test_explicit_description_wins_over_judge(daylight, analysis):
    judge = FixedJudge(JudgeSelection(scenario_number=1, garment_description="Judge's description"))
    prepared = prepare_instruction("cinematic_daylight", analysis, judge, clothing_description="Cream linen shirt")
    assert "CLOTHING\nCream linen shirt" in prepared.assembly.final_prompt
    assert "Judge's description" not in prepared.assembly.final_prompt


def test_unknown_preset_uses_neutral(analysis):
    judge = FailingJudge()
    prepared = prepare_instruction("no_such_preset", analysis, judge)

    assert prepared.selection is None
    assert prepared.assembly.preset_used is None
    assert prepared.assembly.warnings[0] == "Preset 'no_such_preset' unavailable; neutral default used"
    assert judge.calls == 0


def test_no_preset_requested(analysis):
    prepared = prepare_instruction(None, analysis, FailingJudge())
    assert prepared.assembly.preset_used is None
    assert prepared.selection is None
    assert not any("unavailable" in w for w in prepared.assembly.warnings)


def test_failing_judge_still_assembles(daylight, analysis):
    judge = FailingJudge()
    prepared = prepare_instruction("cinematic_daylight", analysis, judge, user_instruction="warm evening glow")

    assert judge.calls == 1
    assert prepared.selection.fallback is True
    assert prepared.assembly.scenario_id == daylight.scenarios[0].id
    # fallback placeholder is never used as a garment description
    assert FALLBACK_GARMENT_DESCRIPTION not in prepared.assembly.final_prompt
    assert "Color: navy." in prepared.assembly.final_prompt
    assert "warm evening glow" in prepared.assembly.final_prompt


def test_review_passes_on_clean_meta(analysis):
    prepared = prepare_instruction("studio_highkey", analysis, FixedJudge(JudgeSelection(scenario_number=2)))
    result = review_generation(analysis, {"caption": "person in a navy t-shirt, white backdrop"}, prepared.assembly)
    assert result.passed is True
    assert result.score == 1.0


def test_review_flags_hallucinated_accessory(analysis):
    prepared = prepare_instruction("studio_highkey", analysis, FixedJudge(JudgeSelection(scenario_number=2)))
    result = review_generation(analysis, {"caption": "person wearing a gold necklace"}, prepared.assembly)
    assert result.passed is False
    assert result.checks["noExtraObjects"].passed is False
