from __future__ import annotations

import pytest

from tryon.analysis.models import (
    AnalysisInput,
    BodyAttributes,
    ClothingAttributes,
    PersonAttributes,
)
from tryon.clients.judge_interface import JudgeRequest, JudgeSelection, ScenarioJudge
from tryon.presets.models import (
    Preset,
    ScenarioCamera,
    ScenarioLighting,
    ScenarioPose,
    ScenarioVariation,
)


class FixedJudge(ScenarioJudge):
    """Judge returning a fixed selection and recording every request."""

    def __init__(self, selection: JudgeSelection):
        self.selection = selection
        self.requests: list[JudgeRequest] = []

    def choose(self, request: JudgeRequest, timeout_s: float) -> JudgeSelection:
        self.requests.append(request)
        return self.selection


class FailingJudge(ScenarioJudge):
    def __init__(self, exc: Exception | None = None):
        self.exc = exc or RuntimeError("judge unavailable")
        self.calls = 0

    def choose(self, request: JudgeRequest, timeout_s: float) -> JudgeSelection:
        self.calls += 1
        raise self.exc


def make_pool(n: int, preset_id: str = "test_preset") -> tuple[ScenarioVariation, ...]:
    return tuple(
        ScenarioVariation(
            id=f"{preset_id}_s{i:03d}",
            preset_id=preset_id,
            background=f"Background number {i}",
            camera=ScenarioCamera(angle="eye-level", lens="50mm", framing="medium shot"),
            lighting=ScenarioLighting(type="window light", direction="side", quality="soft", time="morning"),
            pose=ScenarioPose(stance="standing_relaxed", head="level, facing camera"),
            expression="calm",
            mood="quiet",
        )
        for i in range(1, n + 1)
    )


def make_preset(**overrides) -> Preset:
    fields = {
        "id": "test_preset",
        "name": "Test Preset",
        "description": "Preset used in tests.",
        "category": "cinematic",
        "positive_modifiers": ("Scene expresses bright natural daylight ambience",),
        "negative_modifiers": (),
        "deviation": 0.1,
    }
    fields.update(overrides)
    return Preset(**fields)


@pytest.fixture
def analysis() -> AnalysisInput:
    """Fully specified person and garment analysis."""
    return AnalysisInput(
        person=PersonAttributes(
            face_shape="oval",
            eye_shape="almond",
            skin_tone="medium olive",
            hair_length="shoulder-length",
            hair_color="dark brown",
            hair_texture="wavy",
            gender_expression="feminine",
        ),
        body=BodyAttributes(build="athletic", pose="standing facing camera"),
        clothing=ClothingAttributes(
            upper_wear_type="t-shirt",
            upper_wear_color="navy",
            upper_wear_pattern="none",
            upper_wear_texture="cotton jersey",
            lower_wear_type="jeans",
            footwear="white sneakers",
        ),
    )


@pytest.fixture
def bare_analysis() -> AnalysisInput:
    """Analysis with identity and pose but no garment attributes."""
    return AnalysisInput(
        person=PersonAttributes(skin_tone="fair", hair_color="blonde", face_shape="round"),
        body=BodyAttributes(build="slim", pose="standing"),
    )
