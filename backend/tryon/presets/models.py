"""Pydantic models for style presets and their scenario variations.

All models are frozen: the catalog is built once at process start and only
handed out read-only afterwards.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

PresetCategory = Literal[
    "casual",
    "studio",
    "outdoor",
    "artistic",
    "cinematic",
    "lifestyle",
    "fashion",
    "portrait",
]

PoseEnergy = Literal["relaxed", "confident", "dynamic", "casual", "elegant", "powerful"]

DEVIATION_MIN = 0.1
DEVIATION_MAX = 0.5
DEVIATION_DEFAULT = 0.1


def clamp_deviation(d: float | None) -> float:
    """Clamp a deviation into [0.1, 0.5]; missing values default to 0.1."""
    v = d if isinstance(d, (int, float)) and not isinstance(d, bool) else DEVIATION_DEFAULT
    if v != v:  # NaN
        v = DEVIATION_DEFAULT
    if v < DEVIATION_MIN:
        return DEVIATION_MIN
    if v > DEVIATION_MAX:
        return DEVIATION_MAX
    return float(v)


class Lighting(BaseModel):
    """Preset lighting descriptor."""

    model_config = ConfigDict(frozen=True)

    type: str
    source: str
    direction: str
    quality: str
    color_temperature: str


class Camera(BaseModel):
    """Preset camera descriptor."""

    model_config = ConfigDict(frozen=True)

    angle: str
    lens: str
    framing: str
    depth_of_field: str | None = None


class BackgroundElements(BaseModel):
    """Incidental scene content (people, props, crowd energy)."""

    model_config = ConfigDict(frozen=True)

    people: str | None = None
    objects: str | None = None
    atmosphere: str | None = None


class PoseGuide(BaseModel):
    """Pose and expression mood guidance (atmosphere only)."""

    model_config = ConfigDict(frozen=True)

    stance: str
    arms: str
    expression: str
    energy: PoseEnergy
    body_angle: str | None = None


class ScenarioCamera(BaseModel):
    model_config = ConfigDict(frozen=True)

    angle: str
    lens: str
    framing: str


class ScenarioLighting(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    direction: str
    quality: str
    time: str


class ScenarioPose(BaseModel):
    model_config = ConfigDict(frozen=True)

    stance: str
    head: str


class ScenarioVariation(BaseModel):
    """One concrete instantiation of a preset's scene."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    preset_id: str = Field(..., min_length=1)
    background: str
    camera: ScenarioCamera
    lighting: ScenarioLighting
    pose: ScenarioPose
    expression: str
    mood: str

    def summary(self) -> str:
        """Structured text summary handed to the judge collaborator."""
        return (
            f"  - Background: {self.background}\n"
            f"  - Camera: {self.camera.angle}, {self.camera.lens}, {self.camera.framing}\n"
            f"  - Lighting: {self.lighting.quality} {self.lighting.type} {self.lighting.direction}, {self.lighting.time}\n"
            f"  - Pose: {self.pose.stance}, head {self.pose.head}\n"
            f"  - Expression: {self.expression}\n"
            f"  - Mood: {self.mood}"
        )


class ScenarioBank(BaseModel):
    """Compact per-preset scenario bank, expanded into ScenarioVariation records at load."""

    model_config = ConfigDict(frozen=True)

    backgrounds: tuple[str, ...] = Field(..., min_length=1)
    cameras: tuple[ScenarioCamera, ...] = Field(..., min_length=1)
    lightings: tuple[ScenarioLighting, ...] = Field(..., min_length=1)
    poses: tuple[ScenarioPose, ...] = Field(..., min_length=1)
    expressions: tuple[str, ...] = Field(..., min_length=1)
    moods: tuple[str, ...] = Field(..., min_length=1)


class Preset(BaseModel):
    """Named, structured bundle of non-identity style modifiers."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = ""
    category: PresetCategory
    positive_modifiers: tuple[str, ...] = Field(default_factory=tuple)
    negative_modifiers: tuple[str, ...] = Field(default_factory=tuple)
    deviation: float = DEVIATION_DEFAULT
    background: str | None = None
    background_elements: BackgroundElements | None = None
    lighting: Lighting | None = None
    camera: Camera | None = None
    pose: PoseGuide | None = None
    scenarios: tuple[ScenarioVariation, ...] = Field(default_factory=tuple)

    @field_validator("deviation", mode="before")
    @classmethod
    def clamp(cls, v: float | None) -> float:
        """A preset can never hold more creative latitude than the hard cap."""
        return clamp_deviation(v)

    @property
    def latitude(self) -> float:
        """Deviation clamped at read; model_copy and model_construct skip the validator."""
        return clamp_deviation(self.deviation)
