"""Pydantic models for the structured person/garment analysis.

The analysis is produced upstream by a vision provider; this core treats it as
a trusted, immutable value object and only reads its attribute fields.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PersonAttributes(BaseModel):
    """Identity attributes of the person in the source photo."""

    model_config = ConfigDict(frozen=True)

    face_shape: str | None = None
    eye_shape: str | None = None
    skin_tone: str | None = None
    hair_length: str | None = None
    hair_color: str | None = None
    hair_texture: str | None = None
    gender_expression: str | None = None


class BodyAttributes(BaseModel):
    """Body build and pose of the person in the source photo."""

    model_config = ConfigDict(frozen=True)

    build: str | None = None
    pose: str | None = None


class ClothingAttributes(BaseModel):
    """Garment attributes of the clothing reference."""

    model_config = ConfigDict(frozen=True)

    upper_wear_type: str | None = None
    upper_wear_color: str | None = None
    upper_wear_pattern: str | None = None
    upper_wear_texture: str | None = None
    lower_wear_type: str | None = None
    footwear: str | None = None


class AnalysisInput(BaseModel):
    """Structured description of a person and a garment."""

    model_config = ConfigDict(frozen=True)

    person: PersonAttributes = Field(default_factory=PersonAttributes)
    body: BodyAttributes = Field(default_factory=BodyAttributes)
    clothing: ClothingAttributes = Field(default_factory=ClothingAttributes)
    accessories: tuple[str, ...] = Field(default_factory=tuple, description="Accessories visible in the source photo")

    def known_terms(self) -> str:
        """Lower-cased text of every garment and accessory attribute (for accessory checks)."""
        parts = [v for v in self.clothing.model_dump().values() if v]
        parts.extend(self.accessories)
        return " ".join(parts).lower()
