"""Abstract judge interface for scenario selection (provider-agnostic)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tryon.analysis.models import AnalysisInput


class JudgeRequest(BaseModel):
    """Structured text handed to a judge. Never carries image data."""

    model_config = ConfigDict(frozen=True)

    preset_name: str
    preset_description: str = ""
    scenarios_text: str = Field(..., description="Numbered SCENARIO n (id) summaries")
    scenario_ids: tuple[str, ...]
    analysis: AnalysisInput
    user_instruction: str | None = None


class JudgeSelection(BaseModel):
    """A judge's pick among the sampled scenarios."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    scenario_id: str | None = Field(default=None, alias="selectedScenarioId")
    scenario_number: int | None = Field(default=None, alias="selectedScenarioNumber")
    person_description: str = Field(default="", alias="personDescription")
    garment_description: str = Field(default="", alias="garmentDescription")
    reasoning: str = ""

    @field_validator("person_description", "garment_description", "reasoning", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("scenario_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        if v is None:
            return None
        return str(v).strip() or None

    @field_validator("scenario_number", mode="before")
    @classmethod
    def coerce_number(cls, v):
        """Judges sometimes answer "3" instead of 3; anything unparseable becomes None."""
        if v is None or isinstance(v, bool):
            return None
        try:
            return int(v)
        except (TypeError, ValueError):
            return None


class ScenarioJudge(ABC):
    """Abstract base class for scenario judges.

    A judge perceptually matches the analysis to the best-fitting scenario.
    Implementations may be remote and slow; callers always wrap them in a
    deadline and fall back on any failure.
    """

    @abstractmethod
    def choose(self, request: JudgeRequest, timeout_s: float) -> JudgeSelection:
        """Pick one scenario from the request.

        Args:
            request: Sampled scenario summaries plus analysis
            timeout_s: Per-call budget the implementation must bound its own I/O by.
                The caller stops waiting at this deadline, but the worker thread
                keeps running and is joined at interpreter exit, so a call that
                never returns blocks shutdown. GrokJudge bounds it through the
                httpx timeout.

        Returns:
            JudgeSelection naming a scenario by id or 1-based number

        Raises:
            JudgeError: On transport, parse or schema failures
        """
        pass

    def close(self) -> None:
        """Close judge resources (optional, override if needed)."""
        pass

    def __enter__(self) -> ScenarioJudge:
        return self

    def __exit__(self, *args) -> None:
        self.close()
