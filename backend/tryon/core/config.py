"""Try-on prompt core configuration (judge + safety thresholds only)."""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root directory (parent of backend/)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent.resolve()

# Load .env file into environment variables
env_path = PROJECT_ROOT / ".env"
load_dotenv(env_path)


class Settings(BaseSettings):
    """Try-on prompt core configuration with fail-loud validation."""

    model_config = SettingsConfigDict(env_file=str(env_path), extra="ignore")

    # Judge collaborator selection
    judge_provider: str = Field(default="grok")

    # Grok (xAI) - default judge provider
    grok_api_key: str | None = Field(default=None)
    grok_model: str = Field(default="grok-2-vision-1212")
    grok_base_url: str = Field(default="https://api.x.ai/v1")

    # Hard deadline for one judge call; fallback applies afterwards
    judge_timeout_s: float = Field(default=20.0, gt=0)

    # Scenario sampling
    scenario_sample_budget: int = Field(default=10, ge=1)
    scenario_pool_size: int = Field(default=100, ge=1)

    # Stricter than the catalog clamp; checked by the preset-safety validator
    deviation_safety_threshold: float = Field(default=0.2)

    # Validation
    validation_warn_below: float = Field(default=0.8)
    prompt_min_chars: int = Field(default=100)
    prompt_max_chars: int = Field(default=6000)

    # Logging
    log_level: str = Field(default="INFO")
    log_file: str | None = Field(default=None)


settings = Settings()
