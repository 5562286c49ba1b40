"""Style preset package.

Exports:
    get_preset: Look up a sanitized preset by id
    list_all / list_by_category / categories: Read-only catalog listings
    neutral_default: Always-safe fallback preset
"""

from .catalog import (
    NEUTRAL_DEFAULT,
    PresetCheck,
    audit_preset,
    categories,
    catalog_version,
    check_preset,
    get_preset,
    list_all,
    list_by_category,
    neutral_default,
    with_realism_defaults,
)
from .models import Preset, ScenarioVariation, clamp_deviation

__all__ = [
    "NEUTRAL_DEFAULT",
    "Preset",
    "PresetCheck",
    "ScenarioVariation",
    "audit_preset",
    "catalog_version",
    "categories",
    "check_preset",
    "clamp_deviation",
    "get_preset",
    "list_all",
    "list_by_category",
    "neutral_default",
    "with_realism_defaults",
]
