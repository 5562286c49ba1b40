"""Preset catalog: an immutable table of style presets loaded once at import.

Presets live in tryon/data/presets.json. Each entry carries a compact
scenario bank that is expanded here into the preset's scenario pool. Presets
whose modifier lists fail sanitization are dropped at load and re-checked on
every lookup; callers fall back to the neutral default.
"""

from __future__ import annotations

import json
import random
from itertools import product
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, NamedTuple

from pydantic import ValidationError

from tryon.core.config import settings
from tryon.core.errors import CatalogError
from tryon.core.logging import log
from tryon.core.paths import get_data_path
from tryon.safety.sanitizer import find_bare_banned_verbs, find_protected_violations, sanitize_list

from .models import (
    Camera,
    Lighting,
    Preset,
    PresetCategory,
    ScenarioBank,
    ScenarioVariation,
)

PRESETS_FILE = "presets.json"

# Appended to every accepted preset
REALISM_POSITIVE = (
    "Subtle natural film grain",
    "Realistic fabric texture fidelity",
    "Candid photography aesthetic with natural imperfections",
    "Real-world background with authentic textures and depth",
    "Natural lighting with realistic shadows and highlights",
)

REALISM_NEGATIVE = (
    "No plastic skin or oversmoothing",
    "No HDR over-processing",
    "No CGI-like smooth backgrounds",
    "No unnaturally perfect or stock photo environments",
    "No overly symmetrical or artificial compositions",
)

NEUTRAL_DEFAULT = Preset(
    id="neutral",
    name="Neutral Default",
    description="Generic always-safe modifiers used when no usable preset is available.",
    category="casual",
    positive_modifiers=(
        "Natural lighting with realistic shadows",
        "Keep the original background from the input photo",
        "Candid photography aesthetic, not stock photo",
        "Subtle natural imperfections (not overly perfect)",
        "Authentic camera feel with natural depth",
        "Subtle natural film grain",
        "Realistic fabric texture fidelity",
        "Match lighting between person and environment",
    ),
    negative_modifiers=(
        "No identity changes",
        "No pose changes",
        "No facial alterations",
        "No body modifications",
        "No plastic skin or oversmoothing",
        "No HDR over-processing",
        "No CGI-like smooth backgrounds",
        "No unnaturally perfect environments",
    ),
    deviation=0.1,
    background="Original background from the input photo",
    lighting=Lighting(
        type="natural ambient",
        source="existing scene light",
        direction="as in the input photo",
        quality="soft, realistic",
        color_temperature="matched to the input photo",
    ),
    camera=Camera(angle="eye-level", lens="standard", framing="as in the input photo"),
)


class PresetCheck(NamedTuple):
    """Sanitization outcome for one preset's modifier lists."""

    safe: bool
    positive: tuple[str, ...]
    negative: tuple[str, ...]
    warnings: tuple[str, ...]


class CatalogTable(NamedTuple):
    """Read-only preset table: lookup by id plus stable listing order."""

    version: int
    by_id: Mapping[str, Preset]
    order: tuple[str, ...]


def check_preset(preset: Preset) -> PresetCheck:
    """
    Run the sanitizer over a preset's positive and negative modifiers.

    A single unsafe entry in either list makes the whole preset unsafe, as
    does any banned verb applied directly to a protected noun.

    Args:
        preset: Preset to check

    Returns:
        PresetCheck with the sanitized lists and warnings
    """
    positive = sanitize_list(preset.positive_modifiers)
    negative = sanitize_list(preset.negative_modifiers)
    warnings = list(positive.warnings) + list(negative.warnings)

    violations: list[str] = []
    for modifier in preset.positive_modifiers + preset.negative_modifiers:
        violations.extend(find_protected_violations(modifier))
    if violations:
        warnings.append(f"Protected attribute verbs: {', '.join(violations)}")

    safe = not positive.unsafe_found and not negative.unsafe_found and not violations
    return PresetCheck(safe, positive.sanitized, negative.sanitized, tuple(warnings))


def audit_preset(preset: Preset) -> list[str]:
    """Advisory lint: bare banned verbs anywhere in a preset's free text."""
    findings: list[str] = []
    fields = {
        "positive": " ".join(preset.positive_modifiers),
        "negative": " ".join(preset.negative_modifiers),
        "description": preset.description,
        "background": preset.background or "",
    }
    for name, text in fields.items():
        for verb in find_bare_banned_verbs(text):
            findings.append(f"{name}: bare verb '{verb}'")
    return findings


def expand_scenarios(preset_id: str, bank: ScenarioBank, pool_size: int) -> tuple[ScenarioVariation, ...]:
    """
    Expand a scenario bank into a preset's scenario pool.

    The cartesian product of backgrounds, cameras, lightings and poses is
    shuffled by a generator seeded with the preset id, so the pool is the same
    in every process. Expression and mood are drawn from the same generator.

    Args:
        preset_id: Owning preset id (also the shuffle seed)
        bank: Compact scenario bank
        pool_size: Maximum number of variations to keep

    Returns:
        Tuple of ScenarioVariation with ids "<preset_id>_s001", ...
    """
    rng = random.Random(preset_id)
    combos = list(product(bank.backgrounds, bank.cameras, bank.lightings, bank.poses))
    rng.shuffle(combos)

    scenarios: list[ScenarioVariation] = []
    for n, (background, camera, lighting, pose) in enumerate(combos[:pool_size], start=1):
        scenarios.append(
            ScenarioVariation(
                id=f"{preset_id}_s{n:03d}",
                preset_id=preset_id,
                background=background,
                camera=camera,
                lighting=lighting,
                pose=pose,
                expression=rng.choice(bank.expressions),
                mood=rng.choice(bank.moods),
            )
        )
    return tuple(scenarios)


def build_catalog(raw: Mapping[str, Any], pool_size: int) -> CatalogTable:
    """
    Build the preset table from a parsed presets document.

    Args:
        raw: Parsed JSON document ({"version": int, "presets": [...]})
        pool_size: Scenario pool cap per preset

    Returns:
        CatalogTable with unsafe presets already dropped

    Raises:
        CatalogError: If the document is structurally invalid or ids repeat
    """
    entries = raw.get("presets")
    if not isinstance(entries, list):
        raise CatalogError("Preset document must contain a 'presets' list")

    by_id: dict[str, Preset] = {}
    order: list[str] = []
    seen: set[str] = set()

    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise CatalogError(f"Preset entry #{i} is not an object")

        fields = dict(entry)
        bank_raw = fields.pop("scenario_bank", None)
        try:
            scenarios: tuple[ScenarioVariation, ...] = ()
            if bank_raw is not None:
                bank = ScenarioBank.model_validate(bank_raw)
                scenarios = expand_scenarios(str(fields.get("id", "")), bank, pool_size)
            preset = Preset.model_validate({**fields, "scenarios": scenarios})
        except ValidationError as e:
            raise CatalogError(f"Preset entry #{i} ({entry.get('id', '?')}) is invalid: {e}") from e

        if preset.id in seen:
            raise CatalogError(f"Duplicate preset id: {preset.id}")
        seen.add(preset.id)

        check = check_preset(preset)
        if not check.safe:
            log.warning(f"PRESET_REJECTED id={preset.id} reasons={'; '.join(check.warnings)}")
            continue

        for finding in audit_preset(preset):
            log.debug(f"PRESET_LINT id={preset.id} {finding}")

        by_id[preset.id] = preset
        order.append(preset.id)

    return CatalogTable(
        version=int(raw.get("version", 1)),
        by_id=MappingProxyType(by_id),
        order=tuple(order),
    )


def load_catalog(path: Path | None = None, pool_size: int | None = None) -> CatalogTable:
    """
    Read and build the preset table from disk.

    Args:
        path: Presets JSON file (defaults to tryon/data/presets.json)
        pool_size: Scenario pool cap (defaults to settings.scenario_pool_size)

    Returns:
        CatalogTable

    Raises:
        CatalogError: If the file is missing, unreadable or invalid
    """
    path = path or get_data_path(PRESETS_FILE)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"Cannot read preset catalog {path}: {e}") from e

    if not isinstance(raw, dict):
        raise CatalogError(f"Preset catalog {path} must be a JSON object")

    table = build_catalog(raw, pool_size or settings.scenario_pool_size)
    log.info(f"CATALOG_LOADED version={table.version} presets={len(table.order)}")
    return table


_CATALOG = load_catalog()


def catalog_version() -> int:
    return _CATALOG.version


def get_preset(preset_id: str) -> Preset | None:
    """
    Look up a preset by id.

    The preset is re-sanitized on every lookup; an unsafe or unknown preset
    returns None and the caller substitutes neutral_default().

    Args:
        preset_id: Preset id

    Returns:
        Preset, or None if not found or unsafe
    """
    preset = _CATALOG.by_id.get(preset_id)
    if preset is None:
        log.warning(f"PRESET_NOT_FOUND id={preset_id}")
        return None

    check = check_preset(preset)
    if not check.safe:
        log.warning(f"PRESET_REJECTED id={preset_id} reasons={'; '.join(check.warnings)}")
        return None
    return preset


def list_all() -> tuple[Preset, ...]:
    """All presets in catalog order."""
    return tuple(_CATALOG.by_id[pid] for pid in _CATALOG.order)


def list_by_category(category: PresetCategory | str) -> tuple[Preset, ...]:
    """Presets of one category in catalog order (empty for unused categories)."""
    return tuple(p for p in list_all() if p.category == category)


def categories() -> tuple[str, ...]:
    """Categories in first-seen catalog order."""
    seen: list[str] = []
    for preset in list_all():
        if preset.category not in seen:
            seen.append(preset.category)
    return tuple(seen)


def neutral_default() -> Preset:
    return NEUTRAL_DEFAULT


def with_realism_defaults(
    positive: tuple[str, ...] | list[str],
    negative: tuple[str, ...] | list[str],
) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """
    Append the realism modifiers to an accepted preset's lists.

    Duplicates (case-insensitive) are dropped, keeping first-seen order.

    Args:
        positive: Sanitized positive modifiers
        negative: Sanitized negative modifiers

    Returns:
        Tuple of (positive, negative) with realism defaults merged in
    """
    return _merge(positive, REALISM_POSITIVE), _merge(negative, REALISM_NEGATIVE)


def _merge(items, extra) -> tuple[str, ...]:
    merged: list[str] = []
    seen: set[str] = set()
    for item in list(items) + list(extra):
        key = item.strip().lower()
        if key and key not in seen:
            seen.add(key)
            merged.append(item)
    return tuple(merged)
