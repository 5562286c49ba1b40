"""Tests for preset models, the static catalog and scenario pool expansion."""

from __future__ import annotations

import json
from types import MappingProxyType
from typing import get_args

import pytest

from conftest import make_preset
from tryon.core.errors import CatalogError
from tryon.presets import catalog
from tryon.presets.catalog import (
    REALISM_NEGATIVE,
    REALISM_POSITIVE,
    CatalogTable,
    audit_preset,
    build_catalog,
    catalog_version,
    categories,
    check_preset,
    expand_scenarios,
    get_preset,
    list_all,
    list_by_category,
    load_catalog,
    neutral_default,
    with_realism_defaults,
)
from tryon.presets.models import PresetCategory, ScenarioBank, clamp_deviation


def _raw_entry(preset_id: str, **overrides) -> dict:
    entry = {
        "id": preset_id,
        "name": preset_id.replace("_", " ").title(),
        "category": "studio",
        "positive_modifiers": ["Soft studio light"],
        "negative_modifiers": ["No harsh shadows"],
        "deviation": 0.1,
        "scenario_bank": {
            "backgrounds": ["Gray backdrop", "White backdrop"],
            "cameras": [{"angle": "eye-level", "lens": "50mm", "framing": "medium shot"}],
            "lightings": [
                {"type": "softbox", "direction": "frontal", "quality": "soft", "time": "studio"},
                {"type": "strip", "direction": "side", "quality": "crisp", "time": "studio"},
            ],
            "poses": [{"stance": "standing_relaxed", "head": "level"}],
            "expressions": ["calm"],
            "moods": ["clean"],
        },
    }
    entry.update(overrides)
    return entry


class TestClampDeviation:
    @pytest.mark.parametrize(
        "value,expected",
        [(0.05, 0.1), (-3, 0.1), (0.1, 0.1), (0.3, 0.3), (0.5, 0.5), (0.9, 0.5), (None, 0.1)],
    )
    def test_clamps_into_range(self, value, expected):
        assert clamp_deviation(value) == expected

    def test_nan_defaults(self):
        assert clamp_deviation(float("nan")) == 0.1

    def test_preset_construction_clamps(self):
        assert make_preset(deviation=0.9).deviation == 0.5
        assert make_preset(deviation=0.01).deviation == 0.1
        assert make_preset(deviation=None).deviation == 0.1


class TestShippedCatalog:
    def test_catalog_is_not_empty_and_ids_unique(self):
        presets = list_all()
        assert len(presets) >= 10
        ids = [p.id for p in presets]
        assert len(ids) == len(set(ids))

    def test_listing_order_is_stable(self):
        assert [p.id for p in list_all()] == [p.id for p in list_all()]

    def test_covers_every_category(self):
        assert set(categories()) == set(get_args(PresetCategory))

    def test_list_by_category(self):
        studio = list_by_category("studio")
        assert studio
        assert all(p.category == "studio" for p in studio)
        assert list_by_category("no-such-category") == ()

    def test_every_shipped_preset_is_safe(self):
        for preset in list_all():
            assert check_preset(preset).safe, preset.id

    def test_every_preset_has_full_scenario_pool(self):
        for preset in list_all():
            assert len(preset.scenarios) == 100, preset.id
            assert all(s.preset_id == preset.id for s in preset.scenarios)
            assert len({s.id for s in preset.scenarios}) == 100

    def test_deviation_within_bounds(self):
        for preset in list_all():
            assert 0.1 <= preset.deviation <= 0.5

    def test_get_preset(self):
        preset = get_preset("cinematic_daylight")
        assert preset is not None
        assert preset.name == "Cinematic Daylight"
        assert preset.scenarios[0].id == "cinematic_daylight_s001"

    def test_catalog_version(self):
        assert catalog_version() == 3

    def test_get_unknown_preset(self):
        assert get_preset("does_not_exist") is None

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            catalog._CATALOG.by_id["x"] = make_preset()

    def test_get_preset_rechecks_safety(self, monkeypatch):
        unsafe = make_preset(id="sneaky", positive_modifiers=("transform the face",))
        table = CatalogTable(version=1, by_id=MappingProxyType({"sneaky": unsafe}), order=("sneaky",))
        monkeypatch.setattr(catalog, "_CATALOG", table)
        assert get_preset("sneaky") is None


class TestNeutralDefault:
    def test_has_modifiers_and_min_deviation(self):
        neutral = neutral_default()
        assert neutral.id == "neutral"
        assert neutral.positive_modifiers
        assert neutral.negative_modifiers
        assert neutral.deviation == 0.1
        assert check_preset(neutral).safe

    def test_realism_defaults_are_appended_without_duplicates(self):
        positive, negative = with_realism_defaults(
            ("Warm tones", "subtle natural film grain"), ("No harsh shadows",)
        )
        assert positive[:2] == ("Warm tones", "subtle natural film grain")
        assert "Subtle natural film grain" not in positive
        assert set(REALISM_POSITIVE[1:]) <= set(positive)
        assert negative[0] == "No harsh shadows"
        assert negative[1:] == REALISM_NEGATIVE


class TestBuildCatalog:
    def test_builds_table(self):
        table = build_catalog({"version": 7, "presets": [_raw_entry("a"), _raw_entry("b")]}, pool_size=100)
        assert table.version == 7
        assert table.order == ("a", "b")
        # 2 backgrounds x 1 camera x 2 lightings x 1 pose
        assert len(table.by_id["a"].scenarios) == 4

    def test_pool_is_capped(self):
        table = build_catalog({"presets": [_raw_entry("a")]}, pool_size=3)
        assert [s.id for s in table.by_id["a"].scenarios] == ["a_s001", "a_s002", "a_s003"]

    def test_unsafe_preset_is_dropped(self):
        raw = {
            "presets": [
                _raw_entry("good"),
                _raw_entry("bad", positive_modifiers=["change pose to dramatic angle"]),
                _raw_entry("worse", negative_modifiers=["alter skin texture"]),
            ]
        }
        table = build_catalog(raw, pool_size=10)
        assert table.order == ("good",)
        assert "bad" not in table.by_id

    def test_duplicate_ids_rejected(self):
        with pytest.raises(CatalogError, match="Duplicate preset id"):
            build_catalog({"presets": [_raw_entry("a"), _raw_entry("a")]}, pool_size=10)

    def test_invalid_entry_rejected(self):
        with pytest.raises(CatalogError, match="invalid"):
            build_catalog({"presets": [_raw_entry("a", category="surreal")]}, pool_size=10)

    def test_missing_presets_list(self):
        with pytest.raises(CatalogError):
            build_catalog({"version": 1}, pool_size=10)

    def test_load_catalog_missing_file(self, tmp_path):
        with pytest.raises(CatalogError, match="Cannot read preset catalog"):
            load_catalog(tmp_path / "missing.json")

    def test_load_catalog_from_file(self, tmp_path):
        path = tmp_path / "presets.json"
        path.write_text(json.dumps({"version": 2, "presets": [_raw_entry("x")]}), encoding="utf-8")
        table = load_catalog(path, pool_size=2)
        assert table.order == ("x",)
        assert len(table.by_id["x"].scenarios) == 2


class TestScenarioExpansion:
    def test_expansion_is_deterministic(self):
        bank = ScenarioBank.model_validate(_raw_entry("p")["scenario_bank"])
        first = expand_scenarios("p", bank, 10)
        second = expand_scenarios("p", bank, 10)
        assert first == second

    def test_audit_flags_bare_verbs(self):
        preset = make_preset(description="We add soft haze")
        assert "description: bare verb 'add'" in audit_preset(preset)
