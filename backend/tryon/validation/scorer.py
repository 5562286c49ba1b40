"""Post-generation compliance scoring.

Five independent heuristic checks over the original analysis, the preset
used and the assembled prompt (plus any generated metadata). They are
structural completeness checks over input metadata, not image comparison.

Overall score is the weighted sum of check scores. The result passes only if
every individual check passes.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from tryon.analysis.models import AnalysisInput
from tryon.core.config import settings
from tryon.core.logging import log
from tryon.presets.models import Preset

from .prompt_check import ensure_prompt

CHECK_WEIGHTS: dict[str, float] = {
    "identity": 0.40,
    "clothing": 0.30,
    "pose": 0.10,
    "noExtraObjects": 0.15,
    "presetSafety": 0.05,
}

# Commonly hallucinated accessories
ACCESSORY_PATTERN = re.compile(
    r"\b(chains?|necklaces?|earrings?|glasses|watch(?:es)?|jackets?|jewel(?:le)?ry)\b",
    re.IGNORECASE,
)

DANGEROUS_PATTERNS = (
    re.compile(r"\b(add|change|modify|alter)\s+(hair|face|body|clothing)\b", re.IGNORECASE),
    re.compile(r"\b(enhance|improve)\s+(face|skin|body)\b", re.IGNORECASE),
)


class CheckResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    passed: bool
    score: float = Field(..., ge=0.0, le=1.0)
    message: str
    details: str | None = None


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    passed: bool
    score: float = Field(..., ge=0.0, le=1.0)
    checks: dict[str, CheckResult]
    warnings: tuple[str, ...] = Field(default_factory=tuple)
    errors: tuple[str, ...] = Field(default_factory=tuple)


def check_identity(original: AnalysisInput) -> CheckResult:
    """Pass when at least one identity group (skin, hair, face) was specified."""
    p = original.person
    groups = {
        "skin tone": bool(p.skin_tone),
        "hair": bool(p.hair_length or p.hair_color or p.hair_texture),
        "face structure": bool(p.face_shape or p.eye_shape),
    }
    present = [name for name, ok in groups.items() if ok]

    if not present:
        return CheckResult(
            passed=False,
            score=0.4,
            message="Identity preservation check: no identity attributes in analysis",
            details="Analysis lacks skin tone, hair and face attributes",
        )

    missing = [name for name, ok in groups.items() if not ok]
    return CheckResult(
        passed=True,
        score=round(0.6 + 0.4 * len(present) / len(groups), 4),
        message=f"Identity preservation check: {', '.join(present)} should be preserved",
        details=f"Unspecified: {', '.join(missing)}" if missing else None,
    )


def check_clothing(original: AnalysisInput) -> CheckResult:
    """Always passes; the score drops with each missing garment attribute."""
    c = original.clothing
    attrs = {
        "garment type": c.upper_wear_type,
        "color": c.upper_wear_color,
        "pattern": c.upper_wear_pattern,
        "texture": c.upper_wear_texture,
    }
    present = [name for name, v in attrs.items() if v]
    score = 0.5 + 0.5 * len(present) / len(attrs)

    if not present:
        message = "Clothing match check: no garment attributes in analysis"
    else:
        message = f"Clothing match check: {', '.join(present)} should match exactly"
    return CheckResult(passed=True, score=score, message=message)


def check_pose(original: AnalysisInput) -> CheckResult:
    b = original.body
    present = [name for name, v in (("pose", b.pose), ("body build", b.build)) if v]
    return CheckResult(
        passed=True,
        score=round(0.7 + 0.15 * len(present), 4),
        message=(
            f"Pose similarity check: {', '.join(present)} should be similar"
            if present
            else "Pose similarity check: no pose or build attributes in analysis"
        ),
    )


def _meta_text(generated_meta: Any) -> str:
    if generated_meta is None:
        return ""
    if isinstance(generated_meta, str):
        return generated_meta
    if isinstance(generated_meta, Mapping):
        return json.dumps(generated_meta, sort_keys=True, default=str)
    return str(generated_meta)


def _is_known(term: str, known: str) -> bool:
    """True if the analysis already mentions the term (singular or plural)."""
    forms = {term}
    if term.endswith("es"):
        forms.add(term[:-2])
    if term.endswith("s"):
        forms.add(term[:-1])
    return any(re.search(rf"\b{re.escape(f)}", known) for f in forms)


def check_no_extra_objects(original: AnalysisInput, generated_meta: Any, final_prompt: str) -> CheckResult:
    """Fail on any hallucination-prone accessory term not already in the analysis."""
    text = f"{final_prompt}\n{_meta_text(generated_meta)}"
    known = original.known_terms()

    found: list[str] = []
    for m in ACCESSORY_PATTERN.finditer(text):
        term = m.group(1).lower()
        if not _is_known(term, known) and term not in found:
            found.append(term)

    if found:
        return CheckResult(
            passed=False,
            score=0.5,
            message=f"No extra objects check: unexpected accessories {', '.join(found)}",
            details=f"{len(original.accessories)} original accessories; none may be added",
        )
    return CheckResult(
        passed=True,
        score=1.0,
        message=f"No extra objects check: {len(original.accessories)} original accessories, no new items",
    )


def check_preset_safety(
    preset_used: Preset | None,
    final_prompt: str,
    threshold: float | None = None,
) -> CheckResult:
    """Fail on excessive preset latitude or on attribute-changing language in the prompt."""
    threshold = threshold if threshold is not None else settings.deviation_safety_threshold
    issues: list[str] = []

    if preset_used is not None and preset_used.latitude > threshold:
        issues.append(f"Preset deviation ({preset_used.latitude}) exceeds {threshold}")

    for pattern in DANGEROUS_PATTERNS:
        m = pattern.search(final_prompt)
        if m:
            issues.append(f"Prompt contains attribute-changing language: '{m.group(0)}'")

    name = preset_used.name if preset_used else "neutral default"
    deviation = preset_used.latitude if preset_used else 0.1
    return CheckResult(
        passed=not issues,
        score=max(0.0, 1.0 - 0.2 * len(issues)),
        message=f"Preset safety check: {name} applied with deviation {deviation}",
        details="; ".join(issues) if issues else None,
    )


def validate(
    original: AnalysisInput,
    generated_meta: Any,
    preset_used: Preset | None,
    final_prompt: str,
) -> ValidationResult:
    """
    Score a generation against the hard constraints of its instruction.

    Args:
        original: Analysis the instruction was built from
        generated_meta: Opaque metadata returned by the generative model caller
        preset_used: Preset recorded on the AssemblyResult (None for neutral)
        final_prompt: Prompt that was sent

    Returns:
        ValidationResult; passed is False if any check failed

    Raises:
        MalformedPromptError: If final_prompt is empty or structurally malformed
    """
    ensure_prompt(final_prompt)

    checks = {
        "identity": check_identity(original),
        "clothing": check_clothing(original),
        "pose": check_pose(original),
        "noExtraObjects": check_no_extra_objects(original, generated_meta, final_prompt),
        "presetSafety": check_preset_safety(preset_used, final_prompt),
    }

    score = sum(checks[name].score * weight for name, weight in CHECK_WEIGHTS.items())
    passed = all(c.passed for c in checks.values())

    warnings: list[str] = []
    errors: list[str] = []
    for check in checks.values():
        if not check.passed:
            errors.append(check.message)
            if check.details:
                errors.append(check.details)
        elif check.score < settings.validation_warn_below:
            warnings.append(check.message)
            if check.details:
                warnings.append(check.details)

    result = ValidationResult(
        passed=passed,
        score=round(min(1.0, score), 4),
        checks=checks,
        warnings=tuple(warnings),
        errors=tuple(errors),
    )
    log.info(f"VALIDATION passed={result.passed} score={result.score:.3f} errors={len(errors)}")
    return result
