"""Pure section builders for the try-on instruction.

Each builder returns one block of text. PromptSections fixes the order and
compose() joins them, repeating the identity lock at the end so the
strongest constraint is both the first and the last thing the model reads.
"""

from __future__ import annotations

from typing import NamedTuple, Sequence

from tryon.analysis.models import AnalysisInput
from tryon.presets.models import Preset, ScenarioVariation, clamp_deviation

PRIORITY_RULE = "IDENTITY > CLOTHING > BODY > STYLE"


class PromptSections(NamedTuple):
    """Assembled sections in their fixed order."""

    identity_lock: str
    clothing_rules: str
    scene: str
    clothing: str
    priority: str


def _join(parts: Sequence[str | None], sep: str = ", ") -> str:
    return sep.join(p for p in parts if p)


def identity_lock(analysis: AnalysisInput) -> str:
    """Unconditional identity block, enriched with whatever attributes the analysis has."""
    person = analysis.person
    body = analysis.body

    face_detail = _join([person.face_shape and f"{person.face_shape} face shape", person.eye_shape and f"{person.eye_shape} eyes"])
    hair_detail = _join([person.hair_length, person.hair_color, person.hair_texture], " ")
    body_detail = _join([body.build])

    lines = [
        "IDENTITY LOCK (HIGHEST PRIORITY)",
        "This is the same person as in the input photo.",
        f"- Keep the exact same face{f' ({face_detail})' if face_detail else ''}: eyes, nose, lips, jawline and facial hair stay identical.",
        f"- Keep the exact skin tone{f' ({person.skin_tone})' if person.skin_tone else ''}.",
        f"- Keep the exact hair{f' ({hair_detail})' if hair_detail else ''}: length, color and texture stay identical.",
        f"- Keep the exact body proportions{f' ({body_detail} build)' if body_detail else ''}.",
        f"- Keep the gender expression{f' ({person.gender_expression})' if person.gender_expression else ''} exactly as in the input photo.",
        "- Keep the original pose and facial expression.",
    ]
    if analysis.accessories:
        lines.append(f"- Keep only the accessories already worn in the input photo: {', '.join(analysis.accessories)}.")
    else:
        lines.append("- Keep only the accessories already worn in the input photo; nothing new is worn.")
    return "\n".join(lines)


def clothing_rules() -> str:
    """Fixed complete-replacement template for the garment reference."""
    return "\n".join(
        [
            "CLOTHING REPLACEMENT RULES",
            "- Complete garment replacement: the reference garment fully takes the place of the original garment. It is never overlaid on or blended with the old clothing.",
            "- Ignore any face, person or body visible in the garment reference image; use only the garment itself.",
            "- Match the neckline, sleeves and silhouette of the reference garment exactly.",
            "- Where sleeve length, neckline depth or armhole cut differ from the original garment, follow the reference garment and render any newly visible arms, shoulders or neck naturally in the person's own skin tone.",
            "- Natural fit with proper draping, realistic fabric folds, seams and shadows.",
            "- Match the exact color, pattern and texture of the reference garment.",
        ]
    )


def deviation_note(deviation: float) -> str:
    """Style latitude statement for the scene section."""
    deviation = clamp_deviation(deviation)
    if deviation <= 0.1:
        label = "STRICT: apply the preset style conservatively, with minimal scene variation."
    elif deviation <= 0.15:
        label = "MODERATE: apply the preset style with balanced artistic freedom."
    else:
        label = "FLEXIBLE: interpret the preset style more freely in the scene while the person stays locked."
    return f"Style latitude: {deviation:.2f} - {label}"


def scene(
    preset: Preset,
    scenario: ScenarioVariation | None,
    positive: Sequence[str],
    negative: Sequence[str],
    user_guidance: str | None = None,
) -> str:
    """
    Scene, lighting, camera and mood block, scoped to atmosphere only.

    Scenario descriptors take precedence over the preset's own background,
    lighting, camera and pose descriptors when a scenario is given.

    Args:
        preset: Preset in use (already sanitized, or the neutral default)
        scenario: Chosen scenario of that preset, if any
        positive: Sanitized positive modifiers
        negative: Sanitized negative modifiers
        user_guidance: Sanitized free-text request, if any

    Returns:
        Scene section text
    """
    lines = [
        "SCENE AND STYLE (ATMOSPHERE ONLY)",
        "Everything in this section shapes only the background, lighting, camera feel and mood. "
        "It never overrides the identity lock or the clothing rules.",
        f"Preset: {preset.name}" + (f" - {preset.description}" if preset.description else ""),
        deviation_note(preset.latitude),
    ]

    if scenario is not None:
        lines.append(f"Background: {scenario.background}")
    elif preset.background:
        lines.append(f"Background: {preset.background}")

    elements = preset.background_elements
    if elements is not None:
        if elements.people:
            lines.append(f"Background people: {elements.people}")
        if elements.objects:
            lines.append(f"Background props: {elements.objects}")
        if elements.atmosphere:
            lines.append(f"Atmosphere: {elements.atmosphere}")

    if scenario is not None:
        light = scenario.lighting
        lines.append(f"Lighting: {light.quality} {light.type}, {light.direction}, {light.time}")
    elif preset.lighting is not None:
        light = preset.lighting
        lines.append(
            f"Lighting: {light.type} from {light.source}, {light.direction}, "
            f"{light.quality}, {light.color_temperature} color temperature"
        )

    if scenario is not None:
        cam = scenario.camera
        lines.append(f"Camera: {cam.angle} angle, {cam.lens} lens, {cam.framing} framing")
    elif preset.camera is not None:
        cam = preset.camera
        camera_line = f"Camera: {cam.angle} angle, {cam.lens} lens, {cam.framing} framing"
        if cam.depth_of_field:
            camera_line += f", {cam.depth_of_field} depth of field"
        lines.append(camera_line)

    if scenario is not None:
        lines.append(
            f"Pose mood (only where it matches the original pose): {scenario.pose.stance}, head {scenario.pose.head}"
        )
        lines.append(f"Mood: {scenario.expression}; {scenario.mood}")
    elif preset.pose is not None:
        pose = preset.pose
        lines.append(
            f"Pose mood (only where it matches the original pose): {pose.stance}. {pose.arms}. "
            f"{pose.expression}. Energy: {pose.energy}"
        )

    if positive:
        lines.append("Style modifiers:")
        lines.extend(f"- {p}" for p in positive)
    if negative:
        lines.append("Avoid:")
        lines.extend(f"- {n}" for n in negative)

    if user_guidance:
        lines.append(f"User request (atmosphere only, lowest priority): {user_guidance}")

    return "\n".join(lines)


def build_clothing_description(analysis: AnalysisInput) -> str:
    """Garment description built from the analysis when none was supplied."""
    c = analysis.clothing
    parts = ["Render the person wearing the referenced garment with realistic fabric texture, clean folds, natural drape and accurate fit."]

    if c.upper_wear_type:
        parts.append(f"Garment type: {c.upper_wear_type}.")
    if c.upper_wear_color:
        parts.append(f"Color: {c.upper_wear_color}.")
    if c.upper_wear_pattern and c.upper_wear_pattern.lower() != "none":
        parts.append(f"Pattern: {c.upper_wear_pattern}.")
    if c.upper_wear_texture:
        parts.append(f"Texture: {c.upper_wear_texture}.")
    if c.lower_wear_type:
        parts.append(f"Lower garment: {c.lower_wear_type}.")
    if c.footwear:
        parts.append(f"Footwear: {c.footwear}.")

    parts.append("Keep the structure of the input photo while expressing the outfit in the atmosphere above.")
    return " ".join(parts)


def clothing_section(description: str) -> str:
    return f"CLOTHING\n{description}"


def priority_footer() -> str:
    """Closing conflict rule; earlier sections always win over scene and style."""
    return "\n".join(
        [
            "PRIORITY RULES",
            PRIORITY_RULE,
            "If anything in the scene and style section conflicts with the identity lock, the clothing rules "
            "or the body, the earlier section wins.",
            "OUTPUT: a photorealistic try-on photograph of the same person wearing the reference garment, "
            "with authentic detail, harmonized with the atmosphere above.",
        ]
    )


def compose(sections: PromptSections) -> str:
    """Join sections in fixed order, anchoring the identity lock first and last."""
    blocks = [
        sections.identity_lock,
        sections.clothing_rules,
        sections.scene,
        sections.clothing,
        sections.priority,
        sections.identity_lock,
    ]
    return "\n\n".join(b for b in blocks if b)
