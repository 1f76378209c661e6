"""Structured analysis payload schema.

Both ingestion paths converge here: the vision model returns camelCase keys
(``visualElement``, ``fullTranscript``) and the manual template uses snake_case
(``visual_element``, ``full_transcript``). Each field accepts either spelling.

Values are repaired rather than rejected where possible: blank strings become
None, numeric strings become floats, scalar lists are wrapped, and a group
that is not an object is treated as missing.
"""

import json
import re
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from winning_formula.domain.errors import AnalysisParseError, AnalysisValidationError

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def _clean_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def _clean_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip().rstrip("%"))
        except ValueError:
            return None
    return None


def _clean_text_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    cleaned = (_clean_text(item) for item in value)
    return [item for item in cleaned if item]


def _clean_object_list(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


Text = Annotated[str | None, BeforeValidator(_clean_text)]
Number = Annotated[float | None, BeforeValidator(_clean_number)]
TextList = Annotated[list[str], BeforeValidator(_clean_text_list)]
ObjectList = Annotated[list[dict[str, Any]], BeforeValidator(_clean_object_list)]


def _alias(*names: str) -> Any:
    return Field(default=None, validation_alias=AliasChoices(*names))


class _Section(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class HookSection(_Section):
    text: Text = None
    duration: Number = None
    type: Text = None
    visual_element: Text = _alias("visualElement", "visual_element")
    effectiveness_score: Number = _alias("effectivenessScore", "effectiveness_score")


class ScriptSection(_Section):
    full_transcript: Text = _alias("fullTranscript", "full_transcript")
    key_messages: TextList = Field(
        default_factory=list, validation_alias=AliasChoices("keyMessages", "key_messages")
    )
    voiceover_style: Text = _alias("voiceoverStyle", "voiceover_style")


class VisualSection(_Section):
    environment: Text = None
    lighting: Text = None
    camera_angles: TextList = Field(
        default_factory=list, validation_alias=AliasChoices("cameraAngles", "camera_angles")
    )
    model_description: Text = _alias("modelDescription", "model_description")
    product_display: Text = _alias(
        "productDisplay", "product_display", "product_display_method"
    )
    color_palette: TextList = Field(
        default_factory=list, validation_alias=AliasChoices("colorPalette", "color_palette")
    )
    scene_breakdown: ObjectList = Field(
        default_factory=list,
        validation_alias=AliasChoices("sceneBreakdown", "scene_breakdown"),
    )


class ClassificationSection(_Section):
    primary: Text = None
    secondary: Text = None


class CtaSection(_Section):
    extracted: Text = None
    primary: Text = None
    type: Text = None
    placement: Text = None
    urgency: Text = None


class CampaignSection(_Section):
    category: Text = None


class CaptionSection(_Section):
    main_text: Text = None
    cta: Text = None


class PerformanceSection(_Section):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    views: Number = None
    likes: Number = None
    comments: Number = None
    shares: Number = None
    engagement_rate: Number = _alias("engagement_rate", "engagementRate")


class MetadataSection(_Section):
    confidence: Number = None

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, value: float | None) -> float | None:
        if value is None:
            return None
        return min(max(value, 0.0), 1.0)


_GROUPS = (
    "hook",
    "script",
    "visual",
    "classification",
    "cta",
    "campaign",
    "caption",
    "performance",
    "metadata",
)

AI_REQUIRED_GROUPS = ("hook", "visual", "classification", "cta", "metadata")
MANUAL_ATTRIBUTE_GROUPS = (
    "hook",
    "script",
    "visual",
    "classification",
    "cta",
    "campaign",
    "caption",
    "performance",
)


class StructuredAnalysis(BaseModel):
    """The full structured analysis of one video."""

    model_config = ConfigDict(extra="allow")

    hook: HookSection | None = None
    script: ScriptSection | None = None
    visual: VisualSection | None = None
    classification: ClassificationSection | None = None
    cta: CtaSection | None = None
    campaign: CampaignSection | None = None
    caption: CaptionSection | None = None
    performance: PerformanceSection | None = None
    metadata: MetadataSection | None = None

    @field_validator(*_GROUPS, mode="before")
    @classmethod
    def drop_non_objects(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @property
    def confidence(self) -> float | None:
        return self.metadata.confidence if self.metadata else None

    @property
    def manual_engagement_rate(self) -> float | None:
        return self.performance.engagement_rate if self.performance else None

    def to_canonical_fields(self) -> dict[str, Any]:
        """Flatten to the VideoAnalysis column set; missing values map to None or []."""
        hook = self.hook or HookSection()
        script = self.script or ScriptSection()
        visual = self.visual or VisualSection()
        classification = self.classification or ClassificationSection()
        cta = self.cta or CtaSection()
        campaign = self.campaign or CampaignSection()
        caption = self.caption or CaptionSection()

        return {
            # Hook
            "hook_text": hook.text,
            "hook_duration_seconds": hook.duration,
            "hook_type": hook.type,
            "hook_visual_element": hook.visual_element,
            "hook_effectiveness_score": hook.effectiveness_score,
            # Caption & script
            "caption_cta": cta.extracted or caption.cta,
            "full_script": script.full_transcript,
            "script_key_messages": list(script.key_messages),
            "voiceover_style": script.voiceover_style,
            # Visual
            "visual_environment": visual.environment,
            "visual_lighting": visual.lighting,
            "visual_camera_angles": list(visual.camera_angles),
            "visual_model_description": visual.model_description,
            "visual_product_display_method": visual.product_display,
            "visual_color_palette": list(visual.color_palette),
            "visual_scene_breakdown": list(visual.scene_breakdown),
            # Classification
            "content_type_primary": classification.primary,
            "content_type_secondary": classification.secondary,
            # CTA
            "cta_primary": cta.primary,
            "cta_type": cta.type,
            "cta_placement": cta.placement,
            "cta_urgency_level": cta.urgency,
            # Campaign
            "campaign_category": campaign.category,
        }


def _validate(payload: Any) -> StructuredAnalysis:
    if not isinstance(payload, dict):
        raise AnalysisValidationError(
            "Analysis payload must be a JSON object",
            [{"loc": [], "msg": f"expected object, got {type(payload).__name__}"}],
        )
    try:
        return StructuredAnalysis.model_validate(payload)
    except ValidationError as e:
        raise AnalysisValidationError(
            "Analysis payload failed validation",
            [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()],
        ) from e


def parse_ai_analysis(payload: Any) -> StructuredAnalysis:
    """Validate a model-produced analysis.

    Raises:
        AnalysisValidationError: If a required group or the confidence score is missing.
    """
    analysis = _validate(payload)
    missing = [name for name in AI_REQUIRED_GROUPS if getattr(analysis, name) is None]
    errors = [{"loc": [name], "msg": "required attribute group missing"} for name in missing]
    if "metadata" not in missing and analysis.confidence is None:
        errors.append({"loc": ["metadata", "confidence"], "msg": "confidence score missing"})
    if errors:
        raise AnalysisValidationError("Analysis is missing required attribute groups", errors)
    return analysis


def parse_manual_analysis(payload: Any) -> StructuredAnalysis:
    """Validate a manually authored analysis (all groups optional, at least one present)."""
    analysis = _validate(payload)
    if all(getattr(analysis, name) is None for name in MANUAL_ATTRIBUTE_GROUPS):
        raise AnalysisValidationError(
            "Manual analysis must contain at least one attribute group",
            [{"loc": [], "msg": f"expected one of {', '.join(MANUAL_ATTRIBUTE_GROUPS)}"}],
        )
    return analysis


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the JSON object in a model response, unwrapping a markdown code fence if present.

    Raises:
        AnalysisParseError: If the text is not a JSON object.
    """
    match = _FENCE_RE.search(text)
    if match:
        text = match.group(1)
    try:
        data = json.loads(text.strip())
    except json.JSONDecodeError as e:
        raise AnalysisParseError(
            "Failed to parse analysis response",
            [{"loc": [], "msg": str(e)}],
        ) from e
    if not isinstance(data, dict):
        raise AnalysisParseError(
            "Failed to parse analysis response",
            [{"loc": [], "msg": "response is not a JSON object"}],
        )
    return data
