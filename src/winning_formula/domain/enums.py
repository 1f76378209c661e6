"""Domain enumerations."""

from enum import StrEnum


class AnalysisStatus(StrEnum):
    """Lifecycle of a video through analysis ingestion."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    NEEDS_REVIEW = "needs_review"
    FAILED = "failed"


class SourceType(StrEnum):
    """Provenance of a VideoAnalysis row."""

    AI = "ai"
    MANUAL = "manual"


class HookType(StrEnum):
    """Opening hook styles (first 0-3 seconds)."""

    PATTERN_INTERRUPT = "pattern_interrupt"
    CURIOSITY_GAP = "curiosity_gap"
    SOCIAL_PROOF = "social_proof"
    PROBLEM_AGITATION = "problem_agitation"
    BOLD_CLAIM = "bold_claim"


class VoiceoverStyle(StrEnum):
    """Voiceover delivery styles."""

    PROFESSIONAL = "professional"
    CASUAL = "casual"
    ENERGETIC = "energetic"
    EDUCATIONAL = "educational"


class VisualEnvironment(StrEnum):
    """Where the video was shot."""

    URBAN_STREET = "urban_street"
    STUDIO = "studio"
    LIFESTYLE_HOME = "lifestyle_home"
    OUTDOOR_NATURE = "outdoor_nature"
    OTHER = "other"


class VisualLighting(StrEnum):
    """Dominant lighting setup."""

    NATURAL_DAYLIGHT = "natural_daylight"
    STUDIO_LIGHTING = "studio_lighting"
    GOLDEN_HOUR = "golden_hour"
    NIGHT = "night"
    MIXED = "mixed"


class ProductDisplay(StrEnum):
    """How the product is shown on camera."""

    WORN = "worn"
    HELD = "held"
    DEMONSTRATED = "demonstrated"
    FLAT_LAY = "flat_lay"
    OTHER = "other"


class ContentType(StrEnum):
    """Primary content classification."""

    PRODUCT_DEMO = "product_demo"
    LIFESTYLE = "lifestyle"
    UNBOXING = "unboxing"
    TESTIMONIAL = "testimonial"
    BEFORE_AFTER = "before_after"
    TUTORIAL = "tutorial"
    TREND_PARTICIPATION = "trend_participation"


class CtaType(StrEnum):
    """Call-to-action kinds."""

    SHOP_NOW = "shop_now"
    LINK_IN_BIO = "link_in_bio"
    FOLLOW = "follow"
    COMMENT = "comment"
    DUET_STITCH = "duet_stitch"
    VISIT_PAGE = "visit_page"
    NONE = "none"


class CtaPlacement(StrEnum):
    """Where in the video the CTA appears."""

    OPENING = "opening"
    MIDDLE = "middle"
    CLOSING = "closing"
    THROUGHOUT = "throughout"
    NONE = "none"


class CtaUrgency(StrEnum):
    """Urgency level of the CTA."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class CampaignCategory(StrEnum):
    """Campaign the video belongs to."""

    PRODUCT_LAUNCH = "product_launch"
    SEASONAL = "seasonal"
    INFLUENCER_COLLAB = "influencer_collab"
    ORGANIC_CONTENT = "organic_content"


class InsightCategory(StrEnum):
    """Category of a per-user pattern insight."""

    HOOK = "hook"
    VISUAL = "visual"
    CTA = "cta"


class ConfidenceLevel(StrEnum):
    """Coarse confidence tier of a pattern insight."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Ordinal position (low < medium < high)."""
        return {"low": 0, "medium": 1, "high": 2}[self.value]


class InsightStatus(StrEnum):
    """Lifecycle of a global insight."""

    ACTIVE = "active"
    ARCHIVED = "archived"
