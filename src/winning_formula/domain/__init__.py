"""Domain models and business logic."""

from winning_formula.domain.engagement import compute_engagement_rate
from winning_formula.domain.enums import (
    AnalysisStatus,
    CampaignCategory,
    ConfidenceLevel,
    InsightCategory,
    InsightStatus,
    SourceType,
)
from winning_formula.domain.errors import (
    AnalysisInProgressError,
    AnalysisParseError,
    AnalysisValidationError,
    VideoNotFoundError,
    WinningFormulaError,
)
from winning_formula.domain.models import (
    AnalysisOutcome,
    BatchAnalysisResult,
    GlobalInsightResult,
    InsufficientData,
    NormalizedRecord,
    PatternInsight,
    PatternReport,
)

__all__ = [
    "AnalysisInProgressError",
    "AnalysisOutcome",
    "AnalysisParseError",
    "AnalysisStatus",
    "AnalysisValidationError",
    "BatchAnalysisResult",
    "CampaignCategory",
    "ConfidenceLevel",
    "GlobalInsightResult",
    "InsightCategory",
    "InsightStatus",
    "InsufficientData",
    "NormalizedRecord",
    "PatternInsight",
    "PatternReport",
    "SourceType",
    "VideoNotFoundError",
    "WinningFormulaError",
    "compute_engagement_rate",
]
