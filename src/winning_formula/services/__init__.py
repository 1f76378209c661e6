"""Business logic services."""

from winning_formula.services.analyzer import (
    VideoAnalyzer,
    build_analysis_prompt,
    generate_campaign_tag,
)
from winning_formula.services.global_insights import GlobalInsightGenerator
from winning_formula.services.insight_cache import InsightCacheStore
from winning_formula.services.library import VideoLibraryService, VideoListing
from winning_formula.services.normalizer import AttributeNormalizer, resolve_engagement_rate
from winning_formula.services.patterns import (
    PatternAggregator,
    PatternInsightService,
    confidence_tier,
)
from winning_formula.services.tiktok_sync import TikTokSyncService

__all__ = [
    "AttributeNormalizer",
    "GlobalInsightGenerator",
    "InsightCacheStore",
    "PatternAggregator",
    "PatternInsightService",
    "TikTokSyncService",
    "VideoAnalyzer",
    "VideoLibraryService",
    "VideoListing",
    "build_analysis_prompt",
    "confidence_tier",
    "generate_campaign_tag",
    "resolve_engagement_rate",
]
