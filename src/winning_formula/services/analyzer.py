"""Analysis ingestion: turns model output or manual entries into VideoAnalysis rows."""

import asyncio
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import desc, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from winning_formula.adapters.llm.anthropic import AnthropicProvider
from winning_formula.adapters.llm.base import (
    ImageFetchError,
    LLMMessage,
    LLMProvider,
    VisionMessage,
)
from winning_formula.adapters.llm.openai import OpenAIProvider
from winning_formula.adapters.llm.stub import StubLLMProvider
from winning_formula.config import settings
from winning_formula.db.models import (
    MetricSnapshotModel,
    VideoAnalysisModel,
    VideoModel,
    as_utc,
    utcnow,
)
from winning_formula.domain.enums import AnalysisStatus, CampaignCategory, SourceType
from winning_formula.domain.errors import (
    AnalysisInProgressError,
    VideoNotFoundError,
    WinningFormulaError,
)
from winning_formula.domain.models import AnalysisOutcome, BatchAnalysisResult
from winning_formula.logging import get_logger
from winning_formula.schemas.analysis import (
    StructuredAnalysis,
    extract_json_object,
    parse_ai_analysis,
    parse_manual_analysis,
)
from winning_formula.services.snapshots import latest_snapshot

logger = get_logger(__name__)

SEASONAL_KEYWORDS = (
    "summer",
    "winter",
    "fall",
    "spring",
    "holiday",
    "valentine",
    "newyear",
    "christmas",
    "blackfriday",
)

# Statuses from which a new analysis run may start
CLAIMABLE_STATUSES = (
    AnalysisStatus.PENDING,
    AnalysisStatus.FAILED,
    AnalysisStatus.COMPLETED,
    AnalysisStatus.NEEDS_REVIEW,
)


def generate_campaign_tag(
    caption: str | None,
    campaign_category: str | None,
    primary_content_type: str | None,
    now: datetime | None = None,
) -> str:
    """Derive a ``{prefix}_{yyyy-mm}`` campaign tag.

    A seasonal keyword in the caption wins, then the campaign category, then the
    primary content type.
    """
    period = f"{(now or utcnow()):%Y-%m}"
    text = (caption or "").lower()

    for keyword in SEASONAL_KEYWORDS:
        if keyword in text:
            return f"{keyword}_{period}"

    if campaign_category == CampaignCategory.PRODUCT_LAUNCH:
        return f"launch_{period}"
    if campaign_category == CampaignCategory.INFLUENCER_COLLAB:
        return f"collab_{period}"
    return f"{primary_content_type or 'content'}_{period}"


def build_analysis_prompt(
    video: VideoModel,
    snapshot: MetricSnapshotModel | None,
    has_image: bool,
) -> str:
    """Build the extraction prompt for one video."""
    views = snapshot.views if snapshot else 0
    likes = snapshot.likes if snapshot else 0
    comments = snapshot.comments if snapshot else 0
    shares = snapshot.shares if snapshot else 0
    engagement = (
        f"{snapshot.engagement_rate:.2f}" if snapshot and snapshot.engagement_rate else "N/A"
    )
    duration = f"{video.duration} seconds" if video.duration else "Unknown"

    if has_image:
        image_note = (
            "The video thumbnail is attached. Base the visual analysis on the actual image:\n"
            "- text overlays visible on the frame\n"
            "- the environment, lighting and colors you can see\n"
            "- the person on screen and what they are doing\n"
            "- how the product is displayed and the camera framing"
        )
        hook_text_hint = "text overlay visible in the image, otherwise the caption/hook"
        visual_hint = "describe what you see in the thumbnail"
        confidence_hint = "higher when the image is clear"
    else:
        image_note = "No image is attached. Infer visuals from the text context."
        hook_text_hint = "the verbal or on-screen hook, taken from the caption/hook field"
        visual_hint = "describe the likely opening visual"
        confidence_hint = "lower when the data is limited"

    return f"""You are analyzing a TikTok Shop video for fashion/beauty e-commerce. Extract structured insights.

{image_note}

VIDEO CONTEXT:
- URL: {video.tiktok_url or video.file_url or "N/A"}
- Title/Hook: {video.hook or "N/A"}
- Caption: {video.caption or "N/A"}
- Description: {video.description or "N/A"}
- Existing Script: {video.script or "N/A"}
- Duration: {duration}

PERFORMANCE:
- Views: {views}
- Likes: {likes}
- Comments: {comments}
- Shares: {shares}
- Engagement Rate: {engagement}%

Return a JSON object with these groups:

1. hook: text ({hook_text_hint}), duration (seconds, usually 0-3),
   type (pattern_interrupt | curiosity_gap | social_proof | problem_agitation | bold_claim),
   visualElement ({visual_hint}), effectivenessScore (1-10)
2. script: fullTranscript, keyMessages (3-5 selling points),
   voiceoverStyle (professional | casual | energetic | educational)
3. visual: environment (urban_street | studio | lifestyle_home | outdoor_nature | other),
   lighting (natural_daylight | studio_lighting | golden_hour | night | mixed),
   cameraAngles, modelDescription, productDisplay (worn | held | demonstrated | flat_lay | other),
   colorPalette, sceneBreakdown [{{timestamp, description, transition}}]
4. classification: primary (product_demo | lifestyle | unboxing | testimonial | before_after |
   tutorial | trend_participation), secondary (optional)
5. cta: extracted, primary, type (shop_now | link_in_bio | follow | comment | duet_stitch |
   visit_page | none), placement (opening | middle | closing | throughout | none),
   urgency (high | medium | low | none)
6. campaign: category (product_launch | seasonal | influencer_collab | organic_content)
7. performance_factors: strengths (3-5), winning_patterns (2-3)
8. metadata: confidence (0.00-1.00, {confidence_hint})

Return ONLY valid JSON. No markdown formatting, no explanation."""


class VideoAnalyzer:
    """Creates and replaces VideoAnalysis rows from model output or manual entries."""

    def __init__(
        self,
        session: Session,
        llm_provider: LLMProvider | None = None,
        review_threshold: float | None = None,
    ) -> None:
        self.session = session
        self.llm = llm_provider or self._get_default_provider()
        self.review_threshold = (
            review_threshold if review_threshold is not None else settings.analysis_review_threshold
        )

    def _get_default_provider(self) -> LLMProvider:
        """Get the configured LLM provider, falling back to any available API key."""
        provider = settings.llm_provider.lower()
        if provider == "anthropic" and settings.anthropic_api_key:
            return AnthropicProvider()
        if provider == "openai" and settings.openai_api_key:
            return OpenAIProvider()
        if provider == "stub":
            return StubLLMProvider()
        if settings.anthropic_api_key:
            return AnthropicProvider()
        if settings.openai_api_key:
            return OpenAIProvider()
        logger.warning("No LLM API keys configured, using stub provider for analysis")
        return StubLLMProvider()

    async def health_check(self) -> bool:
        """Check if the analysis LLM provider is healthy."""
        return await self.llm.health_check()

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _get_video(self, video_id: UUID) -> VideoModel:
        video = self.session.get(VideoModel, video_id)
        if video is None or video.deleted_at is not None:
            raise VideoNotFoundError(video_id)
        return video

    def _get_analysis(self, video_id: UUID) -> VideoAnalysisModel | None:
        return self.session.execute(
            select(VideoAnalysisModel).where(VideoAnalysisModel.video_id == video_id)
        ).scalar_one_or_none()

    def get_analysis_status(self, video_id: UUID) -> dict[str, Any]:
        """Current lifecycle status of a video and its analysis, if any."""
        video = self._get_video(video_id)
        analysis = self._get_analysis(video_id)
        return {
            "video_id": str(video.id),
            "status": video.analysis_status,
            "has_analysis": analysis is not None,
            "analysis": _analysis_to_dict(analysis) if analysis is not None else None,
        }

    # -------------------------------------------------------------------------
    # AI analysis
    # -------------------------------------------------------------------------

    def _claim(self, video_id: UUID) -> None:
        """Atomically move a video into ``processing``.

        Raises:
            AnalysisInProgressError: If another run already holds the video.
        """
        result = self.session.execute(
            update(VideoModel)
            .where(VideoModel.id == video_id)
            .where(VideoModel.analysis_status.in_([str(s) for s in CLAIMABLE_STATUSES]))
            .values(analysis_status=AnalysisStatus.PROCESSING, analysis_started_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.session.rollback()
            raise AnalysisInProgressError(video_id)
        self.session.commit()

    def _set_status(self, video_id: UUID, status: AnalysisStatus) -> None:
        self.session.execute(
            update(VideoModel)
            .where(VideoModel.id == video_id)
            .values(analysis_status=status)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()

    async def _request_analysis(self, video: VideoModel, snapshot: MetricSnapshotModel | None) -> str:
        """Call the model with the thumbnail, retrying text-only if the image cannot be fetched."""
        if video.thumbnail_url and self.llm.supports_vision:
            prompt = build_analysis_prompt(video, snapshot, has_image=True)
            try:
                response = await self.llm.complete_with_vision(
                    [VisionMessage(role="user", text=prompt, image_urls=[video.thumbnail_url])],
                    temperature=0.3,
                    max_tokens=settings.analysis_max_tokens,
                    json_mode=True,
                )
                return response.content
            except ImageFetchError as e:
                logger.warning(
                    "thumbnail_fetch_failed_retrying_text_only",
                    video_id=str(video.id),
                    error=str(e),
                )

        prompt = build_analysis_prompt(video, snapshot, has_image=False)
        response = await self.llm.complete(
            [LLMMessage(role="user", content=prompt)],
            temperature=0.3,
            max_tokens=settings.analysis_max_tokens,
            json_mode=True,
        )
        return response.content

    def _upsert_analysis(
        self,
        video_id: UUID | None,
        user_id: str,
        parsed: StructuredAnalysis,
        raw_payload: dict[str, Any],
        source_type: SourceType,
        needs_review: bool,
        version: str | None,
    ) -> VideoAnalysisModel:
        analysis = self._get_analysis(video_id) if video_id is not None else None
        if analysis is None:
            analysis = VideoAnalysisModel(video_id=video_id)
            self.session.add(analysis)

        # Wholesale replacement: every canonical field is rewritten
        for name, value in parsed.to_canonical_fields().items():
            setattr(analysis, name, value)
        analysis.user_id = user_id
        analysis.source_type = source_type
        analysis.analysis_confidence_score = parsed.confidence
        analysis.analysis_version = version
        analysis.needs_human_review = needs_review
        analysis.performance_tracked = parsed.performance is not None
        analysis.raw_payload = raw_payload
        analysis.analyzed_at = utcnow()
        return analysis

    async def analyze_video(self, video_id: UUID, force: bool = False) -> AnalysisOutcome:
        """Analyze one video with the configured model.

        Args:
            video_id: Video to analyze.
            force: Re-analyze even when an analysis already exists.

        Returns:
            AnalysisOutcome. Model, parse and persistence failures are reported
            with ``success=False`` and leave the video in ``failed``.

        Raises:
            VideoNotFoundError: If the video does not exist or is deleted.
            AnalysisInProgressError: If the video is already being analyzed.
        """
        video = self._get_video(video_id)

        existing = self._get_analysis(video_id)
        if existing is not None and not force:
            logger.debug("video_already_analyzed", video_id=str(video_id))
            return AnalysisOutcome(
                success=True,
                video_id=video_id,
                analysis_id=existing.id,
                needs_review=existing.needs_human_review,
                already_analyzed=True,
            )

        self._claim(video_id)
        logger.info("video_analysis_started", video_id=str(video_id), force=force)

        try:
            video = self._get_video(video_id)
            snapshot = latest_snapshot(self.session, video_id)

            content = await self._request_analysis(video, snapshot)
            raw_payload = extract_json_object(content)
            parsed = parse_ai_analysis(raw_payload)

            confidence = parsed.confidence or 0.0
            needs_review = confidence < self.review_threshold

            if not video.campaign_tag:
                video.campaign_tag = generate_campaign_tag(
                    video.caption,
                    parsed.campaign.category if parsed.campaign else None,
                    parsed.classification.primary if parsed.classification else None,
                )

            analysis = self._upsert_analysis(
                video_id=video_id,
                user_id=video.user_id,
                parsed=parsed,
                raw_payload=raw_payload,
                source_type=SourceType.AI,
                needs_review=needs_review,
                version=settings.analysis_version,
            )
            video.analysis_status = (
                AnalysisStatus.NEEDS_REVIEW if needs_review else AnalysisStatus.COMPLETED
            )
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            self._set_status(video_id, AnalysisStatus.FAILED)
            logger.error("video_analysis_failed", video_id=str(video_id), error=str(e))
            return AnalysisOutcome(success=False, video_id=video_id, error=str(e))

        logger.info(
            "video_analysis_completed",
            video_id=str(video_id),
            analysis_id=str(analysis.id),
            confidence=confidence,
            needs_review=needs_review,
        )
        return AnalysisOutcome(
            success=True,
            video_id=video_id,
            analysis_id=analysis.id,
            needs_review=needs_review,
        )

    # -------------------------------------------------------------------------
    # Manual entries
    # -------------------------------------------------------------------------

    def save_manual_analysis(
        self,
        user_id: str,
        payload: Any,
        video_id: UUID | None = None,
    ) -> VideoAnalysisModel:
        """Store a manually authored analysis.

        Linked entries replace the video's analysis and complete the video.
        Unlinked entries are stored standalone. Manual entries are never
        flagged for review.

        Raises:
            AnalysisValidationError: If the payload is malformed.
            VideoNotFoundError: If ``video_id`` does not name one of the user's videos.
            AnalysisInProgressError: If the linked video is being analyzed.
        """
        parsed = parse_manual_analysis(payload)

        video = None
        if video_id is not None:
            video = self._get_video(video_id)
            if video.user_id != user_id:
                raise VideoNotFoundError(video_id)

            # Same transaction as the upsert, so a failed write leaves the status alone
            result = self.session.execute(
                update(VideoModel)
                .where(VideoModel.id == video_id)
                .where(VideoModel.analysis_status != AnalysisStatus.PROCESSING)
                .values(analysis_status=AnalysisStatus.COMPLETED)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.session.rollback()
                raise AnalysisInProgressError(video_id)

        analysis = self._upsert_analysis(
            video_id=video_id,
            user_id=user_id,
            parsed=parsed,
            raw_payload=payload,
            source_type=SourceType.MANUAL,
            needs_review=False,
            version=None,
        )
        if video is not None:
            video.analysis_status = AnalysisStatus.COMPLETED

        self.session.commit()
        logger.info(
            "manual_analysis_saved",
            user_id=user_id,
            video_id=str(video_id) if video_id else None,
            analysis_id=str(analysis.id),
            performance_tracked=analysis.performance_tracked,
        )
        return analysis

    # -------------------------------------------------------------------------
    # Batch processing
    # -------------------------------------------------------------------------

    def reset_stale_processing(self, now: datetime | None = None) -> int:
        """Return videos stuck in ``processing`` past the staleness window to ``pending``."""
        now = now or utcnow()
        cutoff = now - timedelta(minutes=settings.analysis_stale_after_minutes)

        stuck = self.session.execute(
            select(VideoModel).where(VideoModel.analysis_status == AnalysisStatus.PROCESSING)
        ).scalars()

        reset = 0
        for video in stuck:
            started = video.analysis_started_at
            if started is None or as_utc(started) < as_utc(cutoff):
                video.analysis_status = AnalysisStatus.PENDING
                video.analysis_started_at = None
                reset += 1

        if reset:
            self.session.commit()
            logger.warning("stale_analyses_reset", count=reset)
        return reset

    def pending_videos(self, limit: int) -> list[VideoModel]:
        return list(
            self.session.execute(
                select(VideoModel)
                .where(VideoModel.analysis_status == AnalysisStatus.PENDING)
                .where(VideoModel.deleted_at.is_(None))
                .order_by(desc(VideoModel.analysis_priority), desc(VideoModel.created_at))
                .limit(limit)
            ).scalars()
        )

    async def batch_analyze(
        self,
        limit: int | None = None,
        delay_seconds: float | None = None,
    ) -> BatchAnalysisResult:
        """Analyze pending videos one at a time with a fixed delay between calls."""
        limit = limit if limit is not None else settings.batch_analysis_limit
        delay = delay_seconds if delay_seconds is not None else settings.batch_analysis_delay_seconds

        result = BatchAnalysisResult(reset_stale=self.reset_stale_processing())
        video_ids = [v.id for v in self.pending_videos(limit)]

        logger.info("batch_analysis_started", count=len(video_ids), limit=limit, delay=delay)

        for index, video_id in enumerate(video_ids):
            if index and delay > 0:
                await asyncio.sleep(delay)

            result.processed += 1
            try:
                outcome = await self.analyze_video(video_id)
            except WinningFormulaError as e:
                logger.warning("batch_video_skipped", video_id=str(video_id), error=str(e))
                result.failed += 1
                continue
            except SQLAlchemyError as e:
                self.session.rollback()
                logger.error("batch_video_persistence_failed", video_id=str(video_id), error=str(e))
                result.failed += 1
                continue

            if outcome.success:
                result.successful += 1
            else:
                result.failed += 1

        logger.info("batch_analysis_completed", **result.to_dict())
        return result


def _analysis_to_dict(analysis: VideoAnalysisModel) -> dict[str, Any]:
    return {
        "id": str(analysis.id),
        "video_id": str(analysis.video_id) if analysis.video_id else None,
        "source_type": analysis.source_type,
        "hook_text": analysis.hook_text,
        "hook_type": analysis.hook_type,
        "visual_environment": analysis.visual_environment,
        "visual_lighting": analysis.visual_lighting,
        "content_type_primary": analysis.content_type_primary,
        "cta_type": analysis.cta_type,
        "campaign_category": analysis.campaign_category,
        "analysis_confidence_score": analysis.analysis_confidence_score,
        "needs_human_review": analysis.needs_human_review,
        "performance_tracked": analysis.performance_tracked,
        "analyzed_at": analysis.analyzed_at.isoformat() if analysis.analyzed_at else None,
    }
