"""Tests for analysis ingestion."""

import json
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from winning_formula.adapters.llm.stub import StubLLMProvider, default_analysis
from winning_formula.db.models import VideoAnalysisModel, utcnow
from winning_formula.domain.errors import (
    AnalysisInProgressError,
    AnalysisValidationError,
    VideoNotFoundError,
)
from winning_formula.services.analyzer import (
    VideoAnalyzer,
    build_analysis_prompt,
    generate_campaign_tag,
)


def _analyses(session):
    return session.execute(select(VideoAnalysisModel)).scalars().all()


class TestCampaignTag:
    """Test campaign tag derivation."""

    NOW = datetime(2026, 1, 5, tzinfo=UTC)

    def test_seasonal_keyword_wins_over_category(self) -> None:
        tag = generate_campaign_tag("Winter sale now!", "product_launch", "product_demo", self.NOW)

        assert tag == "winter_2026-01"

    def test_first_keyword_in_list_order(self) -> None:
        tag = generate_campaign_tag("Christmas in summer", None, "lifestyle", self.NOW)

        assert tag == "summer_2026-01"

    def test_product_launch(self) -> None:
        assert generate_campaign_tag("New drop", "product_launch", "unboxing", self.NOW) == (
            "launch_2026-01"
        )

    def test_influencer_collab(self) -> None:
        assert generate_campaign_tag(None, "influencer_collab", "tutorial", self.NOW) == (
            "collab_2026-01"
        )

    def test_defaults_to_content_type(self) -> None:
        assert generate_campaign_tag("Hello", "organic_content", "tutorial", self.NOW) == (
            "tutorial_2026-01"
        )


class TestAnalysisPrompt:
    """Test prompt construction."""

    def test_without_image_or_metrics(self, make_video) -> None:
        video = make_video(hook="Stop scrolling", duration=None)

        prompt = build_analysis_prompt(video, None, has_image=False)

        assert "No image is attached" in prompt
        assert "- Title/Hook: Stop scrolling" in prompt
        assert "- Duration: Unknown" in prompt
        assert "- Views: 0" in prompt
        assert "- Engagement Rate: N/A%" in prompt

    def test_with_image_and_metrics(self, make_video, make_snapshot) -> None:
        video = make_video(duration=21, tiktok_url="https://www.tiktok.com/@a/video/1")
        snapshot = make_snapshot(video, engagement_rate=4.567, views=1200, likes=40)

        prompt = build_analysis_prompt(video, snapshot, has_image=True)

        assert "thumbnail is attached" in prompt
        assert "- URL: https://www.tiktok.com/@a/video/1" in prompt
        assert "- Duration: 21 seconds" in prompt
        assert "- Views: 1200" in prompt
        assert "- Engagement Rate: 4.57%" in prompt


class TestAnalyzeVideo:
    """Test AI analysis of a single video."""

    @pytest.mark.asyncio
    async def test_high_confidence_completes(self, session, make_video) -> None:
        video = make_video()
        analyzer = VideoAnalyzer(session, llm_provider=StubLLMProvider())

        outcome = await analyzer.analyze_video(video.id)

        assert outcome.success is True
        assert outcome.needs_review is False
        session.refresh(video)
        assert video.analysis_status == "completed"
        analysis = _analyses(session)[0]
        assert analysis.id == outcome.analysis_id
        assert analysis.source_type == "ai"
        assert analysis.needs_human_review is False
        assert analysis.analysis_confidence_score == 0.9
        assert analysis.analysis_version == "1.0.0"
        assert analysis.hook_type == "curiosity_gap"
        assert analysis.user_id == video.user_id
        assert analysis.raw_payload["metadata"]["confidence"] == 0.9

    @pytest.mark.asyncio
    async def test_low_confidence_needs_review(self, session, make_video) -> None:
        video = make_video()
        provider = StubLLMProvider(payload=default_analysis(confidence=0.6))

        outcome = await VideoAnalyzer(session, llm_provider=provider).analyze_video(video.id)

        assert outcome.needs_review is True
        session.refresh(video)
        assert video.analysis_status == "needs_review"
        assert _analyses(session)[0].needs_human_review is True

    @pytest.mark.asyncio
    async def test_campaign_tag_applied(self, session, make_video) -> None:
        video = make_video(caption="Winter sale now!")
        payload = default_analysis()
        payload["campaign"]["category"] = "product_launch"

        await VideoAnalyzer(session, llm_provider=StubLLMProvider(payload=payload)).analyze_video(
            video.id
        )

        session.refresh(video)
        assert video.campaign_tag == f"winter_{utcnow():%Y-%m}"

    @pytest.mark.asyncio
    async def test_existing_campaign_tag_is_kept(self, session, make_video) -> None:
        video = make_video(campaign_tag="spring_drop", caption="Winter sale now!")

        await VideoAnalyzer(session, llm_provider=StubLLMProvider()).analyze_video(video.id)

        session.refresh(video)
        assert video.campaign_tag == "spring_drop"

    @pytest.mark.asyncio
    async def test_already_analyzed_is_a_no_op(self, session, make_video) -> None:
        video = make_video()
        provider = StubLLMProvider()
        analyzer = VideoAnalyzer(session, llm_provider=provider)

        first = await analyzer.analyze_video(video.id)
        second = await analyzer.analyze_video(video.id)

        assert second.success is True
        assert second.already_analyzed is True
        assert second.analysis_id == first.analysis_id
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_force_replaces_analysis_wholesale(self, session, make_video) -> None:
        video = make_video()
        provider = StubLLMProvider()
        analyzer = VideoAnalyzer(session, llm_provider=provider)
        await analyzer.analyze_video(video.id)

        payload = default_analysis()
        payload["hook"]["type"] = "bold_claim"
        del payload["script"]
        provider.payload = payload
        outcome = await analyzer.analyze_video(video.id, force=True)

        assert outcome.success is True
        assert outcome.already_analyzed is False
        analyses = _analyses(session)
        assert len(analyses) == 1
        assert analyses[0].hook_type == "bold_claim"
        assert analyses[0].full_script is None
        assert analyses[0].script_key_messages == []

    @pytest.mark.asyncio
    async def test_image_fetch_failure_retries_text_only(self, session, make_video) -> None:
        video = make_video(thumbnail_url="https://cdn.example.com/thumb.jpg")
        provider = StubLLMProvider(fail_image_fetch=True)

        outcome = await VideoAnalyzer(session, llm_provider=provider).analyze_video(video.id)

        assert outcome.success is True
        assert provider.calls == [
            {"mode": "vision", "image_count": 1},
            {"mode": "text", "image_count": 0},
        ]

    @pytest.mark.asyncio
    async def test_without_thumbnail_uses_text_only(self, session, make_video) -> None:
        video = make_video(thumbnail_url=None)
        provider = StubLLMProvider()

        await VideoAnalyzer(session, llm_provider=provider).analyze_video(video.id)

        assert provider.calls == [{"mode": "text", "image_count": 0}]

    @pytest.mark.asyncio
    async def test_other_provider_errors_are_not_retried(self, session, make_video) -> None:
        video = make_video(thumbnail_url="https://cdn.example.com/thumb.jpg")
        provider = StubLLMProvider(error=RuntimeError("upstream unavailable"))

        outcome = await VideoAnalyzer(session, llm_provider=provider).analyze_video(video.id)

        assert outcome.success is False
        assert outcome.error == "upstream unavailable"
        assert len(provider.calls) == 1
        session.refresh(video)
        assert video.analysis_status == "failed"

    @pytest.mark.asyncio
    async def test_unparseable_response_fails_without_writing(self, session, make_video) -> None:
        video = make_video()
        provider = StubLLMProvider(content="Sorry, I cannot analyze this video.")

        outcome = await VideoAnalyzer(session, llm_provider=provider).analyze_video(video.id)

        assert outcome.success is False
        assert _analyses(session) == []
        session.refresh(video)
        assert video.analysis_status == "failed"

    @pytest.mark.asyncio
    async def test_incomplete_response_fails(self, session, make_video) -> None:
        video = make_video()
        payload = default_analysis()
        del payload["cta"]

        outcome = await VideoAnalyzer(
            session, llm_provider=StubLLMProvider(payload=payload)
        ).analyze_video(video.id)

        assert outcome.success is False
        assert _analyses(session) == []

    @pytest.mark.asyncio
    async def test_fenced_response_is_accepted(self, session, make_video) -> None:
        video = make_video()
        content = "```json\n" + json.dumps(default_analysis()) + "\n```"

        outcome = await VideoAnalyzer(
            session, llm_provider=StubLLMProvider(content=content)
        ).analyze_video(video.id)

        assert outcome.success is True

    @pytest.mark.asyncio
    async def test_failed_video_can_be_retried(self, session, make_video) -> None:
        video = make_video()
        provider = StubLLMProvider(content="not json")
        analyzer = VideoAnalyzer(session, llm_provider=provider)
        await analyzer.analyze_video(video.id)

        provider.content = None
        outcome = await analyzer.analyze_video(video.id)

        assert outcome.success is True

    @pytest.mark.asyncio
    async def test_in_progress_is_rejected(self, session, make_video) -> None:
        video = make_video(analysis_status="processing")
        provider = StubLLMProvider()

        with pytest.raises(AnalysisInProgressError):
            await VideoAnalyzer(session, llm_provider=provider).analyze_video(video.id)

        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_missing_video(self, session) -> None:
        with pytest.raises(VideoNotFoundError):
            await VideoAnalyzer(session, llm_provider=StubLLMProvider()).analyze_video(uuid4())

    @pytest.mark.asyncio
    async def test_deleted_video(self, session, make_video) -> None:
        video = make_video(deleted_at=datetime(2026, 1, 1, tzinfo=UTC))

        with pytest.raises(VideoNotFoundError):
            await VideoAnalyzer(session, llm_provider=StubLLMProvider()).analyze_video(video.id)


class TestManualAnalysis:
    """Test manually authored analyses."""

    PAYLOAD = {
        "hook": {"text": "Wait for it", "type": "pattern_interrupt"},
        "visual": {"environment": "studio", "lighting": "studio_lighting"},
        "performance": {"views": 2000, "engagement_rate": 5.5},
    }

    def test_linked_to_video(self, session, make_video) -> None:
        video = make_video()

        analysis = VideoAnalyzer(session, llm_provider=StubLLMProvider()).save_manual_analysis(
            "user-1", self.PAYLOAD, video_id=video.id
        )

        assert analysis.video_id == video.id
        assert analysis.source_type == "manual"
        assert analysis.needs_human_review is False
        assert analysis.performance_tracked is True
        assert analysis.hook_type == "pattern_interrupt"
        assert analysis.raw_payload == self.PAYLOAD
        session.refresh(video)
        assert video.analysis_status == "completed"

    def test_standalone(self, session) -> None:
        analysis = VideoAnalyzer(session, llm_provider=StubLLMProvider()).save_manual_analysis(
            "user-1", {"hook": {"type": "bold_claim"}}
        )

        assert analysis.video_id is None
        assert analysis.performance_tracked is False

    def test_replaces_existing_analysis(self, session, make_video) -> None:
        video = make_video()
        analyzer = VideoAnalyzer(session, llm_provider=StubLLMProvider())

        analyzer.save_manual_analysis("user-1", self.PAYLOAD, video_id=video.id)
        analyzer.save_manual_analysis(
            "user-1", {"hook": {"type": "bold_claim"}}, video_id=video.id
        )

        analyses = _analyses(session)
        assert len(analyses) == 1
        assert analyses[0].hook_type == "bold_claim"
        assert analyses[0].visual_environment is None

    def test_invalid_payload(self, session) -> None:
        with pytest.raises(AnalysisValidationError):
            VideoAnalyzer(session, llm_provider=StubLLMProvider()).save_manual_analysis(
                "user-1", {"nothing": True}
            )
        assert _analyses(session) == []

    def test_other_users_video(self, session, make_video) -> None:
        video = make_video(user_id="user-2")

        with pytest.raises(VideoNotFoundError):
            VideoAnalyzer(session, llm_provider=StubLLMProvider()).save_manual_analysis(
                "user-1", self.PAYLOAD, video_id=video.id
            )

    def test_analysis_status(self, session, make_video) -> None:
        video = make_video()
        analyzer = VideoAnalyzer(session, llm_provider=StubLLMProvider())

        before = analyzer.get_analysis_status(video.id)
        analyzer.save_manual_analysis("user-1", self.PAYLOAD, video_id=video.id)
        after = analyzer.get_analysis_status(video.id)

        assert before == {
            "video_id": str(video.id),
            "status": "pending",
            "has_analysis": False,
            "analysis": None,
        }
        assert after["status"] == "completed"
        assert after["has_analysis"] is True
        assert after["analysis"]["hook_type"] == "pattern_interrupt"

    def test_video_being_analyzed_is_left_alone(self, session, make_video) -> None:
        video = make_video(analysis_status="processing", analysis_started_at=utcnow())

        with pytest.raises(AnalysisInProgressError):
            VideoAnalyzer(session, llm_provider=StubLLMProvider()).save_manual_analysis(
                "user-1", {"hook": {"type": "bold_claim"}}, video_id=video.id
            )

        session.refresh(video)
        assert video.analysis_status == "processing"
        assert _analyses(session) == []


class TestBatchAnalysis:
    """Test batch processing of pending videos."""

    def test_stale_processing_is_reset(self, session, make_video) -> None:
        stale = make_video(analysis_status="processing", analysis_started_at=utcnow() - timedelta(minutes=45))
        fresh = make_video(analysis_status="processing", analysis_started_at=utcnow() - timedelta(minutes=10))

        reset = VideoAnalyzer(session, llm_provider=StubLLMProvider()).reset_stale_processing()

        assert reset == 1
        session.refresh(stale)
        session.refresh(fresh)
        assert stale.analysis_status == "pending"
        assert fresh.analysis_status == "processing"

    @pytest.mark.asyncio
    async def test_processes_pending_videos(self, session, make_video) -> None:
        make_video()
        make_video()
        make_video(deleted_at=datetime(2026, 1, 1, tzinfo=UTC))
        make_video(analysis_status="completed")

        result = await VideoAnalyzer(session, llm_provider=StubLLMProvider()).batch_analyze(
            limit=10, delay_seconds=0
        )

        assert result.to_dict() == {"processed": 2, "successful": 2, "failed": 0, "reset_stale": 0}

    @pytest.mark.asyncio
    async def test_priority_order_and_limit(self, session, make_video) -> None:
        low = make_video(analysis_priority=0)
        high = make_video(analysis_priority=5)

        await VideoAnalyzer(session, llm_provider=StubLLMProvider()).batch_analyze(
            limit=1, delay_seconds=0
        )

        session.refresh(low)
        session.refresh(high)
        assert high.analysis_status == "completed"
        assert low.analysis_status == "pending"

    @pytest.mark.asyncio
    async def test_failures_are_counted_and_batch_continues(self, session, make_video) -> None:
        videos = [make_video(), make_video()]

        result = await VideoAnalyzer(
            session, llm_provider=StubLLMProvider(content="nope")
        ).batch_analyze(limit=10, delay_seconds=0)

        assert result.processed == 2
        assert result.failed == 2
        for video in videos:
            session.refresh(video)
            assert video.analysis_status == "failed"

    @pytest.mark.asyncio
    async def test_stale_videos_are_picked_up(self, session, make_video) -> None:
        make_video(analysis_status="processing", analysis_started_at=utcnow() - timedelta(hours=2))

        result = await VideoAnalyzer(session, llm_provider=StubLLMProvider()).batch_analyze(
            limit=10, delay_seconds=0
        )

        assert result.reset_stale == 1
        assert result.successful == 1

    @pytest.mark.asyncio
    async def test_database_error_on_one_video_does_not_stop_batch(
        self, session, make_video, monkeypatch
    ) -> None:
        first = make_video(analysis_priority=5)
        second = make_video(analysis_priority=0)
        analyzer = VideoAnalyzer(session, llm_provider=StubLLMProvider())

        claim = analyzer._claim
        calls = []

        def flaky_claim(video_id):
            calls.append(video_id)
            if len(calls) == 1:
                raise OperationalError("UPDATE videos", {}, Exception("database is locked"))
            claim(video_id)

        monkeypatch.setattr(analyzer, "_claim", flaky_claim)

        result = await analyzer.batch_analyze(limit=10, delay_seconds=0)

        assert calls == [first.id, second.id]
        assert result.to_dict() == {"processed": 2, "successful": 1, "failed": 1, "reset_stale": 0}
        session.refresh(second)
        assert second.analysis_status == "completed"


def test_default_provider_follows_settings(session) -> None:
    # LLM_PROVIDER=stub in the test environment
    assert isinstance(VideoAnalyzer(session).llm, StubLLMProvider)
