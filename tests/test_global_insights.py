"""Tests for global content-type insights and best practices."""

from datetime import UTC, datetime

from sqlalchemy import select

from winning_formula.db.models import BestPracticeModel, InsightModel
from winning_formula.services.global_insights import (
    GlobalInsightGenerator,
    content_type_scope_key,
)

NOW = datetime(2026, 4, 15, tzinfo=UTC)


def _seed(make_video, make_snapshot, rates_by_type):
    videos = []
    for content_type, rates in rates_by_type:
        for rate in rates:
            video = make_video(content_type=content_type, hook=None)
            make_snapshot(video, engagement_rate=rate)
            videos.append(video)
    return videos


def _insights(session):
    return session.execute(select(InsightModel)).scalars().all()


def _best_practices(session):
    return session.execute(select(BestPracticeModel)).scalars().all()


class TestGlobalInsightGenerator:
    """Test insight generation across all users."""

    def test_no_videos_with_metrics(self, session, make_video) -> None:
        make_video()

        result = GlobalInsightGenerator(session).generate(now=NOW)

        assert result.count == 0
        assert result.insights_generated == 0
        assert _insights(session) == []

    def test_lift_exactly_at_threshold_does_not_qualify(
        self, session, make_video, make_snapshot
    ) -> None:
        _seed(make_video, make_snapshot, [("Tutorial", [11.5, 11.5]), (None, [8.5, 8.5])])

        result = GlobalInsightGenerator(session).generate(now=NOW)

        assert result.count == 4
        assert result.global_avg == 10.0
        assert result.insights_generated == 0
        assert _insights(session) == []

    def test_lift_above_threshold_qualifies(self, session, make_video, make_snapshot) -> None:
        videos = _seed(
            make_video, make_snapshot, [("Tutorial", [11.51, 11.51]), (None, [8.49, 8.49])]
        )

        result = GlobalInsightGenerator(session).generate(now=NOW)

        assert result.insights_generated == 1
        insight = _insights(session)[0]
        assert insight.category == "content_type"
        assert insight.insight_text == "Tutorial videos are outperforming the average by 15%."
        assert insight.confidence_score == 0.85
        assert insight.sample_size == 2
        assert sorted(insight.supporting_video_ids) == sorted(str(v.id) for v in videos[:2])
        assert insight.status == "active"
        assert insight.scope_key == "content_type:Tutorial:2026-04"

    def test_uncategorized_and_singletons_are_excluded(
        self, session, make_video, make_snapshot
    ) -> None:
        _seed(make_video, make_snapshot, [(None, [30.0, 30.0]), ("Tutorial", [40.0]), ("Demo", [1.0, 1.0])])

        result = GlobalInsightGenerator(session).generate(now=NOW)

        assert result.insights_generated == 0

    def test_repeated_runs_update_in_place(self, session, make_video, make_snapshot) -> None:
        _seed(make_video, make_snapshot, [("Tutorial", [20.0, 20.0]), ("Demo", [5.0, 5.0])])
        generator = GlobalInsightGenerator(session)

        generator.generate(now=NOW)
        generator.generate(now=NOW)

        assert len(_insights(session)) == 1

    def test_new_period_creates_new_insight(self, session, make_video, make_snapshot) -> None:
        _seed(make_video, make_snapshot, [("Tutorial", [20.0, 20.0]), ("Demo", [5.0, 5.0])])
        generator = GlobalInsightGenerator(session)

        generator.generate(now=NOW)
        generator.generate(now=datetime(2026, 5, 2, tzinfo=UTC))

        keys = sorted(i.scope_key for i in _insights(session))
        assert keys == ["content_type:Tutorial:2026-04", "content_type:Tutorial:2026-05"]

    def test_outliers_become_best_practices(self, session, make_video, make_snapshot) -> None:
        plain = [make_video(content_type="Demo") for _ in range(3)]
        for video in plain:
            make_snapshot(video, engagement_rate=2.0)
        star = make_video(hook="This changed my morning", content_type="Demo")
        make_snapshot(star, engagement_rate=20.0)

        result = GlobalInsightGenerator(session).generate(now=NOW)

        assert result.top_performers == 1
        assert result.best_practices_created == 1
        practice = _best_practices(session)[0]
        assert practice.type == "high_performer"
        assert practice.title == "High Performing: This changed my morning"
        assert practice.example_video_ids == [str(star.id)]
        assert practice.performance_avg == 20.0
        assert practice.use_count == 0

    def test_best_practice_title_fallbacks(self, session, make_video, make_snapshot) -> None:
        for _ in range(3):
            make_snapshot(make_video(), engagement_rate=1.0)
        typed = make_video(hook=None, content_type="Tutorial")
        make_snapshot(typed, engagement_rate=30.0)
        bare = make_video(hook=None, content_type=None)
        make_snapshot(bare, engagement_rate=30.0)

        GlobalInsightGenerator(session).generate(now=NOW)

        titles = sorted(p.title for p in _best_practices(session))
        assert titles == ["High Performing: Tutorial", "High Performing: Video"]

    def test_best_practices_are_not_duplicated(self, session, make_video, make_snapshot) -> None:
        for _ in range(3):
            make_snapshot(make_video(), engagement_rate=2.0)
        make_snapshot(make_video(), engagement_rate=20.0)
        generator = GlobalInsightGenerator(session)

        generator.generate(now=NOW)
        second = generator.generate(now=NOW)

        assert second.best_practices_created == 0
        assert len(_best_practices(session)) == 1

    def test_latest_snapshot_is_used(self, session, make_video, make_snapshot) -> None:
        video = make_video(content_type="Demo")
        make_snapshot(video, engagement_rate=50.0, collected_at=datetime(2026, 1, 1))
        make_snapshot(video, engagement_rate=4.0, collected_at=datetime(2026, 2, 1))

        result = GlobalInsightGenerator(session).generate(now=NOW)

        assert result.global_avg == 4.0

    def test_soft_deleted_videos_are_ignored(self, session, make_video, make_snapshot) -> None:
        video = make_video(deleted_at=datetime(2026, 1, 1, tzinfo=UTC))
        make_snapshot(video, engagement_rate=9.0)

        assert GlobalInsightGenerator(session).generate(now=NOW).count == 0

    def test_stored_zero_rate_counts_as_a_reading(
        self, session, make_video, make_snapshot
    ) -> None:
        quiet = make_video(content_type="Demo")
        make_snapshot(quiet, engagement_rate=0.0, views=1000, likes=100)
        loud = make_video(content_type="Demo")
        make_snapshot(loud, engagement_rate=10.0)

        result = GlobalInsightGenerator(session).generate(now=NOW)

        assert result.global_avg == 5.0

    def test_zero_lift_threshold_is_respected(self, session, make_video, make_snapshot) -> None:
        _seed(make_video, make_snapshot, [("Tutorial", [10.0, 10.0]), (None, [10.0, 10.0])])

        result = GlobalInsightGenerator(session, lift_threshold=0.0).generate(now=NOW)

        assert result.insights_generated == 1


def test_scope_key_format() -> None:
    assert content_type_scope_key("Product Demo", NOW) == "content_type:Product Demo:2026-04"
