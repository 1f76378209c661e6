"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable, Generator
from datetime import datetime, timedelta
from typing import Any

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = "redis://localhost:6379/1"
os.environ["CELERY_BROKER_URL"] = "redis://localhost:6379/1"
os.environ["CELERY_RESULT_BACKEND"] = "redis://localhost:6379/1"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LLM_PROVIDER"] = "stub"

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from winning_formula.db.models import (  # noqa: E402
    Base,
    MetricSnapshotModel,
    VideoAnalysisModel,
    VideoModel,
    utcnow,
)

BASE_TIME = datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads for one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """Database session bound to the in-memory engine."""
    factory = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)
    session = factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def llm_provider():
    """Get a stub LLM provider returning a high-confidence analysis."""
    from winning_formula.adapters.llm.stub import StubLLMProvider

    return StubLLMProvider()


@pytest.fixture
def make_video(session: Session) -> Callable[..., VideoModel]:
    """Factory for persisted videos."""

    def _make(user_id: str = "user-1", **fields: Any) -> VideoModel:
        fields.setdefault("hook", "Stop scrolling")
        fields.setdefault("caption", "New drop is here")
        fields.setdefault("script", "Here is the jacket")
        fields.setdefault("description", "Jacket demo")
        video = VideoModel(user_id=user_id, **fields)
        session.add(video)
        session.commit()
        return video

    return _make


@pytest.fixture
def make_snapshot(session: Session) -> Callable[..., MetricSnapshotModel]:
    """Factory for metric snapshots with an explicit (or absent) stored rate."""

    def _make(
        video: VideoModel,
        engagement_rate: float | None = None,
        views: int = 0,
        likes: int = 0,
        comments: int = 0,
        shares: int = 0,
        collected_at: datetime | None = None,
    ) -> MetricSnapshotModel:
        snapshot = MetricSnapshotModel(
            video_id=video.id,
            views=views,
            likes=likes,
            comments=comments,
            shares=shares,
            engagement_rate=engagement_rate,
            collected_at=collected_at or utcnow(),
        )
        session.add(snapshot)
        session.commit()
        return snapshot

    return _make


@pytest.fixture
def make_analysis(session: Session) -> Callable[..., VideoAnalysisModel]:
    """Factory for VideoAnalysis rows, each analyzed one minute before the previous."""
    counter = {"n": 0}

    def _make(
        user_id: str = "user-1",
        video: VideoModel | None = None,
        source_type: str = "ai",
        raw_payload: dict[str, Any] | None = None,
        **fields: Any,
    ) -> VideoAnalysisModel:
        counter["n"] += 1
        analysis = VideoAnalysisModel(
            user_id=user_id,
            video_id=video.id if video is not None else None,
            source_type=source_type,
            raw_payload=raw_payload,
            analyzed_at=BASE_TIME - timedelta(minutes=counter["n"]),
            **fields,
        )
        session.add(analysis)
        session.commit()
        return analysis

    return _make


@pytest.fixture
def api_client(session: Session, llm_provider) -> Generator[TestClient, None, None]:
    """Test client with the request session and analyzer bound to test fixtures."""
    from winning_formula.api.deps import get_video_analyzer
    from winning_formula.db.session import get_session
    from winning_formula.main import app
    from winning_formula.services.analyzer import VideoAnalyzer

    def _session_override() -> Generator[Session, None, None]:
        yield session

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_video_analyzer] = lambda: VideoAnalyzer(
        session, llm_provider=llm_provider
    )
    with TestClient(app) as client:
        client.headers.update({"X-User-Id": "user-1"})
        yield client
    app.dependency_overrides.clear()
