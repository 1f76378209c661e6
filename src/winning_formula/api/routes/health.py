"""Health check endpoints."""

import redis
from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlalchemy import text

from winning_formula import __version__
from winning_formula.api.deps import VideoAnalyzerDep
from winning_formula.config import settings
from winning_formula.db.session import engine
from winning_formula.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    components: dict[str, bool] | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    database: bool
    redis: bool
    components: dict[str, bool] | None = None


def _llm_configured() -> bool:
    """Whether a real analysis provider has credentials (the stub never counts)."""
    provider = settings.llm_provider.lower()
    if provider == "stub":
        return False
    return bool(settings.anthropic_api_key or settings.openai_api_key)


def _database_ok() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return False
    return True


def _redis_ok() -> bool:
    try:
        redis.from_url(settings.redis_url, socket_connect_timeout=2).ping()
    except Exception as e:
        logger.error("redis_health_check_failed", error=str(e))
        return False
    return True


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check; reports whether a real analysis provider is configured.",
)
async def health_check() -> HealthResponse:
    """Is the API up?"""
    return HealthResponse(
        status="healthy",
        version=__version__,
        components={"llm": _llm_configured()},
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Readiness check that verifies the database, Redis and the analysis provider.",
)
async def readiness_check(analyzer: VideoAnalyzerDep) -> ReadinessResponse:
    """Readiness check including dependencies."""
    database = _database_ok()
    broker = _redis_ok()
    components = {"llm": await analyzer.health_check()}

    return ReadinessResponse(
        ready=database and broker and all(components.values()),
        database=database,
        redis=broker,
        components=components,
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Simple liveness probe for Kubernetes.",
)
async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe."""
    return {"status": "alive"}
