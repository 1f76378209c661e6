"""Analysis and pattern insight endpoints."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from winning_formula.api.deps import SessionDep, UserIdDep, VideoAnalyzerDep
from winning_formula.domain.errors import (
    AnalysisInProgressError,
    AnalysisValidationError,
    VideoNotFoundError,
)
from winning_formula.logging import get_logger
from winning_formula.services.insight_cache import InsightCacheStore
from winning_formula.services.patterns import PatternInsightService

router = APIRouter(prefix="/analysis", tags=["Analysis"])
logger = get_logger(__name__)


class ManualAnalysisRequest(BaseModel):
    """A manually authored analysis, optionally linked to a video."""

    video_id: UUID | None = None
    analysis: dict[str, Any] = Field(..., description="Manual analysis template JSON")


class ManualAnalysisResponse(BaseModel):
    success: bool
    analysis_id: str
    video_id: str | None
    performance_tracked: bool


@router.post(
    "/manual",
    response_model=ManualAnalysisResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save manual analysis",
    description="Store a manually authored analysis. Linked entries replace the video's analysis.",
)
async def save_manual_analysis(
    request: ManualAnalysisRequest,
    user_id: UserIdDep,
    analyzer: VideoAnalyzerDep,
) -> ManualAnalysisResponse:
    """Save a manual analysis."""
    try:
        analysis = analyzer.save_manual_analysis(user_id, request.analysis, video_id=request.video_id)
    except AnalysisValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": str(e), "errors": e.errors},
        )
    except VideoNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except AnalysisInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return ManualAnalysisResponse(
        success=True,
        analysis_id=str(analysis.id),
        video_id=str(analysis.video_id) if analysis.video_id else None,
        performance_tracked=analysis.performance_tracked,
    )


@router.post(
    "/patterns",
    summary="Compute patterns",
    description=(
        "Compute the caller's winning patterns. Returns success=false with a "
        "threshold while the library is too small."
    ),
)
async def compute_patterns(session: SessionDep, user_id: UserIdDep) -> dict[str, Any]:
    """Compute pattern insights for the caller."""
    logger.info("compute_patterns_requested", user_id=user_id)
    return PatternInsightService(session).compute(user_id).to_dict()


@router.get(
    "/patterns",
    summary="Get cached patterns",
    description="Return the caller's cached pattern insights if they have not expired.",
)
async def get_cached_patterns(session: SessionDep, user_id: UserIdDep) -> dict[str, Any]:
    """Read the caller's cached pattern insights."""
    entry = InsightCacheStore(session).get(user_id)
    if entry is None:
        return {"success": False, "cached": False, "insights": []}
    return {
        "success": True,
        "cached": True,
        "insights": entry.insights,
        "video_count": entry.video_count,
        "calculated_at": entry.calculated_at.isoformat(),
        "expires_at": entry.expires_at.isoformat(),
    }
