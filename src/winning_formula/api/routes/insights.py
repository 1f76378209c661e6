"""Global insight and best practice endpoints."""

from datetime import datetime

from fastapi import APIRouter, Query, status
from pydantic import BaseModel
from sqlalchemy import desc, select

from winning_formula.api.deps import SessionDep
from winning_formula.db.models import BestPracticeModel, InsightModel
from winning_formula.domain.enums import InsightStatus
from winning_formula.logging import get_logger
from winning_formula.services.global_insights import GlobalInsightGenerator

router = APIRouter(prefix="/insights", tags=["Insights"])
logger = get_logger(__name__)


class InsightResponse(BaseModel):
    id: str
    category: str
    insight_text: str
    confidence_score: float
    sample_size: int
    supporting_video_ids: list[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class BestPracticeResponse(BaseModel):
    id: str
    type: str
    title: str
    content: str
    example_video_ids: list[str]
    performance_avg: float | None
    use_count: int

    model_config = {"from_attributes": True}


class InsightListResponse(BaseModel):
    insights: list[InsightResponse]
    best_practices: list[BestPracticeResponse]


@router.get(
    "",
    response_model=InsightListResponse,
    summary="List insights",
    description="List active global insights and best practices.",
)
async def list_insights(
    session: SessionDep,
    category: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
) -> InsightListResponse:
    """List active global insights and best practices."""
    query = (
        select(InsightModel)
        .where(InsightModel.status == InsightStatus.ACTIVE)
        .order_by(desc(InsightModel.created_at))
        .limit(limit)
    )
    if category:
        query = query.where(InsightModel.category == category)
    insights = session.execute(query).scalars().all()

    practices = (
        session.execute(
            select(BestPracticeModel)
            .where(BestPracticeModel.status == InsightStatus.ACTIVE)
            .order_by(desc(BestPracticeModel.performance_avg))
            .limit(limit)
        )
        .scalars()
        .all()
    )

    return InsightListResponse(
        insights=[
            InsightResponse(
                id=str(i.id),
                category=i.category,
                insight_text=i.insight_text,
                confidence_score=i.confidence_score,
                sample_size=i.sample_size,
                supporting_video_ids=i.supporting_video_ids or [],
                created_at=i.created_at,
            )
            for i in insights
        ],
        best_practices=[
            BestPracticeResponse(
                id=str(p.id),
                type=p.type,
                title=p.title,
                content=p.content,
                example_video_ids=p.example_video_ids or [],
                performance_avg=p.performance_avg,
                use_count=p.use_count,
            )
            for p in practices
        ],
    )


@router.post(
    "/generate",
    status_code=status.HTTP_200_OK,
    summary="Generate insights",
    description="Run global insight generation now.",
)
async def generate_insights(session: SessionDep) -> dict:
    """Run global insight generation synchronously."""
    result = GlobalInsightGenerator(session).generate()
    return {"success": True, **result.to_dict()}
