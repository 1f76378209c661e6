"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from winning_formula import __version__
from winning_formula.api.routes import analysis, health, insights, videos
from winning_formula.config import settings
from winning_formula.db.session import engine
from winning_formula.logging import get_logger, setup_logging

setup_logging("api")
logger = get_logger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log startup configuration and probe the database once."""
    logger.info(
        "application_starting",
        version=__version__,
        llm_provider=settings.llm_provider,
        review_threshold=settings.analysis_review_threshold,
    )

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("database_connected")
    except Exception as e:
        # Startup continues; /health/ready reports the failure
        logger.error("database_connection_failed", error=str(e))

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="Winning Formula",
    description=(
        "Video library, AI creative analysis and pattern insights for short-form "
        "video creators"
    ),
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
for router in (videos.router, analysis.router, insights.router):
    app.include_router(router, prefix=API_PREFIX)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Service name, version and where to find the docs."""
    return {
        "name": app.title,
        "version": __version__,
        "docs": app.docs_url or "",
        "api": API_PREFIX,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "winning_formula.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
