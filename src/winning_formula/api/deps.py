"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from winning_formula.db.session import get_session
from winning_formula.services.analyzer import VideoAnalyzer

# Database session dependency
SessionDep = Annotated[Session, Depends(get_session)]


def get_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Caller identity, supplied by the authenticating proxy."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id.strip()


UserIdDep = Annotated[str, Depends(get_user_id)]


def get_video_analyzer(session: SessionDep) -> VideoAnalyzer:
    """Get an analyzer bound to the request session."""
    return VideoAnalyzer(session)


VideoAnalyzerDep = Annotated[VideoAnalyzer, Depends(get_video_analyzer)]
