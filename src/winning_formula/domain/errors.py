"""Domain exceptions."""

from typing import Any
from uuid import UUID


class WinningFormulaError(Exception):
    """Base class for application errors."""


class VideoNotFoundError(WinningFormulaError):
    """Raised when a video id does not resolve to a live video."""

    def __init__(self, video_id: UUID | str):
        super().__init__(f"Video not found: {video_id}")
        self.video_id = video_id


class AnalysisValidationError(WinningFormulaError):
    """Raised when an analysis payload cannot be mapped to the canonical schema."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


class AnalysisParseError(AnalysisValidationError):
    """Raised when the model response is not a JSON object."""


class AnalysisInProgressError(WinningFormulaError):
    """Raised when a video is already being analyzed."""

    def __init__(self, video_id: UUID | str):
        super().__init__(f"Analysis already in progress for video {video_id}")
        self.video_id = video_id
