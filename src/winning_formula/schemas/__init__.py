"""Payload schemas."""

from winning_formula.schemas.analysis import (
    StructuredAnalysis,
    extract_json_object,
    parse_ai_analysis,
    parse_manual_analysis,
)
from winning_formula.schemas.video import VideoCreate

__all__ = [
    "StructuredAnalysis",
    "VideoCreate",
    "extract_json_object",
    "parse_ai_analysis",
    "parse_manual_analysis",
]
