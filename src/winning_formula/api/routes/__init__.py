"""API route modules."""

from winning_formula.api.routes import analysis, health, insights, videos

__all__ = ["analysis", "health", "insights", "videos"]
