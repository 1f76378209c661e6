"""Engagement rate formula shared by every computation site."""


def compute_engagement_rate(views: int | None, likes: int | None, comments: int | None, shares: int | None) -> float:
    """Return ``(likes + comments + shares) / views * 100``, or 0 when there are no views."""
    views = views or 0
    if views <= 0:
        return 0.0
    return ((likes or 0) + (comments or 0) + (shares or 0)) / views * 100


def exceeds(value: float, baseline: float, multiplier: float, precision: int = 6) -> bool:
    """Strict ``value > baseline * multiplier`` compared at a fixed decimal precision.

    Rounding keeps boundary cases (e.g. 11.5 vs 10.0 * 1.15) from flipping on
    floating point noise.
    """
    return round(value, precision) > round(baseline * multiplier, precision)
