"""
Small statistics helpers shared by baseline and correlation computation.

All helpers accept plain lists of floats and return None instead of raising
when there is not enough data for the statistic to be defined.
"""
from statistics import StatisticsError, correlation, fmean, pstdev
from typing import Optional


def safe_mean(values: list[float]) -> Optional[float]:
    """Arithmetic mean, or None for an empty list."""
    if not values:
        return None
    return fmean(values)


def safe_pstdev(values: list[float]) -> Optional[float]:
    """Population standard deviation, or None for an empty list."""
    if not values:
        return None
    return pstdev(values)


def pearson(x: list[float], y: list[float]) -> Optional[float]:
    """
    Pearson correlation coefficient of two equally long series.

    Returns None when fewer than two pairs exist or either series is
    constant (the coefficient is undefined there).
    """
    if len(x) != len(y) or len(x) < 2:
        return None
    try:
        return correlation(x, y)
    except StatisticsError:
        return None


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def round_or_none(value: Optional[float], digits: int) -> Optional[float]:
    if value is None:
        return None
    return round(value, digits)
