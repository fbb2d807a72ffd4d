"""
Market Position Analysis Service.

Computes where a property's rate sits inside its competitive set for one
room type and stay date:

    - percentile: share of competitor rates strictly below the subject rate
    - category: premium (>= 75), competitive (25-75), value (< 25)
    - gapToMedian: subject rate minus the competitor median
    - gapToClosestCompetitor: subject rate minus the nearest competitor rate

Also provides the descriptive statistics (average, min/max, population
standard deviation, coefficient of variation) that the recommendation engine
and market commentary share.

All functions here are pure: no I/O, no logging.

Dependencies:
    - numpy: mean, std and array operations
    - Pydantic models from rate_intelligence/models/schemas.py

Usage:
    from rate_intelligence.services.market_position import analyze_position

    position = analyze_position(current_rate=180.0, observations=observations)
    print(position.category, position.percentile)
"""

from typing import List, Sequence

import numpy as np

from rate_intelligence.models import (
    CompetitorObservation,
    MarketMetrics,
    MarketPosition,
    PositionCategory,
)


# =============================================================================
# Constants
# =============================================================================

# Percentile at or above which the subject rate is considered premium
PREMIUM_PERCENTILE: int = 75

# Percentile below which the subject rate is considered value
VALUE_PERCENTILE: int = 25


# =============================================================================
# Descriptive Statistics
# =============================================================================


def calculate_median(values: Sequence[float]) -> float:
    """
    Median by the standard even/odd rule.

    Args:
        values: Rates in any order. Must be non-empty.

    Returns:
        The middle value for odd-sized input, the mean of the two middle
        values for even-sized input.

    Raises:
        ValueError: If values is empty.

    Example:
        >>> calculate_median([100, 110, 120, 130])
        115.0
        >>> calculate_median([120, 100, 110])
        110.0
    """
    if len(values) == 0:
        raise ValueError("Cannot compute the median of an empty rate set")

    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2.0
    return float(ordered[mid])


def calculate_market_metrics(
    observations: Sequence[CompetitorObservation],
) -> MarketMetrics:
    """
    Average, range, population standard deviation and coefficient of
    variation of the observed rates.

    The coefficient of variation is 0.0 when the average is 0 so that a
    zero-priced set never produces an infinite volatility.

    Raises:
        ValueError: If observations is empty.
    """
    if len(observations) == 0:
        raise ValueError("Cannot compute market metrics without observations")

    rates = np.array([obs.rate for obs in observations], dtype=float)
    average = float(np.mean(rates))
    std_dev = float(np.std(rates, ddof=0))
    cv = std_dev / average if average != 0 else 0.0

    return MarketMetrics(
        average=average,
        minimum=float(np.min(rates)),
        maximum=float(np.max(rates)),
        standardDeviation=std_dev,
        coefficientOfVariation=cv,
        count=len(observations),
    )


# =============================================================================
# Position Analysis
# =============================================================================


def categorize_percentile(percentile: int) -> PositionCategory:
    """Map a 0-100 percentile to its position category."""
    if percentile >= PREMIUM_PERCENTILE:
        return PositionCategory.PREMIUM
    if percentile >= VALUE_PERCENTILE:
        return PositionCategory.COMPETITIVE
    return PositionCategory.VALUE


def _find_closest_rate(current_rate: float, ordered_rates: List[float]) -> float:
    # Strict comparison keeps the first occurrence in ascending order on ties
    closest = ordered_rates[0]
    for rate in ordered_rates[1:]:
        if abs(rate - current_rate) < abs(closest - current_rate):
            closest = rate
    return closest


def analyze_position(
    current_rate: float,
    observations: Sequence[CompetitorObservation],
) -> MarketPosition:
    """
    Compute the market position of current_rate within observations.

    Args:
        current_rate: The property's own rate for the room type and date.
        observations: Competitor observations for the same room type and
            date. Must be non-empty; callers guard the empty case.

    Returns:
        MarketPosition with the rounded percentile, its category and the
        gaps to the median and to the closest competitor.

    Raises:
        ValueError: If observations is empty.

    Example:
        >>> position = analyze_position(125.0, observations)  # rates 100..130
        >>> position.percentile, position.category
        (75, <PositionCategory.PREMIUM: 'premium'>)
    """
    if len(observations) == 0:
        raise ValueError("Market position requires at least one competitor observation")

    ordered_rates = sorted(obs.rate for obs in observations)
    lower_count = sum(1 for rate in ordered_rates if rate < current_rate)

    # Half-up rounding
    raw_percentile = lower_count / len(ordered_rates) * 100.0
    percentile = int(np.floor(raw_percentile + 0.5))

    median = calculate_median(ordered_rates)
    closest = _find_closest_rate(current_rate, ordered_rates)

    return MarketPosition(
        percentile=percentile,
        category=categorize_percentile(percentile),
        gapToMedian=current_rate - median,
        gapToClosestCompetitor=current_rate - closest,
    )
