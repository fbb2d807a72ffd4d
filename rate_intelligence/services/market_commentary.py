"""
Market Commentary Service.

Turns the market statistics for one room type and date into the short,
human-readable recommendation lines shown next to a market analysis. The
lines are assembled from three groups of signals:

    1. Positioning: percentile category, distance to the median and the
       rate against the premium / value tier averages
    2. Competitive gaps: dominant gap direction and the first large gap
    3. Market conditions: rate volatility, competitor availability and
       rate cluster alignment

Every function here is pure. The output order is stable so the UI can show
the lines as-is.

Thresholds:
    - MEDIAN_GAP_NOTICE: 20 currency units
    - SIGNIFICANT_GAP_PCT: 25%
    - HIGH_VOLATILITY_CV / LOW_VOLATILITY_CV: 0.20 / 0.10
    - LOW_AVAILABILITY_RATIO / HIGH_AVAILABILITY_RATIO: 0.70 / 0.90
"""

import math
from typing import List, Optional, Sequence

import numpy as np

from rate_intelligence.models import (
    CompetitiveGap,
    CompetitorObservation,
    GapRecommendation,
    MarketPosition,
    MarketSegmentation,
    PositionCategory,
)
from rate_intelligence.services.gap_detection import GapPolicy, detect_gaps
from rate_intelligence.services.market_position import analyze_position
from rate_intelligence.services.market_segmentation import segment_market
from rate_intelligence.services.rate_clustering import (
    DEFAULT_CLUSTER_THRESHOLD,
    find_rate_cluster,
    identify_rate_clusters,
)


# =============================================================================
# Constants
# =============================================================================

INSUFFICIENT_DATA_MESSAGE: str = "Insufficient data for competitive analysis"

# Percentile extremes inside the premium / value categories
TOP_PERCENTILE_NOTICE: int = 90
BOTTOM_PERCENTILE_NOTICE: int = 10

MEDIAN_GAP_NOTICE: float = 20.0

# Share of competitors that makes a gap direction dominant
DOMINANT_DIRECTION_SHARE: float = 0.6
ALIGNED_SHARE: float = 0.5

SIGNIFICANT_GAP_PCT: float = 25.0

HIGH_VOLATILITY_CV: float = 0.2
LOW_VOLATILITY_CV: float = 0.1

LOW_AVAILABILITY_RATIO: float = 0.7
HIGH_AVAILABILITY_RATIO: float = 0.9


# =============================================================================
# Positioning
# =============================================================================


def positioning_commentary(position: MarketPosition) -> List[str]:
    lines: List[str] = []

    if position.category == PositionCategory.PREMIUM:
        if position.percentile > TOP_PERCENTILE_NOTICE:
            lines.append(
                "You are positioned in the top 10% of the market - "
                "ensure value proposition justifies premium pricing"
            )
        else:
            lines.append(
                "Strong premium positioning - consider highlighting "
                "unique amenities and services"
            )
    elif position.category == PositionCategory.VALUE:
        if position.percentile < BOTTOM_PERCENTILE_NOTICE:
            lines.append(
                "Very aggressive value positioning - monitor for potential "
                "revenue optimization opportunities"
            )
        else:
            lines.append(
                "Value positioning may attract price-sensitive guests - "
                "ensure operational efficiency"
            )
    else:
        lines.append(
            "Well-positioned in the competitive middle tier - good balance "
            "of rate and market appeal"
        )

    if abs(position.gapToMedian) > MEDIAN_GAP_NOTICE:
        direction = "above" if position.gapToMedian > 0 else "below"
        lines.append(
            f"Rate is ${abs(position.gapToMedian):.0f} {direction} market median "
            f"- consider market positioning strategy"
        )

    return lines


def tier_commentary(current_rate: float, segmentation: MarketSegmentation) -> List[str]:
    """Compare the rate with the premium and value tier averages. Empty tiers are skipped."""
    premium_average = segmentation.averageRates.premium
    value_average = segmentation.averageRates.value

    if not math.isnan(premium_average) and current_rate > premium_average:
        return [
            f"Rate is above the premium-tier average (${premium_average:.0f}) "
            f"- confirm the product supports top-of-market pricing"
        ]
    if not math.isnan(value_average) and current_rate < value_average:
        return [
            f"Rate is below the value-tier average (${value_average:.0f}) "
            f"- room to move up without leaving the value segment"
        ]
    return []


# =============================================================================
# Competitive Gaps
# =============================================================================


def gap_commentary(gaps: Sequence[CompetitiveGap]) -> List[str]:
    lines: List[str] = []
    if not gaps:
        return lines

    total = len(gaps)
    increase_count = sum(1 for g in gaps if g.recommendation == GapRecommendation.INCREASE)
    decrease_count = sum(1 for g in gaps if g.recommendation == GapRecommendation.DECREASE)
    maintain_count = total - increase_count - decrease_count

    if decrease_count > total * DOMINANT_DIRECTION_SHARE:
        lines.append(
            "Rate appears high relative to most competitors - "
            "consider competitive adjustment"
        )
    elif increase_count > total * DOMINANT_DIRECTION_SHARE:
        lines.append(
            "Rate appears low relative to most competitors - "
            "opportunity for rate optimization"
        )
    elif maintain_count > total * ALIGNED_SHARE:
        lines.append(
            "Rate is well-aligned with competitive set - "
            "maintain current positioning"
        )

    significant = next(
        (g for g in gaps if abs(g.percentageDifference) > SIGNIFICANT_GAP_PCT),
        None,
    )
    if significant is not None:
        direction = "higher" if significant.percentageDifference > 0 else "lower"
        lines.append(
            f"Significant rate gap with {significant.competitorName} "
            f"({abs(significant.percentageDifference):.0f}% {direction})"
        )

    return lines


# =============================================================================
# Market Conditions
# =============================================================================


def market_condition_commentary(
    current_rate: float,
    market_average: float,
    observations: Sequence[CompetitorObservation],
    cluster_threshold: float = DEFAULT_CLUSTER_THRESHOLD,
) -> List[str]:
    lines: List[str] = []
    rates = [obs.rate for obs in observations]

    std_dev = float(np.std(rates, ddof=0))
    cv = std_dev / market_average if market_average else 0.0

    if cv > HIGH_VOLATILITY_CV:
        lines.append(
            "High market volatility detected - monitor competitor rate changes closely"
        )
    elif cv < LOW_VOLATILITY_CV:
        lines.append(
            "Stable market conditions - good environment for strategic positioning"
        )

    available_ratio = sum(1 for obs in observations if obs.available) / len(observations)
    if available_ratio < LOW_AVAILABILITY_RATIO:
        lines.append(
            "Limited competitor availability suggests strong demand - "
            "consider rate optimization"
        )
    elif available_ratio > HIGH_AVAILABILITY_RATIO:
        lines.append(
            "High competitor availability indicates competitive market conditions"
        )

    clusters = identify_rate_clusters(rates, threshold=cluster_threshold)
    if len(clusters) > 1:
        cluster = find_rate_cluster(current_rate, clusters)
        if cluster is not None:
            lines.append(
                f"Rate aligns with {cluster.memberCount}-property cluster "
                f"around ${cluster.centerRate:.0f}"
            )

    return lines


# =============================================================================
# Entry Point
# =============================================================================


def generate_market_recommendations(
    current_rate: Optional[float],
    market_average: float,
    observations: Sequence[CompetitorObservation],
    policy: GapPolicy = GapPolicy(),
    cluster_threshold: float = DEFAULT_CLUSTER_THRESHOLD,
) -> List[str]:
    """
    Build the recommendation lines for a market analysis.

    Args:
        current_rate: The property's rate, or None when it has no record.
        market_average: Mean competitor rate for the room type and date.
        observations: Competitor observations for the room type and date.
        policy: Gap thresholds used to tag competitor gaps.
        cluster_threshold: Proximity threshold for rate clustering.

    Returns:
        Ordered recommendation lines. A single insufficient-data line when
        there is no current rate or no observation to compare against.

    Example:
        >>> generate_market_recommendations(None, 180.0, observations)
        ['Insufficient data for competitive analysis']
    """
    if not current_rate or not observations:
        return [INSUFFICIENT_DATA_MESSAGE]

    position = analyze_position(current_rate, observations)
    gaps = detect_gaps(current_rate, observations, policy)

    lines: List[str] = []
    lines.extend(positioning_commentary(position))
    lines.extend(tier_commentary(current_rate, segment_market(observations)))
    lines.extend(gap_commentary(gaps))
    lines.extend(market_condition_commentary(
        current_rate,
        market_average,
        observations,
        cluster_threshold=cluster_threshold,
    ))
    return lines
