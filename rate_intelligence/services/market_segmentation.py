"""
Market segmentation into premium / mid / value tiers.

Competitors are sorted by rate descending and split top 30% / next 40% /
remainder. Both boundaries round up, so the value tier can end up smaller
than 30% of the set; for a single competitor everything is premium.
"""

import math
from typing import Sequence

import numpy as np

from rate_intelligence.models import (
    CompetitorObservation,
    MarketSegmentation,
    TierAverages,
)


PREMIUM_TIER_SHARE: float = 0.3
MID_TIER_SHARE: float = 0.4


def _tier_average(tier: Sequence[CompetitorObservation]) -> float:
    # Empty tier -> NaN, callers treat it as "no data"
    if not tier:
        return float("nan")
    return float(np.mean([obs.rate for obs in tier]))


def segment_market(observations: Sequence[CompetitorObservation]) -> MarketSegmentation:
    """
    Partition observations into rate tiers.

    Args:
        observations: Competitor observations, any order, possibly empty.

    Returns:
        MarketSegmentation whose three tiers together hold every input
        observation exactly once, each tier ordered by rate descending.

    Example:
        >>> seg = segment_market(observations)  # 10 competitors
        >>> len(seg.premiumTier), len(seg.midTier), len(seg.valueTier)
        (3, 4, 3)
    """
    ordered = sorted(observations, key=lambda obs: obs.rate, reverse=True)
    total = len(ordered)

    premium_count = math.ceil(total * PREMIUM_TIER_SHARE)
    mid_count = math.ceil(total * MID_TIER_SHARE)

    premium_tier = ordered[:premium_count]
    mid_tier = ordered[premium_count:premium_count + mid_count]
    value_tier = ordered[premium_count + mid_count:]

    return MarketSegmentation(
        premiumTier=premium_tier,
        midTier=mid_tier,
        valueTier=value_tier,
        averageRates=TierAverages(
            premium=_tier_average(premium_tier),
            mid=_tier_average(mid_tier),
            value=_tier_average(value_tier),
        ),
    )
