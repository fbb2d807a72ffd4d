"""
Competitive Gap Detection Service.

For each competitor observation, compute how far the property's rate sits
from the competitor in absolute and percentage terms, and tag the gap with a
directional recommendation:

    percentageDifference > decrease_above_pct  -> decrease
    percentageDifference < increase_below_pct  -> increase
    otherwise                                  -> maintain

The thresholds are a GapPolicy value so they can be tuned from settings
without touching the algorithm.

Usage:
    from rate_intelligence.services.gap_detection import GapPolicy, detect_gaps

    policy = GapPolicy.from_settings(settings)
    gaps = detect_gaps(current_rate=120.0, observations=observations, policy=policy)
"""

from dataclasses import dataclass
from typing import List, Sequence

from rate_intelligence.core.config import Settings
from rate_intelligence.models import (
    CompetitiveGap,
    CompetitorObservation,
    GapRecommendation,
)


# =============================================================================
# Policy
# =============================================================================


@dataclass(frozen=True)
class GapPolicy:
    """
    Percentage thresholds for tagging a competitive gap.

    Attributes:
        decrease_above_pct: Above the competitor by more than this -> decrease.
        increase_below_pct: Below the competitor by more than this (negative
            value) -> increase.
    """
    decrease_above_pct: float = 15.0
    increase_below_pct: float = -15.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "GapPolicy":
        return cls(
            decrease_above_pct=settings.gap_decrease_threshold_pct,
            increase_below_pct=settings.gap_increase_threshold_pct,
        )

    def classify(self, percentage_difference: float) -> GapRecommendation:
        if percentage_difference > self.decrease_above_pct:
            return GapRecommendation.DECREASE
        if percentage_difference < self.increase_below_pct:
            return GapRecommendation.INCREASE
        return GapRecommendation.MAINTAIN


# =============================================================================
# Gap Detection
# =============================================================================


def detect_gaps(
    current_rate: float,
    observations: Sequence[CompetitorObservation],
    policy: GapPolicy = GapPolicy(),
) -> List[CompetitiveGap]:
    """
    One CompetitiveGap per observation, in input order.

    Observations with a non-positive rate have no meaningful percentage and
    are tagged maintain with a 0.0 percentage difference.

    Example:
        >>> gaps = detect_gaps(120.0, [obs_at_100])
        >>> gaps[0].percentageDifference, gaps[0].recommendation
        (20.0, <GapRecommendation.DECREASE: 'decrease'>)
    """
    gaps: List[CompetitiveGap] = []

    for obs in observations:
        rate_difference = current_rate - obs.rate
        if obs.rate > 0:
            percentage_difference = rate_difference / obs.rate * 100.0
            recommendation = policy.classify(percentage_difference)
        else:
            percentage_difference = 0.0
            recommendation = GapRecommendation.MAINTAIN

        gaps.append(CompetitiveGap(
            competitorName=obs.competitorName,
            rateDifference=rate_difference,
            percentageDifference=percentage_difference,
            recommendation=recommendation,
        ))

    return gaps


def summarize_gap_direction(gaps: Sequence[CompetitiveGap]) -> GapRecommendation:
    """
    Aggregate direction across competitors.

    Returns the recommendation held by strictly more than half of the gaps,
    or maintain when no direction has a majority (or there are no gaps).
    """
    if not gaps:
        return GapRecommendation.MAINTAIN

    for direction in (GapRecommendation.INCREASE, GapRecommendation.DECREASE):
        count = sum(1 for gap in gaps if gap.recommendation == direction)
        if count * 2 > len(gaps):
            return direction

    return GapRecommendation.MAINTAIN
