"""
Rate Recommendation Engine.

Combines a property's current rate, the comparable competitor observations
and trailing historical performance into a single scored recommendation.

Algorithm Overview:
    1. Relevant competitors: same room type code and stay date, available,
       rate > 0. No relevant competitor -> no recommendation (None).
    2. Base: blend = 0.6 * market_average + 0.4 * current_rate
    3. Demand level from a composite score
           0.30 * current / average
         + 0.40 * occupancy / 100
         + 0.15 * weekend factor (1.2 weekend, 1.0 weekday)
         + 0.15 * seasonal demand factor
       high >= 1.1 (x1.08), medium >= 0.9 (x1.02), low (x0.95)
    4. Market trend: historical trend when not stable, else the seasonal
       direction when the market CV exceeds 0.15, else stable.
       up x1.05, down x0.97
    5. Historical occupancy: > 85 x1.03, < 65 x0.98
    6. Gap / position: majority of competitor gaps say "increase" while the
       rate sits in the value category -> x1.02; majority "decrease" while
       premium -> x0.98
    7. Clamp to [0.75, 1.25] x current (when current > 0), floor at 0, round.

Confidence Scoring:
    Starts at 100 and subtracts:
        - 30 with fewer than 3 competitors, 15 with fewer than 5
        - min(25, CV * 100) for market dispersion
        - 10 when historical performance is an estimate
        - min(20, (days_ahead - 30) * 0.5) beyond 30 days ahead
    Clamped to [30, 100], then capped at 60 when CV exceeds 0.20.

Seasonal Demand Factor (by calendar month):
    Jun-Sep 1.15, Dec-Jan 1.20, Mar-May 1.05, otherwise 0.95

The engine is pure: it never writes, never logs and never raises for missing
competitor data.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

import numpy as np

from rate_intelligence.core.config import Settings
from rate_intelligence.models import (
    CompetitorObservation,
    CurrentRateRecord,
    DemandLevel,
    GapRecommendation,
    HistoricalPerformance,
    MarketMetrics,
    MarketTrend,
    PositionCategory,
    RateRecommendation,
    RecommendationFactors,
)
from rate_intelligence.services.gap_detection import (
    GapPolicy,
    detect_gaps,
    summarize_gap_direction,
)
from rate_intelligence.services.market_position import (
    analyze_position,
    calculate_market_metrics,
)
from rate_intelligence.services.rate_collector import is_weekend


# =============================================================================
# Constants
# =============================================================================

MARKET_WEIGHT: float = 0.6
CURRENT_RATE_WEIGHT: float = 0.4

# Demand score weights: rate position, occupancy, weekend, seasonality
DEMAND_WEIGHTS = (0.3, 0.4, 0.15, 0.15)
HIGH_DEMAND_SCORE: float = 1.1
MEDIUM_DEMAND_SCORE: float = 0.9
WEEKEND_DEMAND_FACTOR: float = 1.2

DEMAND_MULTIPLIERS = {
    DemandLevel.HIGH: 1.08,
    DemandLevel.MEDIUM: 1.02,
    DemandLevel.LOW: 0.95,
}

TREND_MULTIPLIERS = {
    MarketTrend.UP: 1.05,
    MarketTrend.DOWN: 0.97,
    MarketTrend.STABLE: 1.0,
}

# CV above which the seasonal direction decides the trend
TREND_VOLATILITY_CV: float = 0.15

HIGH_OCCUPANCY: float = 85.0
LOW_OCCUPANCY: float = 65.0

VALUE_INCREASE_MULTIPLIER: float = 1.02
PREMIUM_DECREASE_MULTIPLIER: float = 0.98

MIN_RATE_FACTOR: float = 0.75
MAX_RATE_FACTOR: float = 1.25

# Changes smaller than this percentage are reported as "well-positioned"
NEGLIGIBLE_CHANGE_PCT: float = 2.0
MARKET_POSITION_NOTICE_PCT: float = 10.0

FORECAST_MIN: float = 20.0
FORECAST_MAX: float = 100.0


# =============================================================================
# Confidence Policy
# =============================================================================


@dataclass(frozen=True)
class ConfidencePolicy:
    """
    Ceiling applied to confidence when competitor rates are widely spread.

    Attributes:
        high_variance_cv: Coefficient of variation above which the market is
            treated as high variance.
        high_variance_cap: Maximum confidence under high variance.
    """
    high_variance_cv: float = 0.20
    high_variance_cap: int = 60

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConfidencePolicy":
        return cls(
            high_variance_cv=settings.high_variance_cv_threshold,
            high_variance_cap=settings.high_variance_confidence_cap,
        )


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


# =============================================================================
# Signals
# =============================================================================


def get_seasonal_demand_factor(target_date: date) -> float:
    month = target_date.month
    if 6 <= month <= 9:
        return 1.15
    if month in (12, 1):
        return 1.20
    if 3 <= month <= 5:
        return 1.05
    return 0.95


def filter_relevant_competitors(
    observations: Sequence[CompetitorObservation],
    room_type_code: str,
    target_date: date,
) -> List[CompetitorObservation]:
    """Observations comparable to a rate record: same room/date, bookable, priced."""
    return [
        obs for obs in observations
        if obs.roomTypeCode == room_type_code
        and obs.date == target_date
        and obs.available
        and obs.rate > 0
    ]


def analyze_demand_level(
    current_rate: float,
    metrics: MarketMetrics,
    historical: HistoricalPerformance,
    target_date: date,
) -> DemandLevel:
    rate_weight, occupancy_weight, weekend_weight, seasonal_weight = DEMAND_WEIGHTS

    rate_position = current_rate / metrics.average if metrics.average > 0 else 1.0
    weekend_factor = WEEKEND_DEMAND_FACTOR if is_weekend(target_date) else 1.0

    score = (
        rate_position * rate_weight
        + (historical.averageOccupancy / 100.0) * occupancy_weight
        + weekend_factor * weekend_weight
        + get_seasonal_demand_factor(target_date) * seasonal_weight
    )

    if score >= HIGH_DEMAND_SCORE:
        return DemandLevel.HIGH
    if score >= MEDIUM_DEMAND_SCORE:
        return DemandLevel.MEDIUM
    return DemandLevel.LOW


def determine_market_trend(
    metrics: MarketMetrics,
    historical: HistoricalPerformance,
    target_date: date,
) -> MarketTrend:
    """
    Direction of the market for the stay date.

    Historical trend wins when it is not stable. Otherwise a dispersed market
    follows the season: up from December through September except February,
    down in February, October and November.
    """
    if historical.seasonalTrend != MarketTrend.STABLE:
        return historical.seasonalTrend

    if metrics.coefficientOfVariation > TREND_VOLATILITY_CV:
        if target_date.month in (2, 10, 11):
            return MarketTrend.DOWN
        return MarketTrend.UP

    return MarketTrend.STABLE


def calculate_optimal_rate(
    current_rate: float,
    metrics: MarketMetrics,
    demand: DemandLevel,
    trend: MarketTrend,
    historical: HistoricalPerformance,
    gap_direction: GapRecommendation,
    category: PositionCategory,
) -> float:
    """Suggested rate before rounding. See the module docstring for the steps."""
    suggested = metrics.average * MARKET_WEIGHT + current_rate * CURRENT_RATE_WEIGHT

    suggested *= DEMAND_MULTIPLIERS[demand]
    suggested *= TREND_MULTIPLIERS[trend]

    if historical.averageOccupancy > HIGH_OCCUPANCY:
        suggested *= 1.03
    elif historical.averageOccupancy < LOW_OCCUPANCY:
        suggested *= 0.98

    if gap_direction == GapRecommendation.INCREASE and category == PositionCategory.VALUE:
        suggested *= VALUE_INCREASE_MULTIPLIER
    elif gap_direction == GapRecommendation.DECREASE and category == PositionCategory.PREMIUM:
        suggested *= PREMIUM_DECREASE_MULTIPLIER

    if current_rate > 0:
        suggested = min(max(suggested, current_rate * MIN_RATE_FACTOR), current_rate * MAX_RATE_FACTOR)

    return max(0.0, suggested)


def calculate_confidence_score(
    competitor_count: int,
    coefficient_of_variation: float,
    historical: HistoricalPerformance,
    target_date: date,
    as_of: date,
    policy: ConfidencePolicy = ConfidencePolicy(),
) -> int:
    """
    Confidence in [30, 100], capped by the policy under high variance.

    Example:
        >>> calculate_confidence_score(4, 0.05, HistoricalPerformance(), d, d)
        80
    """
    confidence = 100.0

    if competitor_count < 3:
        confidence -= 30
    elif competitor_count < 5:
        confidence -= 15

    confidence -= min(25.0, coefficient_of_variation * 100.0)

    if historical.isEstimated:
        confidence -= 10

    days_ahead = (target_date - as_of).days
    if days_ahead > 30:
        confidence -= min(20.0, (days_ahead - 30) * 0.5)

    confidence = max(30.0, min(100.0, confidence))

    if coefficient_of_variation > policy.high_variance_cv:
        confidence = min(confidence, float(policy.high_variance_cap))

    return _round_half_up(confidence)


def generate_reasoning(
    current_rate: float,
    suggested_rate: float,
    metrics: MarketMetrics,
    demand: DemandLevel,
    trend: MarketTrend,
) -> str:
    """Explain a recommendation; suggested_rate is the published, rounded rate."""
    sentences: List[str] = []

    if current_rate > 0:
        rate_change = (suggested_rate - current_rate) / current_rate * 100.0
        market_position = (current_rate - metrics.average) / metrics.average * 100.0
    else:
        rate_change = 0.0
        market_position = -100.0

    if current_rate <= 0:
        sentences.append(f"No current rate is set; suggested rate is ${suggested_rate:.0f}.")
    elif abs(rate_change) < NEGLIGIBLE_CHANGE_PCT:
        sentences.append("Current rate is well-positioned.")
    elif rate_change > 0:
        sentences.append(f"Consider increasing rate by {_round_half_up(rate_change)}%.")
    else:
        sentences.append(f"Consider decreasing rate by {_round_half_up(abs(rate_change))}%.")

    average = f"${metrics.average:.0f}"
    if market_position > MARKET_POSITION_NOTICE_PCT:
        sentences.append(f"Your rate is significantly above market average ({average}).")
    elif market_position < -MARKET_POSITION_NOTICE_PCT:
        sentences.append(f"Your rate is below market average ({average}).")
    else:
        sentences.append(f"Your rate is close to market average ({average}).")

    if demand == DemandLevel.HIGH:
        sentences.append("High demand conditions support premium pricing.")
    elif demand == DemandLevel.LOW:
        sentences.append("Lower demand suggests competitive pricing needed.")
    else:
        sentences.append("Moderate demand allows for balanced pricing.")

    if trend == MarketTrend.UP:
        sentences.append("Market trends are favorable for rate increases.")
    elif trend == MarketTrend.DOWN:
        sentences.append("Market softening suggests caution with rate increases.")
    else:
        sentences.append("Stable market conditions support current strategy.")

    return " ".join(sentences)


def forecast_occupancy(
    historical: HistoricalPerformance,
    demand: DemandLevel,
    target_date: date,
) -> float:
    forecast = historical.averageOccupancy

    if demand == DemandLevel.HIGH:
        forecast += 10
    elif demand == DemandLevel.LOW:
        forecast -= 8

    forecast *= get_seasonal_demand_factor(target_date)

    if is_weekend(target_date):
        forecast += 5

    return max(FORECAST_MIN, min(FORECAST_MAX, forecast))


# =============================================================================
# Synthesis
# =============================================================================


def synthesize(
    rate_record: CurrentRateRecord,
    observations: Sequence[CompetitorObservation],
    historical: HistoricalPerformance,
    as_of: Optional[date] = None,
    gap_policy: GapPolicy = GapPolicy(),
    confidence_policy: ConfidencePolicy = ConfidencePolicy(),
) -> Optional[RateRecommendation]:
    """
    Produce a recommendation for one rate record.

    Args:
        rate_record: The property's current rate record.
        observations: Competitor observations; filtered here to the
            record's room type and date.
        historical: Trailing performance for the record's room type.
        as_of: Reference date for the days-ahead penalty. Defaults to today.
        gap_policy: Thresholds for the competitor gap tags.
        confidence_policy: High-variance confidence ceiling.

    Returns:
        RateRecommendation, or None when no comparable competitor exists.
    """
    relevant = filter_relevant_competitors(
        observations,
        rate_record.roomTypeCode,
        rate_record.date,
    )
    if not relevant:
        return None

    as_of = as_of or date.today()
    current_rate = rate_record.rate

    metrics = calculate_market_metrics(relevant)
    position = analyze_position(current_rate, relevant)
    gap_direction = summarize_gap_direction(detect_gaps(current_rate, relevant, gap_policy))

    demand = analyze_demand_level(current_rate, metrics, historical, rate_record.date)
    trend = determine_market_trend(metrics, historical, rate_record.date)

    suggested_rate = float(_round_half_up(calculate_optimal_rate(
        current_rate,
        metrics,
        demand,
        trend,
        historical,
        gap_direction,
        position.category,
    )))

    confidence = calculate_confidence_score(
        len(relevant),
        metrics.coefficientOfVariation,
        historical,
        rate_record.date,
        as_of,
        confidence_policy,
    )

    return RateRecommendation(
        propertyId=rate_record.propertyId,
        roomTypeId=rate_record.roomTypeId,
        ratePlanId=rate_record.ratePlanId,
        date=rate_record.date,
        currentRate=current_rate,
        suggestedRate=suggested_rate,
        confidence=confidence,
        reasoning=generate_reasoning(current_rate, suggested_rate, metrics, demand, trend),
        factors=RecommendationFactors(
            competitorAverage=float(_round_half_up(metrics.average)),
            marketTrend=trend,
            demandLevel=demand,
            occupancyForecast=float(_round_half_up(
                forecast_occupancy(historical, demand, rate_record.date)
            )),
        ),
    )
