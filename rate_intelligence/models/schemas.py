"""
Pydantic models for the rate intelligence backend.

This module provides type-safe data validation and serialization for the
competitor observations consumed by the pipeline, the derived market
statistics, the rate recommendations it produces, the persisted suggestion
lifecycle, and the external rate shopping provider payload.

Field names are camelCase to keep the JSON contract consumed by the UI
unchanged. All models use Pydantic v2 syntax.
"""

from datetime import datetime, date as DateType
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict, computed_field

from rate_intelligence.models.enums import (
    PositionCategory,
    GapRecommendation,
    MarketTrend,
    DemandLevel,
    RateSource,
)


# =============================================================================
# Competitor Observations
# =============================================================================


class CompetitorObservation(BaseModel):
    """
    A single competitor rate for one room type on one stay date.

    Produced by the rate collector and immutable afterwards; the collector
    always populates `available` explicitly rather than inferring it from
    the presence of a rate.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "competitorId": "comp_001",
                "competitorName": "Grand Hotel Downtown",
                "roomTypeCode": "STD",
                "rate": 189.0,
                "currency": "USD",
                "date": "2026-07-04",
                "available": True
            }
        }
    )

    competitorId: str = Field(
        ...,
        description="Competitor property identifier"
    )
    competitorName: str = Field(
        ...,
        description="Competitor display name"
    )
    roomTypeCode: str = Field(
        ...,
        description="Room type code the rate applies to (STD, DLX, ...)"
    )
    rate: float = Field(
        ...,
        description="Observed nightly rate"
    )
    currency: str = Field(
        default="USD",
        description="ISO currency code"
    )
    date: DateType = Field(
        ...,
        description="Stay date"
    )
    available: bool = Field(
        default=True,
        description="Whether the competitor had the room type bookable"
    )


class CollectionResult(BaseModel):
    """Observations returned by one collector call plus where they came from."""

    observations: List[CompetitorObservation] = Field(default_factory=list)
    source: RateSource = Field(
        ...,
        description="live when the provider answered, synthetic on fallback"
    )


# =============================================================================
# Market Statistics
# =============================================================================


class MarketPosition(BaseModel):
    """
    Percentile position of a rate inside its competitive set.

    Derived on every analysis call and never persisted independently.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "percentile": 67,
                "category": "competitive",
                "gapToMedian": 12.5,
                "gapToClosestCompetitor": -3.0
            }
        }
    )

    percentile: int = Field(
        ...,
        ge=0,
        le=100,
        description="Share of competitor rates strictly below the subject rate"
    )
    category: PositionCategory = Field(
        ...,
        description="premium / competitive / value bucket"
    )
    gapToMedian: float = Field(
        ...,
        description="Subject rate minus competitor median"
    )
    gapToClosestCompetitor: float = Field(
        ...,
        description="Subject rate minus the nearest competitor rate"
    )


class TierAverages(BaseModel):
    """Mean rate per tier. NaN marks a tier with no members."""

    premium: float
    mid: float
    value: float


class MarketSegmentation(BaseModel):
    """Competitors partitioned into premium / mid / value tiers by rate."""

    premiumTier: List[CompetitorObservation] = Field(default_factory=list)
    midTier: List[CompetitorObservation] = Field(default_factory=list)
    valueTier: List[CompetitorObservation] = Field(default_factory=list)
    averageRates: TierAverages


class CompetitiveGap(BaseModel):
    """
    Rate difference against a single competitor.

    rateDifference is positive when our rate is above the competitor.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "competitorName": "Boutique Inn",
                "rateDifference": 20.0,
                "percentageDifference": 20.0,
                "recommendation": "decrease"
            }
        }
    )

    competitorName: str
    rateDifference: float
    percentageDifference: float
    recommendation: GapRecommendation


class RateCluster(BaseModel):
    """A run of competitor rates that sit close together."""

    centerRate: float = Field(..., description="Mean of member rates")
    memberCount: int = Field(..., ge=2)
    memberRates: List[float] = Field(default_factory=list)


class MarketMetrics(BaseModel):
    """Descriptive statistics over the comparable competitor rates."""

    average: float
    minimum: float
    maximum: float
    standardDeviation: float
    coefficientOfVariation: float
    count: int


# =============================================================================
# Current Rates and History
# =============================================================================


class CurrentRateRecord(BaseModel):
    """
    A rate/inventory row of the property for one room type, rate plan and date.

    Read from the current-rate store; the pipeline only writes back the
    rate when a suggestion is applied.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "ri_001",
                "propertyId": "prop_001",
                "roomTypeId": "rt_std",
                "roomTypeCode": "STD",
                "ratePlanId": "rp_bar",
                "date": "2026-07-04",
                "rate": 159.0,
                "inventory": 12
            }
        }
    )

    id: str
    propertyId: str
    roomTypeId: str
    roomTypeCode: str
    ratePlanId: str
    date: DateType
    rate: float = Field(..., ge=0.0)
    inventory: int = Field(default=0, ge=0)


class HistoricalPerformance(BaseModel):
    """
    Trailing performance signals for the recommendation engine.

    isEstimated is set when the store had no history and placeholder
    values were used; the engine lowers its confidence in that case.
    """

    averageOccupancy: float = Field(default=75.0, ge=0.0, le=100.0)
    averageAdr: float = Field(default=150.0, ge=0.0)
    seasonalTrend: MarketTrend = Field(default=MarketTrend.STABLE)
    isEstimated: bool = Field(default=False)


# =============================================================================
# Recommendations and Suggestions
# =============================================================================


class RecommendationFactors(BaseModel):
    """Factors surfaced next to a recommendation in the UI."""

    competitorAverage: float
    marketTrend: MarketTrend
    demandLevel: DemandLevel
    occupancyForecast: float = Field(..., ge=0.0, le=100.0)


class RateRecommendation(BaseModel):
    """
    Scored rate change recommendation for one rate record.

    Returned by the recommendation engine. It becomes a persisted
    Suggestion once the pipeline stores it.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "propertyId": "prop_001",
                "roomTypeId": "rt_std",
                "ratePlanId": "rp_bar",
                "date": "2026-07-04",
                "currentRate": 159.0,
                "suggestedRate": 181.0,
                "confidence": 72,
                "reasoning": "Consider increasing rate by 14%. Your rate is below market average ($187).",
                "factors": {
                    "competitorAverage": 187.0,
                    "marketTrend": "up",
                    "demandLevel": "medium",
                    "occupancyForecast": 86.0
                },
                "createdAt": "2026-06-01T09:00:00Z"
            }
        }
    )

    propertyId: str
    roomTypeId: str
    ratePlanId: str
    date: DateType
    currentRate: float = Field(..., ge=0.0)
    suggestedRate: float = Field(..., ge=0.0)
    confidence: int = Field(..., ge=0, le=100)
    reasoning: str = Field(..., min_length=1)
    factors: RecommendationFactors
    createdAt: datetime = Field(default_factory=datetime.utcnow)


class Suggestion(RateRecommendation):
    """
    Persisted recommendation with an apply lifecycle.

    Created with isApplied=False and transitions exactly once to
    isApplied=True with appliedBy/appliedAt set.
    """

    id: str
    isApplied: bool = Field(default=False)
    appliedAt: Optional[datetime] = Field(default=None)
    appliedBy: Optional[str] = Field(default=None)


class ApplySuggestionRequest(BaseModel):
    """Request body for applying a suggestion."""

    userId: str = Field(..., min_length=1, description="Actor applying the suggestion")


class RecommendationFailure(BaseModel):
    """A rate record whose recommendation could not be produced."""

    rateRecordId: str
    error: str


class RecommendationBatch(BaseModel):
    """
    Outcome of a batch recommendation run.

    Partial-failure report: recommendations holds every success, failures
    every record that errored, and requestedCount the number of rate records
    that were considered. Records without comparable competitor data are
    neither successes nor failures.
    """

    propertyId: str
    requestedCount: int = Field(default=0, ge=0)
    recommendations: List[RateRecommendation] = Field(default_factory=list)
    failures: List[RecommendationFailure] = Field(default_factory=list)

    @computed_field
    @property
    def generatedCount(self) -> int:
        return len(self.recommendations)

    @computed_field
    @property
    def failedCount(self) -> int:
        return len(self.failures)


# =============================================================================
# Market Analysis and Operations
# =============================================================================


class MarketAnalysis(BaseModel):
    """
    Market summary for one property, room type and date.

    positionIndex is on a 0-100 scale between the cheapest and most
    expensive competitor; 50 when the range is flat or our rate is unknown.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "propertyId": "prop_001",
                "roomTypeCode": "STD",
                "date": "2026-07-04",
                "marketAverage": 187.25,
                "marketMin": 162.0,
                "marketMax": 214.0,
                "positionIndex": 34.6,
                "currentRate": 180.0,
                "competitorCount": 4,
                "recommendations": [
                    "Well-positioned in the competitive middle tier - good balance of rate and market appeal"
                ]
            }
        }
    )

    propertyId: str
    roomTypeCode: str
    date: DateType
    marketAverage: float
    marketMin: float
    marketMax: float
    positionIndex: float = Field(..., ge=0.0, le=100.0)
    currentRate: Optional[float] = None
    competitorCount: int = Field(..., ge=1)
    recommendations: List[str] = Field(default_factory=list)


class CompetitorRefreshResult(BaseModel):
    """Report of a competitor data refresh. Never raised, only returned."""

    propertyId: str
    startDate: DateType
    endDate: DateType
    observationsCollected: int = 0
    observationsStored: int = 0
    source: Optional[RateSource] = None
    success: bool = False
    error: Optional[str] = None


class ProviderConnectionStatus(BaseModel):
    """Result of probing the rate shopping provider."""

    success: bool
    message: str


class DashboardSummary(BaseModel):
    recommendationCount: int
    competitorCount: int
    pendingSuggestions: int
    lastUpdated: datetime


class InsightsDashboard(BaseModel):
    """Everything the insights panel shows for a property in one payload."""

    propertyId: str
    recommendations: List[RateRecommendation] = Field(default_factory=list)
    competitorInsights: List[CompetitorObservation] = Field(default_factory=list)
    suggestions: List[Suggestion] = Field(default_factory=list)
    summary: DashboardSummary


# =============================================================================
# Rate Shopping Provider Payload
# =============================================================================


class ProviderRate(BaseModel):
    """One rate entry in the provider response."""

    roomType: str
    amount: float
    currency: Optional[str] = None
    date: DateType
    available: Optional[bool] = None


class ProviderCompetitor(BaseModel):
    """One competitor entry in the provider response."""

    id: str
    name: str
    rates: List[ProviderRate] = Field(default_factory=list)


class ProviderRateResponse(BaseModel):
    """
    Response body of POST /rates/search.

    Validation failure of any part of the payload is treated as a provider
    failure by the collector.
    """

    competitors: List[ProviderCompetitor]
