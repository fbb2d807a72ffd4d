"""
Package initialization file for rate intelligence models.

Re-exports all Pydantic schemas and enumerations from schemas.py and enums.py
so other modules can import them from rate_intelligence.models directly.

Usage:
    from rate_intelligence.models import (
        CompetitorObservation,
        MarketPosition,
        RateRecommendation,
        PositionCategory,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from rate_intelligence.models.enums import (
    PositionCategory,
    GapRecommendation,
    MarketTrend,
    DemandLevel,
    RateSource,
    SyncSource,
)

# =============================================================================
# Schemas
# =============================================================================

from rate_intelligence.models.schemas import (
    # Observations
    CompetitorObservation,
    CollectionResult,
    # Market statistics
    MarketPosition,
    TierAverages,
    MarketSegmentation,
    CompetitiveGap,
    RateCluster,
    MarketMetrics,
    # Current rates
    CurrentRateRecord,
    HistoricalPerformance,
    # Recommendations / suggestions
    RecommendationFactors,
    RateRecommendation,
    Suggestion,
    ApplySuggestionRequest,
    RecommendationFailure,
    RecommendationBatch,
    # Operations
    MarketAnalysis,
    CompetitorRefreshResult,
    ProviderConnectionStatus,
    DashboardSummary,
    InsightsDashboard,
    # Provider payload
    ProviderRate,
    ProviderCompetitor,
    ProviderRateResponse,
)


__all__ = [
    # ----- Enums -----
    'PositionCategory',
    'GapRecommendation',
    'MarketTrend',
    'DemandLevel',
    'RateSource',
    'SyncSource',
    # ----- Observations -----
    'CompetitorObservation',
    'CollectionResult',
    # ----- Market statistics -----
    'MarketPosition',
    'TierAverages',
    'MarketSegmentation',
    'CompetitiveGap',
    'RateCluster',
    'MarketMetrics',
    # ----- Current rates -----
    'CurrentRateRecord',
    'HistoricalPerformance',
    # ----- Recommendations / suggestions -----
    'RecommendationFactors',
    'RateRecommendation',
    'Suggestion',
    'ApplySuggestionRequest',
    'RecommendationFailure',
    'RecommendationBatch',
    # ----- Operations -----
    'MarketAnalysis',
    'CompetitorRefreshResult',
    'ProviderConnectionStatus',
    'DashboardSummary',
    'InsightsDashboard',
    # ----- Provider payload -----
    'ProviderRate',
    'ProviderCompetitor',
    'ProviderRateResponse',
]
