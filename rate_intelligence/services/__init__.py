"""
Rate intelligence services.

Pure market statistics:
- market_position: percentile position, median, descriptive metrics
- market_segmentation: premium / mid / value tiers
- rate_clustering: proximity clusters of competitor rates
- gap_detection: per-competitor gaps and the configurable GapPolicy
- market_commentary: human-readable market analysis lines
- recommendation_engine: scored rate recommendation for one rate record

I/O and orchestration:
- rate_collector: live provider call with synthetic fallback
- insights_pipeline: PipelineContext and the pipeline operations
"""

# =============================================================================
# Market Statistics
# =============================================================================

from rate_intelligence.services.market_position import (
    analyze_position,
    calculate_median,
    calculate_market_metrics,
    categorize_percentile,
)
from rate_intelligence.services.market_segmentation import segment_market
from rate_intelligence.services.rate_clustering import (
    DEFAULT_CLUSTER_THRESHOLD,
    identify_rate_clusters,
    find_rate_cluster,
)
from rate_intelligence.services.gap_detection import (
    GapPolicy,
    detect_gaps,
    summarize_gap_direction,
)
from rate_intelligence.services.market_commentary import generate_market_recommendations

# =============================================================================
# Recommendation Engine
# =============================================================================

from rate_intelligence.services.recommendation_engine import (
    ConfidencePolicy,
    synthesize,
)

# =============================================================================
# Collection and Orchestration
# =============================================================================

from rate_intelligence.services.rate_collector import RateCollector
from rate_intelligence.services.insights_pipeline import (
    PipelineContext,
    generate_recommendations,
    generate_recommendation_batch,
    perform_market_analysis,
    apply_suggestion,
    refresh_competitor_data,
    get_competitor_insights,
    get_suggestions,
    test_rate_provider_connection,
    get_dashboard,
)


__all__ = [
    # Market statistics
    'analyze_position',
    'calculate_median',
    'calculate_market_metrics',
    'categorize_percentile',
    'segment_market',
    'DEFAULT_CLUSTER_THRESHOLD',
    'identify_rate_clusters',
    'find_rate_cluster',
    'GapPolicy',
    'detect_gaps',
    'summarize_gap_direction',
    'generate_market_recommendations',
    # Recommendation engine
    'ConfidencePolicy',
    'synthesize',
    # Collection and orchestration
    'RateCollector',
    'PipelineContext',
    'generate_recommendations',
    'generate_recommendation_batch',
    'perform_market_analysis',
    'apply_suggestion',
    'refresh_competitor_data',
    'get_competitor_insights',
    'get_suggestions',
    'test_rate_provider_connection',
    'get_dashboard',
]
