"""
Enumeration definitions for the rate intelligence backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models, enabling automatic serialization and
deserialization in API responses.
"""

from enum import Enum


class PositionCategory(str, Enum):
    """
    Market position of a property rate relative to its competitive set.

    Derived from the percentile of competitor rates strictly below the
    subject rate:
    - premium: percentile >= 75
    - competitive: 25 <= percentile < 75
    - value: percentile < 25
    """
    PREMIUM = "premium"
    COMPETITIVE = "competitive"
    VALUE = "value"


class GapRecommendation(str, Enum):
    """
    Directional tag attached to a per-competitor rate gap.

    - increase: Our rate is significantly below the competitor
    - decrease: Our rate is significantly above the competitor
    - maintain: Within the tolerated band
    """
    INCREASE = "increase"
    DECREASE = "decrease"
    MAINTAIN = "maintain"


class MarketTrend(str, Enum):
    """Direction the market is moving for a stay date."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class DemandLevel(str, Enum):
    """
    Composite demand level used by the recommendation engine.

    Computed from rate position vs market average, historical occupancy,
    day of week and seasonality.
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RateSource(str, Enum):
    """
    Origin of a competitor observation set.

    - live: Returned by the external rate shopping provider
    - synthetic: Produced by the deterministic fallback generator
    """
    LIVE = "live"
    SYNTHETIC = "synthetic"


class SyncSource(str, Enum):
    """Origin of the last write to a current-rate record."""
    MANUAL = "manual"
    CHANNEL_MANAGER = "channel_manager"
    AI_SUGGESTION = "ai_suggestion"
