"""
Core infrastructure package for the rate intelligence backend.

Provides:
- Configuration management via pydantic-settings
- The error taxonomy surfaced by the pipeline
- Storage capability protocols and their asyncpg implementations
- FastAPI dependency injection utilities

Usage:
    from rate_intelligence.core import get_settings, init_db, close_db

    settings = get_settings()
    pool = await init_db(settings)
"""

# =============================================================================
# Re-exports from rate_intelligence.core.config
# =============================================================================
from rate_intelligence.core.config import Settings, get_settings

# =============================================================================
# Re-exports from rate_intelligence.core.exceptions
# =============================================================================
from rate_intelligence.core.exceptions import (
    RateIntelligenceError,
    RateProviderError,
    NoCompetitorDataError,
    SuggestionNotFoundError,
    SuggestionAlreadyAppliedError,
)

# =============================================================================
# Re-exports from rate_intelligence.core.stores / database
# =============================================================================
from rate_intelligence.core.stores import (
    RateStore,
    SuggestionStore,
    CompetitorRateStore,
)
from rate_intelligence.core.database import (
    init_db,
    close_db,
    ensure_schema,
    PostgresRateStore,
    PostgresSuggestionStore,
    PostgresCompetitorRateStore,
)


__all__ = [
    # Configuration management
    'Settings',
    'get_settings',
    # Errors
    'RateIntelligenceError',
    'RateProviderError',
    'NoCompetitorDataError',
    'SuggestionNotFoundError',
    'SuggestionAlreadyAppliedError',
    # Storage capabilities
    'RateStore',
    'SuggestionStore',
    'CompetitorRateStore',
    # Database pool lifecycle and PostgreSQL stores
    'init_db',
    'close_db',
    'ensure_schema',
    'PostgresRateStore',
    'PostgresSuggestionStore',
    'PostgresCompetitorRateStore',
]
