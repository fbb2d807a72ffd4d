"""
SQL Query Module for the rate intelligence backend.

Provides the schema DDL and parameterized statements used by the PostgreSQL
storage capabilities. Keeps business logic free of SQL text.

Example usage:
    from rate_intelligence.sql import SCHEMA_DDL, MARK_SUGGESTION_APPLIED
"""

from rate_intelligence.sql.insights_queries import (
    HISTORY_WINDOW_DAYS,
    HISTORY_TREND_SPLIT_DAYS,
    SCHEMA_DDL,
    SELECT_RATE_RECORDS,
    SELECT_CURRENT_RATE,
    SELECT_HISTORICAL_PERFORMANCE,
    UPDATE_RATE,
    UPSERT_COMPETITOR_RATE,
    SELECT_COMPETITOR_RATES,
    INSERT_SUGGESTION,
    SELECT_SUGGESTION_BY_ID,
    SELECT_SUGGESTIONS_FOR_PROPERTY,
    MARK_SUGGESTION_APPLIED,
)

__all__ = [
    'HISTORY_WINDOW_DAYS',
    'HISTORY_TREND_SPLIT_DAYS',
    'SCHEMA_DDL',
    'SELECT_RATE_RECORDS',
    'SELECT_CURRENT_RATE',
    'SELECT_HISTORICAL_PERFORMANCE',
    'UPDATE_RATE',
    'UPSERT_COMPETITOR_RATE',
    'SELECT_COMPETITOR_RATES',
    'INSERT_SUGGESTION',
    'SELECT_SUGGESTION_BY_ID',
    'SELECT_SUGGESTIONS_FOR_PROPERTY',
    'MARK_SUGGESTION_APPLIED',
]
