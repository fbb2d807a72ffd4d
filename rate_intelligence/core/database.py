"""
Async PostgreSQL connectivity and storage capabilities.

This module provides the asyncpg connection pool lifecycle and the PostgreSQL
implementations of the storage protocols in rate_intelligence.core.stores.
There is no module-level pool: the process entry point creates one with
init_db(), hands it to the stores, and closes it with close_db().

Connection Pool Configuration:
- min_size: 2 (minimum idle connections kept in pool)
- max_size: 10 (maximum connections in pool)
- command_timeout: 60 seconds (query timeout)

Usage:
    pool = await init_db(settings)
    await ensure_schema(pool)
    rate_store = PostgresRateStore(pool)
    ...
    await close_db(pool)
"""

import json
import uuid
from datetime import date, datetime, timedelta
from typing import Any, List, Optional, Sequence, Tuple

import asyncpg
from asyncpg import Pool

from rate_intelligence.core.config import Settings
from rate_intelligence.models import (
    CompetitorObservation,
    CurrentRateRecord,
    HistoricalPerformance,
    MarketTrend,
    RateRecommendation,
    RecommendationFactors,
    Suggestion,
    SyncSource,
)
from rate_intelligence.sql import (
    HISTORY_TREND_SPLIT_DAYS,
    HISTORY_WINDOW_DAYS,
    INSERT_SUGGESTION,
    MARK_SUGGESTION_APPLIED,
    SCHEMA_DDL,
    SELECT_COMPETITOR_RATES,
    SELECT_CURRENT_RATE,
    SELECT_HISTORICAL_PERFORMANCE,
    SELECT_RATE_RECORDS,
    SELECT_SUGGESTION_BY_ID,
    SELECT_SUGGESTIONS_FOR_PROPERTY,
    UPDATE_RATE,
    UPSERT_COMPETITOR_RATE,
)


# Occupancy points between the two history halves that count as a trend
OCCUPANCY_TREND_THRESHOLD: float = 3.0


# =============================================================================
# Pool Lifecycle Functions
# =============================================================================

async def init_db(settings: Settings) -> Pool:
    """
    Create the database connection pool.

    Args:
        settings: Application settings carrying DATABASE_URL.

    Returns:
        Pool: A new asyncpg connection pool.

    Raises:
        ValueError: If DATABASE_URL is not configured.
        asyncpg.PostgresError: If connection to the database fails.
        OSError: If the database host is unreachable.
    """
    if not settings.database_url:
        raise ValueError("DATABASE_URL is not configured")

    return await asyncpg.create_pool(
        dsn=settings.database_url,
        min_size=2,
        max_size=10,
        command_timeout=60,
    )


async def close_db(pool: Optional[Pool]) -> None:
    """Close the pool gracefully. Safe to call with None."""
    if pool is not None:
        await pool.close()


async def ensure_schema(pool: Pool) -> None:
    """Create the pipeline tables if they do not exist yet."""
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA_DDL)


# =============================================================================
# Row Conversion Helpers
# =============================================================================

def derive_occupancy_trend(
    recent_occupancy: Optional[float],
    prior_occupancy: Optional[float],
    threshold: float = OCCUPANCY_TREND_THRESHOLD,
) -> MarketTrend:
    """
    Compare the recent half of the history window with the prior half.

    Returns STABLE when either half has no data.
    """
    if recent_occupancy is None or prior_occupancy is None:
        return MarketTrend.STABLE

    delta = float(recent_occupancy) - float(prior_occupancy)
    if delta > threshold:
        return MarketTrend.UP
    if delta < -threshold:
        return MarketTrend.DOWN
    return MarketTrend.STABLE


def _row_to_rate_record(row: Any) -> CurrentRateRecord:
    return CurrentRateRecord(
        id=str(row['id']),
        propertyId=row['property_id'],
        roomTypeId=row['room_type_id'],
        roomTypeCode=row['room_type_code'],
        ratePlanId=row['rate_plan_id'],
        date=row['date'],
        rate=float(row['rate']),
        inventory=int(row['inventory'] or 0),
    )


def _row_to_observation(row: Any) -> CompetitorObservation:
    return CompetitorObservation(
        competitorId=row['competitor_id'],
        competitorName=row['competitor_name'],
        roomTypeCode=row['room_type_code'],
        rate=float(row['rate']),
        currency=row['currency'] or 'USD',
        date=row['date'],
        available=bool(row['available']),
    )


def _row_to_suggestion(row: Any) -> Suggestion:
    factors = row['factors']
    # asyncpg hands JSONB back as text unless a codec is registered
    if isinstance(factors, str):
        factors = json.loads(factors)

    return Suggestion(
        id=str(row['id']),
        propertyId=row['property_id'],
        roomTypeId=row['room_type_id'],
        ratePlanId=row['rate_plan_id'],
        date=row['date'],
        currentRate=float(row['current_rate']),
        suggestedRate=float(row['suggested_rate']),
        confidence=int(row['confidence']),
        reasoning=row['reasoning'],
        factors=RecommendationFactors(**factors),
        isApplied=bool(row['is_applied']),
        appliedAt=row['applied_at'],
        appliedBy=row['applied_by'],
        createdAt=row['created_at'],
    )


# =============================================================================
# PostgreSQL Storage Capabilities
# =============================================================================

class PostgresRateStore:
    """RateStore backed by the rate_inventory table."""

    def __init__(self, pool: Pool) -> None:
        self._pool = pool

    async def find_rate_records(
        self,
        property_id: str,
        start_date: date,
        end_date: date,
        room_type_ids: Optional[Sequence[str]] = None,
        rate_plan_ids: Optional[Sequence[str]] = None,
    ) -> List[CurrentRateRecord]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                SELECT_RATE_RECORDS,
                property_id,
                start_date,
                end_date,
                list(room_type_ids) if room_type_ids else None,
                list(rate_plan_ids) if rate_plan_ids else None,
            )
        return [_row_to_rate_record(row) for row in rows]

    async def find_current_rate(
        self,
        property_id: str,
        target_date: date,
        room_type_code: str,
    ) -> Optional[float]:
        async with self._pool.acquire() as conn:
            value = await conn.fetchval(
                SELECT_CURRENT_RATE,
                property_id,
                target_date,
                room_type_code,
            )
        return float(value) if value is not None else None

    async def get_historical_performance(
        self,
        record: CurrentRateRecord,
    ) -> HistoricalPerformance:
        """
        Trailing performance for the record's room type.

        History is measured over the HISTORY_WINDOW_DAYS before today, not
        before the stay date, since future stay dates have no actuals yet.
        Falls back to the estimated placeholder when no occupancy exists.
        """
        as_of = date.today()
        window_start = as_of - timedelta(days=HISTORY_WINDOW_DAYS)
        split_date = as_of - timedelta(days=HISTORY_TREND_SPLIT_DAYS)

        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                SELECT_HISTORICAL_PERFORMANCE,
                record.propertyId,
                record.roomTypeId,
                window_start,
                split_date,
                as_of,
            )

        if row is None or not row['sample_days'] or row['average_occupancy'] is None:
            return HistoricalPerformance(isEstimated=True)

        average_adr = row['average_adr']
        return HistoricalPerformance(
            averageOccupancy=float(row['average_occupancy']),
            averageAdr=float(average_adr) if average_adr is not None else record.rate,
            seasonalTrend=derive_occupancy_trend(
                row['recent_occupancy'],
                row['prior_occupancy'],
            ),
            isEstimated=False,
        )


class PostgresSuggestionStore:
    """SuggestionStore backed by the ai_suggestion table."""

    def __init__(self, pool: Pool) -> None:
        self._pool = pool

    async def create(self, recommendation: RateRecommendation) -> Suggestion:
        suggestion_id = str(uuid.uuid4())
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                INSERT_SUGGESTION,
                suggestion_id,
                recommendation.propertyId,
                recommendation.roomTypeId,
                recommendation.ratePlanId,
                recommendation.date,
                recommendation.currentRate,
                recommendation.suggestedRate,
                recommendation.confidence,
                recommendation.reasoning,
                recommendation.factors.model_dump_json(),
                recommendation.createdAt,
            )
        return _row_to_suggestion(row)

    async def find_by_id(self, suggestion_id: str) -> Optional[Suggestion]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(SELECT_SUGGESTION_BY_ID, suggestion_id)
        return _row_to_suggestion(row) if row else None

    async def find_for_property(
        self,
        property_id: str,
        start_date: date,
        end_date: date,
        is_applied: Optional[bool] = None,
    ) -> List[Suggestion]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                SELECT_SUGGESTIONS_FOR_PROPERTY,
                property_id,
                start_date,
                end_date,
                is_applied,
            )
        return [_row_to_suggestion(row) for row in rows]

    async def apply_and_mirror(
        self,
        suggestion_id: str,
        actor_id: str,
        applied_at: datetime,
    ) -> Optional[Tuple[Suggestion, int]]:
        """
        Mark a suggestion applied and overwrite the matching rate_inventory rows.

        The conditional UPDATE and the rate write-back share one transaction,
        so a failed write-back rolls the suggestion back to unapplied and the
        apply can be retried.
        """
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    MARK_SUGGESTION_APPLIED,
                    suggestion_id,
                    actor_id,
                    applied_at,
                )
                if row is None:
                    return None

                applied = _row_to_suggestion(row)
                status = await conn.execute(
                    UPDATE_RATE,
                    applied.propertyId,
                    applied.roomTypeId,
                    applied.ratePlanId,
                    applied.date,
                    applied.suggestedRate,
                    SyncSource.AI_SUGGESTION.value,
                )

        # Status string format: 'UPDATE <rows>'
        return applied, int(status.split()[-1])


class PostgresCompetitorRateStore:
    """CompetitorRateStore backed by the competitor_rate table."""

    def __init__(self, pool: Pool) -> None:
        self._pool = pool

    async def save_observations(
        self,
        property_id: str,
        observations: Sequence[CompetitorObservation],
    ) -> int:
        if not observations:
            return 0

        args_list = [
            (
                property_id,
                obs.competitorId,
                obs.competitorName,
                obs.roomTypeCode,
                obs.date,
                obs.rate,
                obs.currency,
                obs.available,
            )
            for obs in observations
        ]

        async with self._pool.acquire() as conn:
            async with conn.transaction():
                await conn.executemany(UPSERT_COMPETITOR_RATE, args_list)

        return len(args_list)

    async def find_observations(
        self,
        property_id: str,
        target_date: date,
        room_type_code: Optional[str] = None,
    ) -> List[CompetitorObservation]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                SELECT_COMPETITOR_RATES,
                property_id,
                target_date,
                room_type_code,
            )
        return [_row_to_observation(row) for row in rows]
