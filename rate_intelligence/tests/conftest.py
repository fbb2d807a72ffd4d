"""
Pytest Configuration and Shared Fixtures for Rate Intelligence Tests.

This module provides fixtures and helpers for all rate intelligence tests:
- Settings built from explicit values (no .env, no live provider)
- In-memory implementations of the RateStore, SuggestionStore and
  CompetitorRateStore protocols
- A stub collector returning fixed competitor observations
- A mock asyncpg pool for the PostgreSQL store tests
- Builders for competitor observations and current rate records

Dependencies:
- pytest
- pytest-asyncio
"""

import asyncio
import logging
import uuid
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple
from unittest.mock import AsyncMock, Mock

import pytest

from rate_intelligence.core.config import Settings
from rate_intelligence.models import (
    CollectionResult,
    CompetitorObservation,
    CurrentRateRecord,
    HistoricalPerformance,
    ProviderConnectionStatus,
    RateRecommendation,
    RateSource,
    Suggestion,
    SyncSource,
)
from rate_intelligence.services.insights_pipeline import PipelineContext


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - integration: Marks tests requiring a live provider or database
    """
    config.addinivalue_line(
        'markers',
        'integration: marks tests requiring external service connectivity'
    )


# ============================================================
# DATA BUILDERS
# ============================================================

# A Saturday in July, 10 days after AS_OF
STAY_DATE = date(2026, 7, 4)
AS_OF = date(2026, 6, 24)


def make_observation(
    rate: float,
    competitor_id: str = "comp_001",
    competitor_name: Optional[str] = None,
    room_type_code: str = "STD",
    stay_date: date = STAY_DATE,
    available: bool = True,
) -> CompetitorObservation:
    """Build a CompetitorObservation with sensible defaults."""
    return CompetitorObservation(
        competitorId=competitor_id,
        competitorName=competitor_name or f"Competitor {competitor_id}",
        roomTypeCode=room_type_code,
        rate=rate,
        currency="USD",
        date=stay_date,
        available=available,
    )


def make_observations(
    rates: Iterable[float],
    room_type_code: str = "STD",
    stay_date: date = STAY_DATE,
) -> List[CompetitorObservation]:
    """One observation per rate, competitor ids comp_001, comp_002, ..."""
    return [
        make_observation(
            rate,
            competitor_id=f"comp_{i + 1:03d}",
            room_type_code=room_type_code,
            stay_date=stay_date,
        )
        for i, rate in enumerate(rates)
    ]


def make_rate_record(
    rate: float,
    record_id: str = "ri_001",
    property_id: str = "prop_001",
    room_type_code: str = "STD",
    stay_date: date = STAY_DATE,
    rate_plan_id: str = "rp_bar",
) -> CurrentRateRecord:
    """Build a CurrentRateRecord; roomTypeId is derived from the room code."""
    return CurrentRateRecord(
        id=record_id,
        propertyId=property_id,
        roomTypeId=f"rt_{room_type_code.lower()}",
        roomTypeCode=room_type_code,
        ratePlanId=rate_plan_id,
        date=stay_date,
        rate=rate,
        inventory=10,
    )


# ============================================================
# IN-MEMORY STORES
# ============================================================


class InMemoryRateStore:
    """RateStore over a list of records. Records listed in failing_ids raise."""

    def __init__(
        self,
        records: Sequence[CurrentRateRecord] = (),
        historical: Optional[HistoricalPerformance] = None,
        failing_ids: Optional[Set[str]] = None,
    ) -> None:
        self.records: List[CurrentRateRecord] = list(records)
        self.historical = historical or HistoricalPerformance(averageOccupancy=72.0)
        self.failing_ids = failing_ids or set()
        self.sync_sources: Dict[str, SyncSource] = {}

    async def find_rate_records(
        self,
        property_id,
        start_date,
        end_date,
        room_type_ids=None,
        rate_plan_ids=None,
    ) -> List[CurrentRateRecord]:
        return [
            r for r in self.records
            if r.propertyId == property_id
            and start_date <= r.date <= end_date
            and (not room_type_ids or r.roomTypeId in room_type_ids)
            and (not rate_plan_ids or r.ratePlanId in rate_plan_ids)
        ]

    async def find_current_rate(self, property_id, target_date, room_type_code) -> Optional[float]:
        for r in self.records:
            if r.propertyId == property_id and r.date == target_date and r.roomTypeCode == room_type_code:
                return r.rate
        return None

    async def get_historical_performance(self, record) -> HistoricalPerformance:
        if record.id in self.failing_ids:
            raise RuntimeError(f"history unavailable for {record.id}")
        return self.historical

    async def update_rate(
        self,
        property_id,
        room_type_id,
        rate_plan_id,
        target_date,
        rate,
        sync_source,
    ) -> int:
        updated = 0
        for i, r in enumerate(self.records):
            if (r.propertyId, r.roomTypeId, r.ratePlanId, r.date) == (
                property_id, room_type_id, rate_plan_id, target_date
            ):
                self.records[i] = r.model_copy(update={"rate": rate})
                self.sync_sources[r.id] = sync_source
                updated += 1
        return updated


class InMemorySuggestionStore:
    """SuggestionStore whose apply transition is guarded by an asyncio.Lock.

    The rate write-back runs before the applied suggestion is stored, so a
    failing InMemoryRateStore.update_rate leaves the suggestion unapplied.
    """

    def __init__(self, rate_store: InMemoryRateStore) -> None:
        self.items: Dict[str, Suggestion] = {}
        self._rate_store = rate_store
        self._lock: Optional[asyncio.Lock] = None

    async def create(self, recommendation: RateRecommendation) -> Suggestion:
        suggestion = Suggestion(id=str(uuid.uuid4()), **recommendation.model_dump())
        self.items[suggestion.id] = suggestion
        return suggestion

    async def find_by_id(self, suggestion_id) -> Optional[Suggestion]:
        return self.items.get(suggestion_id)

    async def find_for_property(self, property_id, start_date, end_date, is_applied=None) -> List[Suggestion]:
        found = [
            s for s in self.items.values()
            if s.propertyId == property_id
            and start_date <= s.date <= end_date
            and (is_applied is None or s.isApplied == is_applied)
        ]
        return sorted(found, key=lambda s: s.date)

    async def apply_and_mirror(self, suggestion_id, actor_id, applied_at) -> Optional[Tuple[Suggestion, int]]:
        # Created lazily so the lock binds to the running test loop
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            current = self.items.get(suggestion_id)
            if current is None or current.isApplied:
                return None
            # Yield inside the critical section so concurrent callers interleave
            await asyncio.sleep(0)
            updated = await self._rate_store.update_rate(
                current.propertyId,
                current.roomTypeId,
                current.ratePlanId,
                current.date,
                current.suggestedRate,
                SyncSource.AI_SUGGESTION,
            )
            applied = current.model_copy(update={
                "isApplied": True,
                "appliedAt": applied_at,
                "appliedBy": actor_id,
            })
            self.items[suggestion_id] = applied
            return applied, updated


class InMemoryCompetitorRateStore:
    """CompetitorRateStore keyed like the competitor_rate primary key."""

    def __init__(self) -> None:
        self.rows: Dict[tuple, CompetitorObservation] = {}

    async def save_observations(self, property_id, observations) -> int:
        for obs in observations:
            key = (property_id, obs.competitorId, obs.roomTypeCode, obs.date)
            self.rows[key] = obs
        return len(observations)

    async def find_observations(self, property_id, target_date, room_type_code=None) -> List[CompetitorObservation]:
        found = [
            obs for (pid, _, code, day), obs in self.rows.items()
            if pid == property_id
            and day == target_date
            and (room_type_code is None or code == room_type_code)
        ]
        return sorted(found, key=lambda obs: obs.rate)


class StubCollector:
    """Collector returning fixed observations; records every collect call."""

    def __init__(
        self,
        observations: Sequence[CompetitorObservation] = (),
        source: RateSource = RateSource.LIVE,
        error: Optional[Exception] = None,
    ) -> None:
        self.observations = list(observations)
        self.source = source
        self.error = error
        self.calls: List[tuple] = []

    async def collect(self, property_id, start_date, end_date, room_type_codes=None) -> CollectionResult:
        self.calls.append((property_id, start_date, end_date, room_type_codes))
        if self.error is not None:
            raise self.error
        return CollectionResult(observations=self.observations, source=self.source)

    async def test_connection(self) -> ProviderConnectionStatus:
        return ProviderConnectionStatus(success=False, message="Rate Shopper API key not configured")


# ============================================================
# FIXTURES
# ============================================================


@pytest.fixture
def settings() -> Settings:
    """Settings with no database, no provider key and a fixed synthetic seed."""
    return Settings(
        _env_file=None,
        database_url=None,
        rate_shopper_api_url="https://rates.test/v1",
        rate_shopper_api_key=None,
        synthetic_seed=42,
        recommendation_concurrency=2,
    )


@pytest.fixture
def live_settings(settings: Settings) -> Settings:
    """Settings with a provider key so the collector attempts the live call."""
    return settings.model_copy(update={"rate_shopper_api_key": "test-key"})


@pytest.fixture
def market_observations() -> List[CompetitorObservation]:
    """Four STD competitors on STAY_DATE with a moderate spread."""
    return make_observations([150.0, 160.0, 170.0, 180.0])


@pytest.fixture
def rate_store() -> InMemoryRateStore:
    return InMemoryRateStore(records=[
        make_rate_record(150.0, record_id="ri_001"),
        make_rate_record(250.0, record_id="ri_002", room_type_code="DLX"),
    ])


@pytest.fixture
def suggestion_store(rate_store: InMemoryRateStore) -> InMemorySuggestionStore:
    return InMemorySuggestionStore(rate_store)


@pytest.fixture
def competitor_store() -> InMemoryCompetitorRateStore:
    return InMemoryCompetitorRateStore()


@pytest.fixture
def pipeline_ctx(
    settings: Settings,
    rate_store: InMemoryRateStore,
    suggestion_store: InMemorySuggestionStore,
    competitor_store: InMemoryCompetitorRateStore,
    market_observations: List[CompetitorObservation],
) -> PipelineContext:
    """PipelineContext over in-memory stores and a stub collector."""
    dlx = make_observations([240.0, 260.0, 270.0], room_type_code="DLX")
    return PipelineContext(
        settings=settings,
        rate_store=rate_store,
        suggestion_store=suggestion_store,
        competitor_store=competitor_store,
        collector=StubCollector(market_observations + dlx),
        logger=logging.getLogger("rate_intelligence.tests"),
    )


@pytest.fixture
def mock_db_pool() -> AsyncMock:
    """
    Create a mock asyncpg connection pool.

    pool.acquire() returns an async context manager yielding a mock
    connection with execute / executemany / fetch / fetchrow / fetchval,
    and conn.transaction() returns an async context manager.
    """
    pool = AsyncMock()

    conn = AsyncMock()
    conn.execute = AsyncMock(return_value="UPDATE 0")
    conn.executemany = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=None)

    transaction_context = AsyncMock()
    transaction_context.__aenter__ = AsyncMock(return_value=None)
    transaction_context.__aexit__ = AsyncMock(return_value=None)
    conn.transaction = Mock(return_value=transaction_context)

    acquire_context = AsyncMock()
    acquire_context.__aenter__ = AsyncMock(return_value=conn)
    acquire_context.__aexit__ = AsyncMock(return_value=None)
    pool.acquire = Mock(return_value=acquire_context)

    pool.close = AsyncMock(return_value=None)

    return pool


def suggestion_row(
    suggestion_id: str = "sug_001",
    is_applied: bool = False,
    applied_by: Optional[str] = None,
) -> dict:
    """A row shaped like the ai_suggestion RETURNING column list."""
    return {
        "id": suggestion_id,
        "property_id": "prop_001",
        "room_type_id": "rt_std",
        "rate_plan_id": "rp_bar",
        "date": STAY_DATE,
        "current_rate": 150.0,
        "suggested_rate": 168.0,
        "confidence": 75,
        "reasoning": "Consider increasing rate by 12%.",
        "factors": '{"competitorAverage": 165.0, "marketTrend": "up", '
                   '"demandLevel": "medium", "occupancyForecast": 88.0}',
        "is_applied": is_applied,
        "applied_at": datetime(2026, 6, 25, 9, 0) if is_applied else None,
        "applied_by": applied_by,
        "created_at": datetime(2026, 6, 24, 9, 0),
    }
