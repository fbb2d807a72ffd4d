"""
Storage capabilities consumed by the insights pipeline.

The pipeline never talks to a database directly. It is handed objects that
satisfy these protocols through the PipelineContext: the PostgreSQL
implementations in rate_intelligence.core.database in production, and
in-memory fakes in the test suite.

Capabilities:
    RateStore: Current rate/inventory records and trailing history
    SuggestionStore: Persisted suggestions and their apply lifecycle,
        including the rate write-back that applying a suggestion performs
    CompetitorRateStore: Raw competitor observations captured by refreshes
"""

from datetime import date, datetime
from typing import List, Optional, Protocol, Sequence, Tuple

from rate_intelligence.models import (
    CompetitorObservation,
    CurrentRateRecord,
    HistoricalPerformance,
    RateRecommendation,
    Suggestion,
)


class RateStore(Protocol):
    """Read access to the property's current rate records and their history."""

    async def find_rate_records(
        self,
        property_id: str,
        start_date: date,
        end_date: date,
        room_type_ids: Optional[Sequence[str]] = None,
        rate_plan_ids: Optional[Sequence[str]] = None,
    ) -> List[CurrentRateRecord]:
        """Rate records for the property within [start_date, end_date], optionally filtered."""
        ...

    async def find_current_rate(
        self,
        property_id: str,
        target_date: date,
        room_type_code: str,
    ) -> Optional[float]:
        """Current rate for a room type on a date, or None when no record exists."""
        ...

    async def get_historical_performance(
        self,
        record: CurrentRateRecord,
    ) -> HistoricalPerformance:
        """Trailing occupancy/ADR signals for the record's room type."""
        ...


class SuggestionStore(Protocol):
    """Persistence for suggestions produced from recommendations."""

    async def create(self, recommendation: RateRecommendation) -> Suggestion:
        """Persist a recommendation as a new, unapplied suggestion."""
        ...

    async def find_by_id(self, suggestion_id: str) -> Optional[Suggestion]:
        ...

    async def find_for_property(
        self,
        property_id: str,
        start_date: date,
        end_date: date,
        is_applied: Optional[bool] = None,
    ) -> List[Suggestion]:
        ...

    async def apply_and_mirror(
        self,
        suggestion_id: str,
        actor_id: str,
        applied_at: datetime,
    ) -> Optional[Tuple[Suggestion, int]]:
        """
        Flip isApplied from False to True and write the suggested rate back.

        Both writes commit together or not at all. Must be atomic with
        respect to concurrent callers: returns the updated suggestion and
        the number of rate records overwritten only for the caller that
        performed the transition, None otherwise (unknown id or already
        applied).
        """
        ...


class CompetitorRateStore(Protocol):
    """Raw competitor observations captured by refreshes."""

    async def save_observations(
        self,
        property_id: str,
        observations: Sequence[CompetitorObservation],
    ) -> int:
        """Upsert observations keyed by competitor, room type and date. Returns rows written."""
        ...

    async def find_observations(
        self,
        property_id: str,
        target_date: date,
        room_type_code: Optional[str] = None,
    ) -> List[CompetitorObservation]:
        """Stored observations for a date, ordered by rate ascending."""
        ...
