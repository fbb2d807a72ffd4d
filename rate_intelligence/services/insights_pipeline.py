"""
Insights Pipeline Orchestrator.

Sequences the rate intelligence chain for one property:

    RateStore (current rates) + RateCollector (competitor observations)
        -> recommendation engine, one independent task per rate record
        -> SuggestionStore (persist as isApplied=False)

and exposes the market analysis, suggestion apply lifecycle, competitor
refresh and dashboard operations consumed by the API layer.

Every operation is a module-level coroutine taking a PipelineContext as its
first argument. The context is built once at process start (see main.py)
and carries the settings, storage capabilities, collector and logger.

Concurrency:
    Per-record synthesis runs under an asyncio.Semaphore sized by
    settings.recommendation_concurrency. Each task returns either a
    recommendation, a RecommendationFailure, or None (no comparable
    competitor), and the results are folded into a RecommendationBatch.
    A failing record never aborts the batch.

Apply Semantics:
    apply_suggestion relies on SuggestionStore.apply_and_mirror being a single
    conditional transition that commits with the rate write-back, so only one
    of two concurrent applies succeeds and a failed write-back leaves the
    suggestion unapplied. The losing caller gets SuggestionAlreadyAppliedError.

Usage:
    ctx = PipelineContext(settings, rate_store, suggestion_store,
                          competitor_store, RateCollector(settings))
    batch = await generate_recommendation_batch(ctx, "prop_001", start, end)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Union

from rate_intelligence.core.config import Settings
from rate_intelligence.core.exceptions import (
    NoCompetitorDataError,
    SuggestionAlreadyAppliedError,
    SuggestionNotFoundError,
)
from rate_intelligence.core.stores import (
    CompetitorRateStore,
    RateStore,
    SuggestionStore,
)
from rate_intelligence.models import (
    CompetitorObservation,
    CompetitorRefreshResult,
    CurrentRateRecord,
    DashboardSummary,
    InsightsDashboard,
    MarketAnalysis,
    ProviderConnectionStatus,
    RateRecommendation,
    RecommendationBatch,
    RecommendationFailure,
    Suggestion,
)
from rate_intelligence.services.gap_detection import GapPolicy
from rate_intelligence.services.market_commentary import generate_market_recommendations
from rate_intelligence.services.market_position import calculate_market_metrics
from rate_intelligence.services.rate_collector import RateCollector
from rate_intelligence.services.recommendation_engine import (
    ConfidencePolicy,
    synthesize,
)


# Position index used when the market range is flat or our rate is unknown
NEUTRAL_POSITION_INDEX: float = 50.0


# =============================================================================
# Context
# =============================================================================


@dataclass
class PipelineContext:
    """
    Capabilities handed to every pipeline operation.

    Attributes:
        settings: Application settings.
        rate_store: Current rate records and history.
        suggestion_store: Persisted suggestions.
        competitor_store: Stored competitor observations.
        collector: Live-or-synthetic competitor rate source.
        logger: Logger for lifecycle and failure messages.
    """
    settings: Settings
    rate_store: RateStore
    suggestion_store: SuggestionStore
    competitor_store: CompetitorRateStore
    collector: RateCollector
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    @property
    def gap_policy(self) -> GapPolicy:
        return GapPolicy.from_settings(self.settings)

    @property
    def confidence_policy(self) -> ConfidencePolicy:
        return ConfidencePolicy.from_settings(self.settings)


RecordOutcome = Union[RateRecommendation, RecommendationFailure, None]


def _validate_range(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise ValueError(
            f"startDate {start_date.isoformat()} is after endDate {end_date.isoformat()}"
        )


# =============================================================================
# Recommendations
# =============================================================================


async def _recommend_for_record(
    ctx: PipelineContext,
    record: CurrentRateRecord,
    observations: Sequence[CompetitorObservation],
    semaphore: asyncio.Semaphore,
    as_of: Optional[date],
) -> RecordOutcome:
    async with semaphore:
        try:
            historical = await ctx.rate_store.get_historical_performance(record)
            recommendation = synthesize(
                record,
                observations,
                historical,
                as_of=as_of,
                gap_policy=ctx.gap_policy,
                confidence_policy=ctx.confidence_policy,
            )
            if recommendation is None:
                ctx.logger.debug(
                    f"No competitor data for {record.roomTypeCode} on "
                    f"{record.date.isoformat()}, skipping rate {record.id}"
                )
                return None

            await ctx.suggestion_store.create(recommendation)
            return recommendation

        except Exception as e:
            ctx.logger.error(f"Failed to generate recommendation for rate {record.id}: {e}")
            return RecommendationFailure(rateRecordId=record.id, error=str(e))


async def generate_recommendation_batch(
    ctx: PipelineContext,
    property_id: str,
    start_date: date,
    end_date: date,
    room_type_ids: Optional[Sequence[str]] = None,
    rate_plan_ids: Optional[Sequence[str]] = None,
    as_of: Optional[date] = None,
) -> RecommendationBatch:
    """
    Generate and persist recommendations for every matching rate record.

    Args:
        ctx: Pipeline context.
        property_id: Property to analyze.
        start_date: First stay date, inclusive.
        end_date: Last stay date, inclusive.
        room_type_ids: Optional room type filter.
        rate_plan_ids: Optional rate plan filter.
        as_of: Reference date for confidence decay. Defaults to today.

    Returns:
        RecommendationBatch with every success, every per-record failure and
        the number of rate records considered.

    Raises:
        ValueError: If start_date is after end_date.
    """
    _validate_range(start_date, end_date)
    ctx.logger.info(f"Generating rate recommendations for property {property_id}")

    records = await ctx.rate_store.find_rate_records(
        property_id,
        start_date,
        end_date,
        room_type_ids=room_type_ids,
        rate_plan_ids=rate_plan_ids,
    )
    batch = RecommendationBatch(propertyId=property_id, requestedCount=len(records))
    if not records:
        ctx.logger.info(f"No rate records for property {property_id} in range")
        return batch

    room_type_codes = sorted({record.roomTypeCode for record in records})
    collection = await ctx.collector.collect(
        property_id,
        start_date,
        end_date,
        room_type_codes,
    )

    semaphore = asyncio.Semaphore(max(1, ctx.settings.recommendation_concurrency))
    outcomes = await asyncio.gather(*(
        _recommend_for_record(ctx, record, collection.observations, semaphore, as_of)
        for record in records
    ))

    for outcome in outcomes:
        if isinstance(outcome, RecommendationFailure):
            batch.failures.append(outcome)
        elif outcome is not None:
            batch.recommendations.append(outcome)

    ctx.logger.info(
        f"Generated {batch.generatedCount} of {batch.requestedCount} rate recommendations "
        f"for property {property_id} ({batch.failedCount} failed, source={collection.source.value})"
    )
    return batch


async def generate_recommendations(
    ctx: PipelineContext,
    property_id: str,
    start_date: date,
    end_date: date,
    room_type_ids: Optional[Sequence[str]] = None,
    rate_plan_ids: Optional[Sequence[str]] = None,
    as_of: Optional[date] = None,
) -> List[RateRecommendation]:
    """Successful recommendations only. See generate_recommendation_batch."""
    batch = await generate_recommendation_batch(
        ctx,
        property_id,
        start_date,
        end_date,
        room_type_ids=room_type_ids,
        rate_plan_ids=rate_plan_ids,
        as_of=as_of,
    )
    return batch.recommendations


# =============================================================================
# Market Analysis
# =============================================================================


def calculate_position_index(
    current_rate: Optional[float],
    market_min: float,
    market_max: float,
) -> float:
    """
    Where current_rate sits between the cheapest and dearest competitor.

    Returns NEUTRAL_POSITION_INDEX when the rate is unknown or the range is
    flat. Rates outside the competitor range are clamped to 0 or 100.
    """
    if current_rate is None or market_max <= market_min:
        return NEUTRAL_POSITION_INDEX

    index = (current_rate - market_min) / (market_max - market_min) * 100.0
    return max(0.0, min(100.0, index))


async def perform_market_analysis(
    ctx: PipelineContext,
    property_id: str,
    target_date: date,
    room_type_code: str,
) -> MarketAnalysis:
    """
    Summarize the stored competitor market for one room type and date.

    Raises:
        NoCompetitorDataError: If no observation is stored for the
            property, date and room type.
    """
    observations = await ctx.competitor_store.find_observations(
        property_id,
        target_date,
        room_type_code,
    )
    if not observations:
        raise NoCompetitorDataError(property_id, target_date, room_type_code)

    metrics = calculate_market_metrics(observations)
    current_rate = await ctx.rate_store.find_current_rate(
        property_id,
        target_date,
        room_type_code,
    )

    recommendations = generate_market_recommendations(
        current_rate,
        metrics.average,
        observations,
        policy=ctx.gap_policy,
        cluster_threshold=ctx.settings.cluster_threshold,
    )

    return MarketAnalysis(
        propertyId=property_id,
        roomTypeCode=room_type_code,
        date=target_date,
        marketAverage=metrics.average,
        marketMin=metrics.minimum,
        marketMax=metrics.maximum,
        positionIndex=calculate_position_index(current_rate, metrics.minimum, metrics.maximum),
        currentRate=current_rate,
        competitorCount=metrics.count,
        recommendations=recommendations,
    )


# =============================================================================
# Suggestions
# =============================================================================


async def get_suggestions(
    ctx: PipelineContext,
    property_id: str,
    start_date: date,
    end_date: date,
    is_applied: Optional[bool] = None,
) -> List[Suggestion]:
    _validate_range(start_date, end_date)
    return await ctx.suggestion_store.find_for_property(
        property_id,
        start_date,
        end_date,
        is_applied=is_applied,
    )


async def apply_suggestion(
    ctx: PipelineContext,
    suggestion_id: str,
    actor_id: str,
) -> Suggestion:
    """
    Apply a suggestion exactly once and mirror its rate into the rate records.

    The store commits the transition and the rate write-back together; when
    the write-back fails the suggestion stays unapplied and the error
    propagates, so the apply can be retried.

    Raises:
        SuggestionNotFoundError: Unknown suggestion id.
        SuggestionAlreadyAppliedError: The suggestion was already applied,
            including by a concurrent caller that won the transition.
    """
    result = await ctx.suggestion_store.apply_and_mirror(
        suggestion_id,
        actor_id,
        datetime.utcnow(),
    )

    if result is None:
        existing = await ctx.suggestion_store.find_by_id(suggestion_id)
        if existing is None:
            raise SuggestionNotFoundError(suggestion_id)
        raise SuggestionAlreadyAppliedError(suggestion_id, existing.appliedBy)

    applied, updated = result
    if updated == 0:
        ctx.logger.warning(
            f"Applied AI suggestion {suggestion_id} but no rate record matched "
            f"{applied.roomTypeId}/{applied.ratePlanId} on {applied.date.isoformat()}"
        )

    ctx.logger.info(f"Applied AI suggestion {suggestion_id} by user {actor_id}")
    return applied


# =============================================================================
# Competitor Data
# =============================================================================


async def get_competitor_insights(
    ctx: PipelineContext,
    property_id: str,
    target_date: date,
    room_type_code: Optional[str] = None,
) -> List[CompetitorObservation]:
    """Stored competitor observations for a date, cheapest first."""
    return await ctx.competitor_store.find_observations(
        property_id,
        target_date,
        room_type_code,
    )


async def refresh_competitor_data(
    ctx: PipelineContext,
    property_id: str,
    start_date: Optional[date] = None,
) -> CompetitorRefreshResult:
    """
    Collect and store competitor observations for the refresh window.

    Never raises: errors are logged and reported on the result.
    """
    start_date = start_date or date.today()
    end_date = start_date + timedelta(days=ctx.settings.refresh_window_days)
    result = CompetitorRefreshResult(
        propertyId=property_id,
        startDate=start_date,
        endDate=end_date,
    )

    ctx.logger.info(f"Refreshing competitor data for property {property_id}")
    try:
        collection = await ctx.collector.collect(property_id, start_date, end_date)
        result.source = collection.source
        result.observationsCollected = len(collection.observations)

        result.observationsStored = await ctx.competitor_store.save_observations(
            property_id,
            collection.observations,
        )
        result.success = True
    except Exception as e:
        ctx.logger.error(f"Failed to refresh competitor data for property {property_id}: {e}")
        result.error = str(e)
        return result

    ctx.logger.info(
        f"Competitor data refresh completed for property {property_id}: "
        f"{result.observationsStored} observations stored"
    )
    return result


async def test_rate_provider_connection(ctx: PipelineContext) -> ProviderConnectionStatus:
    return await ctx.collector.test_connection()


# =============================================================================
# Dashboard
# =============================================================================


async def get_dashboard(
    ctx: PipelineContext,
    property_id: str,
    target_date: Optional[date] = None,
) -> InsightsDashboard:
    """
    Recommendations, competitor insights and pending suggestions for the
    dashboard window starting at target_date (default today), fetched
    concurrently.
    """
    start_date = target_date or date.today()
    end_date = start_date + timedelta(days=ctx.settings.dashboard_window_days)

    batch, competitor_insights, pending = await asyncio.gather(
        generate_recommendation_batch(ctx, property_id, start_date, end_date),
        get_competitor_insights(ctx, property_id, start_date),
        get_suggestions(ctx, property_id, start_date, end_date, is_applied=False),
    )

    return InsightsDashboard(
        propertyId=property_id,
        recommendations=batch.recommendations,
        competitorInsights=competitor_insights,
        suggestions=pending,
        summary=DashboardSummary(
            recommendationCount=batch.generatedCount,
            competitorCount=len(competitor_insights),
            pendingSuggestions=len(pending),
            lastUpdated=datetime.utcnow(),
        ),
    )
