"""
FastAPI router for the rate intelligence (AI insights) endpoints.

Endpoints:
- GET  /ai-insights/recommendations/{property_id}: generate and persist recommendations
- GET  /ai-insights/competitors/{property_id}: stored competitor observations
- GET  /ai-insights/market-analysis/{property_id}: market summary for a room type/date
- GET  /ai-insights/suggestions/{property_id}: persisted suggestions
- POST /ai-insights/suggestions/{suggestion_id}/apply: apply a suggestion once
- POST /ai-insights/competitors/{property_id}/refresh: background competitor refresh
- GET  /ai-insights/rate-shopper/test-connection: provider connectivity probe
- GET  /ai-insights/dashboard/{property_id}: combined dashboard payload

Error Mapping:
- Malformed dates or startDate after endDate -> 400
- NoCompetitorDataError / SuggestionNotFoundError -> 404
- SuggestionAlreadyAppliedError -> 409
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query

from rate_intelligence.core.dependencies import PipelineContextDep
from rate_intelligence.core.exceptions import (
    NoCompetitorDataError,
    SuggestionAlreadyAppliedError,
    SuggestionNotFoundError,
)
from rate_intelligence.models import (
    ApplySuggestionRequest,
    CompetitorObservation,
    InsightsDashboard,
    MarketAnalysis,
    ProviderConnectionStatus,
    RecommendationBatch,
    Suggestion,
)
from rate_intelligence.services import insights_pipeline

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai-insights", tags=["ai-insights"])


# =============================================================================
# Helper Functions
# =============================================================================


def _parse_date(value: str, name: str) -> date:
    """
    Parse a YYYY-MM-DD query parameter.

    Raises:
        HTTPException 400: If the value is not an ISO date.
    """
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {name}: {value}. Expected YYYY-MM-DD",
        )


def _parse_csv(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or None


# =============================================================================
# Recommendations
# =============================================================================


@router.get("/recommendations/{property_id}", response_model=RecommendationBatch)
async def generate_recommendations(
    property_id: str,
    ctx: PipelineContextDep,
    start_date: str = Query(..., alias="startDate", description="Start date (YYYY-MM-DD)"),
    end_date: str = Query(..., alias="endDate", description="End date (YYYY-MM-DD)"),
    room_type_ids: Optional[str] = Query(None, alias="roomTypeIds", description="Comma-separated room type IDs"),
    rate_plan_ids: Optional[str] = Query(None, alias="ratePlanIds", description="Comma-separated rate plan IDs"),
) -> RecommendationBatch:
    """
    Generate rate recommendations for a property and persist them as suggestions.

    The response is a partial-failure report: records that failed are listed
    under failures and do not fail the request.
    """
    start = _parse_date(start_date, "startDate")
    end = _parse_date(end_date, "endDate")

    try:
        return await insights_pipeline.generate_recommendation_batch(
            ctx,
            property_id,
            start,
            end,
            room_type_ids=_parse_csv(room_type_ids),
            rate_plan_ids=_parse_csv(rate_plan_ids),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# =============================================================================
# Competitors and Market Analysis
# =============================================================================


@router.get("/competitors/{property_id}", response_model=List[CompetitorObservation])
async def get_competitor_insights(
    property_id: str,
    ctx: PipelineContextDep,
    target_date: str = Query(..., alias="date", description="Date (YYYY-MM-DD)"),
    room_type_code: Optional[str] = Query(None, alias="roomTypeCode"),
) -> List[CompetitorObservation]:
    return await insights_pipeline.get_competitor_insights(
        ctx,
        property_id,
        _parse_date(target_date, "date"),
        room_type_code,
    )


@router.get("/market-analysis/{property_id}", response_model=MarketAnalysis)
async def perform_market_analysis(
    property_id: str,
    ctx: PipelineContextDep,
    target_date: str = Query(..., alias="date", description="Date (YYYY-MM-DD)"),
    room_type_code: str = Query(..., alias="roomTypeCode"),
) -> MarketAnalysis:
    """
    Market summary for one room type and date.

    Raises:
        HTTPException 404: No competitor data stored for the property/date/room type.
    """
    try:
        return await insights_pipeline.perform_market_analysis(
            ctx,
            property_id,
            _parse_date(target_date, "date"),
            room_type_code,
        )
    except NoCompetitorDataError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/competitors/{property_id}/refresh", status_code=202)
async def refresh_competitor_data(
    property_id: str,
    ctx: PipelineContextDep,
    background_tasks: BackgroundTasks,
) -> Dict[str, Any]:
    """Schedule a competitor refresh; the outcome is only logged."""
    background_tasks.add_task(insights_pipeline.refresh_competitor_data, ctx, property_id)
    logger.info(f"Competitor data refresh initiated for property {property_id}")
    return {
        "success": True,
        "message": "Competitor data refresh initiated",
    }


@router.get("/rate-shopper/test-connection", response_model=ProviderConnectionStatus)
async def check_rate_shopper_connection(ctx: PipelineContextDep) -> ProviderConnectionStatus:
    return await insights_pipeline.test_rate_provider_connection(ctx)


# =============================================================================
# Suggestions
# =============================================================================


@router.get("/suggestions/{property_id}", response_model=List[Suggestion])
async def get_suggestions(
    property_id: str,
    ctx: PipelineContextDep,
    start_date: str = Query(..., alias="startDate"),
    end_date: str = Query(..., alias="endDate"),
    is_applied: Optional[bool] = Query(None, alias="isApplied"),
) -> List[Suggestion]:
    start = _parse_date(start_date, "startDate")
    end = _parse_date(end_date, "endDate")

    try:
        return await insights_pipeline.get_suggestions(
            ctx,
            property_id,
            start,
            end,
            is_applied=is_applied,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/suggestions/{suggestion_id}/apply", response_model=Suggestion)
async def apply_suggestion(
    suggestion_id: str,
    body: ApplySuggestionRequest,
    ctx: PipelineContextDep,
) -> Suggestion:
    """
    Apply a suggestion and write its rate to the rate inventory.

    Raises:
        HTTPException 404: Unknown suggestion id.
        HTTPException 409: Suggestion already applied.
    """
    try:
        return await insights_pipeline.apply_suggestion(ctx, suggestion_id, body.userId)
    except SuggestionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SuggestionAlreadyAppliedError as e:
        raise HTTPException(status_code=409, detail=str(e))


# =============================================================================
# Dashboard
# =============================================================================


@router.get("/dashboard/{property_id}", response_model=InsightsDashboard)
async def get_dashboard(
    property_id: str,
    ctx: PipelineContextDep,
    target_date: Optional[str] = Query(None, alias="date", description="Date (YYYY-MM-DD)"),
) -> InsightsDashboard:
    start = _parse_date(target_date, "date") if target_date else None
    return await insights_pipeline.get_dashboard(ctx, property_id, start)
