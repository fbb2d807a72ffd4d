"""
API package initialization.

Router modules:
- insights: rate recommendations, competitor insights, market analysis,
  suggestion lifecycle and dashboard under /ai-insights
"""

from fastapi import APIRouter

from rate_intelligence.api.insights import router as insights_router

api_router = APIRouter()

# insights router has its own /ai-insights prefix
api_router.include_router(insights_router)

__all__ = ['api_router', 'insights_router']
