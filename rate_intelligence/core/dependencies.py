"""
FastAPI dependency injection for the rate intelligence API.

The PipelineContext is built once in the application lifespan and stored on
app.state. Endpoint handlers receive it through PipelineContextDep instead
of reaching for module-level singletons, which also lets tests install a
context backed by in-memory stores.

Usage:
    @router.get("/suggestions/{property_id}")
    async def list_suggestions(property_id: str, ctx: PipelineContextDep):
        ...
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from rate_intelligence.services.insights_pipeline import PipelineContext


# =============================================================================
# Pipeline Context Dependency
# =============================================================================

def get_pipeline_context(request: Request) -> PipelineContext:
    """
    Return the PipelineContext installed on app.state.

    Raises:
        HTTPException: 503 when the context is missing, which happens when
            the database pool could not be created at startup.
    """
    ctx = getattr(request.app.state, "pipeline", None)
    if ctx is None:
        raise HTTPException(status_code=503, detail="Rate intelligence pipeline is not available")
    return ctx


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(ctx: PipelineContextDep)
PipelineContextDep = Annotated[PipelineContext, Depends(get_pipeline_context)]
