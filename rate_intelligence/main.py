"""
FastAPI application entry point for the Rate Intelligence API.

Builds the process-wide PipelineContext in the lifespan: settings, asyncpg
pool, PostgreSQL stores and the rate collector. The context is stored on
app.state and injected into handlers through PipelineContextDep.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rate_intelligence import __version__
from rate_intelligence.api.insights import router as insights_router
from rate_intelligence.core.config import get_settings
from rate_intelligence.core.database import (
    PostgresCompetitorRateStore,
    PostgresRateStore,
    PostgresSuggestionStore,
    close_db,
    ensure_schema,
    init_db,
)
from rate_intelligence.services.insights_pipeline import PipelineContext
from rate_intelligence.services.rate_collector import RateCollector

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Create the database connection pool and ensure the schema
        - Build the PipelineContext and store it on app.state

    On shutdown:
        - Close database connection pool
    """
    logger.info("Rate Intelligence API starting")
    settings = get_settings()
    pool = None

    try:
        pool = await init_db(settings)
        await ensure_schema(pool)
        logger.info("Database connection pool initialized")
    except Exception as e:
        # Endpoints answer 503 until a pool is available
        logger.error(f"Failed to initialize database: {e}")
        pool = None

    if pool is not None:
        app.state.pipeline = PipelineContext(
            settings=settings,
            rate_store=PostgresRateStore(pool),
            suggestion_store=PostgresSuggestionStore(pool),
            competitor_store=PostgresCompetitorRateStore(pool),
            collector=RateCollector(settings),
            logger=logging.getLogger("rate_intelligence.pipeline"),
        )

    yield

    logger.info("Rate Intelligence API shutting down")
    app.state.pipeline = None
    try:
        await close_db(pool)
        logger.info("Database connection pool closed")
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


app = FastAPI(
    title="Rate Intelligence API",
    version=__version__,
    description=(
        "Competitive rate intelligence for hotel properties. Collects "
        "competitor rates, analyzes market position and produces "
        "confidence-scored rate recommendations."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(insights_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring and load balancer probes."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {
        "name": "Rate Intelligence API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rate_intelligence.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
