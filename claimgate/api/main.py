"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures logging, shared resources and lifespan events.
"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from claimgate.adapters.ratelimit.memory import InMemoryRateLimitStore
from claimgate.adapters.ratelimit.postgres import PostgresRateLimitStore, run_migrations
from claimgate.adapters.session.memory import InMemorySessionStore
from claimgate.api.v1 import router as v1_router
from claimgate.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Claim API v1 - Verify an order, confirm the game account, submit the claim",
    },
]


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates the shared outbound HTTP client (per-call timeout)
    - Creates the rate-limit store (in-memory, or PostgreSQL + migrations)
    - Creates the claim session registry
    - Closes client and connection pool on shutdown
    """
    settings = get_settings()
    configure_logging(settings)

    logger.info("Starting application...")

    http_client = httpx.Client(timeout=settings.http_timeout_seconds)

    pool = None
    if settings.rate_limit_backend == "postgres":
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            open=True,
        )
        logger.info("Running database migrations...")
        run_migrations(pool)
        rate_limit_store = PostgresRateLimitStore(pool)
        purged = rate_limit_store.purge_expired(time.time())
        logger.info("Purged %d expired rate-limit entries", purged)
    else:
        rate_limit_store = InMemoryRateLimitStore()

    # Store resources in app state for dependency injection
    app.state.http_client = http_client
    app.state.pool = pool
    app.state.rate_limit_store = rate_limit_store
    app.state.session_store = InMemorySessionStore(
        ttl_seconds=settings.session_ttl_seconds,
        max_sessions=settings.session_max_count,
    )

    logger.info("Application startup complete (rate limit backend: %s)", settings.rate_limit_backend)

    yield

    # Shutdown
    logger.info("Shutting down application...")
    http_client.close()
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


app = FastAPI(
    title="claimgate",
    description="Self-service claim API - verify a purchase and hand the item off to the right game account",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint.

    Returns 200 OK if the application is up. When the PostgreSQL
    rate-limit backend is active, the database is checked too.
    """
    pool = getattr(request.app.state, "pool", None)
    if pool is not None:
        with pool.connection() as conn:
            conn.execute("SELECT 1")

    return {"status": "healthy"}
