"""
FastAPI application factory for the Match Centre API.

Creates the app with:
- REST routes (day view, match detail, standings)
- Middleware stack
- Health check endpoint
- Lifespan management (feed client startup/shutdown)
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from shared.config import get_settings
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server

from api.dependencies import init_dependencies, reset_dependencies
from api.middleware import setup_middleware
from api.routes.matches import router as matches_router
from api.routes.standings import router as standings_router
from ingest.providers.fifa import FIFAFeedProvider

logger = get_logger(__name__)

SERVICE_NAME = "match-centre"


@asynccontextmanager
async def _noop_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """No-op lifespan for testing with an injected feed."""
    yield


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start the shared feed client on startup and close it on shutdown."""
    settings = get_settings()
    setup_logging("api")
    start_metrics_server()

    feed = FIFAFeedProvider(settings=settings)
    await feed.start()
    init_dependencies(feed)
    logger.info("api_started", environment=settings.environment.value)

    try:
        yield
    finally:
        reset_dependencies()
        await feed.close()
        logger.info("api_stopped")


def create_app(*, use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application. Set use_lifespan=False for testing."""
    app = FastAPI(
        title="Match Centre API",
        description="Football match feed reconciliation and views",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else _noop_lifespan,
    )

    setup_middleware(app)
    app.include_router(matches_router)
    app.include_router(standings_router)

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": SERVICE_NAME}

    return app
