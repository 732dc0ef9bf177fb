"""
Free Games giveaway FastAPI application entry point.

Configures FastAPI, sets up middleware, registers routes, and manages the
MongoDB connection and the catalog enrichment task across the application
lifespan.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from freegames.config import settings
from freegames.dal.database import (
    close_mongo_connection,
    connect_to_mongo,
    ensure_indexes,
    get_database,
)
from freegames.routes.games import router as games_router
from freegames.routes.health import router as health_router
from freegames.routes.twitch_webhook import router as webhook_router
from freegames.routes.users import router as users_router
from freegames.tasks import start_enrichment, stop_enrichment

logger = logging.getLogger("freegames.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.
    Handles startup and shutdown of the MongoDB connection and background tasks.
    """
    try:
        await connect_to_mongo()
        await ensure_indexes(get_database())
        logger.info("Free Games v%s started with database connection", settings.APP_VERSION)

        start_enrichment()
    except Exception as e:
        # Start anyway so health checks can report the degraded state
        logger.warning(
            "Failed to connect to MongoDB during startup: %s. "
            "Application will start but database operations will fail until connection is established.",
            str(e)
        )

    yield

    stop_enrichment()
    await close_mongo_connection()
    logger.info("Free Games shutdown complete")


app = FastAPI(
    title="Free Games Giveaway API",
    description="Claim free games with Twitch channel-point tickets",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    max_age=600,  # Cache preflight requests for 10 minutes
)

app.include_router(health_router)  # Health endpoint at root level
app.include_router(health_router, prefix="/api")
app.include_router(webhook_router, prefix="/api")
app.include_router(games_router, prefix="/api")
app.include_router(users_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Free Games Giveaway API",
        "version": settings.APP_VERSION,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "freegames.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
