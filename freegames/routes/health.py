"""Health check endpoint.

Always answers 200 so the service stays routable while MongoDB is
unreachable; the body says which parts are usable.
"""

import logging

from fastapi import APIRouter

from freegames.config import settings
from freegames.dal.database import get_database

logger = logging.getLogger("freegames.routes.health")
router = APIRouter(tags=["Health"])


async def _database_status() -> str:
    try:
        await get_database().command("ping")
    except Exception as e:
        logger.warning("Database health check failed: %s", str(e))
        return "down"
    return "ok"


@router.get("/health")
async def health_check():
    """Report store connectivity plus webhook and enrichment configuration.

    ``status`` is ``degraded`` when the store is down: claims and ticket
    credits cannot work then, while a missing search key only disables
    enrichment.
    """
    database = await _database_status()
    return {
        "status": "healthy" if database == "ok" else "degraded",
        "version": settings.APP_VERSION,
        "checks": {
            "database": database,
            "webhook": "ok" if settings.TWITCH_WEBHOOK_SECRET else "unconfigured",
            "enrichment": "ok" if settings.enrichment_enabled else "disabled",
        },
    }
