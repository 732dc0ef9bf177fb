"""Background task for catalog enrichment.

Periodically looks for games without a cover image or storefront link
and fills them in from the search API.
"""

import asyncio
import logging
from typing import Optional

import httpx

from freegames.config import settings
from freegames.dal.database import get_database
from freegames.dal.games_dal import GameDAL
from freegames.services.enrichment_service import EnrichmentService, SearchClient

logger = logging.getLogger("freegames.tasks.catalog_enrichment")

# Global task handle for cancellation
_enrichment_task: Optional[asyncio.Task] = None


async def run_enrichment_pass() -> int:
    """Enrich every game that is missing metadata.

    Returns:
        Number of games that were enriched.
    """
    if not settings.enrichment_enabled:
        logger.debug("Search API not configured, skipping enrichment")
        return 0

    db = get_database()
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as http:
        search = SearchClient(
            http,
            api_key=settings.GOOGLE_API_KEY,
            engine_id=settings.GOOGLE_SEARCH_ENGINE_ID,
        )
        service = EnrichmentService(GameDAL(db), search)
        return await service.enrich_missing()


async def _enrichment_loop():
    """Background loop that periodically runs an enrichment pass."""
    logger.info(
        "Catalog enrichment started (interval=%ds)",
        settings.ENRICHMENT_INTERVAL_SECONDS,
    )

    while True:
        try:
            await run_enrichment_pass()
            await asyncio.sleep(settings.ENRICHMENT_INTERVAL_SECONDS)
        except asyncio.CancelledError:
            logger.info("Catalog enrichment stopped")
            break
        except Exception as e:
            logger.error("Error in catalog enrichment: %s", str(e))
            # Continue running despite errors
            await asyncio.sleep(settings.ENRICHMENT_INTERVAL_SECONDS)


def start_enrichment():
    """Start the background enrichment task."""
    global _enrichment_task

    if not settings.enrichment_enabled:
        logger.info(
            "GOOGLE_API_KEY / GOOGLE_SEARCH_ENGINE_ID not set, catalog enrichment disabled"
        )
        return

    if _enrichment_task is not None and not _enrichment_task.done():
        logger.warning("Catalog enrichment already running")
        return

    _enrichment_task = asyncio.create_task(_enrichment_loop())
    logger.info("Catalog enrichment task created")


def stop_enrichment():
    """Stop the background enrichment task."""
    global _enrichment_task

    if _enrichment_task is not None and not _enrichment_task.done():
        _enrichment_task.cancel()
        logger.info("Catalog enrichment task cancelled")
    _enrichment_task = None
