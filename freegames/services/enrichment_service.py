"""Catalog enrichment: cover images and storefront links for games.

Looks up missing metadata with the Google Custom Search JSON API and
writes back only the fields that are still empty. Lookups are best
effort; any failure simply means the game stays un-enriched until the
next pass.
"""

import logging
import re
from typing import Any, Optional

import httpx

from freegames.dal.games_dal import GameDAL
from freegames.models.game import Game

logger = logging.getLogger("freegames.services.enrichment")

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"

_IMAGE_LINK = re.compile(r"\.(jpg|jpeg|png)$", re.IGNORECASE)


class SearchClient:
    """Thin async client for the Google Custom Search JSON API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str,
        engine_id: str,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._engine_id = engine_id

    async def _search(self, query: str, **params: Any) -> list[dict]:
        response = await self._http.get(
            GOOGLE_SEARCH_URL,
            params={"q": query, "cx": self._engine_id, "key": self._api_key, **params},
        )
        response.raise_for_status()
        return response.json().get("items") or []

    async def find_cover_image(self, game_name: str) -> Optional[str]:
        """First image result whose link is a jpg/jpeg/png, or None."""
        try:
            items = await self._search(
                f"{game_name} game cover", searchType="image", num=10
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Image search failed for %r: %s", game_name, e)
            return None

        for item in items:
            link = item.get("link") or ""
            if _IMAGE_LINK.search(link):
                return link
        logger.info("No suitable image formats were found for %r", game_name)
        return None

    async def find_store_link(self, game_name: str) -> Optional[str]:
        """Top web result for the game's Steam store page, or None."""
        try:
            items = await self._search(f"{game_name} steam store", num=1)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Store link search failed for %r: %s", game_name, e)
            return None

        if not items:
            return None
        return items[0].get("link") or None


class EnrichmentService:
    """Fills in ``imageUrl`` and ``steamLink`` on games that lack them."""

    def __init__(self, game_dal: GameDAL, search: SearchClient) -> None:
        self._game_dal = game_dal
        self._search = search

    async def enrich_game(self, game: Game) -> dict[str, str]:
        """Look up and store whatever metadata ``game`` is missing.

        Returns:
            The fields that were written, keyed by their stored name.
        """
        written: dict[str, str] = {}

        if not game.image_url:
            image_url = await self._search.find_cover_image(game.name)
            if image_url and await self._game_dal.fill_missing(game.id, "imageUrl", image_url):
                written["imageUrl"] = image_url

        if not game.steam_link:
            steam_link = await self._search.find_store_link(game.name)
            if steam_link and await self._game_dal.fill_missing(game.id, "steamLink", steam_link):
                written["steamLink"] = steam_link

        if written:
            logger.info("Enriched game %s (%s): %s", game.id, game.name, sorted(written))
        return written

    async def enrich_missing(self) -> int:
        """Run one enrichment pass over every game missing metadata.

        Returns:
            Number of games that received at least one new field.
        """
        games = await self._game_dal.list_missing_metadata()
        enriched = 0
        for game in games:
            try:
                if await self.enrich_game(game):
                    enriched += 1
            except Exception as e:
                logger.error("Failed to enrich game %s: %s", game.id, str(e))

        if enriched:
            logger.info("Enriched %d game(s)", enriched)
        return enriched
