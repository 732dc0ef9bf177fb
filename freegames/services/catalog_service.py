"""Catalog browsing: filtering, code disclosure and ledger lookups."""

import logging
from typing import Iterable, Optional

from fastapi import HTTPException, status
from pydantic import BaseModel

from freegames.dal.games_dal import GameDAL
from freegames.dal.users_dal import UserDAL
from freegames.models.common import GameFilter, normalize_username
from freegames.models.game import Game, GameResponse
from freegames.models.results import CodeDisclosure
from freegames.models.user import User

logger = logging.getLogger("freegames.services.catalog")

CODE_HINT = "Enter the username that claimed this game to see the code."


class CatalogPage(BaseModel):
    """A filtered view of the catalog plus the category facet."""

    games: list[GameResponse]
    categories: list[str]
    status: GameFilter
    category: Optional[str] = None
    search: str = ""
    total: int


def unique_categories(games: Iterable[Game]) -> list[str]:
    """Distinct category labels across ``games``, sorted case-insensitively."""
    seen: dict[str, str] = {}
    for game in games:
        for label in game.labels:
            seen.setdefault(label.lower(), label)
    return sorted(seen.values(), key=str.lower)


def matches(
    game: Game,
    status_filter: GameFilter,
    category: Optional[str],
    search: str,
    pinned: frozenset[str] = frozenset(),
) -> bool:
    """Apply the listing filters to one game.

    Pinned games skip the claim-status filter only; category and name
    search still apply.
    """
    if game.id not in pinned:
        if status_filter == GameFilter.CLAIMED and not game.claimed:
            return False
        if status_filter == GameFilter.UNCLAIMED and game.claimed:
            return False
    if category and category.strip().lower() != GameFilter.ALL:
        if not game.has_category(category):
            return False
    return search.strip().lower() in game.name.lower()


class CatalogService:
    """Read-side operations over games and users."""

    def __init__(self, game_dal: GameDAL, user_dal: UserDAL) -> None:
        self._game_dal = game_dal
        self._user_dal = user_dal

    async def list_games(
        self,
        status_filter: GameFilter = GameFilter.ALL,
        category: Optional[str] = None,
        search: str = "",
        pinned: Iterable[str] = (),
    ) -> CatalogPage:
        """Return the games matching the filters.

        Args:
            status_filter: all, claimed or unclaimed.
            category: Category label to match (case-insensitive), or
                None / "all" for every category.
            search: Case-insensitive substring of the game name.
            pinned: Game ids to keep regardless of ``status_filter``,
                typically the game just claimed.
        """
        games = await self._game_dal.list_all()
        pinned_ids = frozenset(pinned)
        visible = [
            GameResponse.from_game(game)
            for game in games
            if matches(game, status_filter, category, search, pinned_ids)
        ]
        return CatalogPage(
            games=visible,
            categories=unique_categories(games),
            status=status_filter,
            category=category,
            search=search,
            total=len(visible),
        )

    async def disclose_code(self, game_id: str, username: str) -> CodeDisclosure:
        """Reveal a claimed game's code to the user who claimed it.

        Raises:
            HTTPException 404: Unknown game.
        """
        game = await self._game_dal.get_by_id(game_id)
        if game is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Game not found",
            )

        if normalize_username(username) and game.is_claimed_by(username):
            return CodeDisclosure(game_id=game.id, verified=True, gift_link=game.gift_link)

        logger.debug("Code request for game %s did not match the claimant", game_id)
        return CodeDisclosure(game_id=game.id, verified=False, hint=CODE_HINT)

    async def get_user(self, username: str) -> User:
        """Look up a ledger entry by username, any case.

        Raises:
            HTTPException 404: Unknown user.
        """
        user = await self._user_dal.get_by_username(username)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user
