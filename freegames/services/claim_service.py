"""Claim business logic: spend a ticket to claim a game.

A claim runs three conditional writes in order: debit a ticket (only while
the balance is positive), mark the game claimed (only while it is still
unclaimed), then record the game name on the user. If the game write loses
a race the ticket is refunded, so a ticket is never spent without a game.
"""

import logging

from fastapi import HTTPException, status

from freegames.dal.games_dal import GameDAL
from freegames.dal.users_dal import UserDAL
from freegames.models.common import ClaimReason, normalize_username
from freegames.models.game import Game
from freegames.models.results import ClaimResult

logger = logging.getLogger("freegames.services.claim")


class ClaimService:
    """Service layer for claiming games with tickets."""

    def __init__(self, game_dal: GameDAL, user_dal: UserDAL) -> None:
        self._game_dal = game_dal
        self._user_dal = user_dal

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_game_or_404(self, game_id: str) -> Game:
        """Fetch a game by ID, raising 404 if not found."""
        game = await self._game_dal.get_by_id(game_id)
        if game is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Game not found",
            )
        return game

    @staticmethod
    def _already_claimed(game: Game, username: str) -> ClaimResult:
        if game.is_claimed_by(username):
            reason = ClaimReason.ALREADY_CLAIMED_BY_YOU
        else:
            reason = ClaimReason.CLAIMED_BY_ANOTHER_USER
        result = ClaimResult.rejected(game.id, reason)
        result.claimed_by = game.claimed_by
        return result

    # ------------------------------------------------------------------
    # Claim
    # ------------------------------------------------------------------

    async def claim(self, game_id: str, username: str) -> ClaimResult:
        """Claim ``game_id`` for ``username`` using one ticket.

        Args:
            game_id: Key of the game to claim.
            username: Username as typed by the viewer, any case.

        Returns:
            A ClaimResult. Business-rule rejections are reported through
            ``reason`` and ``error_message``; unexpected failures are
            logged and reported as ``unexpected_error``.

        Raises:
            HTTPException 404: Unknown game.
        """
        if not username or not username.strip():
            return ClaimResult.rejected(game_id, ClaimReason.INVALID_USERNAME)

        game = await self._get_game_or_404(game_id)
        normalized = normalize_username(username)

        try:
            return await self._claim(game, normalized)
        except Exception:
            logger.exception("Unexpected error claiming game %s for %s", game_id, normalized)
            return ClaimResult.rejected(game.id, ClaimReason.UNEXPECTED_ERROR)

    async def _claim(self, game: Game, username: str) -> ClaimResult:
        if game.claimed:
            return self._already_claimed(game, username)

        user = await self._user_dal.get_by_username(username)
        if user is None or user.tickets_available <= 0:
            logger.info("User %s has no tickets for game %s", username, game.id)
            return ClaimResult.rejected(game.id, ClaimReason.NOT_ENOUGH_TICKETS)

        debited = await self._user_dal.debit_ticket(user.id)
        if debited is None:
            logger.info("User %s spent their last ticket concurrently", username)
            return ClaimResult.rejected(game.id, ClaimReason.NOT_ENOUGH_TICKETS)

        try:
            claimed_game = await self._game_dal.mark_claimed(game.id, username)
        except Exception:
            await self._user_dal.refund_ticket(user.id)
            raise

        if claimed_game is None:
            await self._user_dal.refund_ticket(user.id)
            logger.warning(
                "Game %s was claimed concurrently; refunded ticket to %s",
                game.id,
                username,
            )
            current = await self._get_game_or_404(game.id)
            return self._already_claimed(current, username)

        # Game and ticket writes are committed at this point
        try:
            await self._user_dal.append_claimed_game(user.id, game.name)
        except Exception:
            logger.exception(
                "Game %s claimed by %s but not added to their claimed games",
                game.id,
                username,
            )
        logger.info(
            "User %s claimed game %s (%s), %d ticket(s) left",
            username,
            game.id,
            game.name,
            debited.tickets_available,
        )
        return ClaimResult(
            game_id=game.id,
            claimed=True,
            claimed_by=username,
            tickets_available=debited.tickets_available,
            pinned_game_id=game.id,
        )
