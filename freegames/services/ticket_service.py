"""Ticket ledger business logic.

Credits one ticket per user per calendar year when a viewer redeems the
configured channel-point reward. Users are created lazily on their first
redemption.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from pymongo.errors import DuplicateKeyError

from freegames.dal.users_dal import UserDAL
from freegames.models.common import CreditReason, normalize_username
from freegames.models.results import CreditResult
from freegames.models.user import User

logger = logging.getLogger("freegames.services.ticket")

# Attempts at allocating a fresh user key when concurrent inserts collide
_CREATE_ATTEMPTS = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TicketService:
    """Service layer for crediting redemption tickets."""

    def __init__(
        self,
        user_dal: UserDAL,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._user_dal = user_dal
        self._clock = clock or _utcnow

    async def get_or_create_user(self, username: str) -> User:
        """Return the user for ``username``, creating an empty record if needed.

        Raises:
            ValueError: If the username is blank.
            RuntimeError: If no free key could be allocated.
        """
        normalized = normalize_username(username)
        if not normalized:
            raise ValueError("username must not be empty")

        for _ in range(_CREATE_ATTEMPTS):
            user = await self._user_dal.get_by_username(normalized)
            if user is not None:
                return user
            new_user = User.new(normalized, await self._user_dal.next_id())
            try:
                return await self._user_dal.create(new_user)
            except DuplicateKeyError:
                # Another request created this user, or took the key first
                logger.info("Concurrent create for user %s, retrying", normalized)

        raise RuntimeError(f"Could not create user record for {normalized}")

    async def add_ticket(self, username: str) -> CreditResult:
        """Credit one ticket to ``username`` for the current calendar year.

        Args:
            username: The redeeming viewer's login, any case.

        Returns:
            A CreditResult with the new balance, or with reason
            ``already_redeemed_this_year``.
        """
        user = await self.get_or_create_user(username)
        year = self._clock().year

        if user.last_redemption_year == year:
            logger.info("User %s already redeemed this year", user.username)
            return CreditResult(
                credited=False,
                tickets_available=user.tickets_available,
                reason=CreditReason.ALREADY_REDEEMED_THIS_YEAR,
            )

        updated = await self._user_dal.credit_ticket(user.id, year)
        if updated is None:
            # A concurrent delivery credited this year between read and write
            logger.info(
                "User %s redeemed concurrently, not crediting again", user.username
            )
            return CreditResult(
                credited=False,
                reason=CreditReason.ALREADY_REDEEMED_THIS_YEAR,
            )

        logger.info(
            "Added ticket to user %s. New balance: %d",
            updated.username,
            updated.tickets_available,
        )
        return CreditResult(
            credited=True,
            tickets_available=updated.tickets_available,
        )
