"""User ledger route handlers.

Endpoints:
    GET /api/users/{username} -- Ticket balance and claimed games.
"""

import logging

from fastapi import APIRouter, Path

from freegames.dal.database import get_database
from freegames.dal.games_dal import GameDAL
from freegames.dal.users_dal import UserDAL
from freegames.models.user import UserResponse
from freegames.services.catalog_service import CatalogService

logger = logging.getLogger("freegames.routes.users")

router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "/{username}",
    response_model=UserResponse,
    summary="Get a user's tickets and claimed games",
)
async def get_user(username: str = Path(...)) -> UserResponse:
    """Look up a user by username, ignoring case."""
    db = get_database()
    service = CatalogService(GameDAL(db), UserDAL(db))
    user = await service.get_user(username)
    return UserResponse(
        username=user.username,
        tickets_available=user.tickets_available,
        games_claimed=user.games_claimed,
        last_redemption_year=user.last_redemption_year,
    )
