"""Game catalog route handlers.

Endpoints:
    GET  /api/games                  -- List games with filters.
    POST /api/games/{game_id}/claim  -- Spend a ticket to claim a game.
    POST /api/games/{game_id}/code   -- Reveal a claimed game's code.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Path, Query, Request, Response, status
from pydantic import BaseModel

from freegames.dal.database import get_database
from freegames.dal.games_dal import GameDAL
from freegames.dal.users_dal import UserDAL
from freegames.middleware.rate_limit import rate_limit
from freegames.models.common import ClaimReason, GameFilter
from freegames.models.results import ClaimResult, CodeDisclosure
from freegames.services.catalog_service import CatalogPage, CatalogService
from freegames.services.claim_service import ClaimService

logger = logging.getLogger("freegames.routes.games")

router = APIRouter(prefix="/games", tags=["Games"])

_CLAIM_STATUS = {
    None: status.HTTP_200_OK,
    ClaimReason.INVALID_USERNAME: status.HTTP_400_BAD_REQUEST,
    ClaimReason.ALREADY_CLAIMED_BY_YOU: status.HTTP_409_CONFLICT,
    ClaimReason.CLAIMED_BY_ANOTHER_USER: status.HTTP_409_CONFLICT,
    ClaimReason.NOT_ENOUGH_TICKETS: status.HTTP_409_CONFLICT,
    ClaimReason.UNEXPECTED_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_catalog_service() -> CatalogService:
    db = get_database()
    return CatalogService(GameDAL(db), UserDAL(db))


def _get_claim_service() -> ClaimService:
    db = get_database()
    return ClaimService(GameDAL(db), UserDAL(db))


class UsernameBody(BaseModel):
    """Request body carrying the username typed by the viewer."""
    username: str = ""


# ---------------------------------------------------------------------------
# GET /api/games -- List games
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=CatalogPage,
    summary="List games",
)
async def list_games(
    status_filter: GameFilter = Query(GameFilter.ALL, alias="status"),
    category: Optional[str] = Query(None),
    search: str = Query(""),
    pinned: list[str] = Query([]),
) -> CatalogPage:
    """List games filtered by claim status, category and name.

    Games listed in ``pinned`` are returned whatever the claim-status
    filter, so a freshly claimed game stays on screen.
    """
    service = _get_catalog_service()
    return await service.list_games(
        status_filter=status_filter,
        category=category,
        search=search,
        pinned=pinned,
    )


# ---------------------------------------------------------------------------
# POST /api/games/{game_id}/claim -- Claim a game
# ---------------------------------------------------------------------------

@router.post(
    "/{game_id}/claim",
    response_model=ClaimResult,
    summary="Claim a game with a ticket",
    responses={
        400: {"model": ClaimResult, "description": "Invalid username"},
        404: {"description": "Game not found"},
        409: {"model": ClaimResult, "description": "Claim rejected"},
    },
)
@rate_limit("claim")
async def claim_game(
    request: Request,
    response: Response,
    body: UsernameBody,
    game_id: str = Path(...),
) -> ClaimResult:
    """Spend one of the user's tickets to claim the game."""
    service = _get_claim_service()
    result = await service.claim(game_id=game_id, username=body.username)
    response.status_code = _CLAIM_STATUS[result.reason]
    return result


# ---------------------------------------------------------------------------
# POST /api/games/{game_id}/code -- Reveal the gift code
# ---------------------------------------------------------------------------

@router.post(
    "/{game_id}/code",
    response_model=CodeDisclosure,
    summary="Reveal a claimed game's code to its claimant",
)
@rate_limit("code_lookup")
async def reveal_code(
    request: Request,
    body: UsernameBody,
    game_id: str = Path(...),
) -> CodeDisclosure:
    """Return the gift link if ``username`` matches the claimant, else a hint."""
    service = _get_catalog_service()
    return await service.disclose_code(game_id=game_id, username=body.username)
