"""Outcome models for ledger and claim operations.

Business-rule rejections are values, not exceptions: callers inspect
``reason`` instead of catching errors.
"""

from typing import Optional

from pydantic import BaseModel

from freegames.models.common import CLAIM_MESSAGES, ClaimReason, CreditReason


class CreditResult(BaseModel):
    """Outcome of crediting a redemption ticket."""

    credited: bool
    tickets_available: Optional[int] = None
    reason: Optional[CreditReason] = None


class ClaimResult(BaseModel):
    """Outcome of a claim attempt, shaped for the UI.

    ``pinned_game_id`` is set on success so the client keeps the game
    visible whatever claim-status filter is active.
    """

    game_id: str
    claimed: bool
    reason: Optional[ClaimReason] = None
    error_message: Optional[str] = None
    claimed_by: Optional[str] = None
    tickets_available: Optional[int] = None
    pinned_game_id: Optional[str] = None

    @classmethod
    def rejected(cls, game_id: str, reason: ClaimReason) -> "ClaimResult":
        return cls(
            game_id=game_id,
            claimed=False,
            reason=reason,
            error_message=CLAIM_MESSAGES[reason],
        )


class CodeDisclosure(BaseModel):
    """Result of asking for a claimed game's code."""

    game_id: str
    verified: bool
    gift_link: Optional[str] = None
    hint: Optional[str] = None
