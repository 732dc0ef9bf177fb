"""Pydantic models for the giveaway service."""

from freegames.models.common import (
    CLAIM_MESSAGES,
    ClaimReason,
    CreditReason,
    GameFilter,
    MessageType,
    SubscriptionType,
    normalize_username,
)
from freegames.models.game import Game, GameResponse
from freegames.models.user import User, UserResponse
from freegames.models.results import ClaimResult, CodeDisclosure, CreditResult

__all__ = [
    # Enums and helpers
    "CLAIM_MESSAGES",
    "ClaimReason",
    "CreditReason",
    "GameFilter",
    "MessageType",
    "SubscriptionType",
    "normalize_username",
    # Records
    "Game",
    "GameResponse",
    "User",
    "UserResponse",
    # Outcomes
    "ClaimResult",
    "CodeDisclosure",
    "CreditResult",
]
