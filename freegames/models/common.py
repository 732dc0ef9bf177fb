"""Common enums and shared helpers for the giveaway models."""

from enum import StrEnum
from typing import Optional


def normalize_username(username: Optional[str]) -> str:
    """Return the case-insensitive identity key for a username."""
    if not username:
        return ""
    return username.strip().lower()


class MessageType(StrEnum):
    """Twitch EventSub webhook message types."""
    VERIFICATION = "webhook_callback_verification"
    NOTIFICATION = "notification"
    REVOCATION = "revocation"


class SubscriptionType(StrEnum):
    """EventSub subscription types this service handles."""
    REWARD_REDEMPTION_ADD = "channel.channel_points_custom_reward_redemption.add"


class CreditReason(StrEnum):
    """Why a ticket credit was not applied."""
    ALREADY_REDEEMED_THIS_YEAR = "already_redeemed_this_year"


class ClaimReason(StrEnum):
    """Why a claim attempt was rejected."""
    INVALID_USERNAME = "invalid_username"
    ALREADY_CLAIMED_BY_YOU = "already_claimed_by_you"
    CLAIMED_BY_ANOTHER_USER = "claimed_by_another_user"
    NOT_ENOUGH_TICKETS = "not_enough_tickets"
    UNEXPECTED_ERROR = "unexpected_error"


CLAIM_MESSAGES: dict[ClaimReason, str] = {
    ClaimReason.INVALID_USERNAME: "Please enter a valid username.",
    ClaimReason.ALREADY_CLAIMED_BY_YOU: "You have already claimed this game.",
    ClaimReason.CLAIMED_BY_ANOTHER_USER: (
        "This game has already been claimed by another user."
    ),
    ClaimReason.NOT_ENOUGH_TICKETS: (
        "You do not have enough tickets to claim this game."
    ),
    ClaimReason.UNEXPECTED_ERROR: "An unexpected error occurred. Please try again.",
}


class GameFilter(StrEnum):
    """Claim-status filter for the game listing."""
    ALL = "all"
    CLAIMED = "claimed"
    UNCLAIMED = "unclaimed"
