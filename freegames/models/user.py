"""User (ticket ledger) domain model.

One record per viewer, keyed by a small integer id stored as a string.
``username`` is lower-cased when the service creates a record; older
records may still carry mixed case and are matched case-insensitively.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from freegames.models.common import normalize_username


class User(BaseModel):
    """A viewer's ticket balance and claim history."""

    model_config = {"populate_by_name": True}

    id: Optional[str] = Field(default=None, alias="_id")
    username: str
    tickets_available: int = Field(default=0, alias="ticketsAvailable")
    games_claimed: list[str] = Field(default_factory=list, alias="gamesClaimed")
    last_redemption_year: Optional[int] = Field(
        default=None, alias="lastRedemptionYear"
    )

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, value: Any) -> Any:
        if value is None:
            return None
        return str(value)

    @field_validator("tickets_available", mode="before")
    @classmethod
    def validate_tickets(cls, value: Any) -> int:
        if value is None:
            return 0
        return max(0, int(value))

    @field_validator("games_claimed", mode="before")
    @classmethod
    def validate_games_claimed(cls, value: Any) -> list[str]:
        # Sparse arrays written by older clients come back as index-keyed maps
        if value is None:
            return []
        if isinstance(value, dict):
            return [value[k] for k in sorted(value, key=lambda k: int(k))]
        return list(value)

    @property
    def normalized_username(self) -> str:
        return normalize_username(self.username)

    @classmethod
    def new(cls, username: str, user_id: str) -> "User":
        """Build the empty record created on a user's first redemption."""
        return cls(
            id=user_id,
            username=normalize_username(username),
            tickets_available=0,
            games_claimed=[],
            last_redemption_year=None,
        )

    def to_mongo_dict(self) -> dict:
        """Full record for an insert, including the null redemption year."""
        data = self.model_dump(by_alias=True, mode="python")
        if data.get("_id") is None:
            data.pop("_id", None)
        return data


class UserResponse(BaseModel):
    """Response model for a user's ledger entry."""

    model_config = {"populate_by_name": True}

    username: str
    tickets_available: int = Field(alias="ticketsAvailable")
    games_claimed: list[str] = Field(alias="gamesClaimed")
    last_redemption_year: Optional[int] = Field(
        default=None, alias="lastRedemptionYear"
    )
