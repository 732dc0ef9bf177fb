"""Game domain model.

Games are seeded out of band, so stored records are heterogeneous: the
``category`` field may be a single label or a list, and optional fields may
be absent or empty strings. All of that is normalized here, once, when a
record is loaded from the store.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from freegames.models.common import normalize_username

UNCATEGORIZED = "Uncategorized"


def _coerce_id(value: Any) -> Any:
    if value is None:
        return None
    return str(value)


class Game(BaseModel):
    """A giveaway game stored in the games collection."""

    model_config = {"populate_by_name": True}

    id: Optional[str] = Field(default=None, alias="_id")
    name: str
    category: list[str] = Field(default_factory=list)
    claimed: bool = False
    claimed_by: Optional[str] = Field(default=None, alias="claimedBy")
    gift_link: Optional[str] = Field(default=None, alias="giftLink")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    steam_link: Optional[str] = Field(default=None, alias="steamLink")

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, value: Any) -> Any:
        return _coerce_id(value)

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, value: Any) -> list[str]:
        """Accept a scalar label, a list of labels, or nothing."""
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        elif isinstance(value, dict):
            value = list(value.values())
        return [str(label).strip() for label in value if str(label).strip()]

    @field_validator("claimed", mode="before")
    @classmethod
    def validate_claimed(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("claimed_by", "image_url", "steam_link", "gift_link", mode="before")
    @classmethod
    def blank_as_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def is_claimed_by(self, username: str) -> bool:
        """Case-insensitive check of the stored claimant."""
        if not self.claimed:
            return False
        return normalize_username(self.claimed_by) == normalize_username(username)

    def has_category(self, category: str) -> bool:
        wanted = category.strip().lower()
        return any(label.lower() == wanted for label in self.labels)

    @property
    def labels(self) -> list[str]:
        """Category labels, with uncategorized games grouped together."""
        return self.category or [UNCATEGORIZED]

    def to_mongo_dict(self) -> dict:
        """Convert model to a MongoDB-insertable dict, dropping unset optionals.

        A None id is dropped too, so MongoDB generates one.
        """
        return self.model_dump(by_alias=True, mode="python", exclude_none=True)


class GameResponse(BaseModel):
    """Public view of a game. Never carries the gift link."""

    model_config = {"populate_by_name": True}

    id: str
    name: str
    category: list[str]
    claimed: bool
    claimed_by: Optional[str] = Field(default=None, alias="claimedBy")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    steam_link: Optional[str] = Field(default=None, alias="steamLink")

    @classmethod
    def from_game(cls, game: Game) -> "GameResponse":
        return cls(
            id=game.id,
            name=game.name,
            category=game.category,
            claimed=game.claimed,
            claimed_by=game.claimed_by,
            image_url=game.image_url,
            steam_link=game.steam_link,
        )
