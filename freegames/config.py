"""Application configuration using Pydantic BaseSettings."""

import logging
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("freegames.config")

DEFAULT_REWARD_TITLE = "Redeem a Free Game!"
PLACEHOLDER_WEBHOOK_URL = "https://YOUR-SITE.example.com/api/twitch-webhook"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # Data store (MongoDB)
    MONGO_URL: Optional[str] = "mongodb://localhost:27017"
    DATABASE_NAME: str = "freegames"

    # Twitch application credentials (registration command)
    TWITCH_CLIENT_ID: Optional[str] = None
    TWITCH_CLIENT_SECRET: Optional[str] = None
    TWITCH_BROADCASTER_LOGIN: Optional[str] = None
    WEBHOOK_URL: str = PLACEHOLDER_WEBHOOK_URL

    # EventSub webhook
    TWITCH_WEBHOOK_SECRET: Optional[str] = None
    # Reject notifications that carry no signature header at all
    TWITCH_REQUIRE_SIGNATURE: bool = True
    REWARD_TITLE: str = DEFAULT_REWARD_TITLE

    # Catalog enrichment (Google Custom Search JSON API)
    GOOGLE_API_KEY: Optional[str] = None
    GOOGLE_SEARCH_ENGINE_ID: Optional[str] = None
    ENRICHMENT_INTERVAL_SECONDS: int = 15 * 60

    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Comma-separated list of allowed origins, or "*" for all origins
    CORS_ORIGINS: str = ""

    APP_VERSION: str = "1.0.0"

    @field_validator(
        "MONGO_URL",
        "TWITCH_WEBHOOK_SECRET",
        "TWITCH_CLIENT_ID",
        "TWITCH_CLIENT_SECRET",
        "TWITCH_BROADCASTER_LOGIN",
        "GOOGLE_API_KEY",
        "GOOGLE_SEARCH_ENGINE_ID",
        mode="before",
    )
    @classmethod
    def blank_as_none(cls, v):
        """Treat empty or whitespace-only values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("ENRICHMENT_INTERVAL_SECONDS")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v < 60:
            logger.warning(
                "ENRICHMENT_INTERVAL_SECONDS=%d is too small, using 60", v
            )
            return 60
        return v

    @property
    def enrichment_enabled(self) -> bool:
        """Whether the search API credentials needed for enrichment are set."""
        return bool(self.GOOGLE_API_KEY and self.GOOGLE_SEARCH_ENGINE_ID)

    @property
    def cors_origins(self) -> list[str]:
        """Return list of allowed CORS origins.

        If CORS_ORIGINS is empty, allows the local Vite dev server origins.
        """
        if self.CORS_ORIGINS:
            if self.CORS_ORIGINS == "*":
                return ["*"]
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

        return [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]


# Global settings instance
settings = Settings()
