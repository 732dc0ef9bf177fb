"""
Pytest configuration and fixtures for the giveaway service tests.

Provides an in-memory MongoDB (mongomock-motor, no real MongoDB required),
DAL instances bound to it, and an async HTTP client for the FastAPI app.
"""

import os

# Set required env vars before any app imports
os.environ["TESTING"] = "1"
os.environ.setdefault("TWITCH_WEBHOOK_SECRET", "test-webhook-secret")
os.environ.setdefault("MONGO_URL", "mongodb://localhost:27017")
os.environ.setdefault("GOOGLE_API_KEY", "")
os.environ.setdefault("GOOGLE_SEARCH_ENGINE_ID", "")

import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient

from freegames.dal import database as db_module
from freegames.dal.games_dal import GameDAL
from freegames.dal.users_dal import UserDAL
from freegames.models.game import Game
from freegames.models.user import User


@pytest_asyncio.fixture
async def mock_db(monkeypatch):
    """In-memory mock MongoDB database, installed as the app's database.

    The database is ephemeral -- it disappears after each test.
    """
    client = AsyncMongoMockClient()
    db = client["freegames_test"]
    await db_module.ensure_indexes(db)
    monkeypatch.setattr(db_module, "_database", db)
    yield db
    client.close()


@pytest_asyncio.fixture
async def game_dal(mock_db) -> GameDAL:
    return GameDAL(mock_db)


@pytest_asyncio.fixture
async def user_dal(mock_db) -> UserDAL:
    return UserDAL(mock_db)


@pytest_asyncio.fixture
async def test_client(mock_db):
    """Async HTTP client wired to the FastAPI app with the mocked db."""
    from httpx import ASGITransport, AsyncClient
    from freegames.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def seeded_games(game_dal) -> dict[str, Game]:
    """Three unclaimed games across a few categories."""
    games = {}
    for key, name, category in [
        ("g1", "Hollow Knight", ["Metroidvania", "Indie"]),
        ("g2", "Celeste", "Platformer"),
        ("g3", "Portal 2", ["Puzzle"]),
    ]:
        games[key] = await game_dal.create(
            Game(
                _id=key,
                name=name,
                category=category,
                gift_link=f"https://store.example.com/gift/{key.upper()}-CODE",
            )
        )
    return games


@pytest_asyncio.fixture
async def make_user(user_dal):
    """Factory inserting user records directly, bypassing the ledger rules."""

    async def _make_user(
        username: str,
        tickets: int = 0,
        year: int | None = None,
    ) -> User:
        user = User(
            username=username,
            tickets_available=tickets,
            last_redemption_year=year,
        )
        return await user_dal.create(user)

    return _make_user
