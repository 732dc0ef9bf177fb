"""MongoDB connection management using the Motor async driver.

Includes connection lifecycle and index management for the ``games`` and
``users`` collections.
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING

from freegames.config import settings

logger = logging.getLogger("freegames.dal.database")

# Global database client and database instances
_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None


async def connect_to_mongo() -> None:
    """Establish connection to MongoDB.

    Called during FastAPI application startup.

    Raises:
        RuntimeError: If MONGO_URL is not configured.
    """
    global _client, _database

    if not settings.MONGO_URL:
        raise RuntimeError("MONGO_URL is not configured")

    _client = AsyncIOMotorClient(
        settings.MONGO_URL,
        serverSelectionTimeoutMS=5000  # 5 second timeout
    )
    _database = _client[settings.DATABASE_NAME]

    # Verify connection by pinging the database
    await _client.admin.command("ping")
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)


async def close_mongo_connection() -> None:
    """Close MongoDB connection.

    Called during FastAPI application shutdown.
    """
    global _client, _database

    if _client:
        _client.close()
        logger.info("Closed MongoDB connection")
    _client = None
    _database = None


def get_database() -> AsyncIOMotorDatabase:
    """Get the MongoDB database instance.

    Returns:
        AsyncIOMotorDatabase: The database instance.

    Raises:
        RuntimeError: If database is not initialized.
    """
    if _database is None:
        raise RuntimeError(
            "Database not initialized. Call connect_to_mongo() first."
        )
    return _database


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the indexes the ledger and catalog queries rely on.

    Idempotent -- MongoDB silently ignores indexes that already exist.

    Args:
        db: The Motor database instance to create indexes on.
    """
    logger.info("Ensuring indexes for all collections...")

    # Exact lookup by normalized username; also rejects a second record
    # for the same name created by concurrent first redemptions.
    await db.users.create_index(
        [("username", ASCENDING)],
        unique=True,
        name="uq_username",
    )

    # Claim-status filter for the listing.
    await db.games.create_index(
        [("claimed", ASCENDING)],
        name="idx_claimed",
    )

    logger.info("All indexes ensured successfully.")
