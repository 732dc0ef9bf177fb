"""Game Data Access Layer -- MongoDB operations for the games collection.

Game keys are assigned by whoever seeded the catalog: either MongoDB
ObjectIds or plain string keys. Callers always pass and receive strings;
the DAL matches both representations.
"""

import logging
from typing import Any, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from freegames.models.game import Game

logger = logging.getLogger("freegames.dal.games")

COLLECTION = "games"


def _empty(field: str) -> list[dict[str, Any]]:
    # Missing, null and empty-string values all count as "not yet enriched"
    return [{field: None}, {field: ""}]


def _id_filter(game_id: str) -> dict[str, Any]:
    if ObjectId.is_valid(game_id):
        return {"_id": {"$in": [game_id, ObjectId(game_id)]}}
    return {"_id": game_id}


def _to_game(doc: dict) -> Game:
    doc["_id"] = str(doc["_id"])
    return Game(**doc)


class GameDAL:
    """Data access layer for the games collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, game: Game) -> Game:
        """Insert a game document and return it with its id populated.

        Used by catalog seeding; the service itself never creates games.
        """
        doc = game.to_mongo_dict()
        result = await self._collection.insert_one(doc)
        game.id = str(result.inserted_id)
        logger.info("Created game %s (%s)", game.id, game.name)
        return game

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, game_id: str) -> Optional[Game]:
        """Find a game by its key, or None if not found."""
        doc = await self._collection.find_one(_id_filter(game_id))
        if doc is None:
            return None
        return _to_game(doc)

    async def list_all(self) -> list[Game]:
        """List every game in insertion order."""
        cursor = self._collection.find({})
        games: list[Game] = []
        async for doc in cursor:
            games.append(_to_game(doc))
        return games

    async def list_missing_metadata(self) -> list[Game]:
        """List games that lack a cover image or a storefront link."""
        cursor = self._collection.find(
            {"$or": _empty("imageUrl") + _empty("steamLink")}
        )
        games: list[Game] = []
        async for doc in cursor:
            games.append(_to_game(doc))
        return games

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def fill_missing(self, game_id: str, field: str, value: str) -> bool:
        """Set a metadata field only if it is still empty.

        Returns:
            True if the field was written, False if it was already set.
        """
        query = _id_filter(game_id)
        query["$or"] = _empty(field)
        result = await self._collection.update_one(query, {"$set": {field: value}})
        return result.modified_count > 0

    async def mark_claimed(self, game_id: str, username: str) -> Optional[Game]:
        """Claim a game for ``username`` if nobody has claimed it yet.

        The unclaimed check and the write happen in one conditional update,
        so two concurrent claims cannot both succeed.

        Args:
            game_id: The game key.
            username: Normalized username of the claimant.

        Returns:
            The updated Game, or None if the game was already claimed
            (or does not exist).
        """
        query = _id_filter(game_id)
        query["claimed"] = {"$ne": True}
        doc = await self._collection.find_one_and_update(
            query,
            {"$set": {"claimed": True, "claimedBy": username}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        logger.info("Game %s claimed by %s", game_id, username)
        return _to_game(doc)
