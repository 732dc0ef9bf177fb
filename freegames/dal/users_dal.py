"""User Data Access Layer -- MongoDB operations for the users collection.

User records are keyed by small integers (stored as strings) allocated
one above the current maximum. Ticket balance changes are applied with
conditional single-document updates so concurrent requests cannot
double-credit or overdraw a user.
"""

import logging
import re
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from freegames.models.common import normalize_username
from freegames.models.user import User

logger = logging.getLogger("freegames.dal.users")

COLLECTION = "users"


def _id_filter(user_id: str) -> dict[str, Any]:
    # Older records may have been keyed with a bare integer
    if user_id.isdigit():
        return {"_id": {"$in": [user_id, int(user_id)]}}
    return {"_id": user_id}


def _to_user(doc: dict) -> User:
    doc["_id"] = str(doc["_id"])
    return User(**doc)


class UserDAL:
    """Data access layer for the users collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def next_id(self) -> str:
        """Allocate the key one above the highest numeric key, or ``"1"``."""
        numeric: list[int] = []
        async for doc in self._collection.find({}, {"_id": 1}):
            key = str(doc["_id"])
            if key.isdigit():
                numeric.append(int(key))
        return str(max(numeric) + 1 if numeric else 1)

    async def create(self, user: User) -> User:
        """Insert a new user record.

        Raises:
            pymongo.errors.DuplicateKeyError: If the key or the username is
                already taken.
        """
        if user.id is None:
            user.id = await self.next_id()
        await self._collection.insert_one(user.to_mongo_dict())
        logger.info("Created user %s (%s)", user.id, user.username)
        return user

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, user_id: str) -> Optional[User]:
        doc = await self._collection.find_one(_id_filter(user_id))
        if doc is None:
            return None
        return _to_user(doc)

    async def get_by_username(self, username: str) -> Optional[User]:
        """Find a user by username, ignoring case.

        Records written by this service store the lower-cased name and hit
        the ``uq_username`` index; the regex fallback finds older records
        stored with mixed case.

        Args:
            username: Username in any case.

        Returns:
            A User instance, or None if not found.
        """
        normalized = normalize_username(username)
        if not normalized:
            return None

        doc = await self._collection.find_one({"username": normalized})
        if doc is None:
            doc = await self._collection.find_one(
                {
                    "username": {
                        "$regex": f"^{re.escape(normalized)}$",
                        "$options": "i",
                    }
                }
            )
        if doc is None:
            return None
        return _to_user(doc)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def credit_ticket(self, user_id: str, year: int) -> Optional[User]:
        """Add one ticket unless the user already redeemed in ``year``.

        Only ``ticketsAvailable`` and ``lastRedemptionYear`` are written.

        Returns:
            The updated User, or None if ``lastRedemptionYear`` already
            equals ``year``.
        """
        query = _id_filter(user_id)
        query["lastRedemptionYear"] = {"$ne": year}
        doc = await self._collection.find_one_and_update(
            query,
            {
                "$inc": {"ticketsAvailable": 1},
                "$set": {"lastRedemptionYear": year},
            },
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        return _to_user(doc)

    async def debit_ticket(self, user_id: str) -> Optional[User]:
        """Spend one ticket if the balance is positive.

        Returns:
            The updated User, or None if the user has no tickets left.
        """
        query = _id_filter(user_id)
        query["ticketsAvailable"] = {"$gt": 0}
        doc = await self._collection.find_one_and_update(
            query,
            {"$inc": {"ticketsAvailable": -1}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        return _to_user(doc)

    async def refund_ticket(self, user_id: str) -> bool:
        """Give back a ticket taken by a claim that did not go through."""
        result = await self._collection.update_one(
            _id_filter(user_id),
            {"$inc": {"ticketsAvailable": 1}},
        )
        return result.modified_count > 0

    async def append_claimed_game(self, user_id: str, game_name: str) -> bool:
        result = await self._collection.update_one(
            _id_filter(user_id),
            {"$push": {"gamesClaimed": game_name}},
        )
        return result.modified_count > 0
