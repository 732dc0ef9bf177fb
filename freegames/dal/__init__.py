"""Data Access Layer -- MongoDB repository classes and connection management."""

from freegames.dal.database import (
    connect_to_mongo,
    close_mongo_connection,
    ensure_indexes,
    get_database,
)
from freegames.dal.games_dal import GameDAL
from freegames.dal.users_dal import UserDAL

__all__ = [
    # Connection management
    "connect_to_mongo",
    "close_mongo_connection",
    "ensure_indexes",
    "get_database",
    # DAL classes
    "GameDAL",
    "UserDAL",
]
