"""
Persistence layer for players, matches and votes.
No business logic, only read/write interfaces.
"""
from .db import get_connection, init_db
from .repositories import (
    PlayerRepository,
    MatchRepository,
    VoteRepository,
)
from .store import Store, SqliteStore

__all__ = [
    "get_connection",
    "init_db",
    "PlayerRepository",
    "MatchRepository",
    "VoteRepository",
    "Store",
    "SqliteStore",
]
