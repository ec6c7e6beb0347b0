"""
Store: the persistence interface the services depend on.

Store is a typed Protocol so services can run against SQLite (SqliteStore) or
a test double. Every backend failure surfaces as StoreError. A stale roster
write surfaces as ConcurrentUpdateError and a repeated vote as DuplicateVoteError.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from typing import Generator, Protocol, Sequence

from matchvote.errors import ConcurrentUpdateError, DuplicateVoteError, NotFoundError, StoreError
from matchvote.models import Match, Player, Roster, Vote, Winner

from .repositories import MatchRepository, PlayerRepository, VoteRepository

logger = logging.getLogger(__name__)

__all__ = ["Store", "SqliteStore"]


class Store(Protocol):
    def list_players(self) -> list[Player]: ...

    def get_player(self, player_id: str) -> Player | None: ...

    def insert_player(self, name: str) -> Player: ...

    def delete_player(self, player_id: str) -> bool: ...

    def list_matches(self) -> list[Match]: ...

    def get_match(self, match_id: str) -> Match | None: ...

    def insert_match(self, name: str, match_date: date) -> Match: ...

    def update_roster(self, match_id: str, roster: Roster, expected_version: int) -> Match: ...

    def update_winner(self, match_id: str, winner: Winner | None) -> Match: ...

    def delete_match(self, match_id: str) -> bool: ...

    def list_votes_for_match(self, match_id: str) -> list[Vote]: ...

    def insert_votes(
        self, match_id: str, voter_id: str, scores: Sequence[tuple[str, int]]
    ) -> list[Vote]: ...


class SqliteStore:
    """
    Store over one SQLite connection. The caller owns the connection
    (open per request, close when done).
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._player_repo = PlayerRepository()
        self._match_repo = MatchRepository()
        self._vote_repo = VoteRepository()

    @contextmanager
    def _guard(self, operation: str) -> Generator[None, None, None]:
        """Translate sqlite3 failures into StoreError."""
        try:
            yield
        except sqlite3.Error as exc:
            logger.error("Store operation %s failed: %s", operation, exc)
            raise StoreError(f"{operation} failed: {exc}") from exc

    # ---------- Players ----------

    def list_players(self) -> list[Player]:
        with self._guard("list_players"):
            return self._player_repo.list_all(self._conn)

    def get_player(self, player_id: str) -> Player | None:
        with self._guard("get_player"):
            return self._player_repo.get(self._conn, player_id)

    def insert_player(self, name: str) -> Player:
        with self._guard("insert_player"):
            return self._player_repo.create(self._conn, name)

    def delete_player(self, player_id: str) -> bool:
        with self._guard("delete_player"):
            return self._player_repo.delete(self._conn, player_id)

    # ---------- Matches ----------

    def list_matches(self) -> list[Match]:
        with self._guard("list_matches"):
            return self._match_repo.list_all(self._conn)

    def get_match(self, match_id: str) -> Match | None:
        with self._guard("get_match"):
            return self._match_repo.get(self._conn, match_id)

    def insert_match(self, name: str, match_date: date) -> Match:
        with self._guard("insert_match"):
            return self._match_repo.create(self._conn, name, match_date)

    def update_roster(self, match_id: str, roster: Roster, expected_version: int) -> Match:
        with self._guard("update_roster"):
            applied = self._match_repo.update_roster(self._conn, match_id, roster, expected_version)
            current = self._match_repo.get(self._conn, match_id)
        if current is None:
            raise NotFoundError(f"Match not found: {match_id}")
        if not applied:
            raise ConcurrentUpdateError(
                f"Match {match_id} changed since it was read (version {expected_version} -> {current.version})"
            )
        return current

    def update_winner(self, match_id: str, winner: Winner | None) -> Match:
        with self._guard("update_winner"):
            applied = self._match_repo.update_winner(self._conn, match_id, winner)
            current = self._match_repo.get(self._conn, match_id) if applied else None
        if current is None:
            raise NotFoundError(f"Match not found: {match_id}")
        return current

    def delete_match(self, match_id: str) -> bool:
        with self._guard("delete_match"):
            return self._match_repo.delete(self._conn, match_id)

    # ---------- Votes ----------

    def list_votes_for_match(self, match_id: str) -> list[Vote]:
        with self._guard("list_votes_for_match"):
            return self._vote_repo.list_by_match(self._conn, match_id)

    def insert_votes(
        self, match_id: str, voter_id: str, scores: Sequence[tuple[str, int]]
    ) -> list[Vote]:
        with self._guard("insert_votes"):
            try:
                return self._vote_repo.create_many(self._conn, match_id, voter_id, scores)
            except sqlite3.IntegrityError as exc:
                if "UNIQUE" not in str(exc):
                    raise
                logger.warning("Duplicate vote from %s for match %s: %s", voter_id, match_id, exc)
                raise DuplicateVoteError(f"Votes from {voter_id} for match {match_id} already recorded") from exc
