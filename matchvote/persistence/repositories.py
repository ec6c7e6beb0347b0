"""
Repository classes for players, matches and votes.
No business logic, only read/write operations.
"""
from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import date, datetime, timezone
from typing import Iterable

from matchvote.models import Match, Player, Roster, TeamSide, Vote, Winner


def _parse_datetime(s: str | None) -> datetime:
    if s is None:
        raise ValueError("expected datetime string")
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------- PlayerRepository ----------


class PlayerRepository:
    """CRUD for players. Deleting a player cascades to its votes (FK ON DELETE CASCADE)."""

    def create(self, conn: sqlite3.Connection, name: str) -> Player:
        pid = str(uuid.uuid4())
        now = _now_iso()
        conn.execute(
            "INSERT INTO players (id, name, created_at) VALUES (?, ?, ?)",
            (pid, name, now),
        )
        conn.commit()
        return Player(id=pid, name=name, created_at=_parse_datetime(now))

    def get(self, conn: sqlite3.Connection, player_id: str) -> Player | None:
        row = conn.execute(
            "SELECT id, name, created_at FROM players WHERE id = ?",
            (player_id,),
        ).fetchone()
        if row is None:
            return None
        return Player(id=row["id"], name=row["name"], created_at=_parse_datetime(row["created_at"]))

    def list_all(self, conn: sqlite3.Connection) -> list[Player]:
        rows = conn.execute("SELECT id, name, created_at FROM players ORDER BY created_at, rowid").fetchall()
        return [
            Player(id=r["id"], name=r["name"], created_at=_parse_datetime(r["created_at"]))
            for r in rows
        ]

    def delete(self, conn: sqlite3.Connection, player_id: str) -> bool:
        cur = conn.execute("DELETE FROM players WHERE id = ?", (player_id,))
        conn.commit()
        return cur.rowcount > 0


# ---------- MatchRepository ----------


def _row_to_match(r: sqlite3.Row) -> Match:
    winner = Winner(team=TeamSide(r["winner"])) if r["winner"] else None
    return Match(
        id=r["id"],
        name=r["name"],
        date=date.fromisoformat(r["date"]),
        roster=Roster.from_dict(json.loads(r["teams"])),
        winner=winner,
        version=r["version"],
        created_at=_parse_datetime(r["created_at"]),
    )


_MATCH_COLS = "id, name, date, teams, winner, version, created_at"


class MatchRepository:
    """CRUD for matches. The roster is stored whole as JSON in the teams column."""

    def create(self, conn: sqlite3.Connection, name: str, match_date: date) -> Match:
        mid = str(uuid.uuid4())
        now = _now_iso()
        roster = Roster()
        conn.execute(
            "INSERT INTO matches (id, name, date, teams, winner, version, created_at) VALUES (?, ?, ?, ?, NULL, 1, ?)",
            (mid, name, match_date.isoformat(), json.dumps(roster.to_dict()), now),
        )
        conn.commit()
        return Match(
            id=mid, name=name, date=match_date, roster=roster, winner=None,
            version=1, created_at=_parse_datetime(now),
        )

    def get(self, conn: sqlite3.Connection, match_id: str) -> Match | None:
        row = conn.execute(
            f"SELECT {_MATCH_COLS} FROM matches WHERE id = ?",
            (match_id,),
        ).fetchone()
        if row is None:
            return None
        return _row_to_match(row)

    def list_all(self, conn: sqlite3.Connection) -> list[Match]:
        rows = conn.execute(
            f"SELECT {_MATCH_COLS} FROM matches ORDER BY date DESC, created_at DESC"
        ).fetchall()
        return [_row_to_match(r) for r in rows]

    def update_roster(
        self, conn: sqlite3.Connection, match_id: str, roster: Roster, expected_version: int
    ) -> bool:
        """Replace the whole roster if the row is still at expected_version. False if it moved on."""
        cur = conn.execute(
            "UPDATE matches SET teams = ?, version = version + 1 WHERE id = ? AND version = ?",
            (json.dumps(roster.to_dict()), match_id, expected_version),
        )
        conn.commit()
        return cur.rowcount > 0

    def update_winner(self, conn: sqlite3.Connection, match_id: str, winner: Winner | None) -> bool:
        """Overwrite the winner unconditionally. False if the match does not exist."""
        cur = conn.execute(
            "UPDATE matches SET winner = ?, version = version + 1 WHERE id = ?",
            (winner.team.value if winner is not None else None, match_id),
        )
        conn.commit()
        return cur.rowcount > 0

    def delete(self, conn: sqlite3.Connection, match_id: str) -> bool:
        cur = conn.execute("DELETE FROM matches WHERE id = ?", (match_id,))
        conn.commit()
        return cur.rowcount > 0


# ---------- VoteRepository ----------


class VoteRepository:
    """Insert and list votes. Votes are never updated; they go away only by cascade."""

    def create_many(
        self,
        conn: sqlite3.Connection,
        match_id: str,
        voter_id: str,
        scores: Iterable[tuple[str, int]],
    ) -> list[Vote]:
        """
        Insert one vote per (votee_id, score) in a single transaction.
        Either every row is committed or none is.
        """
        now = _now_iso()
        votes = [
            Vote(
                id=str(uuid.uuid4()),
                match_id=match_id,
                voter_id=voter_id,
                votee_id=votee_id,
                score=score,
                created_at=_parse_datetime(now),
            )
            for votee_id, score in scores
        ]
        try:
            conn.executemany(
                "INSERT INTO votes (id, match_id, voter_id, votee_id, score, created_at) VALUES (?, ?, ?, ?, ?, ?)",
                [(v.id, v.match_id, v.voter_id, v.votee_id, v.score, now) for v in votes],
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        return votes

    def list_by_match(self, conn: sqlite3.Connection, match_id: str) -> list[Vote]:
        """Votes for a match in insertion order."""
        rows = conn.execute(
            "SELECT id, match_id, voter_id, votee_id, score, created_at FROM votes WHERE match_id = ? ORDER BY rowid",
            (match_id,),
        ).fetchall()
        return [
            Vote(
                id=r["id"],
                match_id=r["match_id"],
                voter_id=r["voter_id"],
                votee_id=r["votee_id"],
                score=r["score"],
                created_at=_parse_datetime(r["created_at"]),
            )
            for r in rows
        ]
