"""
SQLite schema for players, matches and votes.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def players_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS players (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    """


def matches_schema() -> str:
    """teams: JSON {"teamA": [...], "teamB": [...]}, replaced whole on each roster change. winner: 'A' | 'B' | NULL."""
    return """
    CREATE TABLE IF NOT EXISTS matches (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        date TEXT NOT NULL,
        teams TEXT NOT NULL DEFAULT '{"teamA": [], "teamB": []}',
        winner TEXT CHECK (winner IN ('A', 'B')),
        version INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_matches_date ON matches(date);
    """


def votes_schema() -> str:
    """One row per (match, voter, votee). Deleting a player or match removes its votes."""
    return """
    CREATE TABLE IF NOT EXISTS votes (
        id TEXT PRIMARY KEY,
        match_id TEXT NOT NULL,
        voter_id TEXT NOT NULL,
        votee_id TEXT NOT NULL,
        score INTEGER NOT NULL CHECK (score BETWEEN 1 AND 10),
        created_at TEXT NOT NULL,
        CHECK (voter_id <> votee_id),
        FOREIGN KEY (match_id) REFERENCES matches(id) ON DELETE CASCADE,
        FOREIGN KEY (voter_id) REFERENCES players(id) ON DELETE CASCADE,
        FOREIGN KEY (votee_id) REFERENCES players(id) ON DELETE CASCADE
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_votes_match_voter_votee ON votes(match_id, voter_id, votee_id);
    CREATE INDEX IF NOT EXISTS ix_votes_match ON votes(match_id);
    """


def all_schema_sql() -> str:
    """Combine all schema DDL for a single execution. Order: players, matches, votes."""
    return "\n".join([
        players_schema(),
        matches_schema(),
        votes_schema(),
    ])
