"""
Database connection and initialization.
"""
from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path

from .schema import all_schema_sql

logger = logging.getLogger(__name__)

DB_PATH_ENV = "MATCHVOTE_DB_PATH"


# Default DB path (project root / data / matchvote.db)
def _default_db_path() -> Path:
    env_path = os.environ.get(DB_PATH_ENV)
    if env_path:
        return Path(env_path)
    return Path(__file__).resolve().parent.parent.parent / "data" / "matchvote.db"


_db_path: Path | None = None


def set_db_path(path: str | Path) -> None:
    """Set the database path. Call before first get_connection if not using default."""
    global _db_path
    _db_path = Path(path)


def get_db_path() -> Path:
    """Return the current database path."""
    if _db_path is not None:
        return _db_path
    return _default_db_path()


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """
    Return a new SQLite connection with foreign keys enforced (vote cascades rely on it).
    Use as context manager or ensure close() is called.
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str | Path | None = None) -> None:
    """Create or ensure all tables exist."""
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(all_schema_sql())
        conn.commit()
    finally:
        conn.close()
    logger.info("Database ready at %s", path)
