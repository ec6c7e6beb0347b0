"""
Runtime settings from the environment.
MATCHVOTE_DB_PATH is read in persistence.db.
"""
from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "MATCHVOTE_LOG_LEVEL"
CORS_ORIGINS_ENV = "MATCHVOTE_CORS_ORIGINS"

DEFAULT_CORS_ORIGINS = [
    "http://localhost:4200",
    "http://127.0.0.1:4200",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Root logging setup for the app process. Level from argument, env, else INFO."""
    name = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format=LOG_FORMAT)


def cors_origins() -> list[str]:
    """Comma-separated MATCHVOTE_CORS_ORIGINS, or the local dev origins."""
    raw = os.environ.get(CORS_ORIGINS_ENV, "").strip()
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [o.strip() for o in raw.split(",") if o.strip()]
