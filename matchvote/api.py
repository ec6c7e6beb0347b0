"""
REST API for the match voting backend.
Thin wrappers around the services and persistence.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Generator, Iterable

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from matchvote.config import configure_logging, cors_origins
from matchvote.errors import ConcurrentUpdateError, NotFoundError, StoreError, ValidationError
from matchvote.models import Match, Player, TeamSide
from matchvote.persistence import SqliteStore, get_connection, init_db
from matchvote.persistence.db import get_db_path
from matchvote.services import MatchLifecycle, RosterManager, VotingEngine
from matchvote.services.aggregation import resolve_player_name

logger = logging.getLogger(__name__)


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def service_errors() -> Generator[None, None, None]:
    """Map service exceptions to HTTP errors."""
    try:
        yield
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.to_dict()) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ConcurrentUpdateError as exc:
        logger.warning("Rejected stale write: %s", exc)
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except StoreError as exc:
        logger.error("Storage failure: %s", exc)
        raise HTTPException(status_code=503, detail="Storage unavailable, try again") from exc


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging()
    init_db(db_path=get_db_path())
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="Match Vote API",
    description="Post-match peer ratings: rosters, ballots, averages and MVP",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Request models ----------


class CreatePlayerRequest(BaseModel):
    name: str = Field(..., max_length=200)


class CreateMatchRequest(BaseModel):
    name: str = Field(..., max_length=200)
    date: str = Field(..., description="Match date, YYYY-MM-DD")


class RosterChangeRequest(BaseModel):
    player_id: str
    team: str = Field(..., description="A or B, any case")


class SetWinnerRequest(BaseModel):
    team: str = Field(..., description="A or B, any case")


class SubmitBallotRequest(BaseModel):
    voter_id: str | None = Field(None, description="Player casting the ballot")
    ratings: dict[str, Any] = Field(default_factory=dict, description="player_id -> score 1-10")


# ---------- Helpers ----------


def _match_out(match: Match, players: Iterable[Player]) -> dict[str, Any]:
    """Match dict with player names resolved per team (Unknown for deleted players)."""
    by_id = {p.id: p for p in players}
    out = match.to_dict()
    for side in TeamSide:
        out[f"team_{side.value.lower()}_players"] = [
            {"id": pid, "name": resolve_player_name(by_id, pid)} for pid in match.roster.team(side)
        ]
    return out


# ---------- Players ----------


@app.get("/players")
def list_players() -> dict[str, Any]:
    with db_conn() as conn, service_errors():
        players = MatchLifecycle(SqliteStore(conn)).list_players()
        return {"players": [p.to_dict() for p in players]}


@app.post("/players")
def create_player(req: CreatePlayerRequest) -> dict[str, Any]:
    with db_conn() as conn, service_errors():
        player = MatchLifecycle(SqliteStore(conn)).add_player(req.name)
        return player.to_dict()


@app.delete("/players/{player_id}")
def delete_player(player_id: str) -> dict[str, Any]:
    """Delete a player and all of their votes."""
    with db_conn() as conn, service_errors():
        MatchLifecycle(SqliteStore(conn)).delete_player(player_id)
        return {"deleted": player_id}


# ---------- Matches ----------


@app.get("/matches")
def list_matches() -> dict[str, Any]:
    """All matches, newest first, with team member names."""
    with db_conn() as conn, service_errors():
        lifecycle = MatchLifecycle(SqliteStore(conn))
        matches = lifecycle.list_matches()
        players = lifecycle.list_players()
        return {"matches": [_match_out(m, players) for m in matches]}


@app.post("/matches")
def create_match(req: CreateMatchRequest) -> dict[str, Any]:
    """Create a match with empty teams and no winner."""
    with db_conn() as conn, service_errors():
        match = MatchLifecycle(SqliteStore(conn)).create_match(req.name, req.date)
        return _match_out(match, [])


@app.get("/matches/{match_id}")
def get_match(match_id: str) -> dict[str, Any]:
    with db_conn() as conn, service_errors():
        store = SqliteStore(conn)
        match = MatchLifecycle(store).get_match(match_id)
        return _match_out(match, store.list_players())


@app.delete("/matches/{match_id}")
def delete_match(match_id: str) -> dict[str, Any]:
    """Delete a match and all votes cast for it."""
    with db_conn() as conn, service_errors():
        MatchLifecycle(SqliteStore(conn)).delete_match(match_id)
        return {"deleted": match_id}


@app.post("/matches/{match_id}/roster")
def add_to_roster(match_id: str, req: RosterChangeRequest) -> dict[str, Any]:
    """Add a player to team A or B. 400 ALREADY_ASSIGNED if they are on either team."""
    with db_conn() as conn, service_errors():
        store = SqliteStore(conn)
        match = RosterManager(store).add_to_team(match_id, req.player_id, req.team)
        return _match_out(match, store.list_players())


@app.delete("/matches/{match_id}/roster/{team}/{player_id}")
def remove_from_roster(match_id: str, team: str, player_id: str) -> dict[str, Any]:
    with db_conn() as conn, service_errors():
        store = SqliteStore(conn)
        match = RosterManager(store).remove_from_team(match_id, player_id, team)
        return _match_out(match, store.list_players())


@app.put("/matches/{match_id}/winner")
def set_winner(match_id: str, req: SetWinnerRequest) -> dict[str, Any]:
    with db_conn() as conn, service_errors():
        store = SqliteStore(conn)
        match = MatchLifecycle(store).set_winner(match_id, req.team)
        return _match_out(match, store.list_players())


# ---------- Voting ----------


@app.get("/matches/{match_id}/results")
def get_results(match_id: str) -> dict[str, Any]:
    """Per-player averages ('N/A' without votes), votes cast and MVP."""
    with db_conn() as conn, service_errors():
        aggregates = VotingEngine(SqliteStore(conn)).results(match_id)
        return aggregates.to_dict()


@app.post("/matches/{match_id}/ballots")
def submit_ballot(match_id: str, req: SubmitBallotRequest) -> dict[str, Any]:
    """
    Submit one voter's ratings for every other player of the match.
    All votes are written or none; returns refreshed results.
    """
    with db_conn() as conn, service_errors():
        result = VotingEngine(SqliteStore(conn)).submit_ballot(match_id, req.voter_id, req.ratings)
        return result.to_dict()


# ---------- Run with: uvicorn matchvote.api:app --reload ----------
