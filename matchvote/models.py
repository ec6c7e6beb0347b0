"""
Data models for the match voting backend.
Domain objects only; no persistence or API logic.

A match has two teams (A and B); after the match each rostered player rates
every other rostered player 1-10. Votes are the raw ratings; averages and the
MVP are derived from them on read.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

# Placeholder shown for a player id that no longer resolves (player deleted).
UNKNOWN_PLAYER_NAME = "Unknown"

MIN_SCORE = 1
MAX_SCORE = 10


# ---------- Team side ----------
class TeamSide(str, Enum):
    """The two sides of a match."""
    A = "A"
    B = "B"


def parse_team_side(value: str | TeamSide) -> TeamSide | None:
    """Accept 'A'/'B' (any case) or a TeamSide. None if invalid."""
    if isinstance(value, TeamSide):
        return value
    try:
        return TeamSide(str(value).strip().upper())
    except ValueError:
        return None


# ---------- Player ----------
@dataclass
class Player:
    """A person who can be put on a roster and vote. Created/deleted by the admin."""
    id: str
    name: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at.isoformat(),
        }


# ---------- Roster ----------
@dataclass(frozen=True)
class Roster:
    """
    Team membership of one match.
    A player id is in at most one team; each team has set semantics.
    Order is kept (insertion order) so listings and eligibility are stable.
    """
    team_a: tuple[str, ...] = ()
    team_b: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if len(set(self.team_a)) != len(self.team_a) or len(set(self.team_b)) != len(self.team_b):
            raise ValueError("Roster teams must not contain duplicates")
        overlap = set(self.team_a) & set(self.team_b)
        if overlap:
            raise ValueError(f"Players on both teams: {sorted(overlap)}")

    def team(self, side: TeamSide) -> tuple[str, ...]:
        return self.team_a if side is TeamSide.A else self.team_b

    def members(self) -> list[str]:
        """All rostered ids, team A first."""
        return [*self.team_a, *self.team_b]

    def side_of(self, player_id: str) -> TeamSide | None:
        if player_id in self.team_a:
            return TeamSide.A
        if player_id in self.team_b:
            return TeamSide.B
        return None

    def __contains__(self, player_id: object) -> bool:
        return player_id in self.team_a or player_id in self.team_b

    def with_player(self, player_id: str, side: TeamSide) -> Roster:
        """New roster with player_id appended to side. Raises ValueError if already rostered."""
        if player_id in self:
            raise ValueError(f"Player already on a team: {player_id}")
        if side is TeamSide.A:
            return Roster(team_a=self.team_a + (player_id,), team_b=self.team_b)
        return Roster(team_a=self.team_a, team_b=self.team_b + (player_id,))

    def without_player(self, player_id: str, side: TeamSide) -> Roster:
        if side is TeamSide.A:
            return Roster(team_a=tuple(p for p in self.team_a if p != player_id), team_b=self.team_b)
        return Roster(team_a=self.team_a, team_b=tuple(p for p in self.team_b if p != player_id))

    def to_dict(self) -> dict[str, list[str]]:
        return {"teamA": list(self.team_a), "teamB": list(self.team_b)}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Roster:
        data = data or {}
        return cls(
            team_a=tuple(data.get("teamA") or ()),
            team_b=tuple(data.get("teamB") or ()),
        )


# ---------- Winner ----------
@dataclass(frozen=True)
class Winner:
    team: TeamSide

    def to_dict(self) -> dict[str, str]:
        return {"team": self.team.value}


# ---------- Match ----------
@dataclass
class Match:
    """
    A played (or scheduled) match. Created with an empty roster and no winner.
    version is bumped on every update; writes check it (optimistic concurrency).
    """
    id: str
    name: str
    date: date
    created_at: datetime
    roster: Roster = field(default_factory=Roster)
    winner: Winner | None = None
    version: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "date": self.date.isoformat(),
            "teams": self.roster.to_dict(),
            "winner": self.winner.to_dict() if self.winner is not None else None,
            "created_at": self.created_at.isoformat(),
            "version": self.version,
        }


# ---------- Vote ----------
@dataclass
class Vote:
    """One rating: voter_id rated votee_id with score (1-10) for match_id. Never mutated."""
    id: str
    match_id: str
    voter_id: str
    votee_id: str
    score: int
    created_at: datetime
