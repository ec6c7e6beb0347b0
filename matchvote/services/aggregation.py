"""
Vote aggregation for one match: per-player averages, votes cast, MVP.
Read-only: consumes votes and players, returns structured results. No I/O.

MVP rule: scan averages in the order their buckets were first filled (the order
votes were read from storage) and replace the leader only on a strictly greater
average. On a tie the player found first keeps the title.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from matchvote.models import UNKNOWN_PLAYER_NAME, Match, Player, TeamSide, Vote

NO_AVERAGE_LABEL = "N/A"


@dataclass
class ScoreTally:
    """Running sum and count of scores received by one player."""
    sum: int = 0
    count: int = 0

    @property
    def average(self) -> float | None:
        if self.count == 0:
            return None
        return self.sum / self.count

    def to_dict(self) -> dict[str, Any]:
        return {"sum": self.sum, "count": self.count, "average": self.average}


@dataclass
class Mvp:
    player_id: str
    name: str
    average: float

    def to_dict(self) -> dict[str, Any]:
        return {"player_id": self.player_id, "name": self.name, "average": self.average}


@dataclass
class PlayerResult:
    """One roster player as shown on the results view."""
    player_id: str
    name: str
    team: TeamSide
    average: float | None
    average_label: str
    votes_received: int
    votes_cast: int  # scores this player gave, one per rated teammate or opponent

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "team": self.team.value,
            "average": self.average,
            "average_label": self.average_label,
            "votes_received": self.votes_received,
            "votes_cast": self.votes_cast,
        }


@dataclass
class MatchAggregates:
    match_id: str
    averages: dict[str, ScoreTally] = field(default_factory=dict)
    voter_counts: dict[str, int] = field(default_factory=dict)
    mvp: Mvp | None = None
    players: list[PlayerResult] = field(default_factory=list)
    total_votes: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "match_id": self.match_id,
            "averages": {pid: t.to_dict() for pid, t in self.averages.items()},
            "voter_counts": dict(self.voter_counts),
            "mvp": self.mvp.to_dict() if self.mvp is not None else None,
            "players": [p.to_dict() for p in self.players],
            "total_votes": self.total_votes,
        }


def _players_by_id(players: Iterable[Player] | Mapping[str, Player]) -> Mapping[str, Player]:
    if isinstance(players, Mapping):
        return players
    return {p.id: p for p in players}


def resolve_player_name(players: Iterable[Player] | Mapping[str, Player], player_id: str) -> str:
    """Player name, or the Unknown placeholder if the id no longer resolves."""
    player = _players_by_id(players).get(player_id)
    return player.name if player is not None else UNKNOWN_PLAYER_NAME


def compute_averages(votes: Iterable[Vote]) -> dict[str, ScoreTally]:
    """Sum and count per votee. Dict order = order each votee was first seen."""
    tallies: dict[str, ScoreTally] = {}
    for vote in votes:
        tally = tallies.get(vote.votee_id)
        if tally is None:
            tally = tallies[vote.votee_id] = ScoreTally()
        tally.sum += vote.score
        tally.count += 1
    return tallies


def compute_voter_counts(votes: Iterable[Vote]) -> dict[str, int]:
    """Number of votes each player cast (as voter). Informational only."""
    counts: dict[str, int] = {}
    for vote in votes:
        counts[vote.voter_id] = counts.get(vote.voter_id, 0) + 1
    return counts


def compute_mvp(
    averages: Mapping[str, ScoreTally],
    players: Iterable[Player] | Mapping[str, Player],
) -> Mvp | None:
    """Highest average wins; ties keep the earlier bucket. None if nobody received a vote."""
    by_id = _players_by_id(players)
    leader: str | None = None
    best = -1.0
    for player_id, tally in averages.items():
        avg = tally.average
        if avg is None:
            continue
        if avg > best:
            best = avg
            leader = player_id
    if leader is None:
        return None
    return Mvp(player_id=leader, name=resolve_player_name(by_id, leader), average=best)


def average_label(averages: Mapping[str, ScoreTally], player_id: str) -> str:
    """'N/A' without votes, else the average to one decimal."""
    tally = averages.get(player_id)
    if tally is None or tally.average is None:
        return NO_AVERAGE_LABEL
    return f"{tally.average:.1f}"


def aggregate_match(
    match: Match,
    votes: list[Vote],
    players: Iterable[Player] | Mapping[str, Player],
) -> MatchAggregates:
    """All aggregates for a match, plus a display row per rostered player."""
    by_id = _players_by_id(players)
    averages = compute_averages(votes)
    voter_counts = compute_voter_counts(votes)
    rows: list[PlayerResult] = []
    for side in TeamSide:
        for player_id in match.roster.team(side):
            tally = averages.get(player_id)
            rows.append(PlayerResult(
                player_id=player_id,
                name=resolve_player_name(by_id, player_id),
                team=side,
                average=tally.average if tally is not None else None,
                average_label=average_label(averages, player_id),
                votes_received=tally.count if tally is not None else 0,
                votes_cast=voter_counts.get(player_id, 0),
            ))
    return MatchAggregates(
        match_id=match.id,
        averages=averages,
        voter_counts=voter_counts,
        mvp=compute_mvp(averages, by_id),
        players=rows,
        total_votes=len(votes),
    )
