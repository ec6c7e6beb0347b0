"""
Ballot validation and submission.

A ballot is one voter's scores for every other rostered player of a match.
The whole ballot is validated before anything is written, and the votes are
inserted in one store transaction, so a ballot is either fully recorded or not
at all. A voter gets one ballot per match; a second one is rejected.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from matchvote.errors import DuplicateVoteError, NotFoundError, ValidationCode, ValidationError
from matchvote.models import MAX_SCORE, MIN_SCORE, Match, Player, Vote
from matchvote.persistence.store import Store
from matchvote.services.aggregation import MatchAggregates, aggregate_match

logger = logging.getLogger(__name__)

Ratings = Mapping[str, Any]


@dataclass
class BallotResult:
    """Outcome of a recorded ballot. Carries no voter selection: the next voter starts fresh."""
    match_id: str
    votes: list[Vote]
    aggregates: MatchAggregates

    def to_dict(self) -> dict[str, Any]:
        return {
            "match_id": self.match_id,
            "votes_written": len(self.votes),
            "aggregates": self.aggregates.to_dict(),
        }


def is_valid_score(score: Any) -> bool:
    """Integer (not bool) in MIN_SCORE..MAX_SCORE."""
    return isinstance(score, int) and not isinstance(score, bool) and MIN_SCORE <= score <= MAX_SCORE


def eligible_players(match: Match, voter_id: str, players: Iterable[Player]) -> list[str]:
    """
    Rostered players the voter must rate: everyone on either team except the
    voter, skipping ids whose player was deleted. Team A first, roster order.
    """
    known = {p.id for p in players}
    return [pid for pid in match.roster.members() if pid != voter_id and pid in known]


def find_ballot_error(
    match: Match | None,
    voter_id: str | None,
    ratings: Ratings | None,
    players: Iterable[Player],
) -> ValidationError | None:
    """Return the first problem with the ballot, or None if it can be submitted."""
    if match is None or not voter_id:
        return ValidationError(ValidationCode.SELECTION_REQUIRED, "Select a match and a voter")
    players = list(players)
    if voter_id not in match.roster or voter_id not in {p.id for p in players}:
        return ValidationError(
            ValidationCode.NOT_IN_ROSTER,
            f"Player {voter_id} is not on the roster of match {match.id}",
        )
    ratings = ratings or {}
    missing = [pid for pid in eligible_players(match, voter_id, players) if ratings.get(pid) is None]
    if missing:
        return ValidationError(
            ValidationCode.INCOMPLETE,
            f"Every player of the match must be rated; missing: {', '.join(missing)}",
        )
    bad = [pid for pid, score in ratings.items() if score is not None and not is_valid_score(score)]
    if bad:
        return ValidationError(
            ValidationCode.OUT_OF_RANGE,
            f"Scores must be whole numbers from {MIN_SCORE} to {MAX_SCORE}; invalid for: {', '.join(bad)}",
        )
    return None


def validate_ballot(
    match: Match | None,
    voter_id: str | None,
    ratings: Ratings | None,
    players: Iterable[Player],
) -> None:
    """Raise ValidationError if the ballot cannot be submitted."""
    error = find_ballot_error(match, voter_id, ratings, players)
    if error is not None:
        raise error


class VotingEngine:
    """Validates and records ballots. Holds no per-voter state between calls."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def submit_ballot(self, match_id: str | None, voter_id: str | None, ratings: Ratings | None) -> BallotResult:
        """
        Record one vote per eligible player and return the refreshed aggregates.
        Roster, players and existing votes are re-read from the store first.
        """
        if not match_id or not voter_id:
            raise ValidationError(ValidationCode.SELECTION_REQUIRED, "Select a match and a voter")
        match = self._store.get_match(match_id)
        if match is None:
            raise NotFoundError(f"Match not found: {match_id}")
        players = self._store.list_players()
        validate_ballot(match, voter_id, ratings, players)
        existing = self._store.list_votes_for_match(match_id)
        if any(v.voter_id == voter_id for v in existing):
            raise ValidationError(
                ValidationCode.ALREADY_VOTED,
                f"Player {voter_id} has already voted for match {match_id}",
            )
        ratings = ratings or {}
        scores = [(pid, int(ratings[pid])) for pid in eligible_players(match, voter_id, players)]
        written: list[Vote] = []
        if scores:
            try:
                written = self._store.insert_votes(match_id, voter_id, scores)
            except DuplicateVoteError as exc:
                # another submit for this voter landed after the check above
                raise ValidationError(
                    ValidationCode.ALREADY_VOTED,
                    f"Player {voter_id} has already voted for match {match_id}",
                ) from exc
            logger.info("Recorded %d votes from %s for match %s", len(written), voter_id, match_id)
        else:
            logger.info("Ballot from %s for match %s has nobody to rate", voter_id, match_id)
        votes = self._store.list_votes_for_match(match_id)
        return BallotResult(
            match_id=match_id,
            votes=written,
            aggregates=aggregate_match(match, votes, players),
        )

    def results(self, match_id: str) -> MatchAggregates:
        """Current aggregates for a match, read fresh from the store."""
        match = self._store.get_match(match_id)
        if match is None:
            raise NotFoundError(f"Match not found: {match_id}")
        players = self._store.list_players()
        votes = self._store.list_votes_for_match(match_id)
        return aggregate_match(match, votes, players)
