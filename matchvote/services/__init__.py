"""
Service layer: roster rules, ballot validation/submission, aggregation, match lifecycle.
Persistence goes through the Store interface.
"""
from .aggregation import (
    MatchAggregates,
    Mvp,
    ScoreTally,
    aggregate_match,
    compute_averages,
    compute_mvp,
    compute_voter_counts,
)
from .match_lifecycle import MatchLifecycle
from .roster import RosterManager
from .voting import BallotResult, VotingEngine, find_ballot_error, validate_ballot

__all__ = [
    "MatchAggregates",
    "Mvp",
    "ScoreTally",
    "aggregate_match",
    "compute_averages",
    "compute_mvp",
    "compute_voter_counts",
    "MatchLifecycle",
    "RosterManager",
    "BallotResult",
    "VotingEngine",
    "find_ballot_error",
    "validate_ballot",
]
