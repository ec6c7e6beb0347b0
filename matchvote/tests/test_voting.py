"""
Tests for ballot validation and submission.
Ballots are all-or-nothing; one ballot per voter per match.
"""
from __future__ import annotations

import sqlite3
from datetime import date

import pytest

from matchvote.errors import DuplicateVoteError, NotFoundError, StoreError, ValidationCode, ValidationError
from matchvote.models import TeamSide
from matchvote.persistence.db import get_connection, init_db, set_db_path
from matchvote.persistence.repositories import VoteRepository
from matchvote.persistence.store import SqliteStore
from matchvote.services.match_lifecycle import MatchLifecycle
from matchvote.services.roster import RosterManager
from matchvote.services.voting import (
    VotingEngine,
    eligible_players,
    find_ballot_error,
    is_valid_score,
    validate_ballot,
)


@pytest.fixture
def db_conn(tmp_path):
    db_path = tmp_path / "voting_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def store(db_conn):
    return SqliteStore(db_conn)


@pytest.fixture
def engine(store):
    return VotingEngine(store)


@pytest.fixture
def played_match(store):
    """Match with V and A on team A, B and C on team B. Returns (match, ids by letter)."""
    match = store.insert_match("Thursday league", date(2024, 3, 14))
    ids = {name: store.insert_player(name).id for name in ("V", "A", "B", "C")}
    roster = RosterManager(store)
    roster.add_to_team(match.id, ids["V"], TeamSide.A)
    roster.add_to_team(match.id, ids["A"], TeamSide.A)
    roster.add_to_team(match.id, ids["B"], TeamSide.B)
    roster.add_to_team(match.id, ids["C"], TeamSide.B)
    return store.get_match(match.id), ids


class FailingInsertStore(SqliteStore):
    """Store whose vote insert always fails."""

    def insert_votes(self, match_id, voter_id, scores):
        raise StoreError("insert_votes failed: disk I/O error")


class StaleReadStore(SqliteStore):
    """Store whose first vote listing is empty, as if read before a concurrent submit committed."""

    def __init__(self, conn):
        super().__init__(conn)
        self._stale = True

    def list_votes_for_match(self, match_id):
        if self._stale:
            self._stale = False
            return []
        return super().list_votes_for_match(match_id)


def test_is_valid_score():
    assert is_valid_score(1)
    assert is_valid_score(10)
    assert not is_valid_score(0)
    assert not is_valid_score(11)
    assert not is_valid_score(7.5)
    assert not is_valid_score(7.0)
    assert not is_valid_score("7")
    assert not is_valid_score(True)


def test_eligible_excludes_voter(store, played_match):
    match, ids = played_match
    eligible = eligible_players(match, ids["V"], store.list_players())
    assert eligible == [ids["A"], ids["B"], ids["C"]]


def test_selection_required(store, played_match):
    match, ids = played_match
    players = store.list_players()
    assert find_ballot_error(None, ids["V"], {}, players).code == ValidationCode.SELECTION_REQUIRED
    assert find_ballot_error(match, None, {}, players).code == ValidationCode.SELECTION_REQUIRED


def test_voter_not_in_roster(store, played_match):
    match, _ = played_match
    outsider = store.insert_player("Outsider")
    err = find_ballot_error(match, outsider.id, {}, store.list_players())
    assert err is not None and err.code == ValidationCode.NOT_IN_ROSTER


def test_incomplete_when_player_missing(store, played_match):
    match, ids = played_match
    ratings = {ids["A"]: 5, ids["B"]: 7}
    with pytest.raises(ValidationError) as exc_info:
        validate_ballot(match, ids["V"], ratings, store.list_players())
    assert exc_info.value.code == ValidationCode.INCOMPLETE


def test_incomplete_when_score_is_none(store, played_match):
    match, ids = played_match
    ratings = {ids["A"]: 5, ids["B"]: 7, ids["C"]: None}
    err = find_ballot_error(match, ids["V"], ratings, store.list_players())
    assert err is not None and err.code == ValidationCode.INCOMPLETE


@pytest.mark.parametrize("bad", [0, 11, -3, 7.5, "8", True])
def test_out_of_range(store, played_match, bad):
    match, ids = played_match
    ratings = {ids["A"]: 5, ids["B"]: 7, ids["C"]: bad}
    err = find_ballot_error(match, ids["V"], ratings, store.list_players())
    assert err is not None and err.code == ValidationCode.OUT_OF_RANGE


def test_valid_ballot(store, played_match):
    match, ids = played_match
    ratings = {ids["A"]: 1, ids["B"]: 10, ids["C"]: 6}
    assert find_ballot_error(match, ids["V"], ratings, store.list_players()) is None


def test_submit_writes_one_vote_per_eligible_player(store, engine, played_match):
    match, ids = played_match
    ratings = {ids["A"]: 5, ids["B"]: 7, ids["C"]: 9, ids["V"]: 10}
    result = engine.submit_ballot(match.id, ids["V"], ratings)
    assert len(result.votes) == 3
    stored = store.list_votes_for_match(match.id)
    assert {(v.voter_id, v.votee_id, v.score) for v in stored} == {
        (ids["V"], ids["A"], 5),
        (ids["V"], ids["B"], 7),
        (ids["V"], ids["C"], 9),
    }
    assert result.aggregates.total_votes == 3
    assert result.aggregates.voter_counts == {ids["V"]: 3}
    assert result.aggregates.mvp is not None
    assert result.aggregates.mvp.player_id == ids["C"]
    assert "voter_id" not in result.to_dict()


def test_submit_incomplete_writes_nothing(store, engine, played_match):
    match, ids = played_match
    with pytest.raises(ValidationError) as exc_info:
        engine.submit_ballot(match.id, ids["V"], {ids["A"]: 5, ids["B"]: 7})
    assert exc_info.value.code == ValidationCode.INCOMPLETE
    assert store.list_votes_for_match(match.id) == []


def test_second_ballot_rejected(store, engine, played_match):
    match, ids = played_match
    ratings = {ids["A"]: 5, ids["B"]: 7, ids["C"]: 9}
    engine.submit_ballot(match.id, ids["V"], ratings)
    with pytest.raises(ValidationError) as exc_info:
        engine.submit_ballot(match.id, ids["V"], ratings)
    assert exc_info.value.code == ValidationCode.ALREADY_VOTED
    assert len(store.list_votes_for_match(match.id)) == 3


def test_concurrent_second_ballot_rejected_by_unique_key(db_conn, store, engine, played_match):
    """A duplicate that slips past the ALREADY_VOTED check is still a validation error."""
    match, ids = played_match
    ratings = {ids["A"]: 5, ids["B"]: 7, ids["C"]: 9}
    engine.submit_ballot(match.id, ids["V"], ratings)
    racing = VotingEngine(StaleReadStore(db_conn))
    with pytest.raises(ValidationError) as exc_info:
        racing.submit_ballot(match.id, ids["V"], {ids["A"]: 1, ids["B"]: 1, ids["C"]: 1})
    assert exc_info.value.code == ValidationCode.ALREADY_VOTED
    assert isinstance(exc_info.value.__cause__, DuplicateVoteError)
    votes = store.list_votes_for_match(match.id)
    assert sorted(v.score for v in votes) == [5, 7, 9]


def test_duplicate_vote_batch_rolled_back(store, played_match):
    match, ids = played_match
    store.insert_votes(match.id, ids["V"], [(ids["A"], 5)])
    with pytest.raises(DuplicateVoteError):
        store.insert_votes(match.id, ids["V"], [(ids["B"], 7), (ids["A"], 6)])
    assert [(v.votee_id, v.score) for v in store.list_votes_for_match(match.id)] == [(ids["A"], 5)]


def test_results_accumulate_across_voters(engine, played_match):
    match, ids = played_match
    engine.submit_ballot(match.id, ids["V"], {ids["A"]: 8, ids["B"]: 4, ids["C"]: 4})
    result = engine.submit_ballot(match.id, ids["B"], {ids["V"]: 7, ids["A"]: 6, ids["C"]: 5})
    agg = result.aggregates
    assert agg.averages[ids["A"]].sum == 14
    assert agg.averages[ids["A"]].count == 2
    assert agg.mvp is not None and agg.mvp.player_id == ids["A"]
    assert agg.voter_counts == {ids["V"]: 3, ids["B"]: 3}


def test_submit_unknown_match(engine, played_match):
    _, ids = played_match
    with pytest.raises(NotFoundError):
        engine.submit_ballot("missing", ids["V"], {})
    with pytest.raises(ValidationError) as exc_info:
        engine.submit_ballot(None, ids["V"], {})
    assert exc_info.value.code == ValidationCode.SELECTION_REQUIRED


def test_store_failure_propagates_and_writes_nothing(db_conn, store, played_match):
    match, ids = played_match
    failing = VotingEngine(FailingInsertStore(db_conn))
    with pytest.raises(StoreError):
        failing.submit_ballot(match.id, ids["V"], {ids["A"]: 5, ids["B"]: 7, ids["C"]: 9})
    assert store.list_votes_for_match(match.id) == []


def test_vote_batch_rolls_back_on_constraint_failure(db_conn, played_match):
    """A bad row in the middle of a batch leaves no rows behind."""
    match, ids = played_match
    repo = VoteRepository()
    with pytest.raises(sqlite3.IntegrityError):
        repo.create_many(db_conn, match.id, ids["V"], [(ids["A"], 5), (ids["V"], 7), (ids["C"], 9)])
    assert repo.list_by_match(db_conn, match.id) == []


def test_deleted_player_no_longer_eligible(store, engine, played_match):
    match, ids = played_match
    MatchLifecycle(store).delete_player(ids["C"])
    result = engine.submit_ballot(match.id, ids["V"], {ids["A"]: 5, ids["B"]: 7})
    assert len(result.votes) == 2
    rows = {row.player_id: row for row in result.aggregates.players}
    assert rows[ids["C"]].name == "Unknown"
    assert rows[ids["C"]].average_label == "N/A"


def test_lone_player_ballot_writes_nothing(store, engine):
    """One rostered player: nobody to rate, ballot accepted with zero votes."""
    match = store.insert_match("Solo", date(2024, 1, 1))
    player = store.insert_player("Solo")
    RosterManager(store).add_to_team(match.id, player.id, TeamSide.A)
    result = engine.submit_ballot(match.id, player.id, {})
    assert result.votes == []
    assert result.aggregates.mvp is None
