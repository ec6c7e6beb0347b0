"""
Roster mutations: add/remove a player on team A or B of a match.
A player may be on only one team per match. Every change writes the whole
roster back, guarded by the match version so a concurrent edit is rejected
instead of silently overwritten.
"""
from __future__ import annotations

import logging

from matchvote.errors import NotFoundError, ValidationCode, ValidationError
from matchvote.models import Match, TeamSide, parse_team_side
from matchvote.persistence.store import Store

logger = logging.getLogger(__name__)


def _require_side(team: str | TeamSide) -> TeamSide:
    side = parse_team_side(team)
    if side is None:
        raise ValidationError(ValidationCode.VALIDATION, f"Team must be 'A' or 'B', got {team!r}")
    return side


class RosterManager:
    """Team membership changes for a match. Persistence is delegated to the store."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def _get_match(self, match_id: str) -> Match:
        match = self._store.get_match(match_id)
        if match is None:
            raise NotFoundError(f"Match not found: {match_id}")
        return match

    def add_to_team(self, match_id: str, player_id: str, team: str | TeamSide) -> Match:
        """
        Put player_id on team. Fails ALREADY_ASSIGNED if the player is on either
        team already, so a retry after success leaves the roster as it is.
        """
        side = _require_side(team)
        match = self._get_match(match_id)
        if self._store.get_player(player_id) is None:
            raise NotFoundError(f"Player not found: {player_id}")
        current = match.roster.side_of(player_id)
        if current is not None:
            raise ValidationError(
                ValidationCode.ALREADY_ASSIGNED,
                f"Player {player_id} is already on team {current.value}",
            )
        updated = self._store.update_roster(
            match_id, match.roster.with_player(player_id, side), expected_version=match.version
        )
        logger.info("Added player %s to team %s of match %s", player_id, side.value, match_id)
        return updated

    def remove_from_team(self, match_id: str, player_id: str, team: str | TeamSide) -> Match:
        """Take player_id off team. No write if the player is not on that team."""
        side = _require_side(team)
        match = self._get_match(match_id)
        if player_id not in match.roster.team(side):
            return match
        updated = self._store.update_roster(
            match_id, match.roster.without_player(player_id, side), expected_version=match.version
        )
        logger.info("Removed player %s from team %s of match %s", player_id, side.value, match_id)
        return updated
