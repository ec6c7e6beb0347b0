"""
Admin operations on players and matches: create, delete, record the winner.
Vote cleanup on delete is done by the store (cascade), not here.
"""
from __future__ import annotations

import logging
from datetime import date, datetime

from matchvote.errors import NotFoundError, ValidationCode, ValidationError
from matchvote.models import Match, Player, TeamSide, Winner, parse_team_side
from matchvote.persistence.store import Store

logger = logging.getLogger(__name__)


def parse_match_date(value: date | str | None) -> date:
    """Accept a date or an ISO 'YYYY-MM-DD' string. Raises ValidationError otherwise."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(ValidationCode.VALIDATION, f"Match date must be YYYY-MM-DD, got {value!r}")


class MatchLifecycle:
    """Creation and deletion of players and matches, winner recording."""

    def __init__(self, store: Store) -> None:
        self._store = store

    # ---------- Players ----------

    def add_player(self, name: str | None) -> Player:
        clean = (name or "").strip()
        if not clean:
            raise ValidationError(ValidationCode.VALIDATION, "Player name is required")
        player = self._store.insert_player(clean)
        logger.info("Created player %s (%s)", player.id, player.name)
        return player

    def list_players(self) -> list[Player]:
        return self._store.list_players()

    def delete_player(self, player_id: str) -> None:
        """Remove the player; their votes go with them. Rosters keep the id and show it as Unknown."""
        if not self._store.delete_player(player_id):
            raise NotFoundError(f"Player not found: {player_id}")
        logger.info("Deleted player %s", player_id)

    # ---------- Matches ----------

    def create_match(self, name: str | None, match_date: date | str | None) -> Match:
        """New match with empty teams and no winner."""
        clean = (name or "").strip()
        if not clean:
            raise ValidationError(ValidationCode.VALIDATION, "Match name is required")
        parsed = parse_match_date(match_date)
        match = self._store.insert_match(clean, parsed)
        logger.info("Created match %s (%s on %s)", match.id, match.name, match.date.isoformat())
        return match

    def list_matches(self) -> list[Match]:
        return self._store.list_matches()

    def get_match(self, match_id: str) -> Match:
        match = self._store.get_match(match_id)
        if match is None:
            raise NotFoundError(f"Match not found: {match_id}")
        return match

    def set_winner(self, match_id: str, team: str | TeamSide) -> Match:
        """Record the winning team. Overwrites any previous winner; repeating it is harmless."""
        side = parse_team_side(team)
        if side is None:
            raise ValidationError(ValidationCode.VALIDATION, f"Team must be 'A' or 'B', got {team!r}")
        match = self._store.update_winner(match_id, Winner(team=side))
        logger.info("Match %s winner set to team %s", match_id, side.value)
        return match

    def delete_match(self, match_id: str) -> None:
        """Remove the match and (by cascade) its votes."""
        if not self._store.delete_match(match_id):
            raise NotFoundError(f"Match not found: {match_id}")
        logger.info("Deleted match %s", match_id)
