#!/usr/bin/env python3
"""
Vertical slice: Create players → Create match → Build teams → Vote → Results.
Run from project root: python3 scripts/vertical_slice.py
"""
from __future__ import annotations

import random
import sys
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from matchvote.config import configure_logging
from matchvote.models import TeamSide
from matchvote.persistence import SqliteStore, get_connection, init_db
from matchvote.persistence.db import set_db_path
from matchvote.services import MatchLifecycle, RosterManager, VotingEngine

NAMES = ["Lucia", "Mateo", "Sofia", "Diego", "Valentina", "Tomas"]


def main() -> None:
    configure_logging()
    # Use data/vertical_slice.db for demo (distinct from matchvote.db)
    db_path = PROJECT_ROOT / "data" / "vertical_slice.db"
    set_db_path(db_path)
    init_db(db_path=db_path)

    conn = get_connection()
    try:
        store = SqliteStore(conn)
        lifecycle = MatchLifecycle(store)
        roster = RosterManager(store)
        voting = VotingEngine(store)
        rng = random.Random(7)

        # 1. Players and match
        players = [lifecycle.add_player(name) for name in NAMES]
        match = lifecycle.create_match("Demo 3-a-side", "2024-05-03")
        print(f"Created match: {match.name} (id={match.id})")

        # 2. Teams: first half on A, second half on B
        half = len(players) // 2
        for p in players[:half]:
            roster.add_to_team(match.id, p.id, TeamSide.A)
        for p in players[half:]:
            roster.add_to_team(match.id, p.id, TeamSide.B)
        lifecycle.set_winner(match.id, TeamSide.B)

        # 3. Every player votes for everyone else
        for voter in players:
            ratings = {p.id: rng.randint(4, 10) for p in players if p.id != voter.id}
            result = voting.submit_ballot(match.id, voter.id, ratings)
            print(f"  {voter.name} rated {len(result.votes)} players")

        # 4. Results
        results = voting.results(match.id)
        for row in results.players:
            print(f"  [{row.team.value}] {row.name:<10} avg {row.average_label:>4}  votes cast {row.votes_cast}")
        if results.mvp is not None:
            print(f"MVP: {results.mvp.name} ({results.mvp.average:.1f})")

        print("\nVertical slice complete.")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
