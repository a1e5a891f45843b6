"""
Score a round from the command line and print the resulting leaderboard.
Same operation as POST /admin/score-round, without the HTTP layer.

Run from project root: python -m football_backend.score_round --round 1
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from football_backend.config import DEFAULT_COMPETITION, DEFAULT_SEED_PATH, LOG_LEVEL
from football_backend.persistence import get_connection, init_db, set_db_path
from football_backend.persistence.db import get_db_path
from football_backend.services import FantasyService, GameweekService


def run(competition: str, round: int, db_path: Path | None = None, seed_path: Path | None = None) -> int:
    """Returns the number of fantasy teams updated (0 for a no-op)."""
    if db_path is not None:
        set_db_path(db_path)
    init_db(db_path=get_db_path(), seed_path=seed_path)
    conn = get_connection()
    try:
        summary = GameweekService().score_round(conn, competition, round)
        if summary is None:
            print(f"Round {round} of {competition}: no finished matches, nothing scored.")
            return 0
        print(
            f"Round {summary.round} of {competition}: "
            f"{summary.matches_processed} matches, {summary.teams_updated} teams updated"
        )
        for entry in FantasyService().get_leaderboard(conn, competition, limit=10):
            print(f"{entry['rank']:>3}  {entry['name']:<30} {entry['total_points']:>5}")
        return summary.teams_updated
    finally:
        conn.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Score one round for every fantasy team of a competition.")
    parser.add_argument("--competition", default=DEFAULT_COMPETITION, help="Competition code")
    parser.add_argument("--round", type=int, required=True, help="Round number")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database file")
    parser.add_argument("--seed", action="store_true", help=f"Load {DEFAULT_SEED_PATH.name} first if missing")
    args = parser.parse_args(argv)
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    run(args.competition, args.round, db_path=args.db, seed_path=DEFAULT_SEED_PATH if args.seed else None)


if __name__ == "__main__":
    main()
