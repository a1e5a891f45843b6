"""
Gameweek aggregation: round player points -> per fantasy team totals.

The round's player points are computed once and mapped independently over each
team's picks. The captain's points are doubled if the captain appeared;
otherwise the vice-captain's are. Write path (score_round) and read path
(gameweek_breakdown) share compute_team_gameweek, so they always agree.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Any

from football_backend.errors import NotFoundError
from football_backend.models import FantasyPick, Position
from football_backend.persistence.db import transaction
from football_backend.persistence.repositories import (
    CompetitionRepository,
    FantasyGameweekRepository,
    FantasyTeamRepository,
    MatchRepository,
)
from football_backend.scoring import PlayerPoints, compute_round_points

logger = logging.getLogger(__name__)

CAPTAIN_MULTIPLIER = 2


@dataclass(frozen=True)
class PickPoints:
    """One pick's contribution to a gameweek."""
    player_id: str
    position: Position
    is_captain: bool
    is_vice_captain: bool
    raw_points: int
    multiplier: int
    breakdown: dict[str, int]

    @property
    def points(self) -> int:
        return self.raw_points * self.multiplier

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "position": self.position.value,
            "is_captain": self.is_captain,
            "is_vice_captain": self.is_vice_captain,
            "raw_points": self.raw_points,
            "multiplier": self.multiplier,
            "points": self.points,
            "breakdown": dict(self.breakdown),
        }


@dataclass(frozen=True)
class TeamGameweekPoints:
    fantasy_team_id: str
    round: int
    captain_played: bool
    picks: tuple[PickPoints, ...]

    @property
    def total(self) -> int:
        return sum(p.points for p in self.picks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "fantasy_team_id": self.fantasy_team_id,
            "round": self.round,
            "captain_played": self.captain_played,
            "players": [p.to_dict() for p in self.picks],
            "total": self.total,
        }


@dataclass(frozen=True)
class RoundScoreSummary:
    round: int
    matches_processed: int
    teams_updated: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "round": self.round,
            "matches_processed": self.matches_processed,
            "teams_updated": self.teams_updated,
        }


def compute_team_gameweek(
    fantasy_team_id: str,
    round: int,
    picks: list[FantasyPick],
    points: dict[str, PlayerPoints],
) -> TeamGameweekPoints:
    """
    Gameweek total for one team from the round's player points.
    A player missing from points scored nothing. Totals may be negative.
    """
    captain = next((p for p in picks if p.is_captain), None)
    captain_pp = points.get(captain.player_id) if captain else None
    captain_played = captain_pp is not None and captain_pp.appeared

    out: list[PickPoints] = []
    for pick in picks:
        pp = points.get(pick.player_id)
        doubled = (pick.is_captain and captain_played) or (pick.is_vice_captain and not captain_played)
        out.append(PickPoints(
            player_id=pick.player_id,
            position=pick.position,
            is_captain=pick.is_captain,
            is_vice_captain=pick.is_vice_captain,
            raw_points=pp.total_points if pp else 0,
            multiplier=CAPTAIN_MULTIPLIER if doubled else 1,
            breakdown={c.value: v for c, v in pp.breakdown.items()} if pp else {},
        ))
    return TeamGameweekPoints(
        fantasy_team_id=fantasy_team_id,
        round=round,
        captain_played=captain_played,
        picks=tuple(out),
    )


class GameweekService:
    """Scores rounds for every fantasy team of a competition and serves per-player breakdowns."""

    def __init__(self) -> None:
        self._competition_repo = CompetitionRepository()
        self._match_repo = MatchRepository()
        self._fantasy_team_repo = FantasyTeamRepository()
        self._gameweek_repo = FantasyGameweekRepository()

    def score_round(
        self, conn: sqlite3.Connection, competition_code: str, round: int
    ) -> RoundScoreSummary | None:
        """
        Score one round: upsert a gameweek row per fantasy team, then resum its total.
        Returns None (nothing written) when the round has no finished matches.
        Safe to re-run: same facts give the same rows and totals.
        """
        competition = self._competition_repo.get_by_code(conn, competition_code)
        if competition is None:
            raise NotFoundError(f"Competition not found: {competition_code}")

        matches = self._match_repo.list_finished_with_facts(conn, competition.id, round)
        if not matches:
            logger.info("Round %d of %s has no finished matches; nothing scored", round, competition_code)
            return None

        points = compute_round_points(matches)
        teams = self._fantasy_team_repo.list_by_competition(conn, competition.id)
        for team in teams:
            with transaction(conn):
                picks = self._fantasy_team_repo.get_picks(conn, team.id)
                gameweek = compute_team_gameweek(team.id, round, picks, points)
                self._gameweek_repo.upsert(conn, team.id, round, gameweek.total)
                total = self._gameweek_repo.sum_points(conn, team.id)
                self._fantasy_team_repo.update_total_points(conn, team.id, total)
            logger.debug("Team %s round %d: %d points (total %d)", team.id, round, gameweek.total, total)

        logger.info(
            "Scored round %d of %s: %d matches, %d fantasy teams",
            round, competition_code, len(matches), len(teams),
        )
        return RoundScoreSummary(round=round, matches_processed=len(matches), teams_updated=len(teams))

    def gameweek_breakdown(
        self, conn: sqlite3.Connection, fantasy_team_id: str, round: int
    ) -> TeamGameweekPoints:
        """Per-player points for one team and round, recomputed from match facts. Writes nothing."""
        team = self._fantasy_team_repo.get(conn, fantasy_team_id)
        if team is None:
            raise NotFoundError(f"Fantasy team not found: {fantasy_team_id}")
        matches = self._match_repo.list_finished_with_facts(conn, team.competition_id, round)
        points = compute_round_points(matches)
        picks = self._fantasy_team_repo.get_picks(conn, team.id)
        return compute_team_gameweek(team.id, round, picks, points)
