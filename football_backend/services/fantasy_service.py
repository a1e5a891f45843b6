"""
Fantasy team service: team creation, squad replacement, read paths.
Squad rules live in football_backend.squad; this layer owns ownership checks,
the live-match lock and the atomic pick replacement.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any

from football_backend.errors import ConflictError, ForbiddenError, NotFoundError
from football_backend.models import Competition, FantasyGameweek, FantasyPick, FantasyTeam, Player
from football_backend.persistence.db import transaction
from football_backend.persistence.repositories import (
    CompetitionRepository,
    FantasyGameweekRepository,
    FantasyTeamRepository,
    MatchRepository,
    PlayerRepository,
    TeamRepository,
    UserRepository,
)
from football_backend.squad import TOTAL_BUDGET, PickRequest, validate_squad

logger = logging.getLogger(__name__)

LEADERBOARD_LIMIT = 100


class FantasyService:
    """
    Write and read paths for fantasy teams.
    Persistence is delegated to repositories.
    """

    def __init__(self) -> None:
        self._competition_repo = CompetitionRepository()
        self._team_repo = TeamRepository()
        self._player_repo = PlayerRepository()
        self._match_repo = MatchRepository()
        self._user_repo = UserRepository()
        self._fantasy_team_repo = FantasyTeamRepository()
        self._gameweek_repo = FantasyGameweekRepository()

    def _competition(self, conn: sqlite3.Connection, code: str) -> Competition:
        competition = self._competition_repo.get_by_code(conn, code)
        if competition is None:
            raise NotFoundError(f"Competition not found: {code}")
        return competition

    def _team(self, conn: sqlite3.Connection, fantasy_team_id: str) -> FantasyTeam:
        team = self._fantasy_team_repo.get(conn, fantasy_team_id)
        if team is None:
            raise NotFoundError(f"Fantasy team not found: {fantasy_team_id}")
        return team

    # ---------- Write paths ----------

    def create_team(
        self, conn: sqlite3.Connection, user_id: str, competition_code: str, name: str
    ) -> FantasyTeam:
        """New team with the full budget, no picks and zero points. One per user per competition."""
        competition = self._competition(conn, competition_code)
        if self._user_repo.get(conn, user_id) is None:
            raise NotFoundError(f"User not found: {user_id}")
        if self._fantasy_team_repo.get_by_user_and_competition(conn, user_id, competition.id):
            raise ConflictError(f"You already have a fantasy team in {competition.name}")
        try:
            team = self._fantasy_team_repo.create(conn, user_id, competition.id, name, TOTAL_BUDGET)
        except sqlite3.IntegrityError as e:
            raise ConflictError(f"You already have a fantasy team in {competition.name}") from e
        logger.info("Fantasy team %s created for user %s in %s", team.id, user_id, competition.code)
        return team

    def update_picks(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        fantasy_team_id: str,
        picks: list[PickRequest],
    ) -> FantasyTeam:
        """
        Replace the whole squad. Rejected for non-owners and while any match of
        the competition is live; otherwise validated, then picks and remaining
        budget are rewritten in one transaction.
        """
        team = self._team(conn, fantasy_team_id)
        if team.user_id != user_id:
            raise ForbiddenError("You can only edit your own fantasy team")
        if self._match_repo.has_live_match(conn, team.competition_id):
            logger.warning("Squad edit for %s refused: a match is live", team.id)
            raise ForbiddenError("Squad is locked while a match is live")

        players = self._player_repo.get_many(conn, [p.player_id for p in picks])
        squad = validate_squad(picks, players)

        with transaction(conn):
            self._fantasy_team_repo.replace_picks(
                conn,
                team.id,
                [
                    FantasyPick(
                        fantasy_team_id=team.id,
                        player_id=p.player_id,
                        position=p.position,
                        is_captain=p.is_captain,
                        is_vice_captain=p.is_vice_captain,
                    )
                    for p in squad.picks
                ],
                squad.remaining_budget,
            )
        logger.info("Squad replaced for %s: cost %d, remaining %d", team.id, squad.total_cost, squad.remaining_budget)
        return self._team(conn, team.id)

    # ---------- Read paths ----------

    def get_team(self, conn: sqlite3.Connection, fantasy_team_id: str) -> dict[str, Any]:
        """Team with its picks, each joined with the player record."""
        team = self._team(conn, fantasy_team_id)
        picks = self._fantasy_team_repo.get_picks(conn, team.id)
        players = {p.id: p for p in self._player_repo.get_many(conn, [p.player_id for p in picks])}
        out = team.to_dict()
        out["picks"] = [
            {**pick.to_dict(), "player": players[pick.player_id].to_dict() if pick.player_id in players else None}
            for pick in picks
        ]
        return out

    def get_my_team(
        self, conn: sqlite3.Connection, user_id: str, competition_code: str
    ) -> dict[str, Any] | None:
        competition = self._competition(conn, competition_code)
        team = self._fantasy_team_repo.get_by_user_and_competition(conn, user_id, competition.id)
        if team is None:
            return None
        return self.get_team(conn, team.id)

    def get_gameweek_history(self, conn: sqlite3.Connection, fantasy_team_id: str) -> list[FantasyGameweek]:
        """Scored rounds, ascending."""
        team = self._team(conn, fantasy_team_id)
        return self._gameweek_repo.list_by_team(conn, team.id)

    def get_leaderboard(
        self, conn: sqlite3.Connection, competition_code: str, limit: int = LEADERBOARD_LIMIT
    ) -> list[dict[str, Any]]:
        competition = self._competition(conn, competition_code)
        teams = self._fantasy_team_repo.leaderboard(conn, competition.id, limit)
        out = []
        for rank, team in enumerate(teams, start=1):
            user = self._user_repo.get(conn, team.user_id)
            out.append({
                "rank": rank,
                "fantasy_team_id": team.id,
                "name": team.name,
                "username": user.display_name if user else None,
                "total_points": team.total_points,
            })
        return out

    def get_available_players(self, conn: sqlite3.Connection, competition_code: str) -> list[Player]:
        """Players of every club with a fixture in the competition; most expensive first."""
        competition = self._competition(conn, competition_code)
        teams = self._team_repo.list_by_competition(conn, competition.id)
        return self._player_repo.list_by_teams(conn, [t.id for t in teams])
