"""
League read paths: standings, league leaders, clubs, players and match detail.
Standings and leaders are recomputed from the fact store on every call.
"""
from __future__ import annotations

import sqlite3
from typing import Any

from football_backend.errors import NotFoundError
from football_backend.models import Competition, Player, Team
from football_backend.persistence.repositories import (
    CompetitionRepository,
    MatchRepository,
    PlayerRepository,
    TeamRepository,
)
from football_backend.standings import MatchResult, StandingsRow, compute_standings
from football_backend.stats import LEADERS_LIMIT, LeagueLeaders, compute_league_leaders


class LeagueService:
    """Standings, stats and reference data from the fact store. Never writes."""

    def __init__(self) -> None:
        self._competition_repo = CompetitionRepository()
        self._team_repo = TeamRepository()
        self._player_repo = PlayerRepository()
        self._match_repo = MatchRepository()

    def _competition(self, conn: sqlite3.Connection, code: str) -> Competition:
        competition = self._competition_repo.get_by_code(conn, code)
        if competition is None:
            raise NotFoundError(f"Competition not found: {code}")
        return competition

    def standings(self, conn: sqlite3.Connection, competition_code: str) -> list[StandingsRow]:
        """
        Ranked table. Every club with a fixture in the competition has a row,
        including clubs that have not finished a match yet.
        """
        competition = self._competition(conn, competition_code)
        teams = self._team_repo.list_by_competition(conn, competition.id)
        by_id = {t.id: t for t in teams}
        results = [
            MatchResult(
                home_team=by_id[m.home_team_id],
                away_team=by_id[m.away_team_id],
                home_score=m.home_score,
                away_score=m.away_score,
            )
            for m in self._match_repo.list_finished(conn, competition.id)
        ]
        return compute_standings(results, teams)

    def league_leaders(
        self, conn: sqlite3.Connection, competition_code: str, limit: int = LEADERS_LIMIT
    ) -> LeagueLeaders:
        competition = self._competition(conn, competition_code)
        matches = self._match_repo.list_finished_with_facts(conn, competition.id)
        teams = self._team_repo.list_by_competition(conn, competition.id)
        players = {p.id: p for p in self._player_repo.list_by_teams(conn, [t.id for t in teams])}
        return compute_league_leaders(matches, players, limit)

    # ---------- Reference data ----------

    def clubs(self, conn: sqlite3.Connection) -> list[Team]:
        return self._team_repo.list_all(conn)

    def players(self, conn: sqlite3.Connection, team_id: str | None = None) -> list[Player]:
        """Players by name, optionally one club's. An unknown club has no players."""
        return self._player_repo.list_all(conn, team_id)

    def player(self, conn: sqlite3.Connection, player_id: str) -> dict[str, Any]:
        """Player with their club."""
        player = self._player_repo.get(conn, player_id)
        if player is None:
            raise NotFoundError(f"Player not found: {player_id}")
        team = self._team_repo.get(conn, player.team_id)
        return {**player.to_dict(), "team": team.to_dict() if team else None}

    def match_detail(self, conn: sqlite3.Connection, match_id: str) -> dict[str, Any]:
        """
        Match with both clubs, its lineups and its events in minute order.
        Lineup entries and events carry the player's name and number.
        """
        match = self._match_repo.get(conn, match_id)
        if match is None:
            raise NotFoundError(f"Match not found: {match_id}")
        competition = self._competition_repo.get(conn, match.competition_id)
        clubs = {
            t.id: t.to_dict()
            for t in (self._team_repo.get(conn, match.home_team_id), self._team_repo.get(conn, match.away_team_id))
            if t is not None
        }
        lineups = self._match_repo.list_lineups(conn, match.id)
        events = self._match_repo.list_events(conn, match.id)
        player_ids = [entry.player_id for entry in lineups] + [e.player_id for e in events]
        players = {p.id: p for p in self._player_repo.get_many(conn, player_ids)}

        def person(player_id: str) -> dict[str, Any] | None:
            p = players.get(player_id)
            return {"id": p.id, "name": p.name, "number": p.number} if p else None

        return {
            **match.to_dict(),
            "competition": competition.code if competition else None,
            "home_team": clubs.get(match.home_team_id),
            "away_team": clubs.get(match.away_team_id),
            "lineups": [{**entry.to_dict(), "player": person(entry.player_id)} for entry in lineups],
            "events": [
                {**e.to_dict(), "player": person(e.player_id), "team": clubs.get(e.team_id)}
                for e in events
            ],
        }
