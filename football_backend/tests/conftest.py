"""
Shared fixtures: a temporary database and a small six-club league.

Clubs c0..c5 each have one GK, two DF, two MF and one FW, keyed like "c0_GK",
"c2_MF1". Round 1 fixtures: c0-c1, c2-c3, c4-c5 (all scheduled).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytest

from football_backend.models import (
    Competition,
    EventType,
    Match,
    MatchStatus,
    Player,
    Position,
    Team,
    User,
)
from football_backend.persistence.db import get_connection, init_db, set_db_path
from football_backend.persistence.repositories import (
    CompetitionRepository,
    MatchRepository,
    PlayerRepository,
    TeamRepository,
    UserRepository,
)
from football_backend.squad import PickRequest


CLUB_NAMES = ["Alpha FC", "Bravo FC", "Charlie FC", "Delta FC", "Echo FC", "Foxtrot FC"]
# label -> (position, price in tenths)
ROSTER = {
    "GK": (Position.GK, 40),
    "DF1": (Position.DF, 50),
    "DF2": (Position.DF, 50),
    "MF1": (Position.MF, 60),
    "MF2": (Position.MF, 60),
    "FW": (Position.FW, 70),
}
# Legal 15: 2 GK, 5 DF, 5 MF, 3 FW, three per club from c0..c4. Cost 840.
LEGAL_SQUAD = [
    "c0_GK", "c1_GK",
    "c0_DF1", "c1_DF1", "c2_DF1", "c3_DF1", "c4_DF1",
    "c2_MF1", "c2_MF2", "c3_MF1", "c3_MF2", "c4_MF1",
    "c0_FW", "c1_FW", "c4_FW",
]


@dataclass
class League:
    conn: object
    competition: Competition
    clubs: list[Team]
    players: dict[str, Player]
    matches: list[Match] = field(default_factory=list)

    def pid(self, key: str) -> str:
        return self.players[key].id

    def club_id(self, key: str) -> str:
        return self.players[key].team_id

    def add_match(self, round: int, home: int, away: int) -> Match:
        match = MatchRepository().create(
            self.conn,
            competition_id=self.competition.id,
            round=round,
            home_team_id=self.clubs[home].id,
            away_team_id=self.clubs[away].id,
            kickoff_at=datetime(2026, 3, round, 15, 0, tzinfo=timezone.utc),
        )
        self.matches.append(match)
        return match

    def finish(self, match: Match, home_score: int, away_score: int) -> None:
        MatchRepository().update_result(self.conn, match.id, MatchStatus.FINISHED, home_score, away_score)

    def go_live(self, match: Match) -> None:
        MatchRepository().update_result(self.conn, match.id, MatchStatus.LIVE, 0, 0)

    def lineup(self, match: Match, key: str, starter: bool = True, position: Position | None = None) -> None:
        MatchRepository().add_lineup(self.conn, match.id, self.club_id(key), self.pid(key), starter, position)

    def event(
        self,
        match: Match,
        type: EventType,
        key: str,
        minute: int = 10,
        assist: str | None = None,
        player_out: str | None = None,
    ) -> None:
        MatchRepository().add_event(
            self.conn,
            match.id,
            type,
            minute,
            self.pid(key),
            self.club_id(key),
            assist_player_id=self.pid(assist) if assist else None,
            player_in_id=self.pid(key) if type == EventType.SUBSTITUTION else None,
            player_out_id=self.pid(player_out) if player_out else None,
        )

    def squad(self, captain: str = "c0_FW", vice: str | None = "c1_FW", keys: list[str] | None = None) -> list[PickRequest]:
        return [
            PickRequest(
                player_id=self.pid(k),
                position=self.players[k].position,
                is_captain=k == captain,
                is_vice_captain=k == vice,
            )
            for k in (keys or LEGAL_SQUAD)
        ]


@pytest.fixture
def db_conn(tmp_path):
    """Temporary DB with the full schema and no data."""
    db_path = tmp_path / "football_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def league(db_conn) -> League:
    competition = CompetitionRepository().create(db_conn, "tl", "Test League", 2026)
    team_repo = TeamRepository()
    player_repo = PlayerRepository()
    clubs: list[Team] = []
    players: dict[str, Player] = {}
    for i, name in enumerate(CLUB_NAMES):
        club = team_repo.create(db_conn, name, name[:3].upper())
        clubs.append(club)
        for label, (position, price) in ROSTER.items():
            players[f"c{i}_{label}"] = player_repo.create(
                db_conn, f"{name} {label}", club.id, position, price
            )
    lg = League(conn=db_conn, competition=competition, clubs=clubs, players=players)
    lg.add_match(1, 0, 1)
    lg.add_match(1, 2, 3)
    lg.add_match(1, 4, 5)
    return lg


@pytest.fixture
def make_user(db_conn):
    def _make(username: str) -> User:
        return UserRepository().create(db_conn, username)
    return _make
