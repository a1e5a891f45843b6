"""
Repository interfaces for league facts and fantasy data.
No business logic, only read/write operations.

Fact-store writes (competitions, teams, players, matches, lineups, events, users)
commit immediately unless called with commit=False, as the seed loader does to
load a whole document in one transaction. Fantasy writes that belong to a larger unit (pick replacement,
gameweek upsert, total recompute) do not commit; callers wrap them in
persistence.db.transaction().
"""
from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Iterable

from football_backend.models import (
    Competition,
    EventType,
    FantasyGameweek,
    FantasyPick,
    FantasyTeam,
    Match,
    MatchEvent,
    MatchFacts,
    MatchLineup,
    MatchStatus,
    Player,
    Position,
    Team,
    User,
)


def _parse_datetime(s: str | None) -> datetime:
    if s is None:
        raise ValueError("expected datetime string")
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _position(value: str | None) -> Position | None:
    return Position(value) if value else None


def _placeholders(n: int) -> str:
    return ", ".join("?" for _ in range(n))


# ---------- CompetitionRepository ----------


class CompetitionRepository:
    """CRUD for competitions."""

    def create(
        self,
        conn: sqlite3.Connection,
        code: str,
        name: str,
        season: int,
        id: str | None = None,
        commit: bool = True,
    ) -> Competition:
        cid = id or str(uuid.uuid4())
        conn.execute(
            "INSERT INTO competitions (id, code, name, season) VALUES (?, ?, ?, ?)",
            (cid, code, name, season),
        )
        if commit:
            conn.commit()
        return Competition(id=cid, code=code, name=name, season=season)

    def get(self, conn: sqlite3.Connection, competition_id: str) -> Competition | None:
        row = conn.execute(
            "SELECT id, code, name, season FROM competitions WHERE id = ?",
            (competition_id,),
        ).fetchone()
        return Competition(**dict(row)) if row else None

    def get_by_code(self, conn: sqlite3.Connection, code: str) -> Competition | None:
        row = conn.execute(
            "SELECT id, code, name, season FROM competitions WHERE code = ?",
            (code,),
        ).fetchone()
        return Competition(**dict(row)) if row else None

    def list_all(self, conn: sqlite3.Connection) -> list[Competition]:
        rows = conn.execute("SELECT id, code, name, season FROM competitions ORDER BY code").fetchall()
        return [Competition(**dict(r)) for r in rows]


# ---------- TeamRepository ----------


class TeamRepository:
    """CRUD for real clubs."""

    def create(
        self,
        conn: sqlite3.Connection,
        name: str,
        short_name: str,
        city: str | None = None,
        id: str | None = None,
        commit: bool = True,
    ) -> Team:
        tid = id or str(uuid.uuid4())
        conn.execute(
            "INSERT INTO teams (id, name, short_name, city) VALUES (?, ?, ?, ?)",
            (tid, name, short_name, city),
        )
        if commit:
            conn.commit()
        return Team(id=tid, name=name, short_name=short_name, city=city)

    def get(self, conn: sqlite3.Connection, team_id: str) -> Team | None:
        row = conn.execute(
            "SELECT id, name, short_name, city FROM teams WHERE id = ?",
            (team_id,),
        ).fetchone()
        return Team(**dict(row)) if row else None

    def get_by_name(self, conn: sqlite3.Connection, name: str) -> Team | None:
        row = conn.execute(
            "SELECT id, name, short_name, city FROM teams WHERE name = ?",
            (name,),
        ).fetchone()
        return Team(**dict(row)) if row else None

    def list_all(self, conn: sqlite3.Connection) -> list[Team]:
        rows = conn.execute("SELECT id, name, short_name, city FROM teams ORDER BY name").fetchall()
        return [Team(**dict(r)) for r in rows]

    def list_by_competition(self, conn: sqlite3.Connection, competition_id: str) -> list[Team]:
        """Clubs with at least one fixture (any status) in the competition."""
        rows = conn.execute(
            """SELECT id, name, short_name, city FROM teams
               WHERE id IN (
                   SELECT home_team_id FROM matches WHERE competition_id = ?
                   UNION
                   SELECT away_team_id FROM matches WHERE competition_id = ?
               )
               ORDER BY name""",
            (competition_id, competition_id),
        ).fetchall()
        return [Team(**dict(r)) for r in rows]


# ---------- PlayerRepository ----------


_PLAYER_COLS = "id, name, number, position, price, team_id"


def _row_to_player(r: sqlite3.Row) -> Player:
    return Player(
        id=r["id"],
        name=r["name"],
        number=r["number"],
        position=_position(r["position"]),
        price=r["price"],
        team_id=r["team_id"],
    )


class PlayerRepository:
    """CRUD for real players. price in tenths."""

    def create(
        self,
        conn: sqlite3.Connection,
        name: str,
        team_id: str,
        position: Position | None,
        price: int,
        number: int | None = None,
        id: str | None = None,
        commit: bool = True,
    ) -> Player:
        pid = id or str(uuid.uuid4())
        conn.execute(
            f"INSERT INTO players ({_PLAYER_COLS}) VALUES (?, ?, ?, ?, ?, ?)",
            (pid, name, number, position.value if position else None, price, team_id),
        )
        if commit:
            conn.commit()
        return Player(id=pid, name=name, number=number, position=position, price=price, team_id=team_id)

    def get(self, conn: sqlite3.Connection, player_id: str) -> Player | None:
        row = conn.execute(f"SELECT {_PLAYER_COLS} FROM players WHERE id = ?", (player_id,)).fetchone()
        return _row_to_player(row) if row else None

    def get_many(self, conn: sqlite3.Connection, player_ids: Iterable[str]) -> list[Player]:
        """Players for the given ids; unknown ids are simply missing from the result."""
        ids = list(dict.fromkeys(player_ids))
        if not ids:
            return []
        rows = conn.execute(
            f"SELECT {_PLAYER_COLS} FROM players WHERE id IN ({_placeholders(len(ids))})",
            ids,
        ).fetchall()
        return [_row_to_player(r) for r in rows]

    def list_all(self, conn: sqlite3.Connection, team_id: str | None = None) -> list[Player]:
        """All players by name, or one club's when team_id is given."""
        sql = f"SELECT {_PLAYER_COLS} FROM players"
        args: list = []
        if team_id is not None:
            sql += " WHERE team_id = ?"
            args.append(team_id)
        rows = conn.execute(sql + " ORDER BY name, id", args).fetchall()
        return [_row_to_player(r) for r in rows]

    def list_by_teams(self, conn: sqlite3.Connection, team_ids: Iterable[str]) -> list[Player]:
        """Players of the given clubs, most expensive first, then by name."""
        ids = list(team_ids)
        if not ids:
            return []
        rows = conn.execute(
            f"SELECT {_PLAYER_COLS} FROM players WHERE team_id IN ({_placeholders(len(ids))}) "
            "ORDER BY price DESC, name ASC",
            ids,
        ).fetchall()
        return [_row_to_player(r) for r in rows]


# ---------- MatchRepository ----------


_MATCH_COLS = "id, competition_id, round, kickoff_at, status, home_team_id, away_team_id, home_score, away_score"


def _row_to_match(r: sqlite3.Row) -> Match:
    return Match(
        id=r["id"],
        competition_id=r["competition_id"],
        round=r["round"],
        kickoff_at=_parse_datetime(r["kickoff_at"]),
        status=MatchStatus(r["status"]),
        home_team_id=r["home_team_id"],
        away_team_id=r["away_team_id"],
        home_score=r["home_score"],
        away_score=r["away_score"],
    )


class MatchRepository:
    """CRUD for matches, their lineups and events. The fact store read by scoring and standings."""

    def create(
        self,
        conn: sqlite3.Connection,
        competition_id: str,
        round: int,
        home_team_id: str,
        away_team_id: str,
        kickoff_at: datetime,
        status: MatchStatus = MatchStatus.SCHEDULED,
        home_score: int | None = None,
        away_score: int | None = None,
        id: str | None = None,
        commit: bool = True,
    ) -> Match:
        mid = id or str(uuid.uuid4())
        conn.execute(
            f"INSERT INTO matches ({_MATCH_COLS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                mid, competition_id, round, kickoff_at.isoformat(), status.value,
                home_team_id, away_team_id, home_score, away_score,
            ),
        )
        if commit:
            conn.commit()
        return Match(
            id=mid, competition_id=competition_id, round=round, kickoff_at=kickoff_at,
            status=status, home_team_id=home_team_id, away_team_id=away_team_id,
            home_score=home_score, away_score=away_score,
        )

    def get(self, conn: sqlite3.Connection, match_id: str) -> Match | None:
        row = conn.execute(f"SELECT {_MATCH_COLS} FROM matches WHERE id = ?", (match_id,)).fetchone()
        return _row_to_match(row) if row else None

    def update_result(
        self,
        conn: sqlite3.Connection,
        match_id: str,
        status: MatchStatus,
        home_score: int | None,
        away_score: int | None,
    ) -> None:
        """Set status and score together (scores must be None iff scheduled)."""
        conn.execute(
            "UPDATE matches SET status = ?, home_score = ?, away_score = ? WHERE id = ?",
            (status.value, home_score, away_score, match_id),
        )
        conn.commit()

    def list_by_competition(
        self, conn: sqlite3.Connection, competition_id: str, round: int | None = None
    ) -> list[Match]:
        sql = f"SELECT {_MATCH_COLS} FROM matches WHERE competition_id = ?"
        args: list = [competition_id]
        if round is not None:
            sql += " AND round = ?"
            args.append(round)
        rows = conn.execute(sql + " ORDER BY round, kickoff_at, id", args).fetchall()
        return [_row_to_match(r) for r in rows]

    def list_finished(
        self, conn: sqlite3.Connection, competition_id: str, round: int | None = None
    ) -> list[Match]:
        """Finished matches with both scores set; all rounds when round is None."""
        sql = (
            f"SELECT {_MATCH_COLS} FROM matches WHERE competition_id = ? AND status = 'finished' "
            "AND home_score IS NOT NULL AND away_score IS NOT NULL"
        )
        args: list = [competition_id]
        if round is not None:
            sql += " AND round = ?"
            args.append(round)
        rows = conn.execute(sql + " ORDER BY round, kickoff_at, id", args).fetchall()
        return [_row_to_match(r) for r in rows]

    def has_live_match(self, conn: sqlite3.Connection, competition_id: str) -> bool:
        row = conn.execute(
            "SELECT 1 FROM matches WHERE competition_id = ? AND status = 'live' LIMIT 1",
            (competition_id,),
        ).fetchone()
        return row is not None

    # ---------- Lineups ----------

    def add_lineup(
        self,
        conn: sqlite3.Connection,
        match_id: str,
        team_id: str,
        player_id: str,
        is_starter: bool,
        position: Position | None = None,
        commit: bool = True,
    ) -> None:
        conn.execute(
            "INSERT INTO match_lineups (match_id, team_id, player_id, is_starter, position) VALUES (?, ?, ?, ?, ?)",
            (match_id, team_id, player_id, 1 if is_starter else 0, position.value if position else None),
        )
        if commit:
            conn.commit()

    def list_lineups(self, conn: sqlite3.Connection, match_id: str) -> list[MatchLineup]:
        """Lineup entries with the player's reference position joined in."""
        rows = conn.execute(
            """SELECT l.match_id, l.team_id, l.player_id, l.is_starter, l.position,
                      p.position AS player_position
               FROM match_lineups l LEFT JOIN players p ON p.id = l.player_id
               WHERE l.match_id = ?
               ORDER BY l.team_id, l.is_starter DESC, l.player_id""",
            (match_id,),
        ).fetchall()
        return [
            MatchLineup(
                match_id=r["match_id"],
                team_id=r["team_id"],
                player_id=r["player_id"],
                is_starter=bool(r["is_starter"]),
                position=_position(r["position"]),
                player_position=_position(r["player_position"]),
            )
            for r in rows
        ]

    # ---------- Events ----------

    def add_event(
        self,
        conn: sqlite3.Connection,
        match_id: str,
        type: EventType,
        minute: int,
        player_id: str,
        team_id: str,
        extra_minute: int | None = None,
        assist_player_id: str | None = None,
        player_in_id: str | None = None,
        player_out_id: str | None = None,
        id: str | None = None,
        commit: bool = True,
    ) -> MatchEvent:
        eid = id or str(uuid.uuid4())
        conn.execute(
            """INSERT INTO match_events (
                id, match_id, type, minute, extra_minute, player_id,
                assist_player_id, player_in_id, player_out_id, team_id
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                eid, match_id, type.value, minute, extra_minute, player_id,
                assist_player_id, player_in_id, player_out_id, team_id,
            ),
        )
        if commit:
            conn.commit()
        return MatchEvent(
            id=eid, match_id=match_id, type=type, minute=minute, player_id=player_id,
            team_id=team_id, extra_minute=extra_minute, assist_player_id=assist_player_id,
            player_in_id=player_in_id, player_out_id=player_out_id,
        )

    def list_events(self, conn: sqlite3.Connection, match_id: str) -> list[MatchEvent]:
        rows = conn.execute(
            """SELECT id, match_id, type, minute, extra_minute, player_id,
                      assist_player_id, player_in_id, player_out_id, team_id
               FROM match_events WHERE match_id = ?
               ORDER BY minute, COALESCE(extra_minute, 0), id""",
            (match_id,),
        ).fetchall()
        return [
            MatchEvent(
                id=r["id"],
                match_id=r["match_id"],
                type=EventType(r["type"]),
                minute=r["minute"],
                extra_minute=r["extra_minute"],
                player_id=r["player_id"],
                assist_player_id=r["assist_player_id"],
                player_in_id=r["player_in_id"],
                player_out_id=r["player_out_id"],
                team_id=r["team_id"],
            )
            for r in rows
        ]

    def list_finished_with_facts(
        self, conn: sqlite3.Connection, competition_id: str, round: int | None = None
    ) -> list[MatchFacts]:
        """Finished matches with lineups and events; all rounds when round is None."""
        return [
            MatchFacts(match=m, lineups=self.list_lineups(conn, m.id), events=self.list_events(conn, m.id))
            for m in self.list_finished(conn, competition_id, round)
        ]


# ---------- UserRepository ----------


class UserRepository:
    """CRUD for users. password_hash only, never plain text."""

    def create(
        self,
        conn: sqlite3.Connection,
        username: str,
        password_hash: str | None = None,
        display_name: str | None = None,
        id: str | None = None,
    ) -> User:
        uid = id or str(uuid.uuid4())
        now = _now_iso()
        name = display_name or username
        conn.execute(
            "INSERT INTO users (id, username, display_name, password_hash, created_at) VALUES (?, ?, ?, ?, ?)",
            (uid, username, name, password_hash, now),
        )
        conn.commit()
        return User(
            id=uid, username=username, display_name=name,
            created_at=_parse_datetime(now), password_hash=password_hash,
        )

    def _one(self, conn: sqlite3.Connection, where: str, arg: str) -> User | None:
        row = conn.execute(
            f"SELECT id, username, display_name, password_hash, created_at FROM users WHERE {where} = ?",
            (arg,),
        ).fetchone()
        if row is None:
            return None
        return User(
            id=row["id"],
            username=row["username"],
            display_name=row["display_name"],
            created_at=_parse_datetime(row["created_at"]),
            password_hash=row["password_hash"],
        )

    def get(self, conn: sqlite3.Connection, user_id: str) -> User | None:
        return self._one(conn, "id", user_id)

    def get_by_username(self, conn: sqlite3.Connection, username: str) -> User | None:
        return self._one(conn, "username", username)


# ---------- FantasyTeamRepository ----------


_FANTASY_TEAM_COLS = "id, user_id, competition_id, name, budget, total_points, created_at"


def _row_to_fantasy_team(r: sqlite3.Row) -> FantasyTeam:
    return FantasyTeam(
        id=r["id"],
        user_id=r["user_id"],
        competition_id=r["competition_id"],
        name=r["name"],
        budget=r["budget"],
        total_points=r["total_points"],
        created_at=_parse_datetime(r["created_at"]),
    )


class FantasyTeamRepository:
    """CRUD for fantasy teams and their picks."""

    def create(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        competition_id: str,
        name: str,
        budget: int,
        id: str | None = None,
    ) -> FantasyTeam:
        """Raises sqlite3.IntegrityError if the user already has a team in the competition."""
        tid = id or str(uuid.uuid4())
        now = _now_iso()
        conn.execute(
            f"INSERT INTO fantasy_teams ({_FANTASY_TEAM_COLS}) VALUES (?, ?, ?, ?, ?, 0, ?)",
            (tid, user_id, competition_id, name, budget, now),
        )
        conn.commit()
        return FantasyTeam(
            id=tid, user_id=user_id, competition_id=competition_id, name=name,
            budget=budget, total_points=0, created_at=_parse_datetime(now),
        )

    def get(self, conn: sqlite3.Connection, team_id: str) -> FantasyTeam | None:
        row = conn.execute(
            f"SELECT {_FANTASY_TEAM_COLS} FROM fantasy_teams WHERE id = ?", (team_id,)
        ).fetchone()
        return _row_to_fantasy_team(row) if row else None

    def get_by_user_and_competition(
        self, conn: sqlite3.Connection, user_id: str, competition_id: str
    ) -> FantasyTeam | None:
        row = conn.execute(
            f"SELECT {_FANTASY_TEAM_COLS} FROM fantasy_teams WHERE user_id = ? AND competition_id = ?",
            (user_id, competition_id),
        ).fetchone()
        return _row_to_fantasy_team(row) if row else None

    def list_by_competition(self, conn: sqlite3.Connection, competition_id: str) -> list[FantasyTeam]:
        rows = conn.execute(
            f"SELECT {_FANTASY_TEAM_COLS} FROM fantasy_teams WHERE competition_id = ? ORDER BY created_at, id",
            (competition_id,),
        ).fetchall()
        return [_row_to_fantasy_team(r) for r in rows]

    def leaderboard(self, conn: sqlite3.Connection, competition_id: str, limit: int = 100) -> list[FantasyTeam]:
        """Highest total first; ties by team name, then id."""
        rows = conn.execute(
            f"SELECT {_FANTASY_TEAM_COLS} FROM fantasy_teams WHERE competition_id = ? "
            "ORDER BY total_points DESC, name ASC, id ASC LIMIT ?",
            (competition_id, limit),
        ).fetchall()
        return [_row_to_fantasy_team(r) for r in rows]

    def get_picks(self, conn: sqlite3.Connection, team_id: str) -> list[FantasyPick]:
        rows = conn.execute(
            """SELECT fantasy_team_id, player_id, position, is_captain, is_vice_captain
               FROM fantasy_picks WHERE fantasy_team_id = ? ORDER BY sort_order""",
            (team_id,),
        ).fetchall()
        return [
            FantasyPick(
                fantasy_team_id=r["fantasy_team_id"],
                player_id=r["player_id"],
                position=Position(r["position"]),
                is_captain=bool(r["is_captain"]),
                is_vice_captain=bool(r["is_vice_captain"]),
            )
            for r in rows
        ]

    def replace_picks(
        self,
        conn: sqlite3.Connection,
        team_id: str,
        picks: Iterable[FantasyPick],
        budget: int,
    ) -> None:
        """Delete and recreate all picks, set remaining budget. Does not commit."""
        conn.execute("DELETE FROM fantasy_picks WHERE fantasy_team_id = ?", (team_id,))
        conn.executemany(
            """INSERT INTO fantasy_picks (
                fantasy_team_id, player_id, position, is_captain, is_vice_captain, sort_order
            ) VALUES (?, ?, ?, ?, ?, ?)""",
            [
                (team_id, p.player_id, p.position.value, 1 if p.is_captain else 0, 1 if p.is_vice_captain else 0, i)
                for i, p in enumerate(picks)
            ],
        )
        conn.execute("UPDATE fantasy_teams SET budget = ? WHERE id = ?", (budget, team_id))

    def update_total_points(self, conn: sqlite3.Connection, team_id: str, total_points: int) -> None:
        """Does not commit."""
        conn.execute("UPDATE fantasy_teams SET total_points = ? WHERE id = ?", (total_points, team_id))


# ---------- FantasyGameweekRepository ----------


class FantasyGameweekRepository:
    """Per-round fantasy points. One row per (team, round)."""

    def upsert(self, conn: sqlite3.Connection, team_id: str, round: int, points: int) -> FantasyGameweek:
        """Insert or overwrite the row for (team, round). Does not commit."""
        conn.execute(
            """INSERT INTO fantasy_gameweeks (fantasy_team_id, round, points) VALUES (?, ?, ?)
               ON CONFLICT (fantasy_team_id, round) DO UPDATE SET points = excluded.points""",
            (team_id, round, points),
        )
        return FantasyGameweek(fantasy_team_id=team_id, round=round, points=points)

    def get(self, conn: sqlite3.Connection, team_id: str, round: int) -> FantasyGameweek | None:
        row = conn.execute(
            "SELECT fantasy_team_id, round, points FROM fantasy_gameweeks WHERE fantasy_team_id = ? AND round = ?",
            (team_id, round),
        ).fetchone()
        return FantasyGameweek(**dict(row)) if row else None

    def list_by_team(self, conn: sqlite3.Connection, team_id: str) -> list[FantasyGameweek]:
        rows = conn.execute(
            "SELECT fantasy_team_id, round, points FROM fantasy_gameweeks WHERE fantasy_team_id = ? ORDER BY round",
            (team_id,),
        ).fetchall()
        return [FantasyGameweek(**dict(r)) for r in rows]

    def sum_points(self, conn: sqlite3.Connection, team_id: str) -> int:
        row = conn.execute(
            "SELECT COALESCE(SUM(points), 0) AS total FROM fantasy_gameweeks WHERE fantasy_team_id = ?",
            (team_id,),
        ).fetchone()
        return int(row["total"])
