"""
Load league reference data and match facts from a JSON document.

Shape:
    {
      "competitions": [{"code", "name", "season"}],
      "teams": [{"name", "short_name", "city", "players": [{"name", "number", "position", "price"}]}],
      "matches": [{
          "competition", "round", "kickoff_at", "home", "away", "status",
          "home_score", "away_score",
          "lineups": {"home": [{"player", "starter", "position"}], "away": [...]},
          "events": [{"type", "minute", "extra_minute", "side", "player",
                      "assist", "player_in", "player_out"}]
      }]
    }

Players are referenced by name within their club; prices are decimal (5.5) and
stored in tenths. A document whose competitions already exist is skipped; a
failing document leaves nothing behind.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from football_backend.models import EventType, MatchStatus, Position

from .db import transaction
from .repositories import (
    CompetitionRepository,
    MatchRepository,
    PlayerRepository,
    TeamRepository,
)

logger = logging.getLogger(__name__)


def price_to_tenths(price: float) -> int:
    return int(round(price * 10))


def load_league_json(conn: sqlite3.Connection, path: Path) -> int:
    """Load the document at path. Returns the number of matches inserted."""
    data = json.loads(Path(path).read_text())
    return load_league_data(conn, data)


def load_league_data(conn: sqlite3.Connection, data: dict[str, Any]) -> int:
    """
    Load one document in a single transaction. Any bad reference (unknown
    club, player or competition) rolls the whole document back.
    """
    competition_repo = CompetitionRepository()
    team_repo = TeamRepository()
    player_repo = PlayerRepository()
    match_repo = MatchRepository()

    competitions = data.get("competitions", [])
    if any(competition_repo.get_by_code(conn, c["code"]) for c in competitions):
        logger.info("Seed skipped: competitions already present")
        return 0

    competition_ids: dict[str, str] = {}
    team_ids: dict[str, str] = {}
    # (team name, player name) -> player id
    player_ids: dict[tuple[str, str], str] = {}
    inserted = 0
    with transaction(conn):
        for c in competitions:
            comp = competition_repo.create(conn, c["code"], c["name"], int(c["season"]), commit=False)
            competition_ids[comp.code] = comp.id

        for t in data.get("teams", []):
            team = team_repo.get_by_name(conn, t["name"]) or team_repo.create(
                conn, t["name"], t["short_name"], t.get("city"), commit=False
            )
            team_ids[team.name] = team.id
            for p in t.get("players", []):
                position = Position(p["position"]) if p.get("position") else None
                player = player_repo.create(
                    conn, p["name"], team.id, position, price_to_tenths(p["price"]),
                    number=p.get("number"), commit=False,
                )
                player_ids[(team.name, player.name)] = player.id

        for m in data.get("matches", []):
            _load_match(conn, match_repo, m, competition_ids, team_ids, player_ids)
            inserted += 1

    logger.info(
        "Seed loaded: %d competitions, %d teams, %d players, %d matches",
        len(competition_ids), len(team_ids), len(player_ids), inserted,
    )
    return inserted


def _load_match(
    conn: sqlite3.Connection,
    match_repo: MatchRepository,
    m: dict[str, Any],
    competition_ids: dict[str, str],
    team_ids: dict[str, str],
    player_ids: dict[tuple[str, str], str],
) -> None:
    home_name, away_name = m["home"], m["away"]
    match = match_repo.create(
        conn,
        competition_id=competition_ids[m["competition"]],
        round=int(m["round"]),
        home_team_id=team_ids[home_name],
        away_team_id=team_ids[away_name],
        kickoff_at=datetime.fromisoformat(m["kickoff_at"]),
        status=MatchStatus(m.get("status", MatchStatus.SCHEDULED.value)),
        home_score=m.get("home_score"),
        away_score=m.get("away_score"),
        commit=False,
    )
    sides = {"home": home_name, "away": away_name}

    def pid(side: str, name: str | None) -> str | None:
        return player_ids[(sides[side], name)] if name else None

    for side, entries in m.get("lineups", {}).items():
        for entry in entries:
            match_repo.add_lineup(
                conn,
                match.id,
                team_ids[sides[side]],
                pid(side, entry["player"]),
                bool(entry.get("starter", False)),
                Position(entry["position"]) if entry.get("position") else None,
                commit=False,
            )
    for e in m.get("events", []):
        side = e["side"]
        match_repo.add_event(
            conn,
            match.id,
            EventType(e["type"]),
            int(e["minute"]),
            pid(side, e.get("player") or e.get("player_in")),
            team_ids[sides[side]],
            extra_minute=e.get("extra_minute"),
            assist_player_id=pid(side, e.get("assist")),
            player_in_id=pid(side, e.get("player_in")),
            player_out_id=pid(side, e.get("player_out")),
            commit=False,
        )
