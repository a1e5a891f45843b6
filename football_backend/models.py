"""
Data models for the football league backend.
Domain objects only: no persistence or API logic.

Reference data (competitions, teams, players) and match facts (matches, lineups,
events) are read-only to the fantasy core. Fantasy teams, picks and gameweeks
are owned by the fantasy services.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# ---------- Positions ----------
class Position(str, Enum):
    GK = "GK"
    DF = "DF"
    MF = "MF"
    FW = "FW"


# ---------- Match status ----------
class MatchStatus(str, Enum):
    """Scores are present iff status is live or finished."""
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"


# ---------- Match event type ----------
class EventType(str, Enum):
    GOAL = "goal"
    YELLOW_CARD = "yellow_card"
    RED_CARD = "red_card"
    SUBSTITUTION = "substitution"


def price_to_display(tenths: int) -> float:
    """Prices and budgets are stored in tenths (55 -> 5.5)."""
    return round(tenths / 10, 1)


# ---------- Competition ----------
@dataclass
class Competition:
    id: str
    code: str
    name: str
    season: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "code": self.code, "name": self.name, "season": self.season}


# ---------- Team ----------
@dataclass
class Team:
    """A real football club. Immutable reference data."""
    id: str
    name: str
    short_name: str
    city: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "name": self.name, "short_name": self.short_name}
        if self.city is not None:
            d["city"] = self.city
        return d


# ---------- Player ----------
@dataclass
class Player:
    """
    A real player. price is in tenths of a currency unit.
    position may be overridden per match by a lineup entry.
    """
    id: str
    name: str
    team_id: str
    position: Position | None
    price: int
    number: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "number": self.number,
            "position": self.position.value if self.position else None,
            "price": price_to_display(self.price),
            "team_id": self.team_id,
        }


# ---------- Match ----------
@dataclass
class Match:
    """
    A fixture within a competition round.
    home_score/away_score are None while scheduled.
    """
    id: str
    competition_id: str
    round: int
    kickoff_at: datetime
    status: MatchStatus
    home_team_id: str
    away_team_id: str
    home_score: int | None = None
    away_score: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "competition_id": self.competition_id,
            "round": self.round,
            "kickoff_at": self.kickoff_at.isoformat(),
            "status": self.status.value,
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "home_score": self.home_score,
            "away_score": self.away_score,
        }


# ---------- MatchEvent ----------
@dataclass
class MatchEvent:
    """
    One event in a match.
    assist_player_id only for goals; player_in_id/player_out_id only for substitutions.
    """
    id: str
    match_id: str
    type: EventType
    minute: int
    player_id: str
    team_id: str
    extra_minute: int | None = None
    assist_player_id: str | None = None
    player_in_id: str | None = None
    player_out_id: str | None = None

    def substituted_in_player_id(self) -> str | None:
        """Player who came on. Older rows only carry the acting player."""
        if self.type != EventType.SUBSTITUTION:
            return None
        return self.player_in_id or self.player_id

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "match_id": self.match_id,
            "type": self.type.value,
            "minute": self.minute,
            "player_id": self.player_id,
            "team_id": self.team_id,
        }
        if self.extra_minute is not None:
            d["extra_minute"] = self.extra_minute
        if self.assist_player_id is not None:
            d["assist_player_id"] = self.assist_player_id
        if self.player_in_id is not None:
            d["player_in_id"] = self.player_in_id
        if self.player_out_id is not None:
            d["player_out_id"] = self.player_out_id
        return d


# ---------- MatchLineup ----------
@dataclass
class MatchLineup:
    """
    One squad-list entry for a match (starters + bench).
    position is the per-match override; player_position is the player's reference position.
    """
    match_id: str
    team_id: str
    player_id: str
    is_starter: bool
    position: Position | None = None
    player_position: Position | None = None

    def to_dict(self) -> dict[str, Any]:
        effective = self.position or self.player_position
        return {
            "player_id": self.player_id,
            "team_id": self.team_id,
            "is_starter": self.is_starter,
            "position": effective.value if effective else None,
        }


@dataclass
class MatchFacts:
    """A finished match together with its lineups and events, as consumed by scoring."""
    match: Match
    lineups: list[MatchLineup] = field(default_factory=list)
    events: list[MatchEvent] = field(default_factory=list)


# ---------- User ----------
@dataclass
class User:
    id: str
    username: str
    display_name: str
    created_at: datetime
    password_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "created_at": self.created_at.isoformat(),
        }


# ---------- FantasyTeam ----------
@dataclass
class FantasyTeam:
    """
    A user's fantasy team. One per user per competition.
    budget is the remaining budget in tenths; total_points is the resum of all gameweeks.
    """
    id: str
    user_id: str
    competition_id: str
    name: str
    budget: int
    total_points: int
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "competition_id": self.competition_id,
            "name": self.name,
            "budget": price_to_display(self.budget),
            "total_points": self.total_points,
            "created_at": self.created_at.isoformat(),
        }


# ---------- FantasyPick ----------
@dataclass
class FantasyPick:
    """One of the 15 squad slots of a fantasy team."""
    fantasy_team_id: str
    player_id: str
    position: Position
    is_captain: bool = False
    is_vice_captain: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "position": self.position.value,
            "is_captain": self.is_captain,
            "is_vice_captain": self.is_vice_captain,
        }


# ---------- FantasyGameweek ----------
@dataclass
class FantasyGameweek:
    """Points for one (fantasy team, round). Overwritten on re-scoring, never appended."""
    fantasy_team_id: str
    round: int
    points: int

    def to_dict(self) -> dict[str, Any]:
        return {"round": self.round, "points": self.points}
