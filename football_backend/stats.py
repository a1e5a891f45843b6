"""
League leaders over finished matches: goals, assists, cards, goalkeeper clean sheets.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

from .models import EventType, MatchFacts, MatchLineup, Player, Position
from .scoring import resolve_position

LEADERS_LIMIT = 20


@dataclass(frozen=True)
class PlayerStat:
    player_id: str
    player_name: str
    team_id: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "player_name": self.player_name,
            "team_id": self.team_id,
            "count": self.count,
        }


@dataclass
class LeagueLeaders:
    top_scorers: list[PlayerStat] = field(default_factory=list)
    top_assists: list[PlayerStat] = field(default_factory=list)
    most_yellow_cards: list[PlayerStat] = field(default_factory=list)
    most_red_cards: list[PlayerStat] = field(default_factory=list)
    clean_sheets: list[PlayerStat] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "top_scorers": [s.to_dict() for s in self.top_scorers],
            "top_assists": [s.to_dict() for s in self.top_assists],
            "most_yellow_cards": [s.to_dict() for s in self.most_yellow_cards],
            "most_red_cards": [s.to_dict() for s in self.most_red_cards],
            "clean_sheets": [s.to_dict() for s in self.clean_sheets],
        }


def _ranked(counts: Counter, players: dict[str, Player], limit: int) -> list[PlayerStat]:
    """Count desc, then player name asc. Players missing from the catalog are skipped."""
    out = [
        PlayerStat(player_id=pid, player_name=players[pid].name, team_id=players[pid].team_id, count=n)
        for pid, n in counts.items()
        if pid in players
    ]
    out.sort(key=lambda s: (-s.count, s.player_name, s.player_id))
    return out[:limit]


def _goalkeeper_for(lineups: list[MatchLineup], team_id: str) -> MatchLineup | None:
    """Starting goalkeeper of a side, else the first goalkeeper listed."""
    keepers = [
        l for l in lineups
        if l.team_id == team_id and resolve_position(l.position, l.player_position) == Position.GK
    ]
    for l in keepers:
        if l.is_starter:
            return l
    return keepers[0] if keepers else None


def compute_league_leaders(
    matches: Iterable[MatchFacts],
    players: dict[str, Player],
    limit: int = LEADERS_LIMIT,
) -> LeagueLeaders:
    goals: Counter = Counter()
    assists: Counter = Counter()
    yellows: Counter = Counter()
    reds: Counter = Counter()
    clean_sheets: Counter = Counter()

    for facts in matches:
        for e in facts.events:
            if e.type == EventType.GOAL:
                goals[e.player_id] += 1
                if e.assist_player_id:
                    assists[e.assist_player_id] += 1
            elif e.type == EventType.YELLOW_CARD:
                yellows[e.player_id] += 1
            elif e.type == EventType.RED_CARD:
                reds[e.player_id] += 1

        m = facts.match
        clean_sides = []
        if m.away_score == 0:
            clean_sides.append(m.home_team_id)
        if m.home_score == 0:
            clean_sides.append(m.away_team_id)
        for team_id in clean_sides:
            keeper = _goalkeeper_for(facts.lineups, team_id)
            if keeper is not None:
                clean_sheets[keeper.player_id] += 1

    return LeagueLeaders(
        top_scorers=_ranked(goals, players, limit),
        top_assists=_ranked(assists, players, limit),
        most_yellow_cards=_ranked(yellows, players, limit),
        most_red_cards=_ranked(reds, players, limit),
        clean_sheets=_ranked(clean_sheets, players, limit),
    )
