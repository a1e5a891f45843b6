"""
Fantasy scoring for football matches.

Rubric (per player, per finished match):
- Started:                      +2
- Came on as substitute:        +1 (unused substitutes score nothing)
- Goal (FW / MF / DF / GK):     +4 / +5 / +6 / +6
- Assist:                       +3
- Clean sheet, started (GK/DF): +4
- Clean sheet, started (MF):    +1
- Yellow card:                  -1
- Red card:                     -3

Totals may go negative. Captaincy is applied by the gameweek service, not here.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable

from .models import EventType, MatchFacts, MatchLineup, Position


class Category(str, Enum):
    APPEARANCE = "appearance"
    CLEAN_SHEET = "clean_sheet"
    GOALS = "goals"
    ASSISTS = "assists"
    YELLOW_CARDS = "yellow_cards"
    RED_CARDS = "red_cards"


# ---------- Appearance ----------
STARTER_POINTS = 2
SUBSTITUTE_POINTS = 1

# ---------- Attacking ----------
# Goalkeeper goals are rewarded like defender goals.
GOAL_POINTS: dict[Position, int] = {
    Position.FW: 4,
    Position.MF: 5,
    Position.DF: 6,
    Position.GK: 6,
}
ASSIST_POINTS = 3

# ---------- Defensive ----------
CLEAN_SHEET_POINTS: dict[Position, int] = {
    Position.GK: 4,
    Position.DF: 4,
    Position.MF: 1,
    Position.FW: 0,
}

# ---------- Discipline ----------
YELLOW_CARD_POINTS = -1
RED_CARD_POINTS = -3

DEFAULT_POSITION = Position.MF


@dataclass
class PlayerPoints:
    """Raw (uncaptained) points for one player over a round."""
    player_id: str
    breakdown: dict[Category, int] = field(default_factory=dict)

    @property
    def total_points(self) -> int:
        return sum(self.breakdown.values())

    @property
    def appeared(self) -> bool:
        return self.breakdown.get(Category.APPEARANCE, 0) > 0

    def add(self, category: Category, points: int) -> None:
        self.breakdown[category] = self.breakdown.get(category, 0) + points

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "total_points": self.total_points,
            "breakdown": {c.value: v for c, v in self.breakdown.items()},
        }


def resolve_position(
    lineup_position: Position | None,
    reference_position: Position | None,
) -> Position:
    """
    Position used for scoring: per-match lineup override, then the player's
    reference position, then DEFAULT_POSITION (MF).
    """
    if lineup_position is not None:
        return lineup_position
    if reference_position is not None:
        return reference_position
    return DEFAULT_POSITION


def _lineup_position(lineup: MatchLineup | None) -> Position:
    if lineup is None:
        return DEFAULT_POSITION
    return resolve_position(lineup.position, lineup.player_position)


def _clean_sheet_sides(facts: MatchFacts) -> tuple[bool, bool]:
    """(home kept a clean sheet, away kept a clean sheet)."""
    m = facts.match
    return m.away_score == 0, m.home_score == 0


def _score_lineups(facts: MatchFacts, get: Callable[[str], PlayerPoints]) -> None:
    """Appearance and clean-sheet points for every squad-list entry."""
    home_clean, away_clean = _clean_sheet_sides(facts)
    subbed_in = {
        e.substituted_in_player_id()
        for e in facts.events
        if e.type == EventType.SUBSTITUTION
    }
    for lineup in facts.lineups:
        pp = get(lineup.player_id)
        if lineup.is_starter:
            pp.add(Category.APPEARANCE, STARTER_POINTS)
        elif lineup.player_id in subbed_in:
            pp.add(Category.APPEARANCE, SUBSTITUTE_POINTS)

        if not lineup.is_starter:
            continue
        clean = home_clean if lineup.team_id == facts.match.home_team_id else away_clean
        if not clean:
            continue
        bonus = CLEAN_SHEET_POINTS[_lineup_position(lineup)]
        if bonus:
            pp.add(Category.CLEAN_SHEET, bonus)


def _score_events(facts: MatchFacts, get: Callable[[str], PlayerPoints]) -> None:
    """Goals, assists and cards."""
    lineup_by_player = {l.player_id: l for l in facts.lineups}
    for event in facts.events:
        if event.type == EventType.GOAL:
            position = _lineup_position(lineup_by_player.get(event.player_id))
            get(event.player_id).add(Category.GOALS, GOAL_POINTS[position])
            if event.assist_player_id:
                get(event.assist_player_id).add(Category.ASSISTS, ASSIST_POINTS)
        elif event.type == EventType.YELLOW_CARD:
            get(event.player_id).add(Category.YELLOW_CARDS, YELLOW_CARD_POINTS)
        elif event.type == EventType.RED_CARD:
            get(event.player_id).add(Category.RED_CARDS, RED_CARD_POINTS)


def compute_round_points(matches: Iterable[MatchFacts]) -> dict[str, PlayerPoints]:
    """
    Compute raw fantasy points for every player in a round's finished matches.
    Players on no lineup and named in no event are absent from the result;
    callers treat absent and zero alike.
    """
    points: dict[str, PlayerPoints] = {}

    def get(player_id: str) -> PlayerPoints:
        pp = points.get(player_id)
        if pp is None:
            pp = points[player_id] = PlayerPoints(player_id=player_id)
        return pp

    for facts in matches:
        _score_lineups(facts, get)
        _score_events(facts, get)
    return points
