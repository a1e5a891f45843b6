"""
League table from finished match results.

Win 3, draw 1, loss 0. Ordering: points desc, goal difference desc,
goals for desc, team name asc. The name tie-break uses plain Python string
ordering (code point, case-sensitive), so the table is identical on every run
and independent of the order matches are supplied in.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from .models import Team

WIN_POINTS = 3
DRAW_POINTS = 1


@dataclass(frozen=True)
class MatchResult:
    """Final score of one finished match, with both clubs resolved."""
    home_team: Team
    away_team: Team
    home_score: int
    away_score: int


@dataclass(frozen=True)
class StandingsRow:
    team: Team
    played: int
    wins: int
    draws: int
    losses: int
    goals_for: int
    goals_against: int

    @property
    def goal_diff(self) -> int:
        return self.goals_for - self.goals_against

    @property
    def points(self) -> int:
        return self.wins * WIN_POINTS + self.draws * DRAW_POINTS

    def sort_key(self) -> tuple[int, int, int, str, str]:
        return (-self.points, -self.goal_diff, -self.goals_for, self.team.name, self.team.id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "team": self.team.to_dict(),
            "played": self.played,
            "wins": self.wins,
            "draws": self.draws,
            "losses": self.losses,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_diff": self.goal_diff,
            "points": self.points,
        }


def compute_standings(
    results: Iterable[MatchResult],
    all_teams: Iterable[Team] = (),
) -> list[StandingsRow]:
    """
    Build the ranked table. Every team in all_teams gets a row even with no
    matches played; teams that only appear in results are added too.
    """
    tally: dict[str, dict[str, Any]] = {}

    def get(team: Team) -> dict[str, Any]:
        if team.id not in tally:
            tally[team.id] = {
                "team": team, "played": 0, "wins": 0, "draws": 0, "losses": 0,
                "goals_for": 0, "goals_against": 0,
            }
        return tally[team.id]

    for team in all_teams:
        get(team)

    for r in results:
        home = get(r.home_team)
        away = get(r.away_team)
        home["played"] += 1
        away["played"] += 1
        home["goals_for"] += r.home_score
        home["goals_against"] += r.away_score
        away["goals_for"] += r.away_score
        away["goals_against"] += r.home_score
        if r.home_score > r.away_score:
            home["wins"] += 1
            away["losses"] += 1
        elif r.home_score < r.away_score:
            away["wins"] += 1
            home["losses"] += 1
        else:
            home["draws"] += 1
            away["draws"] += 1

    rows = [StandingsRow(**t) for t in tally.values()]
    return sorted(rows, key=StandingsRow.sort_key)
