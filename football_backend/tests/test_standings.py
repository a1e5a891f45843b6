"""
Tests for the league table: points, tie-breaks, determinism.
"""
from __future__ import annotations

from itertools import permutations

from football_backend.models import Team
from football_backend.standings import (
    DRAW_POINTS,
    WIN_POINTS,
    MatchResult,
    compute_standings,
)


def _team(name: str) -> Team:
    return Team(id=f"id-{name.lower()}", name=name, short_name=name[:3].upper())


ALPHA, BRAVO, CHARLIE, DELTA = _team("Alpha"), _team("Bravo"), _team("Charlie"), _team("Delta")


def _names(rows) -> list[str]:
    return [r.team.name for r in rows]


class TestPoints:
    def test_win_and_loss(self):
        rows = compute_standings([MatchResult(ALPHA, BRAVO, 2, 1)])
        by_name = {r.team.name: r for r in rows}
        assert by_name["Alpha"].points == WIN_POINTS == 3
        assert by_name["Alpha"].wins == 1
        assert by_name["Bravo"].points == 0
        assert by_name["Bravo"].losses == 1

    def test_draw(self):
        rows = compute_standings([MatchResult(ALPHA, BRAVO, 1, 1)])
        assert [r.points for r in rows] == [DRAW_POINTS, DRAW_POINTS]
        assert all(r.draws == 1 for r in rows)

    def test_goals_from_each_side(self):
        rows = compute_standings([MatchResult(ALPHA, BRAVO, 3, 1), MatchResult(BRAVO, ALPHA, 2, 0)])
        by_name = {r.team.name: r for r in rows}
        alpha = by_name["Alpha"]
        assert (alpha.played, alpha.goals_for, alpha.goals_against, alpha.goal_diff) == (2, 3, 3, 0)
        bravo = by_name["Bravo"]
        assert (bravo.played, bravo.goals_for, bravo.goals_against, bravo.goal_diff) == (2, 3, 3, 0)


class TestOrdering:
    def test_points_first(self):
        rows = compute_standings([MatchResult(BRAVO, ALPHA, 1, 0)])
        assert _names(rows) == ["Bravo", "Alpha"]

    def test_goal_difference_breaks_points_tie(self):
        results = [MatchResult(ALPHA, CHARLIE, 1, 0), MatchResult(BRAVO, DELTA, 4, 0)]
        assert _names(compute_standings(results))[:2] == ["Bravo", "Alpha"]

    def test_goals_for_breaks_goal_difference_tie(self):
        # Both 3 points and +2; Bravo scored 3, Alpha 2.
        results = [MatchResult(ALPHA, CHARLIE, 2, 0), MatchResult(BRAVO, DELTA, 3, 1)]
        assert _names(compute_standings(results))[:2] == ["Bravo", "Alpha"]

    def test_name_breaks_full_tie(self):
        results = [MatchResult(DELTA, CHARLIE, 1, 1), MatchResult(BRAVO, ALPHA, 1, 1)]
        assert _names(compute_standings(results)) == ["Alpha", "Bravo", "Charlie", "Delta"]

    def test_name_order_is_case_sensitive(self):
        lower = _team("alpha")
        rows = compute_standings([], [lower, BRAVO])
        assert _names(rows) == ["Bravo", "alpha"]


class TestAllTeams:
    def test_zero_matches_alphabetical(self):
        rows = compute_standings([], [DELTA, BRAVO, ALPHA, CHARLIE])
        assert _names(rows) == ["Alpha", "Bravo", "Charlie", "Delta"]
        for r in rows:
            assert (r.played, r.points, r.goal_diff) == (0, 0, 0)

    def test_teams_without_matches_still_listed(self):
        rows = compute_standings([MatchResult(CHARLIE, DELTA, 0, 2)], [ALPHA, BRAVO, CHARLIE, DELTA])
        assert _names(rows) == ["Delta", "Alpha", "Bravo", "Charlie"]

    def test_team_only_in_results_is_added(self):
        rows = compute_standings([MatchResult(ALPHA, BRAVO, 1, 0)], [ALPHA])
        assert set(_names(rows)) == {"Alpha", "Bravo"}


class TestDeterminism:
    def test_permuting_results_does_not_change_table(self):
        results = [
            MatchResult(ALPHA, BRAVO, 1, 0),
            MatchResult(CHARLIE, DELTA, 2, 2),
            MatchResult(BRAVO, CHARLIE, 3, 1),
            MatchResult(DELTA, ALPHA, 0, 0),
        ]
        expected = [r.to_dict() for r in compute_standings(results)]
        for perm in permutations(results):
            assert [r.to_dict() for r in compute_standings(list(perm))] == expected

    def test_recomputation_is_identical(self):
        results = [MatchResult(ALPHA, BRAVO, 2, 2), MatchResult(CHARLIE, DELTA, 1, 0)]
        assert compute_standings(results) == compute_standings(results)

    def test_row_dict(self):
        row = compute_standings([MatchResult(ALPHA, BRAVO, 2, 0)])[0]
        assert row.to_dict() == {
            "team": {"id": "id-alpha", "name": "Alpha", "short_name": "ALP"},
            "played": 1,
            "wins": 1,
            "draws": 0,
            "losses": 0,
            "goals_for": 2,
            "goals_against": 0,
            "goal_diff": 2,
            "points": 3,
        }
