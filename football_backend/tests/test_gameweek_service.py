"""
Tests for round scoring: captaincy, upsert + resum, idempotence, read/write agreement.
"""
from __future__ import annotations

import sqlite3

import pytest

from football_backend.errors import NotFoundError
from football_backend.models import EventType, FantasyPick, Position
from football_backend.persistence.repositories import (
    FantasyGameweekRepository,
    FantasyTeamRepository,
)
from football_backend.scoring import Category, PlayerPoints
from football_backend.services.fantasy_service import FantasyService
from football_backend.services.gameweek_service import (
    GameweekService,
    RoundScoreSummary,
    compute_team_gameweek,
)


def _pp(player_id: str, appearance: int = 2, **extra: int) -> PlayerPoints:
    pp = PlayerPoints(player_id=player_id)
    if appearance:
        pp.add(Category.APPEARANCE, appearance)
    for name, value in extra.items():
        pp.add(Category(name), value)
    return pp


def _pick(player_id: str, captain: bool = False, vice: bool = False) -> FantasyPick:
    return FantasyPick(fantasy_team_id="t", player_id=player_id, position=Position.MF,
                       is_captain=captain, is_vice_captain=vice)


class TestTeamGameweek:
    def test_captain_played_is_doubled(self):
        picks = [_pick("a", captain=True), _pick("b", vice=True), _pick("c")]
        points = {"a": _pp("a", goals=4), "b": _pp("b"), "c": _pp("c")}
        gw = compute_team_gameweek("t", 1, picks, points)
        assert gw.captain_played
        assert gw.total == 12 + 2 + 2
        assert [p.multiplier for p in gw.picks] == [2, 1, 1]

    def test_vice_captain_doubled_when_captain_absent(self):
        picks = [_pick("a", captain=True), _pick("b", vice=True), _pick("c")]
        points = {"b": _pp("b", assists=3), "c": _pp("c")}
        gw = compute_team_gameweek("t", 1, picks, points)
        assert not gw.captain_played
        assert gw.total == 0 + 10 + 2

    def test_captain_on_bench_unused_counts_as_absent(self):
        picks = [_pick("a", captain=True), _pick("b", vice=True)]
        points = {"a": _pp("a", appearance=0), "b": _pp("b")}
        gw = compute_team_gameweek("t", 1, picks, points)
        assert not gw.captain_played
        assert gw.total == 4

    def test_no_vice_captain_nobody_doubled(self):
        picks = [_pick("a", captain=True), _pick("b")]
        gw = compute_team_gameweek("t", 1, picks, {"b": _pp("b")})
        assert gw.total == 2
        assert all(p.multiplier == 1 for p in gw.picks)

    def test_negative_total(self):
        picks = [_pick("a", captain=True), _pick("b", vice=True)]
        points = {"a": _pp("a", appearance=1, red_cards=-3), "b": _pp("b", yellow_cards=-1)}
        gw = compute_team_gameweek("t", 1, picks, points)
        assert gw.total == -4 + 1

    def test_to_dict(self):
        gw = compute_team_gameweek("t", 3, [_pick("a", captain=True)], {"a": _pp("a")})
        d = gw.to_dict()
        assert d["round"] == 3
        assert d["total"] == 4
        assert d["players"][0] == {
            "player_id": "a",
            "position": "MF",
            "is_captain": True,
            "is_vice_captain": False,
            "raw_points": 2,
            "multiplier": 2,
            "points": 4,
            "breakdown": {"appearance": 2},
        }


@pytest.fixture
def service():
    return GameweekService()


@pytest.fixture
def fantasy_team(db_conn, league, make_user):
    """A team holding the legal squad; captain c0_FW, vice c1_FW."""
    svc = FantasyService()
    user = make_user("manager")
    team = svc.create_team(db_conn, user.id, "tl", "Manager XI")
    svc.update_picks(db_conn, user.id, team.id, league.squad())
    return team


def _play_round_one(league) -> None:
    """c0 2-1 c1. c0_FW scores twice (one assisted by c0_MF1); c1_FW scores; c1_DF1 booked."""
    m = league.matches[0]
    for key in ["c0_GK", "c0_DF1", "c0_MF1", "c0_FW", "c1_GK", "c1_DF1", "c1_FW"]:
        league.lineup(m, key)
    league.lineup(m, "c1_DF2", starter=False)
    league.event(m, EventType.GOAL, "c0_FW", minute=20, assist="c0_MF1")
    league.event(m, EventType.GOAL, "c1_FW", minute=40)
    league.event(m, EventType.YELLOW_CARD, "c1_DF1", minute=55)
    league.event(m, EventType.GOAL, "c0_FW", minute=80)
    league.finish(m, 2, 1)


def _rows(db_conn) -> list[tuple]:
    return [tuple(r) for r in db_conn.execute(
        "SELECT fantasy_team_id, round, points FROM fantasy_gameweeks ORDER BY fantasy_team_id, round"
    ).fetchall()]


# squad in c0-c1: c0_GK 2, c1_GK 2, c0_DF1 2, c1_DF1 1, c0_FW 10, c1_FW 6
ROUND_ONE_RAW = 2 + 2 + 2 + 1 + 10 + 6


def test_unknown_competition(db_conn, service):
    with pytest.raises(NotFoundError):
        service.score_round(db_conn, "nope", 1)


def test_no_finished_matches_is_a_noop(db_conn, league, fantasy_team, service):
    assert service.score_round(db_conn, "tl", 1) is None
    assert _rows(db_conn) == []
    assert FantasyTeamRepository().get(db_conn, fantasy_team.id).total_points == 0


def test_live_match_is_not_scored(db_conn, league, fantasy_team, service):
    league.go_live(league.matches[0])
    assert service.score_round(db_conn, "tl", 1) is None


def test_score_round_with_captain(db_conn, league, fantasy_team, service):
    _play_round_one(league)
    summary = service.score_round(db_conn, "tl", 1)
    assert summary == RoundScoreSummary(round=1, matches_processed=1, teams_updated=1)
    expected = ROUND_ONE_RAW + 10
    assert FantasyGameweekRepository().get(db_conn, fantasy_team.id, 1).points == expected
    assert FantasyTeamRepository().get(db_conn, fantasy_team.id).total_points == expected


def test_captain_did_not_play_vice_doubled(db_conn, league, make_user, service):
    svc = FantasyService()
    user = make_user("fallback")
    team = svc.create_team(db_conn, user.id, "tl", "Fallback FC")
    svc.update_picks(db_conn, user.id, team.id, league.squad(captain="c2_MF1", vice="c1_FW"))
    _play_round_one(league)
    service.score_round(db_conn, "tl", 1)
    assert FantasyGameweekRepository().get(db_conn, team.id, 1).points == ROUND_ONE_RAW + 6


def test_team_without_picks_scores_zero(db_conn, league, make_user, service):
    user = make_user("empty")
    team = FantasyService().create_team(db_conn, user.id, "tl", "Empty FC")
    _play_round_one(league)
    summary = service.score_round(db_conn, "tl", 1)
    assert summary.teams_updated == 1
    assert FantasyGameweekRepository().get(db_conn, team.id, 1).points == 0


def test_scoring_twice_is_idempotent(db_conn, league, fantasy_team, service):
    _play_round_one(league)
    service.score_round(db_conn, "tl", 1)
    first_rows = _rows(db_conn)
    first_total = FantasyTeamRepository().get(db_conn, fantasy_team.id).total_points
    service.score_round(db_conn, "tl", 1)
    assert _rows(db_conn) == first_rows
    assert FantasyTeamRepository().get(db_conn, fantasy_team.id).total_points == first_total


def test_retroactive_correction_resums_total(db_conn, league, fantasy_team, service):
    _play_round_one(league)
    service.score_round(db_conn, "tl", 1)
    # Late correction: another goal credited to c1_FW.
    league.event(league.matches[0], EventType.GOAL, "c1_FW", minute=89)
    service.score_round(db_conn, "tl", 1)
    expected = ROUND_ONE_RAW + 10 + 4
    assert FantasyGameweekRepository().get(db_conn, fantasy_team.id, 1).points == expected
    assert FantasyTeamRepository().get(db_conn, fantasy_team.id).total_points == expected


def test_total_is_sum_over_rounds(db_conn, league, fantasy_team, service):
    _play_round_one(league)
    service.score_round(db_conn, "tl", 1)
    m2 = league.add_match(2, 0, 2)
    league.lineup(m2, "c0_FW")
    league.event(m2, EventType.GOAL, "c0_FW")
    league.finish(m2, 1, 0)
    service.score_round(db_conn, "tl", 2)
    history = FantasyGameweekRepository().list_by_team(db_conn, fantasy_team.id)
    assert [(g.round, g.points) for g in history] == [(1, ROUND_ONE_RAW + 10), (2, 12)]
    assert FantasyTeamRepository().get(db_conn, fantasy_team.id).total_points == ROUND_ONE_RAW + 10 + 12


def test_breakdown_matches_written_total(db_conn, league, fantasy_team, service):
    _play_round_one(league)
    service.score_round(db_conn, "tl", 1)
    breakdown = service.gameweek_breakdown(db_conn, fantasy_team.id, 1)
    assert breakdown.total == FantasyGameweekRepository().get(db_conn, fantasy_team.id, 1).points
    by_player = {p.player_id: p for p in breakdown.picks}
    captain = by_player[league.pid("c0_FW")]
    assert (captain.raw_points, captain.multiplier, captain.points) == (10, 2, 20)
    assert captain.breakdown == {"appearance": 2, "goals": 8}


def test_breakdown_writes_nothing(db_conn, league, fantasy_team, service):
    _play_round_one(league)
    service.gameweek_breakdown(db_conn, fantasy_team.id, 1)
    assert _rows(db_conn) == []


def test_breakdown_for_unplayed_round_is_all_zero(db_conn, league, fantasy_team, service):
    breakdown = service.gameweek_breakdown(db_conn, fantasy_team.id, 5)
    assert len(breakdown.picks) == 15
    assert breakdown.total == 0
    assert not breakdown.captain_played


def test_breakdown_unknown_team(db_conn, league, service):
    with pytest.raises(NotFoundError):
        service.gameweek_breakdown(db_conn, "missing", 1)


def _fail_total_update(self, conn, team_id, total_points):
    raise sqlite3.OperationalError("database is locked")


def test_failed_total_update_rolls_back_gameweek_row(db_conn, league, fantasy_team, service, monkeypatch):
    _play_round_one(league)
    monkeypatch.setattr(FantasyTeamRepository, "update_total_points", _fail_total_update)
    with pytest.raises(sqlite3.OperationalError):
        service.score_round(db_conn, "tl", 1)
    assert _rows(db_conn) == []
    assert FantasyTeamRepository().get(db_conn, fantasy_team.id).total_points == 0


def test_failed_rescore_keeps_previous_row_and_total(db_conn, league, fantasy_team, service, monkeypatch):
    _play_round_one(league)
    service.score_round(db_conn, "tl", 1)
    league.event(league.matches[0], EventType.GOAL, "c1_FW", minute=89)
    monkeypatch.setattr(FantasyTeamRepository, "update_total_points", _fail_total_update)
    with pytest.raises(sqlite3.OperationalError):
        service.score_round(db_conn, "tl", 1)
    expected = ROUND_ONE_RAW + 10
    assert FantasyGameweekRepository().get(db_conn, fantasy_team.id, 1).points == expected
    assert FantasyTeamRepository().get(db_conn, fantasy_team.id).total_points == expected
