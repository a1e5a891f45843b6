"""
Tests for the score_round command.
"""
from __future__ import annotations

import pytest

from football_backend.errors import NotFoundError
from football_backend.persistence.db import get_connection
from football_backend.persistence.repositories import FantasyTeamRepository, UserRepository
from football_backend.score_round import main, run
from football_backend.services.fantasy_service import FantasyService


def test_unknown_competition_without_seed(tmp_path):
    with pytest.raises(NotFoundError):
        run("kpl", 1, db_path=tmp_path / "empty.db")


def test_run_on_seeded_db(tmp_path, capsys):
    db_path = tmp_path / "cli.db"
    main(["--round", "1", "--db", str(db_path), "--seed"])
    out = capsys.readouterr().out
    assert "3 matches, 0 teams updated" in out


def test_run_updates_teams(tmp_path, capsys):
    db_path = tmp_path / "cli.db"
    main(["--round", "2", "--db", str(db_path), "--seed"])
    assert "nothing scored" in capsys.readouterr().out

    conn = get_connection(db_path)
    try:
        user = UserRepository().create(conn, "cli-user")
        team = FantasyService().create_team(conn, user.id, "kpl", "CLI Rovers")
    finally:
        conn.close()

    assert run("kpl", 1, db_path=db_path) == 1
    out = capsys.readouterr().out
    assert "CLI Rovers" in out

    conn = get_connection(db_path)
    try:
        assert FantasyTeamRepository().get(conn, team.id).total_points == 0
    finally:
        conn.close()
