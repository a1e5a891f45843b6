"""
SQLite schema for league facts and fantasy entities.
Migration-friendly: each table created with IF NOT EXISTS.
Prices and budgets are integer tenths.
"""
from __future__ import annotations


def competitions_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS competitions (
        id TEXT PRIMARY KEY,
        code TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        season INTEGER NOT NULL
    );
    """


def teams_schema() -> str:
    """Real clubs. Read-only reference data."""
    return """
    CREATE TABLE IF NOT EXISTS teams (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        short_name TEXT NOT NULL,
        city TEXT
    );
    """


def players_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS players (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        number INTEGER,
        position TEXT CHECK (position IN ('GK', 'DF', 'MF', 'FW')),
        price INTEGER NOT NULL,
        team_id TEXT NOT NULL,
        FOREIGN KEY (team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_players_team ON players(team_id);
    """


def matches_schema() -> str:
    """Scores are NULL exactly when the match is scheduled."""
    return """
    CREATE TABLE IF NOT EXISTS matches (
        id TEXT PRIMARY KEY,
        competition_id TEXT NOT NULL,
        round INTEGER NOT NULL,
        kickoff_at TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'scheduled'
            CHECK (status IN ('scheduled', 'live', 'finished')),
        home_team_id TEXT NOT NULL,
        away_team_id TEXT NOT NULL,
        home_score INTEGER,
        away_score INTEGER,
        CHECK (
            (status = 'scheduled' AND home_score IS NULL AND away_score IS NULL)
            OR (status != 'scheduled' AND home_score IS NOT NULL AND away_score IS NOT NULL)
        ),
        FOREIGN KEY (competition_id) REFERENCES competitions(id),
        FOREIGN KEY (home_team_id) REFERENCES teams(id),
        FOREIGN KEY (away_team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_matches_competition_round ON matches(competition_id, round);
    CREATE INDEX IF NOT EXISTS ix_matches_status ON matches(status);
    """


def match_events_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS match_events (
        id TEXT PRIMARY KEY,
        match_id TEXT NOT NULL,
        type TEXT NOT NULL CHECK (type IN ('goal', 'yellow_card', 'red_card', 'substitution')),
        minute INTEGER NOT NULL,
        extra_minute INTEGER,
        player_id TEXT NOT NULL,
        assist_player_id TEXT,
        player_in_id TEXT,
        player_out_id TEXT,
        team_id TEXT NOT NULL,
        FOREIGN KEY (match_id) REFERENCES matches(id),
        FOREIGN KEY (player_id) REFERENCES players(id),
        FOREIGN KEY (team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_match_events_match ON match_events(match_id);
    """


def match_lineups_schema() -> str:
    """At most one entry per (match, player). position is the per-match override."""
    return """
    CREATE TABLE IF NOT EXISTS match_lineups (
        match_id TEXT NOT NULL,
        team_id TEXT NOT NULL,
        player_id TEXT NOT NULL,
        is_starter INTEGER NOT NULL DEFAULT 0,
        position TEXT CHECK (position IN ('GK', 'DF', 'MF', 'FW')),
        PRIMARY KEY (match_id, player_id),
        FOREIGN KEY (match_id) REFERENCES matches(id),
        FOREIGN KEY (team_id) REFERENCES teams(id),
        FOREIGN KEY (player_id) REFERENCES players(id)
    );
    """


def users_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        username TEXT NOT NULL UNIQUE,
        display_name TEXT NOT NULL,
        password_hash TEXT,
        created_at TEXT NOT NULL
    );
    """


def fantasy_teams_schema() -> str:
    """One fantasy team per user per competition."""
    return """
    CREATE TABLE IF NOT EXISTS fantasy_teams (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        competition_id TEXT NOT NULL,
        name TEXT NOT NULL,
        budget INTEGER NOT NULL,
        total_points INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        FOREIGN KEY (user_id) REFERENCES users(id),
        FOREIGN KEY (competition_id) REFERENCES competitions(id)
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_fantasy_teams_user_competition
        ON fantasy_teams(user_id, competition_id);
    CREATE INDEX IF NOT EXISTS ix_fantasy_teams_competition ON fantasy_teams(competition_id);
    """


def fantasy_picks_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS fantasy_picks (
        fantasy_team_id TEXT NOT NULL,
        player_id TEXT NOT NULL,
        position TEXT NOT NULL CHECK (position IN ('GK', 'DF', 'MF', 'FW')),
        is_captain INTEGER NOT NULL DEFAULT 0,
        is_vice_captain INTEGER NOT NULL DEFAULT 0,
        sort_order INTEGER NOT NULL,
        PRIMARY KEY (fantasy_team_id, player_id),
        FOREIGN KEY (fantasy_team_id) REFERENCES fantasy_teams(id),
        FOREIGN KEY (player_id) REFERENCES players(id)
    );
    """


def fantasy_gameweeks_schema() -> str:
    """Keyed by (team, round): re-scoring overwrites."""
    return """
    CREATE TABLE IF NOT EXISTS fantasy_gameweeks (
        fantasy_team_id TEXT NOT NULL,
        round INTEGER NOT NULL,
        points INTEGER NOT NULL,
        PRIMARY KEY (fantasy_team_id, round),
        FOREIGN KEY (fantasy_team_id) REFERENCES fantasy_teams(id)
    );
    """


def all_schema_sql() -> str:
    """Combine all schema DDL for a single execution, referenced tables first."""
    return "\n".join([
        competitions_schema(),
        teams_schema(),
        players_schema(),
        matches_schema(),
        match_events_schema(),
        match_lineups_schema(),
        users_schema(),
        fantasy_teams_schema(),
        fantasy_picks_schema(),
        fantasy_gameweeks_schema(),
    ])
