"""
Persistence layer for league facts and fantasy data.
No business logic, only read/write interfaces.
"""
from .db import get_connection, init_db, set_db_path, transaction
from .repositories import (
    CompetitionRepository,
    TeamRepository,
    PlayerRepository,
    MatchRepository,
    UserRepository,
    FantasyTeamRepository,
    FantasyGameweekRepository,
)

__all__ = [
    "get_connection",
    "init_db",
    "set_db_path",
    "transaction",
    "CompetitionRepository",
    "TeamRepository",
    "PlayerRepository",
    "MatchRepository",
    "UserRepository",
    "FantasyTeamRepository",
    "FantasyGameweekRepository",
]
