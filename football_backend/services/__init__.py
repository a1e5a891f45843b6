"""
Service layer: orchestrates repositories around the pure calculators.
gameweek_service is the only writer of gameweek rows and running totals.
"""
from .fantasy_service import FantasyService
from .gameweek_service import (
    GameweekService,
    PickPoints,
    RoundScoreSummary,
    TeamGameweekPoints,
    compute_team_gameweek,
)
from .league_service import LeagueService

__all__ = [
    "FantasyService",
    "GameweekService",
    "PickPoints",
    "RoundScoreSummary",
    "TeamGameweekPoints",
    "compute_team_gameweek",
    "LeagueService",
]
