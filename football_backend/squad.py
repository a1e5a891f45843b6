"""
Squad rules for fantasy teams.
Pure constraint checking: no match data, no persistence.

Rules are checked in a fixed order and the first violation is reported:
size, duplicates, unknown players, slot counts, club limit, budget, captaincy.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .errors import ValidationFailedError
from .models import Player, Position, price_to_display

SQUAD_SIZE = 15
POSITION_LIMITS: dict[Position, int] = {
    Position.GK: 2,
    Position.DF: 5,
    Position.MF: 5,
    Position.FW: 3,
}
MAX_PLAYERS_PER_TEAM = 3
TOTAL_BUDGET = 1000  # tenths: 100.0


class SquadRule(str, Enum):
    SQUAD_SIZE = "squad_size"
    DUPLICATE_PLAYER = "duplicate_player"
    UNKNOWN_PLAYER = "unknown_player"
    POSITION_COUNT = "position_count"
    TEAM_LIMIT = "team_limit"
    BUDGET = "budget"
    CAPTAIN = "captain"
    VICE_CAPTAIN = "vice_captain"
    CAPTAIN_IS_VICE = "captain_is_vice"


@dataclass(frozen=True)
class PickRequest:
    """One proposed squad slot."""
    player_id: str
    position: Position
    is_captain: bool = False
    is_vice_captain: bool = False


@dataclass(frozen=True)
class ValidatedSquad:
    """Accepted squad: total cost in tenths and the picks as submitted."""
    total_cost: int
    picks: tuple[PickRequest, ...]

    @property
    def remaining_budget(self) -> int:
        return TOTAL_BUDGET - self.total_cost


def _fail(rule: SquadRule, message: str) -> ValidationFailedError:
    return ValidationFailedError(rule, message)


def validate_squad(picks: list[PickRequest], players: Iterable[Player]) -> ValidatedSquad:
    """
    Validate a proposed squad against the authoritative player records.
    Raises ValidationFailedError carrying the first failing rule.
    """
    if len(picks) != SQUAD_SIZE:
        raise _fail(
            SquadRule.SQUAD_SIZE,
            f"Squad must have exactly {SQUAD_SIZE} players (got {len(picks)})",
        )

    ids = [p.player_id for p in picks]
    duplicates = sorted(pid for pid, n in Counter(ids).items() if n > 1)
    if duplicates:
        raise _fail(SquadRule.DUPLICATE_PLAYER, f"Duplicate players in squad: {', '.join(duplicates)}")

    by_id = {p.id: p for p in players}
    unknown = [pid for pid in ids if pid not in by_id]
    if unknown:
        raise _fail(SquadRule.UNKNOWN_PLAYER, f"Unknown player: {unknown[0]}")

    counts = Counter(p.position for p in picks)
    for position, limit in POSITION_LIMITS.items():
        got = counts.get(position, 0)
        if got != limit:
            raise _fail(
                SquadRule.POSITION_COUNT,
                f"Must have exactly {limit} {position.value} players (got {got})",
            )

    per_team = Counter(by_id[pid].team_id for pid in ids)
    for team_id, n in sorted(per_team.items()):
        if n > MAX_PLAYERS_PER_TEAM:
            raise _fail(
                SquadRule.TEAM_LIMIT,
                f"Maximum {MAX_PLAYERS_PER_TEAM} players from the same team (team {team_id} has {n})",
            )

    total_cost = sum(by_id[pid].price for pid in ids)
    if total_cost > TOTAL_BUDGET:
        raise _fail(
            SquadRule.BUDGET,
            f"Squad cost ({price_to_display(total_cost):.1f}) exceeds budget ({price_to_display(TOTAL_BUDGET):.1f})",
        )

    captains = [p for p in picks if p.is_captain]
    vice_captains = [p for p in picks if p.is_vice_captain]
    if len(captains) != 1:
        raise _fail(SquadRule.CAPTAIN, "Must select exactly one captain")
    if len(vice_captains) != 1:
        raise _fail(SquadRule.VICE_CAPTAIN, "Must select exactly one vice-captain")
    if captains[0].player_id == vice_captains[0].player_id:
        raise _fail(SquadRule.CAPTAIN_IS_VICE, "Captain and vice-captain must be different players")

    return ValidatedSquad(total_cost=total_cost, picks=tuple(picks))
