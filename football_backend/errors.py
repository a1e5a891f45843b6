"""
Error taxonomy shared by the services.
Each error is recoverable and carries a message fit for the end user.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .squad import SquadRule


class FootballError(ValueError):
    """Base class for domain errors surfaced to callers."""


class NotFoundError(FootballError):
    """Unknown competition, team, fantasy team or player reference."""


class ValidationFailedError(FootballError):
    """A squad rule was violated. rule names the first failing rule."""

    def __init__(self, rule: SquadRule, message: str) -> None:
        super().__init__(message)
        self.rule = rule


class ForbiddenError(FootballError):
    """Squad edit by a non-owner, or while a match in the competition is live."""


class ConflictError(FootballError):
    """Duplicate resource, e.g. a second fantasy team for the same user and competition."""
