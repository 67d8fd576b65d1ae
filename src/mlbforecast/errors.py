"""Per-game prediction failures.

Every error is fatal for one game only. The batch driver catches them,
records the message, and moves on to the next game.
"""


class PredictionError(Exception):
    """Base class for failures that abort a single game's prediction."""

    def __init__(self, message: str, game_id: int | None = None):
        super().__init__(message)
        self.game_id = game_id


class GameNotFoundError(PredictionError):
    """The requested game does not exist in the snapshot source."""


class InsufficientLineupError(PredictionError):
    """The Monte Carlo tier was reached without a usable lineup or starter.

    The selector should have routed such games to a fallback tier, so this
    points at an assessor/selector inconsistency and is never defaulted away.
    """


class MissingTeamStatsError(PredictionError):
    """Season team aggregates are missing for one side of a fallback prediction."""


class InvalidIterationsError(PredictionError, ValueError):
    """The simulator was asked for a non-positive number of trials."""
