"""Lineup data completeness scoring."""

from dataclasses import dataclass

from mlbforecast.config.settings import EngineTuning, get_tuning
from mlbforecast.db.models import LineupRole
from mlbforecast.snapshot.base import LineupEntry


@dataclass(frozen=True)
class CompletenessReport:
    """How much lineup data is available for a game."""

    score: float  # [0, 1]
    has_lineups: bool
    batting_lineups: int  # batting rows across both teams
    pitching_lineups: int  # pitching rows across both teams
    batting_completeness: float  # [0, 1]
    pitching_completeness: float  # [0, 1]
    is_projected: bool  # any row not yet confirmed


def assess_completeness(
    lineups: list[LineupEntry], tuning: EngineTuning | None = None
) -> CompletenessReport:
    """
    Score lineup completeness for one game.

    ``score = batting * 0.7 + pitching * 0.3`` where each component is the
    fraction of expected rows present (capped at 1). A projected lineup
    multiplies the score by 0.7. No rows at all yields a score of 0.

    Args:
        lineups: Every lineup row for the game (both teams)
        tuning: Weights and expected counts (defaults to get_tuning())

    Returns:
        CompletenessReport
    """
    tuning = tuning or get_tuning()

    if not lineups:
        return CompletenessReport(
            score=0.0,
            has_lineups=False,
            batting_lineups=0,
            pitching_lineups=0,
            batting_completeness=0.0,
            pitching_completeness=0.0,
            is_projected=False,
        )

    batting = sum(1 for e in lineups if e.role == LineupRole.BATTING.value)
    pitching = sum(1 for e in lineups if e.role == LineupRole.PITCHING.value)
    is_projected = any(e.is_projected for e in lineups)

    batting_completeness = min(batting / tuning.expected_batters, 1.0)
    pitching_completeness = min(pitching / tuning.expected_pitchers, 1.0)
    score = (
        batting_completeness * tuning.batting_weight
        + pitching_completeness * tuning.pitching_weight
    )
    if is_projected:
        score *= tuning.projected_lineup_penalty

    return CompletenessReport(
        score=min(max(score, 0.0), 1.0),
        has_lineups=True,
        batting_lineups=batting,
        pitching_lineups=pitching,
        batting_completeness=batting_completeness,
        pitching_completeness=pitching_completeness,
        is_projected=is_projected,
    )
