"""Prediction tiers and threshold-based tier selection.

Each tier is a ``PredictionTier`` subclass that carries its own threshold,
base confidence, and evaluation. ``select_tier`` walks the registry from the
highest threshold down, so adding a tier means adding a class to ``TIERS``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import numpy as np

from mlbforecast.config.settings import EngineTuning, get_tuning
from mlbforecast.db.models import PredictionMethod
from mlbforecast.prediction.completeness import CompletenessReport
from mlbforecast.prediction.confidence import DataCoverage
from mlbforecast.prediction.fallback import (
    FallbackEstimate,
    adjusted_team_stats_estimate,
    enhanced_estimate,
)
from mlbforecast.prediction.simulator import over_under_line, round_half_up, simulate_game
from mlbforecast.snapshot.base import GameSnapshot


@dataclass
class TierContext:
    """Inputs shared by every tier."""

    snapshot: GameSnapshot
    completeness: CompletenessReport
    coverage: DataCoverage
    iterations: int
    rng: np.random.Generator | None
    tuning: EngineTuning
    strict_pitchers: bool = False
    workers: int = 1


@dataclass
class TierOutcome:
    """Raw tier output before normalization and confidence scoring."""

    method: PredictionMethod
    home_win_probability: float
    away_win_probability: float
    home_expected_runs: float
    away_expected_runs: float
    predicted_home_score: int
    predicted_away_score: int
    over_under_line: float
    over_probability: float
    under_probability: float
    home_pitcher_name: str
    away_pitcher_name: str
    sample_size: int  # trials run, 0 for closed-form tiers
    factors: dict = field(default_factory=dict)  # tier-specific key factors


class PredictionTier(ABC):
    """One modeling strategy."""

    method: PredictionMethod

    @abstractmethod
    def min_score(self, tuning: EngineTuning) -> float:
        """Lowest completeness score routed to this tier."""

    @abstractmethod
    def base_confidence(self, tuning: EngineTuning) -> float:
        """Confidence before coverage bonuses."""

    @abstractmethod
    def evaluate(self, ctx: TierContext) -> TierOutcome:
        """Produce a prediction for the game in ``ctx``."""


class MonteCarloTier(PredictionTier):
    method = PredictionMethod.MONTE_CARLO

    def min_score(self, tuning: EngineTuning) -> float:
        return tuning.monte_carlo_min_score

    def base_confidence(self, tuning: EngineTuning) -> float:
        return tuning.monte_carlo_base_confidence

    def evaluate(self, ctx: TierContext) -> TierOutcome:
        summary = simulate_game(
            ctx.snapshot,
            ctx.iterations,
            rng=ctx.rng,
            tuning=ctx.tuning,
            strict_pitchers=ctx.strict_pitchers,
            workers=ctx.workers,
        )
        return TierOutcome(
            method=self.method,
            home_win_probability=summary.home_win_probability,
            away_win_probability=summary.away_win_probability,
            home_expected_runs=summary.mean_home_runs,
            away_expected_runs=summary.mean_away_runs,
            predicted_home_score=summary.predicted_home_score,
            predicted_away_score=summary.predicted_away_score,
            over_under_line=summary.over_under_line,
            over_probability=summary.over_probability,
            under_probability=summary.under_probability,
            home_pitcher_name=summary.home_pitcher_name,
            away_pitcher_name=summary.away_pitcher_name,
            sample_size=summary.iterations,
            factors={
                "defaults_used": summary.defaults_used,
                "weather_impact": round(summary.weather_impact, 4),
                "home_advantage": ctx.tuning.home_field_factor,
                "mean_total_runs": round(summary.mean_total_runs, 3),
            },
        )


def _pitcher_name(snapshot: GameSnapshot, team_id: int) -> str:
    entry = snapshot.starting_pitcher(team_id)
    return entry.player_name if entry is not None else "Unknown"


def _fallback_outcome(
    method: PredictionMethod, estimate: FallbackEstimate, ctx: TierContext
) -> TierOutcome:
    tuning = ctx.tuning
    game = ctx.snapshot.game
    total = estimate.home_expected_runs + estimate.away_expected_runs
    line = over_under_line(total)
    over = tuning.over_probability_high if total > line else tuning.over_probability_low
    return TierOutcome(
        method=method,
        home_win_probability=estimate.home_win_probability,
        away_win_probability=estimate.away_win_probability,
        home_expected_runs=estimate.home_expected_runs,
        away_expected_runs=estimate.away_expected_runs,
        predicted_home_score=round_half_up(estimate.home_expected_runs),
        predicted_away_score=round_half_up(estimate.away_expected_runs),
        over_under_line=line,
        over_probability=over,
        under_probability=1.0 - over,
        home_pitcher_name=_pitcher_name(ctx.snapshot, game.home_team_id),
        away_pitcher_name=_pitcher_name(ctx.snapshot, game.away_team_id),
        sample_size=0,
        factors={
            "home_field_bonus": estimate.home_field_bonus,
            "lineup_adjustment": round(estimate.lineup_adjustment, 4),
            "home_expected_runs": round(estimate.home_expected_runs, 3),
            "away_expected_runs": round(estimate.away_expected_runs, 3),
        },
    )


class EnhancedStatsTier(PredictionTier):
    method = PredictionMethod.ENHANCED_STATS

    def min_score(self, tuning: EngineTuning) -> float:
        return tuning.enhanced_min_score

    def base_confidence(self, tuning: EngineTuning) -> float:
        return tuning.enhanced_base_confidence

    def evaluate(self, ctx: TierContext) -> TierOutcome:
        estimate = enhanced_estimate(ctx.snapshot, ctx.completeness.score, ctx.tuning)
        return _fallback_outcome(self.method, estimate, ctx)


class AdjustedTeamStatsTier(PredictionTier):
    method = PredictionMethod.ADJUSTED_TEAM_STATS

    def min_score(self, tuning: EngineTuning) -> float:
        return 0.0

    def base_confidence(self, tuning: EngineTuning) -> float:
        return tuning.adjusted_base_confidence

    def evaluate(self, ctx: TierContext) -> TierOutcome:
        estimate = adjusted_team_stats_estimate(ctx.snapshot, ctx.tuning)
        return _fallback_outcome(self.method, estimate, ctx)


TIERS: tuple[PredictionTier, ...] = (
    MonteCarloTier(),
    EnhancedStatsTier(),
    AdjustedTeamStatsTier(),
)


def select_tier(
    score: float,
    tuning: EngineTuning | None = None,
    tiers: tuple[PredictionTier, ...] = TIERS,
) -> PredictionTier:
    """
    Map a completeness score to a tier.

    Tiers are tried from the highest threshold down; the first whose
    threshold the score reaches wins.

    Args:
        score: Completeness score in [0, 1]
        tuning: Thresholds (defaults to get_tuning())
        tiers: Tier registry

    Returns:
        The selected tier

    Raises:
        ValueError: If no tier accepts the score
    """
    tuning = tuning or get_tuning()
    for tier in sorted(tiers, key=lambda t: t.min_score(tuning), reverse=True):
        if score >= tier.min_score(tuning):
            return tier
    raise ValueError(f"No prediction tier accepts completeness score {score}")
