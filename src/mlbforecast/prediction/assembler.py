"""Final prediction record, key factors, and insights."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from mlbforecast.config.settings import EngineTuning
from mlbforecast.prediction.completeness import CompletenessReport
from mlbforecast.prediction.confidence import DataCoverage
from mlbforecast.prediction.tiers import TierOutcome
from mlbforecast.snapshot.base import GameSnapshot

# Keeps both sides strictly inside (0, 1) before normalization
_PROBABILITY_FLOOR = 0.001
_PROBABILITY_CEILING = 0.999


@dataclass
class PredictionResult:
    """One normalized prediction, ready to persist."""

    game_id: int
    home_win_probability: float  # home + away == 1
    away_win_probability: float
    predicted_home_score: int
    predicted_away_score: int
    predicted_total_runs: float  # unrounded expected total
    over_under_line: float  # multiple of 0.5
    over_probability: float  # over + under == 1
    under_probability: float
    confidence_score: float  # [0, 0.95]
    prediction_method: str  # 'monte_carlo' | 'enhanced_stats' | 'adjusted_team_stats'
    iterations: int  # trials requested
    sample_size: int  # trials run, 0 for closed-form tiers
    key_factors: dict = field(default_factory=dict)
    key_insights: dict = field(default_factory=dict)
    prediction_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_record(self) -> dict:
        """Column values for the game_predictions table."""
        return {
            "game_id": self.game_id,
            "home_win_probability": self.home_win_probability,
            "away_win_probability": self.away_win_probability,
            "predicted_home_score": self.predicted_home_score,
            "predicted_away_score": self.predicted_away_score,
            "over_under_line": self.over_under_line,
            "over_probability": self.over_probability,
            "under_probability": self.under_probability,
            "confidence_score": self.confidence_score,
            "prediction_method": self.prediction_method,
            "key_factors": self.key_factors,
            "prediction_date": self.prediction_date,
        }

    def to_simulation_response(self) -> dict:
        """Per-game response body: simulation_stats, factors, key_insights."""
        return {
            "success": True,
            "game_id": self.game_id,
            "iterations": self.iterations,
            "simulation_stats": {
                "home_win_probability": self.home_win_probability,
                "away_win_probability": self.away_win_probability,
                "predicted_home_score": self.predicted_home_score,
                "predicted_away_score": self.predicted_away_score,
                "predicted_total_runs": self.predicted_total_runs,
                "over_probability": self.over_probability,
                "under_probability": self.under_probability,
                "over_under_line": self.over_under_line,
                "confidence_score": self.confidence_score,
                "sample_size": self.sample_size,
            },
            "factors": {
                "park_factor": self.key_factors.get("park_factor", 1.0),
                "weather_impact": self.key_factors.get("weather_impact", 1.0),
                "home_advantage": self.key_factors.get("home_advantage", 1.0),
                "pitcher_fatigue": self.key_factors.get("pitcher_fatigue", 1.0),
            },
            "key_insights": self.key_insights,
            "timestamp": self.prediction_date.isoformat(),
        }


def failure_response(game_id: int, error: Exception | str) -> dict:
    """Per-game response body for a game that could not be predicted."""
    return {
        "success": False,
        "game_id": game_id,
        "error": str(error),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def normalize_probabilities(home: float, away: float) -> tuple[float, float]:
    """
    Rescale two win probabilities so they sum to exactly 1.

    Each side is first clamped to [0.001, 0.999]; the away side is then
    taken as the complement so floating-point drift cannot break the sum.
    """
    home = min(max(home, _PROBABILITY_FLOOR), _PROBABILITY_CEILING)
    away = min(max(away, _PROBABILITY_FLOOR), _PROBABILITY_CEILING)
    home_norm = home / (home + away)
    return home_norm, 1.0 - home_norm


def build_insights(
    snapshot: GameSnapshot,
    outcome: TierOutcome,
    completeness: CompletenessReport,
    coverage: DataCoverage,
    weather_impact: float,
) -> dict:
    """Human-readable summary of what drove the prediction."""
    game = snapshot.game
    env = snapshot.environment

    if coverage.pitchers_resolved:
        pitching = f"{outcome.away_pitcher_name} vs {outcome.home_pitcher_name}"
    else:
        pitching = "Even matchup"

    if outcome.predicted_home_score > outcome.predicted_away_score + 0.5:
        offense = f"Team {game.home_team_id} has offensive advantage"
    elif outcome.predicted_away_score > outcome.predicted_home_score + 0.5:
        offense = f"Team {game.away_team_id} has offensive advantage"
    else:
        offense = "Balanced offensive capabilities"

    if env.park_runs_factor > 1.05:
        environment = "Hitter-friendly park boosts offense"
    elif env.park_runs_factor < 0.95:
        environment = "Pitcher-friendly park suppresses offense"
    else:
        environment = "Neutral conditions"
    if weather_impact > 1.02:
        environment += ". Weather favors offense"
    elif weather_impact < 0.98:
        environment += ". Weather favors pitching"

    drivers = []
    if completeness.score > 0.8:
        drivers.append("High data completeness")
    if coverage.full_lineups:
        drivers.append("Complete lineups available")
    if coverage.pitchers_resolved:
        drivers.append("Starting pitchers confirmed")
    if env.park_runs_factor != 1.0 or env.park_hr_factor != 1.0:
        drivers.append("Park factors included")

    return {
        "pitching_matchup": pitching,
        "offensive_edge": offense,
        "environmental_impact": environment,
        "confidence_drivers": drivers,
    }


def assemble_result(
    snapshot: GameSnapshot,
    outcome: TierOutcome,
    completeness: CompletenessReport,
    coverage: DataCoverage,
    confidence: float,
    iterations: int,
    tuning: EngineTuning,
) -> PredictionResult:
    """
    Normalize a tier outcome and attach diagnostics.

    Args:
        snapshot: Game inputs
        outcome: Raw tier output
        completeness: Completeness report used for tier selection
        coverage: Snapshot coverage used for confidence
        confidence: Scored confidence
        iterations: Trials requested by the caller
        tuning: Model constants

    Returns:
        PredictionResult
    """
    home_wp, away_wp = normalize_probabilities(
        outcome.home_win_probability, outcome.away_win_probability
    )
    env = snapshot.environment
    weather_impact = outcome.factors.get("weather_impact", 1.0)

    key_factors = {
        "method": outcome.method.value,
        "data_quality_score": round(completeness.score, 4),
        "is_projected": completeness.is_projected,
        "home_lineup_size": coverage.home_batters,
        "away_lineup_size": coverage.away_batters,
        "home_pitcher": outcome.home_pitcher_name,
        "away_pitcher": outcome.away_pitcher_name,
        "real_stats_fraction": round(coverage.real_stats_fraction, 4),
        "park_factor": env.park_runs_factor,
        "park_hr_factor": env.park_hr_factor,
        "weather_impact": weather_impact,
        "home_advantage": tuning.home_field_factor,
        "pitcher_fatigue": 1.0,
    }
    key_factors.update(outcome.factors)

    return PredictionResult(
        game_id=snapshot.game.game_id,
        home_win_probability=home_wp,
        away_win_probability=away_wp,
        predicted_home_score=outcome.predicted_home_score,
        predicted_away_score=outcome.predicted_away_score,
        predicted_total_runs=round(outcome.home_expected_runs + outcome.away_expected_runs, 3),
        over_under_line=outcome.over_under_line,
        over_probability=outcome.over_probability,
        under_probability=outcome.under_probability,
        confidence_score=confidence,
        prediction_method=outcome.method.value,
        iterations=iterations,
        sample_size=outcome.sample_size,
        key_factors=key_factors,
        key_insights=build_insights(snapshot, outcome, completeness, coverage, weather_impact),
    )
