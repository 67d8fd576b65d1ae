"""Single-game prediction: assess, select tier, evaluate, score, assemble."""

import logging

import numpy as np

from mlbforecast.config.settings import EngineTuning, get_tuning
from mlbforecast.prediction.assembler import PredictionResult, assemble_result
from mlbforecast.prediction.completeness import assess_completeness
from mlbforecast.prediction.confidence import measure_coverage, score_confidence
from mlbforecast.prediction.tiers import TierContext, select_tier
from mlbforecast.snapshot.base import GameSnapshot

logger = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 10000


def predict_game(
    snapshot: GameSnapshot,
    iterations: int | None = None,
    rng: np.random.Generator | None = None,
    tuning: EngineTuning | None = None,
    strict_pitchers: bool = False,
    workers: int = 1,
) -> PredictionResult:
    """
    Predict one game from its snapshot.

    Performs no I/O; the caller loads the snapshot and stores the result.

    Args:
        snapshot: Game inputs
        iterations: Monte Carlo trials (default 10000)
        rng: Random source for the simulator
        tuning: Model constants (defaults to get_tuning())
        strict_pitchers: Fail instead of defaulting a missing starter
        workers: Thread workers for the simulator

    Returns:
        PredictionResult

    Raises:
        InvalidIterationsError: If the simulator tier gets iterations <= 0
        InsufficientLineupError: If the simulator tier cannot field both lineups
        MissingTeamStatsError: If a fallback tier has no team stats
    """
    tuning = tuning or get_tuning()
    iterations = DEFAULT_ITERATIONS if iterations is None else iterations
    game_id = snapshot.game.game_id

    completeness = assess_completeness(snapshot.lineups, tuning)
    tier = select_tier(completeness.score, tuning)
    logger.info(
        f"Game {game_id}: completeness {completeness.score:.3f} "
        f"({completeness.batting_lineups} batters, {completeness.pitching_lineups} pitchers"
        f"{', projected' if completeness.is_projected else ''}) -> {tier.method.value}"
    )

    coverage = measure_coverage(snapshot, tuning)
    ctx = TierContext(
        snapshot=snapshot,
        completeness=completeness,
        coverage=coverage,
        iterations=iterations,
        rng=rng,
        tuning=tuning,
        strict_pitchers=strict_pitchers,
        workers=workers,
    )
    outcome = tier.evaluate(ctx)
    confidence = score_confidence(tier.base_confidence(tuning), coverage, tuning)

    result = assemble_result(
        snapshot, outcome, completeness, coverage, confidence, iterations, tuning
    )
    logger.info(
        f"Game {game_id}: {result.prediction_method} home {result.home_win_probability:.3f} "
        f"score {result.predicted_home_score}-{result.predicted_away_score} "
        f"o/u {result.over_under_line} confidence {result.confidence_score:.2f}"
    )
    return result
