"""Batch orchestration for game predictions.

Runs predictions for a date or a list of games, one game at a time, with
per-game failures recorded in the batch summary.
"""

from mlbforecast.scheduler.pipeline import (
    BatchResult,
    GameRunResult,
    build_provider,
    predict_and_store,
    run_predictions,
)

__all__ = [
    "BatchResult",
    "GameRunResult",
    "build_provider",
    "predict_and_store",
    "run_predictions",
]
