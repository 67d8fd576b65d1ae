"""Tiered game outcome prediction.

Completeness assessment picks one of three tiers (Monte Carlo simulation,
enhanced team stats, adjusted team stats); the chosen tier's output is
scored for confidence and assembled into a single PredictionResult.
"""

from mlbforecast.prediction.assembler import PredictionResult, assemble_result, failure_response
from mlbforecast.prediction.completeness import CompletenessReport, assess_completeness
from mlbforecast.prediction.confidence import DataCoverage, measure_coverage, score_confidence
from mlbforecast.prediction.engine import predict_game
from mlbforecast.prediction.persistence import upsert_prediction
from mlbforecast.prediction.simulator import SimulationSummary, simulate_game
from mlbforecast.prediction.tiers import TIERS, PredictionTier, select_tier

__all__ = [
    "PredictionResult",
    "assemble_result",
    "failure_response",
    "CompletenessReport",
    "assess_completeness",
    "DataCoverage",
    "measure_coverage",
    "score_confidence",
    "predict_game",
    "upsert_prediction",
    "SimulationSummary",
    "simulate_game",
    "TIERS",
    "PredictionTier",
    "select_tier",
]
