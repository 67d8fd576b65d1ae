"""Batch prediction driver.

Implements:
- predict_and_store() for one game: load snapshot, predict, upsert
- run_predictions() for a date or an explicit list of games, where one
  game's failure is recorded and never stops the rest of the batch
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date

import asyncpg
import numpy as np

from mlbforecast.config.settings import AppConfig, EngineTuning, get_config, get_tuning
from mlbforecast.db.models import GameStatus
from mlbforecast.db.pool import get_pool
from mlbforecast.prediction.assembler import PredictionResult, failure_response
from mlbforecast.prediction.engine import predict_game
from mlbforecast.prediction.persistence import upsert_prediction
from mlbforecast.snapshot.base import GameSnapshot, SnapshotProvider
from mlbforecast.snapshot.postgres import PostgresSnapshotProvider
from mlbforecast.snapshot.team_stats_api import RateLimiter, TeamStatsApiClient

logger = logging.getLogger(__name__)


@dataclass
class GameRunResult:
    """Per-game line of a batch summary."""

    game_id: int
    method: str
    data_quality: float
    confidence: float


@dataclass
class BatchResult:
    """Outcome of one batch run."""

    success: bool
    total_games: int
    processed: int
    skipped: int
    errors: int
    error_details: list[str] = field(default_factory=list)
    results: list[GameRunResult] = field(default_factory=list)
    responses: list[dict] = field(default_factory=list)  # per-game response bodies, in order
    message: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


def build_provider(
    pool: asyncpg.Pool,
    config: AppConfig | None = None,
    tuning: EngineTuning | None = None,
) -> PostgresSnapshotProvider:
    """Postgres snapshot provider with the stats API as team-stats backup."""
    config = config or get_config()
    client = TeamStatsApiClient(
        config.mlb_stats_api_base_url,
        RateLimiter(config.api_min_interval_seconds),
    )
    return PostgresSnapshotProvider(
        pool, team_stats_client=client, season=config.season, tuning=tuning
    )


def _predict(
    snapshot: GameSnapshot,
    iterations: int,
    rng: np.random.Generator | None,
    tuning: EngineTuning,
    config: AppConfig,
) -> PredictionResult:
    return predict_game(
        snapshot,
        iterations=iterations,
        rng=rng,
        tuning=tuning,
        strict_pitchers=config.strict_pitchers,
        workers=config.simulation_workers,
    )


async def predict_and_store(
    game_id: int,
    provider: SnapshotProvider,
    pool: asyncpg.Pool,
    iterations: int | None = None,
    rng: np.random.Generator | None = None,
    tuning: EngineTuning | None = None,
    config: AppConfig | None = None,
) -> PredictionResult:
    """
    Predict one game and upsert its record.

    Args:
        game_id: Game identifier
        provider: Snapshot source
        pool: Pool used for the upsert
        iterations: Monte Carlo trials (defaults to config.default_iterations)
        rng: Random source for the simulator
        tuning: Model constants
        config: Runtime settings

    Returns:
        The stored PredictionResult

    Raises:
        PredictionError: If the game cannot be predicted
        asyncpg.PostgresError: If the upsert fails
    """
    config = config or get_config()
    tuning = tuning or get_tuning()
    iterations = config.default_iterations if iterations is None else iterations

    snapshot = await provider.load_snapshot(game_id)
    result = _predict(snapshot, iterations, rng, tuning, config)
    async with pool.acquire() as conn:
        await upsert_prediction(conn, result)
    return result


async def run_predictions(
    game_ids: list[int] | None = None,
    game_date: date | None = None,
    iterations: int | None = None,
    provider: SnapshotProvider | None = None,
    pool: asyncpg.Pool | None = None,
    rng: np.random.Generator | None = None,
    tuning: EngineTuning | None = None,
    config: AppConfig | None = None,
) -> BatchResult:
    """
    Predict and store a batch of games, sequentially.

    Games are taken from ``game_ids`` when given, otherwise from the
    scheduled games on ``game_date``. Games that are no longer scheduled are
    skipped. Any exception for one game is logged and added to
    ``error_details``; processing continues with the next game.

    Args:
        game_ids: Explicit games to predict
        game_date: Date whose scheduled games are predicted
        iterations: Monte Carlo trials per game
        provider: Snapshot source (Postgres provider by default)
        pool: Pool used for upserts (shared pool by default)
        rng: Random source shared by the batch
        tuning: Model constants
        config: Runtime settings

    Returns:
        BatchResult summary

    Raises:
        ValueError: If neither game_ids nor game_date is given
    """
    if game_ids is None and game_date is None:
        raise ValueError("Either game_ids or game_date is required")

    config = config or get_config()
    tuning = tuning or get_tuning()
    iterations = config.default_iterations if iterations is None else iterations
    pool = pool or await get_pool()
    provider = provider or build_provider(pool, config, tuning)

    if game_ids is None:
        game_ids = await provider.list_game_ids(game_date)
        logger.info(f"Found {len(game_ids)} scheduled games for {game_date}")

    batch = BatchResult(
        success=True,
        total_games=len(game_ids),
        processed=0,
        skipped=0,
        errors=0,
    )

    for game_id in game_ids:
        try:
            snapshot = await provider.load_snapshot(game_id)
            if snapshot.game.status != GameStatus.SCHEDULED.value:
                logger.info(f"Skipping game {game_id} with status {snapshot.game.status}")
                batch.skipped += 1
                continue

            result = _predict(snapshot, iterations, rng, tuning, config)
            async with pool.acquire() as conn:
                await upsert_prediction(conn, result)
        except Exception as e:
            logger.error(f"Prediction failed for game {game_id}: {e}", exc_info=True)
            batch.errors += 1
            batch.error_details.append(f"Game {game_id}: {e}")
            batch.responses.append(failure_response(game_id, e))
            continue

        batch.processed += 1
        batch.results.append(
            GameRunResult(
                game_id=game_id,
                method=result.prediction_method,
                data_quality=result.key_factors["data_quality_score"],
                confidence=result.confidence_score,
            )
        )
        batch.responses.append(result.to_simulation_response())

    batch.message = (
        f"Generated {batch.processed} predictions "
        f"({batch.errors} errors, {batch.skipped} skipped)"
    )
    logger.info(batch.message)
    return batch
