"""Idempotent storage of predictions in game_predictions."""

import json

import asyncpg

from mlbforecast.db.models import Table
from mlbforecast.prediction.assembler import PredictionResult


async def upsert_prediction(conn: asyncpg.Connection, result: PredictionResult) -> None:
    """Insert or overwrite the single prediction row for a game.

    The first ``prediction_date`` is kept; every other column, and
    ``last_updated``, takes the new values.

    Args:
        conn: Database connection
        result: Assembled prediction

    Raises:
        asyncpg.PostgresError: If the write fails
    """
    record = result.to_record()
    await conn.execute(
        f"""
        INSERT INTO {Table.GAME_PREDICTIONS} (
            game_id,
            home_win_probability,
            away_win_probability,
            predicted_home_score,
            predicted_away_score,
            over_under_line,
            over_probability,
            under_probability,
            confidence_score,
            prediction_method,
            key_factors,
            prediction_date,
            last_updated
        )
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, now())
        ON CONFLICT (game_id) DO UPDATE SET
            home_win_probability = EXCLUDED.home_win_probability,
            away_win_probability = EXCLUDED.away_win_probability,
            predicted_home_score = EXCLUDED.predicted_home_score,
            predicted_away_score = EXCLUDED.predicted_away_score,
            over_under_line = EXCLUDED.over_under_line,
            over_probability = EXCLUDED.over_probability,
            under_probability = EXCLUDED.under_probability,
            confidence_score = EXCLUDED.confidence_score,
            prediction_method = EXCLUDED.prediction_method,
            key_factors = EXCLUDED.key_factors,
            last_updated = now()
        """,
        record["game_id"],
        record["home_win_probability"],
        record["away_win_probability"],
        record["predicted_home_score"],
        record["predicted_away_score"],
        record["over_under_line"],
        record["over_probability"],
        record["under_probability"],
        record["confidence_score"],
        record["prediction_method"],
        json.dumps(record["key_factors"]),
        record["prediction_date"],
    )
