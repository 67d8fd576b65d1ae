"""Tests for result assembly, persistence, and the single-game engine."""

import json
from datetime import datetime

import numpy as np
import pytest

from conftest import build_snapshot
from mlbforecast.db.models import PredictionMethod
from mlbforecast.errors import GameNotFoundError, MissingTeamStatsError
from mlbforecast.prediction.assembler import failure_response, normalize_probabilities
from mlbforecast.prediction.engine import predict_game
from mlbforecast.prediction.persistence import upsert_prediction
from mlbforecast.snapshot.base import EnvironmentalContext


@pytest.mark.parametrize(
    "home, away",
    [(0.5, 0.5), (0.52, 0.47), (0.0, 1.0), (1.0, 0.0), (0.3, 0.3), (0.1234567, 0.8765433)],
)
def test_normalized_probabilities_sum_to_one(home, away):
    h, a = normalize_probabilities(home, away)

    assert abs(h + a - 1.0) < 1e-6
    assert 0.0 < h < 1.0
    assert 0.0 < a < 1.0


def test_neutral_full_lineup_scenario(tuning):
    result = predict_game(build_snapshot(), iterations=10000, rng=np.random.default_rng(17), tuning=tuning)

    assert result.prediction_method == PredictionMethod.MONTE_CARLO.value
    assert result.confidence_score >= 0.85
    assert 0.3 <= result.home_win_probability <= 0.7
    assert 0.3 <= result.away_win_probability <= 0.7
    assert abs(result.home_win_probability + result.away_win_probability - 1.0) < 1e-6
    assert result.sample_size == 10000
    assert result.over_under_line % 0.5 == 0


def test_six_batters_never_simulates(tuning, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("simulator must not run")

    monkeypatch.setattr("mlbforecast.prediction.tiers.simulate_game", fail)
    snapshot = build_snapshot(batters_per_team=6, pitchers=False)

    result = predict_game(snapshot, iterations=10000, tuning=tuning)

    assert result.prediction_method == PredictionMethod.ADJUSTED_TEAM_STATS.value
    assert result.sample_size == 0
    assert result.key_factors["home_field_bonus"] == 0.2


def test_enhanced_tier_result(tuning):
    snapshot = build_snapshot(projected=True)

    result = predict_game(snapshot, tuning=tuning)

    assert result.prediction_method == PredictionMethod.ENHANCED_STATS.value
    assert result.key_factors["is_projected"] is True
    assert result.key_factors["lineup_adjustment"] == pytest.approx(1.02)
    # 0.6 base + full lineups + both starters
    assert result.confidence_score == pytest.approx(0.75)


def test_fallback_without_team_stats_fails(tuning):
    with pytest.raises(MissingTeamStatsError):
        predict_game(build_snapshot(batters_per_team=0, team_stats=False), tuning=tuning)


@pytest.mark.parametrize("batters, pitchers", [(9, True), (6, True), (6, False), (0, False)])
def test_result_invariants_across_tiers(tuning, batters, pitchers):
    result = predict_game(
        build_snapshot(batters_per_team=batters, pitchers=pitchers),
        iterations=500,
        rng=np.random.default_rng(3),
        tuning=tuning,
    )

    assert abs(result.home_win_probability + result.away_win_probability - 1.0) < 1e-6
    assert 0.0 <= result.confidence_score <= 0.95
    assert (result.over_under_line * 2).is_integer()
    assert result.over_probability + result.under_probability == pytest.approx(1.0)


def test_key_factors_and_insights(tuning):
    env = EnvironmentalContext(park_runs_factor=1.10, park_hr_factor=1.2, temperature_f=90, wind_speed_mph=18)

    result = predict_game(build_snapshot(environment=env), iterations=300, rng=np.random.default_rng(1), tuning=tuning)

    factors = result.key_factors
    assert factors["method"] == "monte_carlo"
    assert factors["data_quality_score"] == 1.0
    assert factors["home_lineup_size"] == 9
    assert factors["home_pitcher"] == "Starter 147"
    assert factors["park_factor"] == 1.10
    assert factors["weather_impact"] == pytest.approx(1.03)
    assert factors["pitcher_fatigue"] == 1.0
    assert factors["defaults_used"] == 20

    insights = result.key_insights
    assert insights["pitching_matchup"] == "Starter 111 vs Starter 147"
    assert insights["environmental_impact"] == "Hitter-friendly park boosts offense. Weather favors offense"
    assert "Complete lineups available" in insights["confidence_drivers"]
    assert "Park factors included" in insights["confidence_drivers"]


def test_simulation_response_shape(tuning):
    result = predict_game(build_snapshot(), iterations=200, rng=np.random.default_rng(2), tuning=tuning)

    body = result.to_simulation_response()

    assert body["success"] is True
    assert body["game_id"] == 1001
    assert body["iterations"] == 200
    assert set(body["simulation_stats"]) == {
        "home_win_probability",
        "away_win_probability",
        "predicted_home_score",
        "predicted_away_score",
        "predicted_total_runs",
        "over_probability",
        "under_probability",
        "over_under_line",
        "confidence_score",
        "sample_size",
    }
    assert set(body["factors"]) == {"park_factor", "weather_impact", "home_advantage", "pitcher_fatigue"}
    assert body["factors"]["home_advantage"] == 1.03
    json.dumps(body)


@pytest.mark.asyncio
async def test_upsert_twice_keeps_one_row(tuning, prediction_conn):
    snapshot = build_snapshot()
    first = predict_game(snapshot, iterations=200, rng=np.random.default_rng(1), tuning=tuning)
    second = predict_game(snapshot, iterations=400, rng=np.random.default_rng(2), tuning=tuning)

    await upsert_prediction(prediction_conn, first)
    await upsert_prediction(prediction_conn, second)

    assert list(prediction_conn.rows) == [1001]
    row = prediction_conn.rows[1001]
    assert row["home_win_probability"] == second.home_win_probability
    assert row["prediction_date"] == first.prediction_date
    assert json.loads(row["key_factors"])["method"] == "monte_carlo"
    assert all("ON CONFLICT (game_id) DO UPDATE" in q for q in prediction_conn.statements)


def test_failure_response_shape():
    body = failure_response(745001, GameNotFoundError("Game 745001 not found", game_id=745001))

    assert body["success"] is False
    assert body["game_id"] == 745001
    assert body["error"] == "Game 745001 not found"
    assert datetime.fromisoformat(body["timestamp"]).tzinfo is not None
