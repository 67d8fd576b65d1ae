"""Tests for the closed-form fallback models."""

import pytest

from conftest import AWAY_TEAM, HOME_TEAM, build_snapshot
from mlbforecast.errors import MissingTeamStatsError
from mlbforecast.prediction.fallback import (
    adjusted_team_stats_estimate,
    enhanced_estimate,
    runs_per_game,
)
from mlbforecast.snapshot.base import TeamSeasonStats


def test_runs_per_game_guards_empty_season():
    assert runs_per_game(TeamSeasonStats(1, wins=0, losses=0, runs_scored=0)) == 0.0
    assert runs_per_game(TeamSeasonStats(1, wins=60, losses=40, runs_scored=500)) == 5.0


def test_adjusted_model_arithmetic(tuning):
    est = adjusted_team_stats_estimate(build_snapshot(), tuning)

    assert est.home_expected_runs == pytest.approx(4.5 + 0.2)
    assert est.away_expected_runs == pytest.approx(4.5)
    assert est.home_win_probability == pytest.approx(4.7 / 9.2)
    assert est.home_win_probability + est.away_win_probability == pytest.approx(1.0)
    assert est.lineup_adjustment == 1.0


def test_enhanced_model_lineup_adjustment(tuning):
    est = enhanced_estimate(build_snapshot(), 0.7, tuning)

    adjustment = 1 + (0.7 - 0.5) * 0.1
    assert est.lineup_adjustment == pytest.approx(adjustment)
    assert est.home_expected_runs == pytest.approx(4.5 * adjustment + 0.3)
    assert est.away_expected_runs == pytest.approx(4.5 * adjustment)


def test_enhanced_home_edge_larger_than_adjusted(tuning):
    snapshot = build_snapshot()

    enhanced = enhanced_estimate(snapshot, 0.5, tuning)
    adjusted = adjusted_team_stats_estimate(snapshot, tuning)

    assert enhanced.home_win_probability > adjusted.home_win_probability > 0.5


def test_win_probability_clamped(tuning):
    snapshot = build_snapshot()
    snapshot.team_stats[HOME_TEAM] = TeamSeasonStats(HOME_TEAM, wins=80, losses=20, runs_scored=900)
    snapshot.team_stats[AWAY_TEAM] = TeamSeasonStats(AWAY_TEAM, wins=20, losses=80, runs_scored=50)

    est = adjusted_team_stats_estimate(snapshot, tuning)

    assert est.home_win_probability == pytest.approx(0.85)
    assert est.away_win_probability == pytest.approx(0.15)


def test_missing_team_stats_raises(tuning):
    snapshot = build_snapshot(team_stats=False)

    with pytest.raises(MissingTeamStatsError) as exc_info:
        enhanced_estimate(snapshot, 0.6, tuning)

    assert exc_info.value.game_id == snapshot.game.game_id
    assert "home and away" in str(exc_info.value)


def test_one_side_missing_raises(tuning):
    snapshot = build_snapshot()
    del snapshot.team_stats[AWAY_TEAM]

    with pytest.raises(MissingTeamStatsError, match="away team"):
        adjusted_team_stats_estimate(snapshot, tuning)
