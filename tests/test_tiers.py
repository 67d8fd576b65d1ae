"""Tests for completeness scoring and tier selection."""

import pytest

from conftest import AWAY_TEAM, HOME_TEAM, build_lineup
from mlbforecast.db.models import PredictionMethod
from mlbforecast.prediction.completeness import assess_completeness
from mlbforecast.prediction.tiers import (
    TIERS,
    AdjustedTeamStatsTier,
    EnhancedStatsTier,
    MonteCarloTier,
    PredictionTier,
    select_tier,
)


def _lineups(batters: int, pitcher: bool = True, projected: bool = False):
    return build_lineup(1, HOME_TEAM, batters, pitcher, projected) + build_lineup(
        1, AWAY_TEAM, batters, pitcher, projected
    )


def test_full_lineups_score_one(tuning):
    report = assess_completeness(_lineups(9), tuning)

    assert report.score == pytest.approx(1.0)
    assert report.has_lineups is True
    assert report.batting_lineups == 18
    assert report.pitching_lineups == 2
    assert report.is_projected is False


def test_no_lineups_score_zero(tuning):
    report = assess_completeness([], tuning)

    assert report.score == 0.0
    assert report.has_lineups is False
    assert report.batting_lineups == 0


def test_components_are_capped(tuning):
    # 10 batters per team is more than expected, still capped at 1
    report = assess_completeness(_lineups(10), tuning)

    assert report.batting_completeness == 1.0
    assert report.score == pytest.approx(1.0)


def test_projected_lineup_penalty(tuning):
    report = assess_completeness(_lineups(9, projected=True), tuning)

    assert report.is_projected is True
    assert report.score == pytest.approx(0.7)


def test_pitchers_only(tuning):
    report = assess_completeness(_lineups(0), tuning)

    assert report.score == pytest.approx(0.3)


@pytest.mark.parametrize(
    "score, method",
    [
        (0.85, PredictionMethod.MONTE_CARLO),
        (0.8, PredictionMethod.MONTE_CARLO),
        (0.6, PredictionMethod.ENHANCED_STATS),
        (0.5, PredictionMethod.ENHANCED_STATS),
        (0.3, PredictionMethod.ADJUSTED_TEAM_STATS),
        (0.0, PredictionMethod.ADJUSTED_TEAM_STATS),
    ],
)
def test_select_tier_thresholds(tuning, score, method):
    assert select_tier(score, tuning).method == method


def test_select_tier_is_repeatable(tuning):
    picks = {select_tier(0.6, tuning).method for _ in range(10)}
    assert picks == {PredictionMethod.ENHANCED_STATS}


def test_six_batters_per_team_routes_to_adjusted(tuning):
    report = assess_completeness(_lineups(6, pitcher=False), tuning)

    assert report.score == pytest.approx(12 / 18 * 0.7)
    assert select_tier(report.score, tuning).method == PredictionMethod.ADJUSTED_TEAM_STATS


def test_six_batters_with_starters_routes_to_enhanced(tuning):
    report = assess_completeness(_lineups(6), tuning)

    assert report.score == pytest.approx(12 / 18 * 0.7 + 0.3)
    assert select_tier(report.score, tuning).method == PredictionMethod.ENHANCED_STATS


def test_projected_full_lineup_leaves_monte_carlo(tuning):
    report = assess_completeness(_lineups(9, projected=True), tuning)

    assert select_tier(report.score, tuning).method == PredictionMethod.ENHANCED_STATS


def test_thresholds_follow_tuning():
    from mlbforecast.config.settings import EngineTuning

    tuning = EngineTuning(monte_carlo_min_score=0.9, enhanced_min_score=0.7)

    assert select_tier(0.85, tuning).method == PredictionMethod.ENHANCED_STATS
    assert select_tier(0.6, tuning).method == PredictionMethod.ADJUSTED_TEAM_STATS


def test_registry_accepts_new_tier(tuning):
    class ExperimentalTier(PredictionTier):
        method = PredictionMethod.MONTE_CARLO

        def min_score(self, tuning):
            return 0.95

        def base_confidence(self, tuning):
            return 0.8

        def evaluate(self, ctx):
            raise NotImplementedError

    experimental = ExperimentalTier()
    tiers = TIERS + (experimental,)

    assert select_tier(0.97, tuning, tiers) is experimental
    assert isinstance(select_tier(0.85, tuning, tiers), MonteCarloTier)


def test_registry_order():
    assert [type(t) for t in TIERS] == [MonteCarloTier, EnhancedStatsTier, AdjustedTeamStatsTier]
