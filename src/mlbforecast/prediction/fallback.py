"""Closed-form team run-rate models for games without usable lineups."""

from dataclasses import dataclass

from mlbforecast.config.settings import EngineTuning
from mlbforecast.errors import MissingTeamStatsError
from mlbforecast.snapshot.base import GameSnapshot, TeamSeasonStats


@dataclass(frozen=True)
class FallbackEstimate:
    """Deterministic expected runs and win probabilities."""

    home_expected_runs: float
    away_expected_runs: float
    home_win_probability: float  # clamped to the fallback bounds
    away_win_probability: float
    home_field_bonus: float  # runs added to the home side
    lineup_adjustment: float  # 1.0 when no lineup-quality term applies


def runs_per_game(stats: TeamSeasonStats) -> float:
    return stats.runs_scored / max(stats.games_played, 1)


def _team_stats(snapshot: GameSnapshot) -> tuple[TeamSeasonStats, TeamSeasonStats]:
    game = snapshot.game
    missing = [
        side
        for side, team_id in (("home", game.home_team_id), ("away", game.away_team_id))
        if team_id not in snapshot.team_stats
    ]
    if missing:
        raise MissingTeamStatsError(
            f"Game {game.game_id}: no season team stats for {' and '.join(missing)} team",
            game_id=game.game_id,
        )
    return snapshot.team_stats[game.home_team_id], snapshot.team_stats[game.away_team_id]


def _estimate(
    snapshot: GameSnapshot,
    lineup_adjustment: float,
    home_bonus: float,
    tuning: EngineTuning,
) -> FallbackEstimate:
    home_stats, away_stats = _team_stats(snapshot)
    home_runs = runs_per_game(home_stats) * lineup_adjustment + home_bonus
    away_runs = runs_per_game(away_stats) * lineup_adjustment

    total = home_runs + away_runs
    share = home_runs / total if total > 0 else 0.5
    home_wp = min(
        max(share, tuning.fallback_min_win_probability),
        tuning.fallback_max_win_probability,
    )
    return FallbackEstimate(
        home_expected_runs=home_runs,
        away_expected_runs=away_runs,
        home_win_probability=home_wp,
        away_win_probability=1.0 - home_wp,
        home_field_bonus=home_bonus,
        lineup_adjustment=lineup_adjustment,
    )


def enhanced_estimate(
    snapshot: GameSnapshot, completeness_score: float, tuning: EngineTuning
) -> FallbackEstimate:
    """
    Team run rates scaled by lineup quality, plus a home-field bonus.

    ``adjustment = 1 + (completeness - 0.5) * 0.1``; the home side gets +0.3 runs.

    Raises:
        MissingTeamStatsError: If either team has no season stats
    """
    adjustment = 1.0 + (completeness_score - tuning.lineup_quality_pivot) * tuning.lineup_quality_weight
    return _estimate(snapshot, adjustment, tuning.enhanced_home_bonus, tuning)


def adjusted_team_stats_estimate(snapshot: GameSnapshot, tuning: EngineTuning) -> FallbackEstimate:
    """
    Raw team run rates with a +0.2 run home-field bonus.

    Raises:
        MissingTeamStatsError: If either team has no season stats
    """
    return _estimate(snapshot, 1.0, tuning.adjusted_home_bonus, tuning)
