"""Bounded confidence score from data coverage and tier."""

from dataclasses import dataclass

from mlbforecast.config.settings import EngineTuning
from mlbforecast.snapshot.base import GameSnapshot


@dataclass(frozen=True)
class DataCoverage:
    """What the snapshot actually provides for both teams."""

    home_batters: int
    away_batters: int
    home_pitcher_resolved: bool
    away_pitcher_resolved: bool
    real_stat_batters: int  # batters whose season stats are trusted
    full_lineup_size: int

    @property
    def total_batters(self) -> int:
        return self.home_batters + self.away_batters

    @property
    def full_lineups(self) -> bool:
        return min(self.home_batters, self.away_batters) >= self.full_lineup_size

    @property
    def pitchers_resolved(self) -> bool:
        return self.home_pitcher_resolved and self.away_pitcher_resolved

    @property
    def real_stats_fraction(self) -> float:
        if self.total_batters == 0:
            return 0.0
        return self.real_stat_batters / self.total_batters


def measure_coverage(snapshot: GameSnapshot, tuning: EngineTuning) -> DataCoverage:
    game = snapshot.game
    home = snapshot.batting_lineup(game.home_team_id)
    away = snapshot.batting_lineup(game.away_team_id)
    real = 0
    for entry in home + away:
        profile = snapshot.batters.get(entry.player_id)
        if profile is not None and profile.at_bats > tuning.min_at_bats:
            real += 1
    return DataCoverage(
        home_batters=len(home),
        away_batters=len(away),
        home_pitcher_resolved=snapshot.starting_pitcher(game.home_team_id) is not None,
        away_pitcher_resolved=snapshot.starting_pitcher(game.away_team_id) is not None,
        real_stat_batters=real,
        full_lineup_size=tuning.full_lineup_size,
    )


def score_confidence(base: float, coverage: DataCoverage, tuning: EngineTuning) -> float:
    """
    Add coverage bonuses to a tier's base confidence.

    +0.1 when both lineups are full, +0.05 when both starters are listed, and
    up to +0.1 in proportion to batters with real season stats. The result is
    clamped to [0, 0.95] and rounded to 4 places.

    Args:
        base: Tier base confidence
        coverage: Snapshot coverage
        tuning: Bonus sizes and cap

    Returns:
        Confidence in [0, max_confidence]
    """
    confidence = base
    if coverage.full_lineups:
        confidence += tuning.full_lineup_bonus
    if coverage.pitchers_resolved:
        confidence += tuning.pitchers_resolved_bonus
    confidence += tuning.real_stats_bonus * coverage.real_stats_fraction
    return round(min(max(confidence, 0.0), tuning.max_confidence), 4)
