"""Monte Carlo game simulator.

Each trial sends both lineups through the order once against the opposing
starter. All trials run together as numpy arrays of shape (n,); with
``workers > 1`` they are split into chunks that run on a thread pool, each
chunk with its own child generator, and the chunk tallies are summed.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np

from mlbforecast.config.settings import EngineTuning, get_tuning
from mlbforecast.errors import InsufficientLineupError, InvalidIterationsError
from mlbforecast.prediction.plate_appearance import (
    MatchupRates,
    matchup_rates,
    pitcher_effectiveness,
    resolve_batter_rates,
    simulate_lineup,
    weather_multiplier,
)
from mlbforecast.snapshot.base import GameSnapshot, LineupEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrialTally:
    """Additive accumulator over a block of trials."""

    trials: int = 0
    home_runs: int = 0
    away_runs: int = 0
    home_wins: int = 0

    def __add__(self, other: "TrialTally") -> "TrialTally":
        return TrialTally(
            trials=self.trials + other.trials,
            home_runs=self.home_runs + other.home_runs,
            away_runs=self.away_runs + other.away_runs,
            home_wins=self.home_wins + other.home_wins,
        )


@dataclass
class SimulationSummary:
    """Aggregated Monte Carlo output for one game."""

    iterations: int
    home_win_probability: float
    away_win_probability: float
    mean_home_runs: float
    mean_away_runs: float
    predicted_home_score: int
    predicted_away_score: int
    mean_total_runs: float
    over_under_line: float  # multiple of 0.5
    over_probability: float
    under_probability: float
    home_pitcher_name: str  # "Unknown" when no starter is listed
    away_pitcher_name: str
    home_pitcher_resolved: bool
    away_pitcher_resolved: bool
    home_lineup_size: int
    away_lineup_size: int
    real_stat_batters: int  # batters with trusted season stats
    defaults_used: int  # batters and starters on default rates
    weather_impact: float  # neutral-team weather multiplier (no home factor)


@dataclass(frozen=True)
class _PreparedSide:
    lineup: list[MatchupRates]
    real_stats: int
    defaults: int


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negative values."""
    return int(math.floor(value + 0.5))


def over_under_line(mean_total: float) -> float:
    """Nearest half-run to the mean total."""
    return math.floor(mean_total * 2 + 0.5) / 2


def _prepare_side(
    snapshot: GameSnapshot,
    batters: list[LineupEntry],
    opposing_pitcher: LineupEntry | None,
    batting_home: bool,
    tuning: EngineTuning,
) -> _PreparedSide:
    pitcher_profile = (
        snapshot.pitchers.get(opposing_pitcher.player_id) if opposing_pitcher else None
    )
    effectiveness = pitcher_effectiveness(pitcher_profile, tuning)
    multiplier = weather_multiplier(snapshot.environment, batting_home, tuning)

    lineup = []
    real_stats = 0
    defaults = 0 if pitcher_profile is not None else 1
    for entry in batters:
        rates = resolve_batter_rates(
            snapshot.batters.get(entry.player_id), entry.position, tuning
        )
        if rates.is_default:
            defaults += 1
            logger.debug(
                f"Game {snapshot.game.game_id}: default rates for {entry.player_name} "
                f"({entry.position or 'no position'})"
            )
        else:
            real_stats += 1
        lineup.append(matchup_rates(rates, effectiveness, snapshot.environment, multiplier, tuning))
    return _PreparedSide(lineup=lineup, real_stats=real_stats, defaults=defaults)


def _run_trials(
    home: list[MatchupRates],
    away: list[MatchupRates],
    n: int,
    rng: np.random.Generator,
    tuning: EngineTuning,
) -> TrialTally:
    home_runs = simulate_lineup(home, n, rng, tuning)  # shape (n,)
    away_runs = simulate_lineup(away, n, rng, tuning)
    return TrialTally(
        trials=n,
        home_runs=int(home_runs.sum()),
        away_runs=int(away_runs.sum()),
        home_wins=int((home_runs > away_runs).sum()),
    )


def _chunk_sizes(iterations: int, workers: int) -> list[int]:
    base, extra = divmod(iterations, workers)
    return [base + (1 if i < extra else 0) for i in range(workers)]


def simulate_game(
    snapshot: GameSnapshot,
    iterations: int,
    rng: np.random.Generator | None = None,
    tuning: EngineTuning | None = None,
    strict_pitchers: bool = False,
    workers: int = 1,
) -> SimulationSummary:
    """
    Simulate a game ``iterations`` times.

    Args:
        snapshot: Game inputs
        iterations: Number of trials (must be positive)
        rng: Random source (fresh unseeded generator if None)
        tuning: Model constants (defaults to get_tuning())
        strict_pitchers: Raise instead of using a league-average starter
        workers: Thread workers to split trials across

    Returns:
        SimulationSummary

    Raises:
        InvalidIterationsError: If iterations <= 0
        InsufficientLineupError: If a lineup has fewer than the minimum
            batters, or a starter is missing and strict_pitchers is set
    """
    game = snapshot.game
    if iterations <= 0:
        raise InvalidIterationsError(
            f"iterations must be positive, got {iterations}", game_id=game.game_id
        )
    tuning = tuning or get_tuning()
    rng = rng if rng is not None else np.random.default_rng()

    home_batters = snapshot.batting_lineup(game.home_team_id)
    away_batters = snapshot.batting_lineup(game.away_team_id)
    for side, batters in (("home", home_batters), ("away", away_batters)):
        if len(batters) < tuning.min_lineup_size:
            raise InsufficientLineupError(
                f"Game {game.game_id}: {side} lineup has {len(batters)} batters, "
                f"need at least {tuning.min_lineup_size}",
                game_id=game.game_id,
            )

    home_pitcher = snapshot.starting_pitcher(game.home_team_id)
    away_pitcher = snapshot.starting_pitcher(game.away_team_id)
    home_resolved = home_pitcher is not None
    away_resolved = away_pitcher is not None
    if strict_pitchers and not (home_resolved and away_resolved):
        raise InsufficientLineupError(
            f"Game {game.game_id}: starting pitcher could not be resolved",
            game_id=game.game_id,
        )

    home_side = _prepare_side(snapshot, home_batters, away_pitcher, True, tuning)
    away_side = _prepare_side(snapshot, away_batters, home_pitcher, False, tuning)

    workers = max(1, min(workers, iterations))
    if workers == 1:
        tally = _run_trials(home_side.lineup, away_side.lineup, iterations, rng, tuning)
    else:
        sizes = _chunk_sizes(iterations, workers)
        children = rng.spawn(len(sizes))
        with ThreadPoolExecutor(max_workers=len(sizes)) as pool:
            futures = [
                pool.submit(_run_trials, home_side.lineup, away_side.lineup, n, child, tuning)
                for n, child in zip(sizes, children)
            ]
            tally = sum((f.result() for f in futures), TrialTally())

    n = tally.trials
    mean_home = tally.home_runs / n
    mean_away = tally.away_runs / n
    mean_total = mean_home + mean_away
    line = over_under_line(mean_total)
    over = tuning.over_probability_high if mean_total > line else tuning.over_probability_low
    home_wp = tally.home_wins / n

    return SimulationSummary(
        iterations=n,
        home_win_probability=home_wp,
        away_win_probability=1.0 - home_wp,
        mean_home_runs=mean_home,
        mean_away_runs=mean_away,
        predicted_home_score=round_half_up(mean_home),
        predicted_away_score=round_half_up(mean_away),
        mean_total_runs=mean_total,
        over_under_line=line,
        over_probability=over,
        under_probability=1.0 - over,
        home_pitcher_name=home_pitcher.player_name if home_resolved else "Unknown",
        away_pitcher_name=away_pitcher.player_name if away_resolved else "Unknown",
        home_pitcher_resolved=home_resolved,
        away_pitcher_resolved=away_resolved,
        home_lineup_size=len(home_batters),
        away_lineup_size=len(away_batters),
        real_stat_batters=home_side.real_stats + away_side.real_stats,
        defaults_used=home_side.defaults + away_side.defaults,
        weather_impact=weather_multiplier(snapshot.environment, False, tuning),
    )
