"""Stochastic plate-appearance model.

One batter faces one opposing starting pitcher. Per-batter probabilities are
resolved once per game (``matchup_rates``) and then reused by every trial.
Trials are vectorized: each plate appearance plays out for all trials at once
on arrays of shape (n,).

Every plate appearance consumes the same fixed block of uniforms whatever
happens in it, so two runs with the same seed see the same random numbers at
the same batter and trial (common random numbers).
"""

from dataclasses import dataclass

import numpy as np

from mlbforecast.config.settings import EngineTuning
from mlbforecast.snapshot.base import BatterProfile, EnvironmentalContext, PitcherProfile

POWER_POSITIONS = frozenset({"1B", "DH"})
PREMIUM_DEFENSE_POSITIONS = frozenset({"C", "SS"})

# Columns of the per-plate-appearance draw block; runner draws follow
OUTCOME_DRAW = 0
EXTRA_BASE_DRAW = 1
ADVANCE_DRAW = 2  # batter scores on an extra-base hit, or productive out
HOME_RUN_DRAW = 3
RUNNER_DRAWS = 4


@dataclass(frozen=True)
class BatterRates:
    """Rates used for one batter after default substitution."""

    avg: float
    obp: float
    slg: float
    hr_rate: float  # HR per at-bat
    is_default: bool  # True when season stats were not trusted


@dataclass(frozen=True)
class MatchupRates:
    """Per-plate-appearance probabilities for one batter vs. one pitcher."""

    on_base: float  # first draw below this is an on-base event
    extra_base: float  # P(extra-base | on base)
    home_run: float  # independent home-run check


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def resolve_batter_rates(
    profile: BatterProfile | None, position: str | None, tuning: EngineTuning
) -> BatterRates:
    """
    Pick the batter's rates, substituting position-class defaults.

    Season rates are used only with more than ``min_at_bats`` at-bats.
    1B/DH get power defaults, C/SS get premium-defense defaults, everyone
    else gets league average.
    """
    if profile is not None and profile.at_bats > tuning.min_at_bats:
        return BatterRates(
            avg=profile.avg,
            obp=profile.obp,
            slg=profile.slg,
            hr_rate=profile.home_runs / profile.at_bats,
            is_default=False,
        )

    pos = (position or "").upper()
    if pos in POWER_POSITIONS:
        avg, obp, slg = tuning.power_avg, tuning.power_obp, tuning.power_slg
    elif pos in PREMIUM_DEFENSE_POSITIONS:
        avg, obp, slg = (
            tuning.premium_defense_avg,
            tuning.premium_defense_obp,
            tuning.premium_defense_slg,
        )
    else:
        avg, obp, slg = tuning.league_avg, tuning.league_obp, tuning.league_slg
    return BatterRates(avg=avg, obp=obp, slg=slg, hr_rate=tuning.default_hr_rate, is_default=True)


def pitcher_effectiveness(profile: PitcherProfile | None, tuning: EngineTuning) -> float:
    """ERA relative to league average, clamped. Unknown pitchers are league average (1.0)."""
    era = profile.era if profile is not None else tuning.league_era
    return _clamp(
        era / tuning.league_era,
        tuning.min_pitcher_effectiveness,
        tuning.max_pitcher_effectiveness,
    )


def weather_multiplier(
    environment: EnvironmentalContext, batting_home: bool, tuning: EngineTuning
) -> float:
    """
    Offense multiplier from temperature, wind, and home field.

    Args:
        environment: Park and weather conditions
        batting_home: Whether the batting team is the home team
        tuning: Weather deltas and home-field factor

    Returns:
        Multiplier centered at 1.0
    """
    multiplier = 1.0
    temp = environment.temperature_f
    if temp is not None:
        if temp > tuning.hot_temperature_f:
            multiplier += tuning.hot_weather_delta
        elif temp < tuning.cold_temperature_f:
            multiplier += tuning.cold_weather_delta
    wind = environment.wind_speed_mph
    if wind is not None and wind > tuning.high_wind_mph:
        multiplier += tuning.high_wind_delta
    if batting_home:
        multiplier *= tuning.home_field_factor
    return multiplier


def matchup_rates(
    batter: BatterRates,
    effectiveness: float,
    environment: EnvironmentalContext,
    multiplier: float,
    tuning: EngineTuning,
) -> MatchupRates:
    """Fold pitcher, park, and weather adjustments into per-PA probabilities."""
    adjusted_obp = batter.obp * (1.0 / effectiveness) * multiplier
    adjusted_slg = batter.slg * environment.park_runs_factor * multiplier
    return MatchupRates(
        on_base=_clamp(adjusted_obp * tuning.on_base_scale, 0.0, 1.0),
        extra_base=_clamp((adjusted_slg - batter.avg) / tuning.extra_base_divisor, 0.0, 1.0),
        home_run=_clamp(batter.hr_rate * environment.park_hr_factor * multiplier, 0.0, 1.0),
    )


def draw_block(rng: np.random.Generator, n: int, tuning: EngineTuning) -> np.ndarray:
    """Uniforms for one plate appearance across ``n`` trials, shape (n, 4 + max_baserunners)."""
    return rng.random((n, RUNNER_DRAWS + tuning.max_baserunners))


def _runners_scoring(runner_draws: np.ndarray, bases: np.ndarray, rate: float) -> np.ndarray:
    # Runner k uses draw column k, so adding a runner never changes the others
    on_base = np.arange(runner_draws.shape[1]) < bases[:, None]
    return ((runner_draws < rate) & on_base).sum(axis=1)


def simulate_plate_appearance(
    rates: MatchupRates, bases: np.ndarray, draws: np.ndarray, tuning: EngineTuning
) -> tuple[np.ndarray, np.ndarray]:
    """
    Play one plate appearance in every trial.

    Args:
        rates: Batter-vs-pitcher probabilities
        bases: Runners on base per trial before the plate appearance (0-3)
        draws: Uniform block from draw_block()
        tuning: Advancement rates

    Returns:
        (runs scored, runners on base afterwards), each of shape (n,)
    """
    outcome = draws[:, OUTCOME_DRAW]
    advance = draws[:, ADVANCE_DRAW]

    reached = outcome < rates.on_base
    extra_base = reached & (draws[:, EXTRA_BASE_DRAW] < rates.extra_base)
    single = reached & ~extra_base
    productive_out = (
        ~reached
        & (outcome < tuning.out_threshold)
        & (bases > 0)
        & (advance < tuning.productive_out_rate)
    )

    batter_scores = advance < tuning.extra_base_batter_score_rate
    single_scored = _runners_scoring(
        draws[:, RUNNER_DRAWS:], bases, tuning.single_runner_score_rate
    )

    runs = np.zeros_like(bases)
    runs = np.where(extra_base, bases + batter_scores, runs)
    runs = np.where(single, single_scored, runs)
    runs = np.where(productive_out, 1, runs)

    after = bases
    after = np.where(extra_base, np.where(batter_scores, 0, 1), after)
    after = np.where(
        single, np.minimum(tuning.max_baserunners, bases - single_scored + 1), after
    )
    after = np.where(productive_out, bases - 1, after)

    home_run = draws[:, HOME_RUN_DRAW] < rates.home_run
    runs = np.where(home_run, runs + after + 1, runs)
    after = np.where(home_run, 0, after)

    return runs, after


def simulate_lineup(
    lineup: list[MatchupRates], n: int, rng: np.random.Generator, tuning: EngineTuning
) -> np.ndarray:
    """Run one pass through the batting order in ``n`` trials; returns runs per trial."""
    runs = np.zeros(n, dtype=np.int64)
    bases = np.zeros(n, dtype=np.int64)
    for rates in lineup:
        scored, bases = simulate_plate_appearance(rates, bases, draw_block(rng, n, tuning), tuning)
        runs += scored
    residual = rng.random((n, tuning.max_baserunners))
    runs += _runners_scoring(residual, bases, tuning.residual_runner_score_rate)
    return runs
