"""Application configuration schema and model tuning constants."""

from typing import Literal

from pydantic import Field, PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: Literal["dev", "staging", "prod"] = Field(
        ...,
        description="Application environment",
    )
    db_dsn: PostgresDsn = Field(
        ...,
        description="PostgreSQL database connection string",
    )
    db_pool_min: int = Field(
        default=2,
        ge=1,
        description="Minimum database connection pool size",
    )
    db_pool_max: int = Field(
        default=10,
        ge=1,
        description="Maximum database connection pool size",
    )
    db_connect_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        le=60.0,
        description="Time allowed to open the pool and to close it on shutdown",
    )
    db_command_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Per-query timeout for snapshot reads and prediction upserts",
    )
    default_iterations: int = Field(
        default=10000,
        ge=1,
        le=100000,
        description="Default number of Monte Carlo trials per game",
    )
    simulation_workers: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Thread workers used to split Monte Carlo trials",
    )
    strict_pitchers: bool = Field(
        default=False,
        description="Fail the top tier instead of defaulting an unresolved starting pitcher",
    )
    season: int | None = Field(
        default=None,
        ge=1900,
        description="Season for stat lookups (None = year of the game)",
    )
    mlb_stats_api_base_url: str = Field(
        default="https://statsapi.mlb.com/api/v1",
        description="Base URL for the MLB Stats API",
    )
    api_min_interval_seconds: float = Field(
        default=0.5,
        ge=0.0,
        le=10.0,
        description="Minimum spacing between outbound stats API requests",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("db_pool_max")
    @classmethod
    def validate_pool_max(cls, v: int, info) -> int:
        """Ensure pool_max >= pool_min."""
        if "db_pool_min" in info.data and v < info.data["db_pool_min"]:
            raise ValueError("db_pool_max must be >= db_pool_min")
        return v


class EngineTuning(BaseSettings):
    """Hand-tuned constants used by the prediction tiers.

    Every value can be overridden with an ``MLBF_TUNING_<NAME>`` environment
    variable, or by constructing an instance directly and passing it to the
    engine functions.
    """

    model_config = SettingsConfigDict(
        env_prefix="MLBF_TUNING_",
        case_sensitive=False,
        extra="ignore",
    )

    # Completeness assessor
    expected_batters: int = Field(default=18, ge=1, description="9 per team x 2 teams")
    expected_pitchers: int = Field(default=2, ge=1, description="1 starter per team")
    batting_weight: float = Field(default=0.7, ge=0.0, le=1.0)
    pitching_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    projected_lineup_penalty: float = Field(default=0.7, ge=0.0, le=1.0)

    # Tier thresholds
    monte_carlo_min_score: float = Field(default=0.8, ge=0.0, le=1.0)
    enhanced_min_score: float = Field(default=0.5, ge=0.0, le=1.0)

    # Lineup sizes
    full_lineup_size: int = Field(default=9, ge=1)
    min_lineup_size: int = Field(default=8, ge=1)

    # Batter rate resolution
    min_at_bats: int = Field(default=50, ge=0, description="Season AB required to trust season rates")
    league_avg: float = Field(default=0.250, gt=0.0, lt=1.0)
    league_obp: float = Field(default=0.320, gt=0.0, lt=1.0)
    league_slg: float = Field(default=0.400, gt=0.0, lt=4.0)
    power_avg: float = Field(default=0.270, gt=0.0, lt=1.0, description="1B/DH class")
    power_obp: float = Field(default=0.340, gt=0.0, lt=1.0)
    power_slg: float = Field(default=0.480, gt=0.0, lt=4.0)
    premium_defense_avg: float = Field(default=0.240, gt=0.0, lt=1.0, description="C/SS class")
    premium_defense_obp: float = Field(default=0.310, gt=0.0, lt=1.0)
    premium_defense_slg: float = Field(default=0.380, gt=0.0, lt=4.0)
    default_hr_rate: float = Field(default=0.025, ge=0.0, lt=1.0)

    # Pitcher effectiveness
    league_era: float = Field(default=4.50, gt=0.0)
    league_whip: float = Field(default=1.30, gt=0.0)
    min_pitcher_effectiveness: float = Field(default=0.7, gt=0.0)
    max_pitcher_effectiveness: float = Field(default=1.3, gt=0.0)

    # Weather and home field
    hot_temperature_f: float = Field(default=80.0)
    cold_temperature_f: float = Field(default=60.0)
    hot_weather_delta: float = Field(default=0.02)
    cold_weather_delta: float = Field(default=-0.02)
    high_wind_mph: float = Field(default=15.0, ge=0.0)
    high_wind_delta: float = Field(default=0.01)
    home_field_factor: float = Field(default=1.03, gt=0.0)

    # Plate appearance outcomes
    on_base_scale: float = Field(default=0.8, gt=0.0, le=1.0)
    out_threshold: float = Field(default=0.70, gt=0.0, le=1.0)
    extra_base_divisor: float = Field(default=3.0, gt=0.0)
    extra_base_batter_score_rate: float = Field(default=0.30, ge=0.0, le=1.0)
    single_runner_score_rate: float = Field(default=0.40, ge=0.0, le=1.0)
    productive_out_rate: float = Field(default=0.15, ge=0.0, le=1.0)
    residual_runner_score_rate: float = Field(default=0.25, ge=0.0, le=1.0)
    max_baserunners: int = Field(default=3, ge=1)

    # Over/under heuristic
    over_probability_high: float = Field(default=0.55, gt=0.0, lt=1.0)
    over_probability_low: float = Field(default=0.45, gt=0.0, lt=1.0)

    # Fallback models
    enhanced_home_bonus: float = Field(default=0.3, ge=0.0)
    adjusted_home_bonus: float = Field(default=0.2, ge=0.0)
    lineup_quality_pivot: float = Field(default=0.5, ge=0.0, le=1.0)
    lineup_quality_weight: float = Field(default=0.1, ge=0.0)
    fallback_min_win_probability: float = Field(default=0.15, gt=0.0, lt=0.5)
    fallback_max_win_probability: float = Field(default=0.85, gt=0.5, lt=1.0)

    # Confidence scorer
    monte_carlo_base_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    enhanced_base_confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    adjusted_base_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    full_lineup_bonus: float = Field(default=0.1, ge=0.0)
    pitchers_resolved_bonus: float = Field(default=0.05, ge=0.0)
    real_stats_bonus: float = Field(default=0.1, ge=0.0)
    max_confidence: float = Field(default=0.95, ge=0.0, le=1.0)

    @field_validator("enhanced_min_score")
    @classmethod
    def validate_thresholds(cls, v: float, info) -> float:
        """Ensure the enhanced tier sits below the Monte Carlo tier."""
        if "monte_carlo_min_score" in info.data and v > info.data["monte_carlo_min_score"]:
            raise ValueError("enhanced_min_score must be <= monte_carlo_min_score")
        return v


_config: AppConfig | None = None
_tuning: EngineTuning | None = None


def get_config() -> AppConfig:
    """Get or create the singleton AppConfig instance."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config


def get_tuning() -> EngineTuning:
    """Get or create the singleton EngineTuning instance."""
    global _tuning
    if _tuning is None:
        _tuning = EngineTuning()
    return _tuning


def reset_settings() -> None:
    """Drop cached settings so the next access re-reads the environment."""
    global _config, _tuning
    _config = None
    _tuning = None
