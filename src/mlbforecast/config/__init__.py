"""Configuration loading for the forecast engine."""

from mlbforecast.config.settings import (
    AppConfig,
    EngineTuning,
    get_config,
    get_tuning,
    reset_settings,
)

__all__ = ["AppConfig", "EngineTuning", "get_config", "get_tuning", "reset_settings"]
