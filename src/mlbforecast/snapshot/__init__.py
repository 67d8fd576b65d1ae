"""Read-only per-game input snapshots.

Snapshots are loaded once per game and never mutated by the engine, so all
stats for one prediction come from the same ingestion state.
"""

from mlbforecast.snapshot.base import (
    BatterProfile,
    EnvironmentalContext,
    GameInfo,
    GameSnapshot,
    LineupEntry,
    PitcherProfile,
    SnapshotProvider,
    TeamSeasonStats,
)
from mlbforecast.snapshot.postgres import PostgresSnapshotProvider
from mlbforecast.snapshot.team_stats_api import RateLimiter, TeamStatsApiClient

__all__ = [
    "BatterProfile",
    "EnvironmentalContext",
    "GameInfo",
    "GameSnapshot",
    "LineupEntry",
    "PitcherProfile",
    "SnapshotProvider",
    "TeamSeasonStats",
    "PostgresSnapshotProvider",
    "RateLimiter",
    "TeamStatsApiClient",
]
