"""Lightweight table-name constants and column-name enums."""

from enum import Enum


# Table name constants
class Table:
    """Database table names."""

    TEAMS = "teams"
    GAMES = "games"
    GAME_LINEUPS = "game_lineups"
    BATTING_STATS = "batting_stats"
    PITCHING_STATS = "pitching_stats"
    TEAM_STATS = "team_stats"
    PARK_FACTORS = "park_factors"
    WEATHER_DATA = "weather_data"
    GAME_PREDICTIONS = "game_predictions"
    SCHEMA_MIGRATIONS = "schema_migrations"


# Column name enums
class GameStatus(str, Enum):
    """Game status."""

    SCHEDULED = "scheduled"
    LIVE = "live"
    FINAL = "final"
    POSTPONED = "postponed"


class LineupRole(str, Enum):
    """Lineup entry role (game_lineups.lineup_type)."""

    BATTING = "batting"
    PITCHING = "pitching"


class PredictionMethod(str, Enum):
    """Prediction tier recorded verbatim on each persisted prediction."""

    MONTE_CARLO = "monte_carlo"
    ENHANCED_STATS = "enhanced_stats"
    ADJUSTED_TEAM_STATS = "adjusted_team_stats"
