"""Read-only game snapshot types and the snapshot provider interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone

from mlbforecast.db.models import GameStatus, LineupRole


@dataclass(frozen=True)
class GameInfo:
    """Scheduled matchup."""

    game_id: int
    home_team_id: int
    away_team_id: int
    venue_name: str | None
    game_date: date
    game_time: time | None = None
    status: str = GameStatus.SCHEDULED.value  # 'scheduled' | 'live' | 'final' | 'postponed'

    @property
    def season(self) -> int:
        return self.game_date.year


@dataclass(frozen=True)
class LineupEntry:
    """One row of a team's game lineup."""

    game_id: int
    team_id: int
    role: str  # 'batting' | 'pitching'
    player_id: int
    player_name: str
    batting_order: int | None = None  # 1-9 for batters, None for pitchers
    position: str | None = None  # e.g. 'SS', '1B', 'DH'
    handedness: str | None = None  # 'L' | 'R' | 'S'
    is_starter: bool = True
    is_projected: bool = False  # True when not yet confirmed by the club


@dataclass(frozen=True)
class BatterProfile:
    """Season batting rates."""

    player_id: int
    at_bats: int
    avg: float
    obp: float
    slg: float
    home_runs: int


@dataclass(frozen=True)
class PitcherProfile:
    """Season pitching rates."""

    player_id: int
    era: float
    whip: float


@dataclass(frozen=True)
class EnvironmentalContext:
    """Park and weather conditions; every field defaults to neutral."""

    park_runs_factor: float = 1.0
    park_hr_factor: float = 1.0
    temperature_f: float | None = None
    wind_speed_mph: float | None = None


@dataclass(frozen=True)
class TeamSeasonStats:
    """Season aggregates for one team."""

    team_id: int
    wins: int
    losses: int
    runs_scored: int
    runs_allowed: int = 0

    @property
    def games_played(self) -> int:
        return self.wins + self.losses


@dataclass
class GameSnapshot:
    """Everything the engine reads for one game, taken at a single point in time."""

    game: GameInfo
    lineups: list[LineupEntry] = field(default_factory=list)
    batters: dict[int, BatterProfile] = field(default_factory=dict)  # player_id -> profile
    pitchers: dict[int, PitcherProfile] = field(default_factory=dict)  # player_id -> profile
    environment: EnvironmentalContext = field(default_factory=EnvironmentalContext)
    team_stats: dict[int, TeamSeasonStats] = field(default_factory=dict)  # team_id -> stats
    taken_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def batting_lineup(self, team_id: int) -> list[LineupEntry]:
        """Batting entries for a team in batting order (unordered entries last)."""
        entries = [
            e for e in self.lineups
            if e.team_id == team_id and e.role == LineupRole.BATTING.value
        ]
        return sorted(entries, key=lambda e: (e.batting_order is None, e.batting_order or 0))

    def starting_pitcher(self, team_id: int) -> LineupEntry | None:
        """The team's starting pitcher entry, falling back to any listed pitcher."""
        pitchers = [
            e for e in self.lineups
            if e.team_id == team_id and e.role == LineupRole.PITCHING.value
        ]
        for entry in pitchers:
            if entry.is_starter:
                return entry
        return pitchers[0] if pitchers else None


class SnapshotProvider(ABC):
    """Source of immutable per-game snapshots."""

    @abstractmethod
    async def load_snapshot(self, game_id: int) -> GameSnapshot:
        """
        Load every input for one game from a single consistent view.

        Args:
            game_id: Game identifier

        Returns:
            GameSnapshot for the game

        Raises:
            GameNotFoundError: If the game does not exist
        """
        pass

    @abstractmethod
    async def list_game_ids(self, game_date: date) -> list[int]:
        """
        List the ids of games scheduled on a date.

        Args:
            game_date: Calendar date of the games

        Returns:
            Game ids ordered by scheduled time
        """
        pass
