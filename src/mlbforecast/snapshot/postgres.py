"""Postgres-backed snapshot provider."""

import logging
from datetime import date

import asyncpg

from mlbforecast.config.settings import EngineTuning, get_tuning
from mlbforecast.db.models import GameStatus, Table
from mlbforecast.errors import GameNotFoundError
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
from mlbforecast.snapshot.team_stats_api import TeamStatsApiClient

logger = logging.getLogger(__name__)


def _f(value, default: float | None = None) -> float | None:
    # NUMERIC columns arrive as Decimal
    return float(value) if value is not None else default


class PostgresSnapshotProvider(SnapshotProvider):
    """
    Loads game snapshots from the ingestion tables.

    All reads for one game run in a single read-only REPEATABLE READ
    transaction, so lineups and stats come from the same ingestion state.
    """

    def __init__(
        self,
        pool: asyncpg.Pool,
        team_stats_client: TeamStatsApiClient | None = None,
        season: int | None = None,
        tuning: EngineTuning | None = None,
    ):
        self.pool = pool
        self.team_stats_client = team_stats_client
        self.season = season
        self.tuning = tuning or get_tuning()

    async def load_snapshot(self, game_id: int) -> GameSnapshot:
        async with self.pool.acquire() as conn:
            async with conn.transaction(isolation="repeatable_read", readonly=True):
                snapshot = await self._read(conn, game_id)

        # Network fetches happen outside the transaction
        if self.team_stats_client is not None:
            await self._fill_team_stats(snapshot)
        return snapshot

    async def list_game_ids(self, game_date: date) -> list[int]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT game_id FROM {Table.GAMES}
                WHERE game_date = $1 AND status = $2
                ORDER BY game_time NULLS LAST, game_id
                """,
                game_date,
                GameStatus.SCHEDULED.value,
            )
        return [row["game_id"] for row in rows]

    async def _read(self, conn: asyncpg.Connection, game_id: int) -> GameSnapshot:
        game_row = await conn.fetchrow(
            f"""
            SELECT game_id, home_team_id, away_team_id, venue_name,
                   game_date, game_time, status
            FROM {Table.GAMES}
            WHERE game_id = $1
            """,
            game_id,
        )
        if game_row is None:
            raise GameNotFoundError(f"Game {game_id} not found", game_id=game_id)

        game = GameInfo(
            game_id=game_row["game_id"],
            home_team_id=game_row["home_team_id"],
            away_team_id=game_row["away_team_id"],
            venue_name=game_row["venue_name"],
            game_date=game_row["game_date"],
            game_time=game_row["game_time"],
            status=game_row["status"],
        )
        season = self.season or game.season

        lineup_rows = await conn.fetch(
            f"""
            SELECT team_id, lineup_type, batting_order, player_id, player_name,
                   position, handedness, is_starter, is_projected
            FROM {Table.GAME_LINEUPS}
            WHERE game_id = $1
            ORDER BY team_id, lineup_type, batting_order NULLS LAST
            """,
            game_id,
        )
        lineups = [
            LineupEntry(
                game_id=game_id,
                team_id=row["team_id"],
                role=row["lineup_type"],
                player_id=row["player_id"],
                player_name=row["player_name"],
                batting_order=row["batting_order"],
                position=row["position"],
                handedness=row["handedness"],
                is_starter=row["is_starter"],
                is_projected=row["is_projected"],
            )
            for row in lineup_rows
        ]
        player_ids = [e.player_id for e in lineups]

        batters: dict[int, BatterProfile] = {}
        pitchers: dict[int, PitcherProfile] = {}
        if player_ids:
            batting_rows = await conn.fetch(
                f"""
                SELECT player_id, at_bats, avg, obp, slg, home_runs
                FROM {Table.BATTING_STATS}
                WHERE player_id = ANY($1::int[]) AND season = $2
                """,
                player_ids,
                season,
            )
            for row in batting_rows:
                if row["avg"] is None or row["obp"] is None or row["slg"] is None:
                    continue
                batters[row["player_id"]] = BatterProfile(
                    player_id=row["player_id"],
                    at_bats=row["at_bats"] or 0,
                    avg=_f(row["avg"]),
                    obp=_f(row["obp"]),
                    slg=_f(row["slg"]),
                    home_runs=row["home_runs"] or 0,
                )

            pitching_rows = await conn.fetch(
                f"""
                SELECT player_id, era, whip
                FROM {Table.PITCHING_STATS}
                WHERE player_id = ANY($1::int[]) AND season = $2
                """,
                player_ids,
                season,
            )
            for row in pitching_rows:
                if row["era"] is None:
                    continue
                pitchers[row["player_id"]] = PitcherProfile(
                    player_id=row["player_id"],
                    era=_f(row["era"]),
                    whip=_f(row["whip"], self.tuning.league_whip),
                )

        environment = await self._read_environment(conn, game, season)

        team_rows = await conn.fetch(
            f"""
            SELECT team_id, wins, losses, runs_scored, runs_allowed
            FROM {Table.TEAM_STATS}
            WHERE team_id = ANY($1::int[]) AND season = $2
            """,
            [game.home_team_id, game.away_team_id],
            season,
        )
        team_stats = {
            row["team_id"]: TeamSeasonStats(
                team_id=row["team_id"],
                wins=row["wins"],
                losses=row["losses"],
                runs_scored=row["runs_scored"],
                runs_allowed=row["runs_allowed"],
            )
            for row in team_rows
        }

        logger.debug(
            f"Snapshot for game {game_id}: {len(lineups)} lineup rows, "
            f"{len(batters)} batter / {len(pitchers)} pitcher profiles, "
            f"{len(team_stats)} team stat rows"
        )
        return GameSnapshot(
            game=game,
            lineups=lineups,
            batters=batters,
            pitchers=pitchers,
            environment=environment,
            team_stats=team_stats,
        )

    async def _read_environment(
        self, conn: asyncpg.Connection, game: GameInfo, season: int
    ) -> EnvironmentalContext:
        park_row = None
        if game.venue_name:
            # Most recent factors at or before the season
            park_row = await conn.fetchrow(
                f"""
                SELECT runs_factor, hr_factor
                FROM {Table.PARK_FACTORS}
                WHERE venue_name = $1 AND season <= $2
                ORDER BY season DESC
                LIMIT 1
                """,
                game.venue_name,
                season,
            )
        weather_row = await conn.fetchrow(
            f"SELECT temperature_f, wind_speed_mph FROM {Table.WEATHER_DATA} WHERE game_id = $1",
            game.game_id,
        )
        return EnvironmentalContext(
            park_runs_factor=_f(park_row["runs_factor"], 1.0) if park_row else 1.0,
            park_hr_factor=_f(park_row["hr_factor"], 1.0) if park_row else 1.0,
            temperature_f=_f(weather_row["temperature_f"]) if weather_row else None,
            wind_speed_mph=_f(weather_row["wind_speed_mph"]) if weather_row else None,
        )

    async def _fill_team_stats(self, snapshot: GameSnapshot) -> None:
        season = self.season or snapshot.game.season
        for team_id in (snapshot.game.home_team_id, snapshot.game.away_team_id):
            if team_id in snapshot.team_stats:
                continue
            stats = await self.team_stats_client.fetch_team_stats(team_id, season)
            if stats is not None:
                logger.info(f"Team {team_id} season stats taken from the stats API")
                snapshot.team_stats[team_id] = stats
