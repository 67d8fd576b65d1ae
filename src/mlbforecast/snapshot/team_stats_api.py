"""Rate-limited MLB Stats API client for team season aggregates."""

import asyncio
import logging
import time

import aiohttp

from mlbforecast.snapshot.base import TeamSeasonStats

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Enforces a minimum spacing between outbound requests.

    One instance is shared by every client that talks to the same API; the
    spacing is tracked per instance, never process-wide.
    """

    def __init__(self, min_interval: float, clock=time.monotonic, sleep=asyncio.sleep):
        if min_interval < 0:
            raise ValueError(f"min_interval must be >= 0, got {min_interval}")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request: float | None = None

    async def wait(self) -> None:
        """Block until the next request is allowed, then claim the slot."""
        async with self._lock:
            if self._last_request is not None:
                remaining = self.min_interval - (self._clock() - self._last_request)
                if remaining > 0:
                    await self._sleep(remaining)
            self._last_request = self._clock()


def _stat_block(data: dict, group: str) -> dict | None:
    for block in data.get("stats", []):
        if block.get("group", {}).get("displayName") != group:
            continue
        splits = block.get("splits") or []
        if splits:
            return splits[0].get("stat", {})
    return None


class TeamStatsApiClient:
    """
    Fetches season wins, losses and runs for a team.

    Used only when the database has no team_stats row, so the fallback
    tiers can still price a game.
    """

    def __init__(self, base_url: str, limiter: RateLimiter, timeout_seconds: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.limiter = limiter
        self.timeout_seconds = timeout_seconds

    async def fetch_team_stats(self, team_id: int, season: int) -> TeamSeasonStats | None:
        """
        Fetch one team's season aggregates.

        Conservative fallback: on HTTP or parse errors, log a warning and
        return None so the caller treats the stats as missing.

        Args:
            team_id: MLB team id
            season: Season year

        Returns:
            TeamSeasonStats, or None if unavailable
        """
        url = f"{self.base_url}/teams/{team_id}/stats"
        params = {"stats": "season", "group": "hitting,pitching", "season": str(season)}

        await self.limiter.wait()
        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, params=params) as response:
                    response.raise_for_status()
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Team stats request failed for team {team_id} season {season}: {e}")
            return None

        hitting = _stat_block(data, "hitting")
        pitching = _stat_block(data, "pitching")
        if hitting is None or pitching is None:
            logger.warning(f"No season stats returned for team {team_id} season {season}")
            return None

        try:
            return TeamSeasonStats(
                team_id=team_id,
                wins=int(pitching.get("wins", 0)),
                losses=int(pitching.get("losses", 0)),
                runs_scored=int(hitting.get("runs", 0)),
                runs_allowed=int(pitching.get("runs", 0)),
            )
        except (TypeError, ValueError) as e:
            logger.warning(f"Malformed team stats for team {team_id}: {e}")
            return None
