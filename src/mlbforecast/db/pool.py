"""Database connection pool for snapshot reads and prediction upserts."""

import asyncio
import logging
from typing import Optional

import asyncpg

from mlbforecast.config import get_config
from mlbforecast.db.models import Table

logger = logging.getLogger(__name__)

APPLICATION_NAME = "mlbforecast"

_pool: Optional[asyncpg.Pool] = None


async def _check_ready(pool: asyncpg.Pool, require_schema: bool) -> None:
    async with pool.acquire() as conn:
        if not require_schema:
            await conn.fetchval("SELECT 1")
            return
        # The predictions table only exists once migrations have run
        table = await conn.fetchval("SELECT to_regclass($1)::text", Table.GAME_PREDICTIONS)
    if table is None:
        raise RuntimeError(
            f"Table {Table.GAME_PREDICTIONS} is missing; run mlbforecast-migrate first"
        )


async def get_pool(require_schema: bool = True) -> asyncpg.Pool:
    """
    Get or create the shared pool.

    The first call opens the pool and, unless ``require_schema`` is False
    (the migration runner), checks that the schema has been migrated; later
    calls return the same pool. Connections identify themselves as
    ``mlbforecast`` in pg_stat_activity.

    Raises:
        asyncio.TimeoutError: If the pool cannot be opened in time
        RuntimeError: If the database is unreachable or not migrated
    """
    global _pool

    if _pool is not None:
        return _pool

    config = get_config()
    timeout = config.db_connect_timeout_seconds

    try:
        pool = await asyncio.wait_for(
            asyncpg.create_pool(
                str(config.db_dsn),
                min_size=config.db_pool_min,
                max_size=config.db_pool_max,
                command_timeout=config.db_command_timeout_seconds,
                server_settings={"application_name": APPLICATION_NAME},
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        raise asyncio.TimeoutError(
            f"Could not open the prediction database within {timeout:.0f} seconds"
        )

    try:
        await _check_ready(pool, require_schema)
    except Exception as e:
        await pool.close()
        raise RuntimeError(f"Prediction database not ready: {e}") from e

    _pool = pool
    logger.info(
        f"Database pool ready (min={config.db_pool_min}, max={config.db_pool_max}, "
        f"command timeout {config.db_command_timeout_seconds:.0f}s)"
    )
    return _pool


async def close_pool() -> None:
    """Close the shared pool, terminating it if a connection is still checked out."""
    global _pool
    if _pool is None:
        return

    pool, _pool = _pool, None
    timeout = get_config().db_connect_timeout_seconds
    try:
        await asyncio.wait_for(pool.close(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Pool close exceeded {timeout:.0f}s, terminating open connections")
        pool.terminate()
