"""Forward-only schema migrations for the prediction tables."""

import asyncio
import logging
import re
from pathlib import Path
from typing import Optional

import asyncpg

from mlbforecast.db.models import Table
from mlbforecast.db.pool import close_pool, get_pool

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

# pg_advisory_lock key shared by every migrating process
_MIGRATION_LOCK_ID = 72_410_001


async def _ensure_version_table(conn: asyncpg.Connection) -> None:
    await conn.execute(f"""
        CREATE TABLE IF NOT EXISTS {Table.SCHEMA_MIGRATIONS} (
            version INTEGER PRIMARY KEY,
            filename TEXT NOT NULL DEFAULT '',
            applied_at TIMESTAMPTZ DEFAULT now()
        )
    """)


def discover_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[tuple[int, Path]]:
    """
    List migration files as (version, path), ordered by version.

    The version is the numeric prefix of the file name (``001_initial.sql`` -> 1).
    Files without a numeric prefix are ignored.
    """
    found = []
    for sql_file in migrations_dir.glob("*.sql"):
        prefix = sql_file.stem.split("_", 1)[0]
        if not prefix.isdigit():
            continue
        found.append((int(prefix), sql_file))
    return sorted(found, key=lambda item: item[0])


def split_statements(sql: str) -> list[str]:
    """
    Break a script into statements on top-level semicolons.

    Semicolons inside single-quoted literals or ``$$`` bodies are kept.
    """
    sql = re.sub(r"--.*$", "", sql, flags=re.MULTILINE)
    sql = re.sub(r"/\*.*?\*/", "", sql, flags=re.DOTALL)

    statements: list[str] = []
    buf: list[str] = []
    in_dollar = False
    in_quote = False
    i = 0

    while i < len(sql):
        if sql.startswith("$$", i) and not in_quote:
            in_dollar = not in_dollar
            buf.append("$$")
            i += 2
            continue

        ch = sql[i]
        if ch == "'" and not in_dollar:
            in_quote = not in_quote
        elif ch == ";" and not in_dollar and not in_quote:
            stmt = "".join(buf).strip()
            if stmt:
                statements.append(stmt + ";")
            buf = []
            i += 1
            continue

        buf.append(ch)
        i += 1

    tail = "".join(buf).strip()
    if tail:
        statements.append(tail)
    return statements


async def migrate(pool: Optional[asyncpg.Pool] = None) -> int:
    """
    Apply pending migrations in version order.

    Each migration runs in its own transaction together with its version row,
    so a failing file leaves no partial schema behind. An advisory lock keeps
    two processes from migrating at once.

    Args:
        pool: Pool to use (defaults to the shared pool)

    Returns:
        Number of migrations applied by this call

    Raises:
        FileNotFoundError: If the migrations directory is missing
        RuntimeError: If another process holds the migration lock
    """
    if not MIGRATIONS_DIR.is_dir():
        raise FileNotFoundError(f"Migrations directory not found: {MIGRATIONS_DIR}")

    pool = pool or await get_pool(require_schema=False)
    applied_count = 0

    async with pool.acquire() as conn:
        locked = await conn.fetchval("SELECT pg_try_advisory_lock($1)", _MIGRATION_LOCK_ID)
        if not locked:
            raise RuntimeError("Another migration is in progress; retry once it finishes")

        try:
            await _ensure_version_table(conn)
            rows = await conn.fetch(f"SELECT version FROM {Table.SCHEMA_MIGRATIONS}")
            applied = {row["version"] for row in rows}

            for version, sql_path in discover_migrations():
                if version in applied:
                    continue
                async with conn.transaction():
                    for statement in split_statements(sql_path.read_text(encoding="utf-8")):
                        await conn.execute(statement)
                    await conn.execute(
                        f"INSERT INTO {Table.SCHEMA_MIGRATIONS} (version, filename) VALUES ($1, $2)",
                        version,
                        sql_path.name,
                    )
                applied_count += 1
                logger.info(f"Applied migration {version:03d}: {sql_path.name}")
        finally:
            await conn.execute("SELECT pg_advisory_unlock($1)", _MIGRATION_LOCK_ID)

    return applied_count


async def schema_version(pool: Optional[asyncpg.Pool] = None) -> Optional[int]:
    """Return the highest applied migration version, or None on an empty database."""
    pool = pool or await get_pool(require_schema=False)
    async with pool.acquire() as conn:
        await _ensure_version_table(conn)
        return await conn.fetchval(f"SELECT MAX(version) FROM {Table.SCHEMA_MIGRATIONS}")


def main() -> None:
    """CLI entry point for running migrations."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    async def _run() -> None:
        try:
            applied = await migrate()
            version = await schema_version()
        finally:
            await close_pool()
        if applied == 0:
            print(f"No pending migrations. Current schema version: {version}")
        else:
            print(f"Applied {applied} migration(s). Current schema version: {version}")

    asyncio.run(_run())


if __name__ == "__main__":
    main()
