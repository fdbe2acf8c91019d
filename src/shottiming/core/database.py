"""SQLite database setup and connection management for match storage."""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncGenerator, Optional

import aiosqlite
from loguru import logger

from shottiming.core.config import settings

DB_PATH = settings.db_path

# Current schema version - increment when making schema changes
SCHEMA_VERSION = 1

# Single shared connection (SQLite allows one writer at a time)
_db_connection: Optional[aiosqlite.Connection] = None

# Guards the shared connection so transactions never interleave with other statements
_db_lock: Optional[asyncio.Lock] = None


async def init_db() -> None:
    """Initialize the database, creating tables if they don't exist."""
    global _db_connection, _db_lock

    DB_PATH.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Initializing database at {DB_PATH}")

    # Autocommit mode: multi-statement writes go through transaction()
    _db_connection = await aiosqlite.connect(str(DB_PATH), isolation_level=None)
    _db_connection.row_factory = aiosqlite.Row
    _db_lock = asyncio.Lock()

    # Enable WAL mode so readers never block on the writer
    await _db_connection.execute("PRAGMA journal_mode=WAL")

    # Needed for ON DELETE CASCADE from matches to shots
    await _db_connection.execute("PRAGMA foreign_keys = ON")

    await _db_connection.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at TEXT NOT NULL,
            description TEXT
        )
        """
    )

    current_version = await get_schema_version()
    await _apply_migrations(current_version)

    logger.info(f"Database initialized successfully (schema version {SCHEMA_VERSION})")


async def _apply_migrations(current_version: int) -> None:
    """Apply database migrations incrementally."""
    if current_version < 1:
        await _migrate_v1()


async def _migrate_v1() -> None:
    """Initial schema - version 1."""
    logger.info("Applying migration v1: Initial schema")

    await _db_connection.executescript(
        """
        CREATE TABLE IF NOT EXISTS matches (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            match_number TEXT NOT NULL UNIQUE,
            description TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS shots (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            match_id INTEGER NOT NULL,
            golfer TEXT NOT NULL,
            hole_number INTEGER NOT NULL,
            stroke_number INTEGER NOT NULL,
            first_timestamp TEXT NOT NULL,
            ball_speed REAL,
            launch_angle REAL,
            apex REAL,
            curve REAL,
            carry_distance REAL,
            total_distance REAL,
            time_to_ball_speed INTEGER,
            time_to_launch_angle INTEGER,
            time_to_apex INTEGER,
            time_to_curve INTEGER,
            time_to_carry INTEGER,
            time_to_total INTEGER,
            FOREIGN KEY (match_id) REFERENCES matches(id) ON DELETE CASCADE
        );

        CREATE INDEX IF NOT EXISTS idx_shots_match_id ON shots(match_id);
        CREATE INDEX IF NOT EXISTS idx_matches_created_at ON matches(created_at);
        """
    )

    await _db_connection.execute(
        "INSERT OR IGNORE INTO schema_version (version, applied_at, description) VALUES (?, ?, ?)",
        (1, datetime.utcnow().isoformat(), "Initial schema with matches and shots tables"),
    )

    logger.info("Migration v1 applied successfully")


async def close_db() -> None:
    """Close the database connection."""
    global _db_connection, _db_lock
    if _db_connection:
        await _db_connection.close()
        _db_connection = None
        _db_lock = None
        logger.info("Database connection closed")


async def get_db() -> aiosqlite.Connection:
    """Get the database connection.

    Returns:
        The active database connection.

    Raises:
        RuntimeError: If the database has not been initialized.
    """
    if _db_connection is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _db_connection


@asynccontextmanager
async def connection() -> AsyncGenerator[aiosqlite.Connection, None]:
    """Get the shared connection for exclusive use.

    The connection is shared by every request, so a reader must not run
    statements while another request holds an open transaction on it.

    Usage:
        async with connection() as db:
            async with db.execute("SELECT * FROM matches") as cursor:
                rows = await cursor.fetchall()
    """
    db = await get_db()
    if _db_lock is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    async with _db_lock:
        yield db


@asynccontextmanager
async def transaction() -> AsyncGenerator[aiosqlite.Connection, None]:
    """Run a block of statements as one atomic unit.

    Usage:
        async with transaction() as db:
            await db.execute("DELETE FROM shots WHERE match_id = ?", (match_id,))
            await db.executemany("INSERT INTO shots ...", rows)

    Commits when the block exits normally and rolls back on any exception,
    so readers see either the old rows or the new ones.
    """
    async with connection() as db:
        await db.execute("BEGIN IMMEDIATE")
        try:
            yield db
        except BaseException:
            await db.execute("ROLLBACK")
            raise
        else:
            await db.execute("COMMIT")


async def get_schema_version() -> int:
    """Get the current schema version."""
    db = await get_db()
    async with db.execute(
        "SELECT MAX(version) as version FROM schema_version"
    ) as cursor:
        row = await cursor.fetchone()
        return row["version"] if row and row["version"] else 0


async def get_database_stats() -> dict[str, Any]:
    """Get database statistics.

    Returns:
        Dictionary with database statistics.
    """
    stats = {
        "schema_version": await get_schema_version(),
        "db_path": str(DB_PATH),
        "db_size_bytes": DB_PATH.stat().st_size if DB_PATH.exists() else 0,
    }

    async with connection() as db:
        async with db.execute("SELECT COUNT(*) as count FROM matches") as cursor:
            row = await cursor.fetchone()
            stats["total_matches"] = row["count"]

        async with db.execute("SELECT COUNT(*) as count FROM shots") as cursor:
            row = await cursor.fetchone()
            stats["total_shots"] = row["count"]

    return stats
