"""Database operations for Match and Shot records."""

from datetime import datetime
from typing import Any, Optional

import aiosqlite
from loguru import logger

from shottiming.core.database import connection, transaction
from shottiming.processing.shots import Shot

_SHOT_COLUMNS = (
    "golfer",
    "hole_number",
    "stroke_number",
    "first_timestamp",
    "ball_speed",
    "launch_angle",
    "apex",
    "curve",
    "carry_distance",
    "total_distance",
    "time_to_ball_speed",
    "time_to_launch_angle",
    "time_to_apex",
    "time_to_curve",
    "time_to_carry",
    "time_to_total",
)


def match_row_to_dict(row: aiosqlite.Row) -> dict[str, Any]:
    """Convert a database row to a match dictionary."""
    keys = row.keys()
    return {
        "id": row["id"],
        "match_number": row["match_number"],
        "description": row["description"],
        "created_at": row["created_at"],
        "shot_count": row["shot_count"] if "shot_count" in keys else 0,
        "golfer_count": row["golfer_count"] if "golfer_count" in keys else 0,
    }


def shot_row_to_shot(row: aiosqlite.Row) -> Shot:
    """Convert a database row back into a Shot."""
    return Shot(**{column: row[column] for column in _SHOT_COLUMNS})


async def save_match(
    match_number: str,
    shots: list[Shot],
    description: Optional[str] = None,
) -> dict[str, Any]:
    """Create or update a match and replace all of its shots.

    The upsert, the delete of old shots and the insert of new ones run in one
    transaction, so re-uploading a match number overwrites it and readers
    never see a mix of old and new shots.

    Args:
        match_number: Unique match identifier.
        shots: Completed shots from the upload.
        description: Optional free text; an existing description is kept
            when this is None.

    Returns:
        The stored match as a dictionary.
    """
    created_at = datetime.utcnow().isoformat()

    async with transaction() as db:
        await db.execute(
            """
            INSERT INTO matches (match_number, description, created_at)
            VALUES (?, ?, ?)
            ON CONFLICT(match_number) DO UPDATE SET
                description = COALESCE(excluded.description, matches.description)
            """,
            (match_number, description, created_at),
        )

        async with db.execute(
            "SELECT * FROM matches WHERE match_number = ?", (match_number,)
        ) as cursor:
            row = await cursor.fetchone()
        match_id = row["id"]

        cursor = await db.execute("DELETE FROM shots WHERE match_id = ?", (match_id,))
        replaced = cursor.rowcount

        await db.executemany(
            f"""
            INSERT INTO shots (match_id, {', '.join(_SHOT_COLUMNS)})
            VALUES (?, {', '.join('?' for _ in _SHOT_COLUMNS)})
            """,
            [
                (match_id, *(getattr(shot, column) for column in _SHOT_COLUMNS))
                for shot in shots
            ],
        )

    logger.debug(
        f"Stored match {match_number}: {len(shots)} shots"
        + (f" (replaced {replaced})" if replaced > 0 else "")
    )

    match = match_row_to_dict(row)
    match["shot_count"] = len(shots)
    match["golfer_count"] = len({shot.golfer for shot in shots})
    return match


async def _fetch_shots(db: aiosqlite.Connection, match_id: int) -> list[Shot]:
    async with db.execute(
        "SELECT * FROM shots WHERE match_id = ? ORDER BY id",
        (match_id,),
    ) as cursor:
        rows = await cursor.fetchall()
    return [shot_row_to_shot(row) for row in rows]


async def get_match(match_number: str, include_shots: bool = True) -> Optional[dict[str, Any]]:
    """Get a match by its match number.

    Args:
        match_number: The match number to look up.
        include_shots: Whether to load the match's shots.

    Returns:
        The match as a dictionary (shots under "shots"), or None if not found.
    """
    async with connection() as db:
        async with db.execute(
            "SELECT * FROM matches WHERE match_number = ?", (match_number,)
        ) as cursor:
            row = await cursor.fetchone()

        if not row:
            return None

        match = match_row_to_dict(row)
        match["shots"] = await _fetch_shots(db, match["id"]) if include_shots else []

    if include_shots:
        match["shot_count"] = len(match["shots"])
        match["golfer_count"] = len({shot.golfer for shot in match["shots"]})

    return match


async def get_all_matches(limit: Optional[int] = None) -> list[dict[str, Any]]:
    """List matches with shot counts, newest first.

    Args:
        limit: Maximum number of matches to return; all of them when None.
    """
    async with connection() as db:
        async with db.execute(
            """
            SELECT m.*,
                   COUNT(s.id) AS shot_count,
                   COUNT(DISTINCT s.golfer) AS golfer_count
            FROM matches m
            LEFT JOIN shots s ON s.match_id = m.id
            GROUP BY m.id
            ORDER BY m.created_at DESC, m.id DESC
            LIMIT ?
            """,
            # SQLite treats a negative LIMIT as no limit
            (limit if limit is not None else -1,),
        ) as cursor:
            rows = await cursor.fetchall()

    return [match_row_to_dict(row) for row in rows]


async def delete_match(match_number: str) -> bool:
    """Delete a match and its shots.

    Returns:
        True if the match was deleted, False if not found.
    """
    # Shots are deleted automatically due to ON DELETE CASCADE
    async with transaction() as db:
        cursor = await db.execute("DELETE FROM matches WHERE match_number = ?", (match_number,))
        deleted = cursor.rowcount > 0

    if deleted:
        logger.debug(f"Deleted match {match_number} from database")

    return deleted
