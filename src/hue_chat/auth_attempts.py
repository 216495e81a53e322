from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any

from hue_chat.db import Database


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingAuthAttempt:
    auth_id: str
    user_id: str
    user_name: str
    room: dict[str, Any]
    created_at: int
    expires_at: int


async def create_attempt(
    *,
    db: Database,
    auth_id: str,
    user_id: str,
    user_name: str,
    room: dict[str, Any],
    ttl_seconds: int,
) -> PendingAuthAttempt:
    """Stores a new attempt, replacing whatever attempt the same user had pending."""
    now = int(time.time())
    expires_at = now + max(1, int(ttl_seconds))
    await db.conn.execute("DELETE FROM auth_attempts WHERE user_id = ?", (user_id,))
    await db.conn.execute(
        """
        INSERT INTO auth_attempts (auth_id, user_id, user_name, room_json, created_at, expires_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (auth_id, user_id, user_name, json.dumps(room, separators=(",", ":"), ensure_ascii=False), now, expires_at),
    )
    await db.commit()
    return PendingAuthAttempt(
        auth_id=auth_id,
        user_id=user_id,
        user_name=user_name,
        room=room,
        created_at=now,
        expires_at=expires_at,
    )


async def get_attempt(*, db: Database, auth_id: str) -> PendingAuthAttempt | None:
    async with db.conn.execute(
        """
        SELECT auth_id, user_id, user_name, room_json, created_at, expires_at
        FROM auth_attempts
        WHERE auth_id = ? AND expires_at > ?
        """,
        (auth_id, int(time.time())),
    ) as cursor:
        row = await cursor.fetchone()
    if not row:
        return None
    try:
        room = json.loads(row[3])
    except ValueError:
        room = {}
    return PendingAuthAttempt(
        auth_id=str(row[0]),
        user_id=str(row[1]),
        user_name=str(row[2]),
        room=room if isinstance(room, dict) else {},
        created_at=int(row[4]),
        expires_at=int(row[5]),
    )


async def delete_attempt(*, db: Database, auth_id: str) -> None:
    await db.conn.execute("DELETE FROM auth_attempts WHERE auth_id = ?", (auth_id,))
    await db.commit()


async def count_attempts(*, db: Database) -> int:
    async with db.conn.execute("SELECT COUNT(*) FROM auth_attempts") as cursor:
        row = await cursor.fetchone()
    return int(row[0]) if row and row[0] is not None else 0


async def cleanup_expired(*, db: Database) -> int:
    cur = await db.conn.execute("DELETE FROM auth_attempts WHERE expires_at <= ?", (int(time.time()),))
    deleted = cur.rowcount if cur.rowcount is not None else 0
    await db.commit()
    return deleted


async def cleanup_loop(*, db: Database, interval_seconds: int = 60) -> None:
    while True:
        try:
            deleted = await cleanup_expired(db=db)
            if deleted:
                logger.info("Purged %d expired auth attempts", deleted)
        except Exception:
            # Housekeeping only; the next interval retries.
            logger.exception("Auth attempt cleanup failed")
        await asyncio.sleep(max(1, int(interval_seconds)))
