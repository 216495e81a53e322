from __future__ import annotations

import os
import time
from dataclasses import dataclass

import aiosqlite


TOKEN = "hue-token"
REFRESH_TOKEN = "hue-refresh-token"
WHITELIST_ID = "hue-whitelist-id"


@dataclass(frozen=True)
class UserCredential:
    token: str | None
    refresh_token: str | None
    whitelist_id: str | None

    @property
    def complete(self) -> bool:
        return bool(self.token and self.whitelist_id)


class Database:
    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        dir_name = os.path.dirname(self._db_path)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)
        await self._conn.execute("PRAGMA journal_mode=WAL;")
        await self._conn.execute("PRAGMA synchronous=NORMAL;")
        await self._init_schema()
        await self._conn.commit()

    @property
    def conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Database not connected")
        return self._conn

    async def _init_schema(self) -> None:
        await self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS user_credentials (
              user_id TEXT NOT NULL,
              purpose TEXT NOT NULL,
              value TEXT NOT NULL,
              updated_at INTEGER NOT NULL,
              PRIMARY KEY (user_id, purpose)
            );
            """
        )
        await self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS auth_attempts (
              auth_id TEXT PRIMARY KEY,
              user_id TEXT NOT NULL,
              user_name TEXT NOT NULL,
              room_json TEXT NOT NULL,
              created_at INTEGER NOT NULL,
              expires_at INTEGER NOT NULL
            );
            """
        )
        await self.conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_auth_attempts_user_id ON auth_attempts (user_id);
            """
        )
        await self.conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_auth_attempts_expires_at ON auth_attempts (expires_at);
            """
        )

    async def commit(self) -> None:
        await self.conn.commit()

    async def get_credential(self, user_id: str, purpose: str) -> str | None:
        async with self.conn.execute(
            "SELECT value FROM user_credentials WHERE user_id = ? AND purpose = ?",
            (user_id, purpose),
        ) as cursor:
            row = await cursor.fetchone()
        if not row:
            return None
        return str(row[0])

    async def set_credential(self, user_id: str, purpose: str, value: str) -> None:
        now = int(time.time())
        await self.conn.execute(
            """
            INSERT INTO user_credentials (user_id, purpose, value, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(user_id, purpose) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
            """,
            (user_id, purpose, value, now),
        )
        await self.conn.commit()

    async def get_user_credential(self, user_id: str) -> UserCredential:
        return UserCredential(
            token=await self.get_credential(user_id, TOKEN),
            refresh_token=await self.get_credential(user_id, REFRESH_TOKEN),
            whitelist_id=await self.get_credential(user_id, WHITELIST_ID),
        )

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None
