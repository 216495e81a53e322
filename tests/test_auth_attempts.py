import pytest

from hue_chat.auth_attempts import cleanup_expired, count_attempts, create_attempt, delete_attempt, get_attempt
from hue_chat.db import Database


@pytest.mark.asyncio
async def test_attempt_round_trips_room_handle():
    db = Database(":memory:")
    await db.connect()
    try:
        await create_attempt(
            db=db,
            auth_id="a-1",
            user_id="u-1",
            user_name="alice",
            room={"id": "GENERAL", "name": "general"},
            ttl_seconds=600,
        )
        attempt = await get_attempt(db=db, auth_id="a-1")
        assert attempt is not None
        assert attempt.user_name == "alice"
        assert attempt.room == {"id": "GENERAL", "name": "general"}
        assert await get_attempt(db=db, auth_id="nope") is None
    finally:
        await db.close()


@pytest.mark.asyncio
async def test_new_attempt_replaces_previous_attempt_of_same_user():
    db = Database(":memory:")
    await db.connect()
    try:
        await create_attempt(db=db, auth_id="a-1", user_id="u-1", user_name="alice", room={"id": "r"}, ttl_seconds=600)
        await create_attempt(db=db, auth_id="a-2", user_id="u-1", user_name="alice", room={"id": "r"}, ttl_seconds=600)
        await create_attempt(db=db, auth_id="b-1", user_id="u-2", user_name="bob", room={"id": "r"}, ttl_seconds=600)
        assert await get_attempt(db=db, auth_id="a-1") is None
        assert await get_attempt(db=db, auth_id="a-2") is not None
        assert await count_attempts(db=db) == 2

        await delete_attempt(db=db, auth_id="a-2")
        assert await count_attempts(db=db) == 1
    finally:
        await db.close()


@pytest.mark.asyncio
async def test_expired_attempts_are_invisible_and_purged():
    db = Database(":memory:")
    await db.connect()
    try:
        await create_attempt(db=db, auth_id="a-1", user_id="u-1", user_name="alice", room={"id": "r"}, ttl_seconds=600)
        await db.conn.execute("UPDATE auth_attempts SET expires_at = 0 WHERE auth_id = 'a-1'")
        await db.commit()

        assert await get_attempt(db=db, auth_id="a-1") is None
        assert await cleanup_expired(db=db) == 1
        assert await count_attempts(db=db) == 0
    finally:
        await db.close()
