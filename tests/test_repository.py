"""
Tests for the shared snapshot store, backed by a throwaway sqlite file.
"""

import asyncio
from contextlib import asynccontextmanager

import pytest

from banker.lobby import create_room, rendezvous_id
from banker.player import Player
from banker.protocol import PlayerJoin
from banker.replication import HostSession
from banker.snapshot import restore_snapshot, serialize_snapshot
from server.database import (
    SnapshotRepository,
    close_db,
    create_tables,
    init_db,
    session_scope,
    snapshot_writer,
    watch_snapshots,
)
from server.settings import DatabaseSettings

ROOM_KEY = rendezvous_id("TEST01")


@asynccontextmanager
async def sqlite_store(tmp_path):
    await init_db(DatabaseSettings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'snapshots.db'}"))
    await create_tables()
    try:
        yield
    finally:
        await close_db()


@pytest.mark.asyncio
async def test_version_increases_on_every_save(tmp_path):
    state = create_room("Alice", room_code="TEST01", host_id="p0")

    async with sqlite_store(tmp_path):
        async with session_scope() as session:
            repo = SnapshotRepository(session)
            assert await repo.get_version(ROOM_KEY) is None
            assert await repo.save_snapshot(ROOM_KEY, serialize_snapshot(state)) == 1
            assert await repo.save_snapshot(ROOM_KEY, serialize_snapshot(state)) == 2

        async with session_scope() as session:
            row = await SnapshotRepository(session).get_snapshot(ROOM_KEY)
            assert row.version == 2
            assert restore_snapshot(row.payload) == state


@pytest.mark.asyncio
async def test_rooms_are_stored_separately(tmp_path):
    async with sqlite_store(tmp_path):
        async with session_scope() as session:
            repo = SnapshotRepository(session)
            await repo.save_snapshot(rendezvous_id("AAAAAA"), {"phase": "LOBBY"})
            await repo.save_snapshot(rendezvous_id("BBBBBB"), {"phase": "ROLL"})
            assert await repo.list_room_keys() == [rendezvous_id("AAAAAA"), rendezvous_id("BBBBBB")]
            assert await repo.delete_snapshot(rendezvous_id("AAAAAA"))
            assert not await repo.delete_snapshot(rendezvous_id("AAAAAA"))


@pytest.mark.asyncio
async def test_host_listener_persists_snapshots(tmp_path):
    async with sqlite_store(tmp_path):
        host = HostSession(create_room("Alice", room_code="TEST01", host_id="p0"))
        host.add_listener(snapshot_writer(ROOM_KEY))

        await host.submit(PlayerJoin(player=Player(id="p1", name="Bob")))

        async with session_scope() as session:
            row = await SnapshotRepository(session).get_snapshot(ROOM_KEY)
        assert row.version == 1
        assert [p["name"] for p in row.payload["players"]] == ["Alice", "Bob"]


@pytest.mark.asyncio
async def test_watch_yields_new_versions(tmp_path):
    async with sqlite_store(tmp_path):
        async with session_scope() as session:
            await SnapshotRepository(session).save_snapshot(ROOM_KEY, {"phase": "LOBBY"})

        watcher = watch_snapshots(ROOM_KEY, interval=0.01)
        version, payload = await asyncio.wait_for(watcher.__anext__(), 1.0)
        assert (version, payload) == (1, {"phase": "LOBBY"})

        async with session_scope() as session:
            await SnapshotRepository(session).save_snapshot(ROOM_KEY, {"phase": "ROLL"})

        version, payload = await asyncio.wait_for(watcher.__anext__(), 1.0)
        assert (version, payload) == (2, {"phase": "ROLL"})
        await watcher.aclose()
