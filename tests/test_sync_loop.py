"""Unit tests for the synchronization loop's per-tick decisions."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
import pytest
from unittest.mock import AsyncMock, patch
from clip_sync.services.sync_loop import (
    ACTION_ARCHIVE, ACTION_FAVORITE, ACTION_IDLE, ACTION_REQUEST, SyncLoop,
)
from clip_sync.utils.timestamps import object_name_for
from fakes import FakeEventSource, FakeObjectStore, make_event, make_settings


def make_loop(tmp_path, events=(), objects=None, **overrides):
    source = FakeEventSource(events)
    store = FakeObjectStore(objects)
    loop = SyncLoop(source, store, make_settings(tmp_path, **overrides))
    return loop, source, store


class TestTickPriority:
    @pytest.mark.asyncio
    async def test_ready_clip_wins_over_request(self, tmp_path):
        loop, source, store = make_loop(tmp_path, [make_event("ready", 1, "Done"), make_event("local", 2, "Local")])

        result = await loop.tick()

        assert result.action == ACTION_ARCHIVE
        assert result.delay == 0
        assert not any(c[0] == "request_clip_export" for c in source.calls)
        assert store.uploaded == [object_name_for(make_event("ready", 1).timestamp)]
        assert loop.stats.archived == 1

    @pytest.mark.asyncio
    async def test_request_newest_then_wait(self, tmp_path):
        events = [make_event("A", 1, "Local"), make_event("B", 2, "Unavailable"), make_event("C", 3, "Local")]
        loop, source, _ = make_loop(tmp_path, events)

        result = await loop.tick()

        assert result.action == ACTION_REQUEST
        assert result.delay == 10
        assert source.mutations == [("request_clip_export", "C")]

    @pytest.mark.asyncio
    async def test_cap_reached_means_no_request(self, tmp_path):
        events = [make_event(f"p{i}", i, "Pending") for i in range(3)] + [make_event("local", 10, "Local")]
        loop, source, _ = make_loop(tmp_path, events)

        result = await loop.tick()

        assert result.action == ACTION_IDLE
        assert result.delay == 30
        assert source.mutations == []

    @pytest.mark.asyncio
    async def test_favorite_when_pool_is_full_and_nothing_else_to_do(self, tmp_path):
        events = [make_event(f"fav{i}", i, "Local", favorite=True) for i in range(24)]
        events += [make_event(f"pend{i}", 100 + i, "Pending") for i in range(3)]
        events += [make_event(f"evt{i}", 200 + i, "Local") for i in range(247)]
        loop, source, _ = make_loop(tmp_path, events)

        result = await loop.tick()

        assert result.action == ACTION_FAVORITE
        assert result.delay == 0
        assert source.mutations == [("set_favorite", "pend0", True)]

    @pytest.mark.asyncio
    async def test_no_favorite_without_free_slot(self, tmp_path):
        events = [make_event(f"fav{i}", i, "Local", favorite=True) for i in range(26)]
        events += [make_event(f"pend{i}", 100 + i, "Pending") for i in range(3)]
        events += [make_event(f"evt{i}", 200 + i, "Local") for i in range(247)]
        loop, source, _ = make_loop(tmp_path, events)

        assert (await loop.tick()).action == ACTION_IDLE
        assert source.mutations == []


class TestIdle:
    @pytest.mark.asyncio
    async def test_unchanged_remote_state_makes_no_mutation(self, tmp_path):
        events = [make_event("e1", 1, "Done"), make_event("e2", 2, "Done")]
        objects = {object_name_for(e.timestamp): 1024 for e in events}
        loop, source, store = make_loop(tmp_path, events, objects)

        for _ in range(3):
            assert (await loop.tick()).action == ACTION_IDLE

        assert source.mutations == []
        assert [c for c in store.calls if c[0] != "list_object_names"] == []

    @pytest.mark.asyncio
    async def test_snapshot_refreshed_after_idle_ticks(self, tmp_path):
        event = make_event("e1", 1, "Done")
        name = object_name_for(event.timestamp)
        loop, source, store = make_loop(tmp_path, [event], {name: 1024}, STATE_REFRESH_IDLE_TICKS=2)

        assert (await loop.tick()).action == ACTION_IDLE
        # Someone deletes the clip on the drive by hand
        del store.objects[name]
        assert (await loop.tick()).action == ACTION_IDLE
        assert name not in loop.stored_names

        assert (await loop.tick()).action == ACTION_ARCHIVE
        assert store.uploaded == [name]
        assert store.calls.count(("list_object_names",)) == 2

    @pytest.mark.asyncio
    async def test_snapshot_listed_once_while_busy(self, tmp_path):
        events = [make_event(f"e{i}", i, "Done") for i in range(3)]
        loop, _, store = make_loop(tmp_path, events)

        await loop.tick()
        await loop.tick()

        assert store.calls.count(("list_object_names",)) == 1
        assert len(loop.stored_names) == 3


class TestAudit:
    @pytest.mark.asyncio
    async def test_every_seen_timestamp_is_audited(self, tmp_path):
        events = [make_event("e1", 1, "Done"), make_event("t1", 2, "Unknown", "TROUBLE_CONNECT")]
        loop, _, _ = make_loop(tmp_path, events)

        await loop.tick()

        with open(loop.audit.path, encoding="utf-8") as f:
            assert f.read().splitlines() == [e.timestamp for e in events]

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_block_tick(self, tmp_path):
        blocker = tmp_path / "audit"
        blocker.write_text("not a directory")
        loop, _, store = make_loop(tmp_path, [make_event("e1", 1, "Done")])

        assert (await loop.tick()).action == ACTION_ARCHIVE
        assert len(store.uploaded) == 1


class TestRun:
    @pytest.mark.asyncio
    async def test_failed_tick_waits_error_delay(self, tmp_path):
        loop, source, _ = make_loop(tmp_path, ERROR_DELAY_SECONDS=42)
        source.list_events = AsyncMock(side_effect=RuntimeError("HTTP 502"))

        with patch("clip_sync.services.sync_loop.asyncio.sleep", new_callable=AsyncMock,
                   side_effect=asyncio.CancelledError) as sleep:
            with pytest.raises(asyncio.CancelledError):
                await loop.run()

        sleep.assert_awaited_once_with(42)
        assert not loop.running

    @pytest.mark.asyncio
    async def test_idle_tick_sleeps_idle_delay(self, tmp_path):
        loop, _, _ = make_loop(tmp_path, IDLE_DELAY_SECONDS=15)

        with patch("clip_sync.services.sync_loop.asyncio.sleep", new_callable=AsyncMock,
                   side_effect=asyncio.CancelledError) as sleep:
            with pytest.raises(asyncio.CancelledError):
                await loop.run()

        sleep.assert_awaited_once_with(15)
        assert loop.stats.ticks == 1
        assert loop.stats.started_at is not None

    @pytest.mark.asyncio
    async def test_second_run_is_refused(self, tmp_path):
        loop, _, _ = make_loop(tmp_path)
        loop._running = True
        with pytest.raises(RuntimeError):
            await loop.run()
