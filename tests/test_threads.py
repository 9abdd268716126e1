"""Tests for thread list synchronization and selection policy."""
import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from threadchat.chat import Message, Role, ThreadStoreSync
from threadchat.exceptions import StoreWriteError, ThreadNotFoundError
from threadchat.identity import Identity
from threadchat.store import OrderBy, SortDirection, StorePaths
from threadchat.store.in_memory import InMemoryDocumentStore

from tests.helpers import MESSAGE_ORDER

NEWEST_FIRST = OrderBy(field="createdAt", direction=SortDirection.DESCENDING)
T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def sync(store, paths, identity, clock):
    """Thread sync with a selection recorder attached, stopped after the test."""
    sync = ThreadStoreSync(store, paths, identity, clock=clock)
    sync.selections = []

    async def record(thread_id):
        sync.selections.append(thread_id)

    sync.add_selection_listener(record)
    yield sync
    await sync.stop()


async def started(sync):
    await sync.start()
    await sync.wait_until(lambda: bool(sync.threads) and sync.active_thread_id is not None)
    return sync


class TestDefaultThread:
    """Tests for the at-least-one-thread policy."""

    @pytest.mark.asyncio
    async def test_empty_collection_gets_default_thread(self, sync):
        await started(sync)

        assert len(sync.threads) == 1
        assert sync.threads[0].title == "New Chat"
        assert sync.active_thread_id == sync.threads[0].id

    @pytest.mark.asyncio
    async def test_custom_default_title(self, store, paths, identity):
        sync = ThreadStoreSync(store, paths, identity, default_title="Untitled")
        try:
            await started(sync)
            assert sync.threads[0].title == "Untitled"
        finally:
            await sync.stop()

    @pytest.mark.asyncio
    async def test_existing_threads_select_most_recent(self, sync, store, paths, identity):
        older = await store.add_document(paths.chats(identity.uid), {"title": "old", "createdAt": T0})
        newer = await store.add_document(
            paths.chats(identity.uid), {"title": "new", "createdAt": T0 + timedelta(hours=1)}
        )

        await started(sync)

        assert [t.id for t in sync.threads] == [newer, older]
        assert sync.active_thread_id == newer

    @pytest.mark.asyncio
    async def test_failed_default_creation_is_logged(self, sync, store, caplog):
        store.add_document = AsyncMock(side_effect=StoreWriteError("quota exceeded"))

        await sync.start()
        await asyncio.sleep(0.05)

        assert sync.threads == ()
        assert sync.active_thread_id is None
        assert "Failed to create default thread" in caplog.text


class TestThreadCache:
    """Tests for full-replace cache semantics."""

    @pytest.mark.asyncio
    async def test_cache_equals_latest_pushed_list(self, sync, store, paths, identity):
        await started(sync)
        chats = paths.chats(identity.uid)
        for i in range(3):
            await store.add_document(chats, {"title": f"t{i}", "createdAt": T0 + timedelta(days=i)})

        await sync.wait_until(lambda: len(sync.threads) == 4)

        expected = await store.list_documents(chats, NEWEST_FIRST)
        assert [t.id for t in sync.threads] == [d.id for d in expected]

    @pytest.mark.asyncio
    async def test_new_thread_from_elsewhere_does_not_override_selection(self, sync, store, paths, identity):
        await started(sync)
        selected = sync.active_thread_id

        await store.add_document(
            paths.chats(identity.uid), {"title": "other device", "createdAt": datetime.now(timezone.utc)}
        )
        await sync.wait_until(lambda: len(sync.threads) == 2)

        assert sync.active_thread_id == selected

    @pytest.mark.asyncio
    async def test_malformed_documents_skipped(self, sync, store, paths, identity):
        await store.add_document(paths.chats(identity.uid), {"title": "bad", "createdAt": "yesterday"})
        good = await store.add_document(paths.chats(identity.uid), {"title": "good", "createdAt": T0})

        await started(sync)

        assert [t.id for t in sync.threads] == [good]

    @given(st.lists(st.integers(min_value=0, max_value=1_000_000), min_size=1, max_size=8))
    @settings(max_examples=25, deadline=None)
    def test_cache_tracks_store_order(self, offsets: list[int]):
        """Property test: after any sequence of adds the cache mirrors the store."""

        async def scenario():
            store = InMemoryDocumentStore()
            paths = StorePaths("prop")
            identity = Identity(uid="prop-user")
            sync = ThreadStoreSync(store, paths, identity)
            chats = paths.chats(identity.uid)
            try:
                await started(sync)
                for offset in offsets:
                    await store.add_document(
                        chats, {"title": "t", "createdAt": T0 + timedelta(seconds=offset)}
                    )
                await sync.wait_until(lambda: len(sync.threads) == len(offsets) + 1)
                expected = await store.list_documents(chats, NEWEST_FIRST)
                assert [t.id for t in sync.threads] == [d.id for d in expected]
            finally:
                await sync.stop()

        asyncio.run(scenario())


class TestCreateThread:
    """Tests for explicit thread creation."""

    @pytest.mark.asyncio
    async def test_create_selects_new_thread(self, sync):
        await started(sync)

        thread_id = await sync.create_thread("Research")
        await sync.wait_until(lambda: len(sync.threads) == 2)

        assert sync.active_thread_id == thread_id
        assert sync.threads[0].id == thread_id
        assert sync.threads[0].title == "Research"
        assert sync.selections[-1] == thread_id

    @pytest.mark.asyncio
    async def test_concurrent_creates_are_independent(self, sync):
        await started(sync)

        ids = await asyncio.gather(sync.create_thread(), sync.create_thread())
        await sync.wait_until(lambda: len(sync.threads) == 3)

        assert ids[0] != ids[1]

    @pytest.mark.asyncio
    async def test_create_failure_propagates(self, sync, store):
        await started(sync)
        store.add_document = AsyncMock(side_effect=StoreWriteError("offline"))

        with pytest.raises(StoreWriteError):
            await sync.create_thread()


class TestDeleteThread:
    """Tests for deletion and reselection."""

    @pytest.mark.asyncio
    async def test_deleting_only_selected_thread_clears_selection(self, sync):
        await started(sync)
        only = sync.active_thread_id

        await sync.delete_thread(only)

        assert sync.active_thread_id is None
        assert sync.selections == [only, None]

        # The empty push then brings back a default thread.
        await sync.wait_until(lambda: bool(sync.threads) and sync.active_thread_id is not None)
        assert sync.threads[0].id != only
        assert sync.active_thread_id == sync.threads[0].id

    @pytest.mark.asyncio
    async def test_deleting_unselected_thread_keeps_selection(self, sync):
        await started(sync)
        first = sync.active_thread_id
        second = await sync.create_thread()
        await sync.wait_until(lambda: len(sync.threads) == 2)

        await sync.delete_thread(first)
        await sync.wait_until(lambda: len(sync.threads) == 1)

        assert sync.active_thread_id == second

    @pytest.mark.asyncio
    async def test_deleting_selected_thread_selects_first_remaining(self, sync):
        await started(sync)
        oldest = sync.active_thread_id
        middle = await sync.create_thread()
        newest = await sync.create_thread()
        await sync.wait_until(lambda: len(sync.threads) == 3)
        await sync.select_thread(middle)

        await sync.delete_thread(middle)

        assert sync.active_thread_id == newest
        await sync.wait_until(lambda: len(sync.threads) == 2)
        assert [t.id for t in sync.threads] == [newest, oldest]

    @pytest.mark.asyncio
    async def test_delete_cascades_to_messages(self, sync, store, paths, identity, clock):
        await started(sync)
        thread_id = sync.active_thread_id
        messages = paths.messages(identity.uid, thread_id)
        await store.add_document(messages, Message.new_fields("hi", Role.USER, clock.now()))

        await sync.delete_thread(thread_id)

        assert await store.list_documents(messages, MESSAGE_ORDER) == []

    @pytest.mark.asyncio
    async def test_delete_without_cascade_leaves_messages(self, store, paths, identity, clock):
        sync = ThreadStoreSync(store, paths, identity, clock=clock, cascade_delete=False)
        try:
            await started(sync)
            thread_id = sync.active_thread_id
            messages = paths.messages(identity.uid, thread_id)
            await store.add_document(messages, Message.new_fields("hi", Role.USER, clock.now()))

            await sync.delete_thread(thread_id)

            assert len(await store.list_documents(messages, MESSAGE_ORDER)) == 1
        finally:
            await sync.stop()


class TestSelectThread:
    """Tests for explicit selection."""

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_stop_sync(self, sync, caplog):
        async def broken(thread_id):
            raise RuntimeError("listener exploded")

        sync.add_selection_listener(broken)
        await started(sync)

        second = await sync.create_thread()
        await sync.wait_until(lambda: len(sync.threads) == 2)

        assert sync.running
        assert sync.active_thread_id == second
        assert sync.selections[-1] == second
        assert "Selection listener" in caplog.text
        await sync.stop()

    @pytest.mark.asyncio
    async def test_select_listed_thread(self, sync):
        await started(sync)
        first = sync.active_thread_id
        await sync.create_thread()
        await sync.wait_until(lambda: len(sync.threads) == 2)

        await sync.select_thread(first)

        assert sync.active_thread_id == first

    @pytest.mark.asyncio
    async def test_select_unknown_thread_raises(self, sync):
        await started(sync)

        with pytest.raises(ThreadNotFoundError):
            await sync.select_thread("missing")
