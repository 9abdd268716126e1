"""Tests for the chat controller and bootstrap."""
import asyncio
from unittest.mock import AsyncMock

import pytest

from threadchat import ChatConfig, ChatController, Role, SendOutcome, create_chat_controller
from threadchat.completion.providers.gemini import GeminiProvider
from threadchat.credentials import StaticSecretSource
from threadchat.exceptions import ConfigurationError, StoreWriteError
from threadchat.identity import Identity
from threadchat.identity.in_memory import InMemoryIdentityProvider
from threadchat.store.in_memory import InMemoryDocumentStore
from threadchat.store.sqlite import SQLiteDocumentStore

from tests.helpers import FakeCompletionClient, UnreachableIdentityProvider


@pytest.fixture
def config():
    return ChatConfig(app_id="test-app", cascade_delete=True, log_level="DEBUG")


@pytest.fixture
async def controller(config):
    controller = ChatController(
        InMemoryDocumentStore(),
        InMemoryIdentityProvider(),
        FakeCompletionClient(["Hi there!"]),
        config=config,
    )
    yield controller
    await controller.close()


async def started(controller):
    assert await controller.start()
    await controller.wait_until(lambda: controller.state.active_thread_id is not None)
    return controller


class TestStartup:
    """Tests for controller startup."""

    @pytest.mark.asyncio
    async def test_start_creates_default_thread(self, controller):
        await started(controller)

        state = controller.state
        assert state.ready
        assert state.identity_label == "Anonymous User"
        assert [t.title for t in state.threads] == ["New Chat"]
        assert state.active_thread_id == state.threads[0].id
        assert state.messages == ()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, controller):
        await started(controller)

        assert await controller.start()
        assert len(controller.state.threads) == 1

    @pytest.mark.asyncio
    async def test_existing_identity_keeps_label(self, config):
        identity = Identity(uid="abcdef0123456789", is_anonymous=False)
        controller = ChatController(
            InMemoryDocumentStore(),
            InMemoryIdentityProvider(identity),
            FakeCompletionClient(),
            config=config,
        )
        try:
            await started(controller)
            assert controller.identity == identity
            assert controller.state.identity_label == "abcdef01"
        finally:
            await controller.close()

    @pytest.mark.asyncio
    async def test_unresolved_identity_blocks_everything(self, config):
        store = InMemoryDocumentStore()
        completion = FakeCompletionClient()
        controller = ChatController(store, UnreachableIdentityProvider(), completion, config=config)
        try:
            assert not await controller.start()

            assert not controller.ready
            assert controller.state.identity_label is None
            assert await controller.create_thread() is None
            assert not await controller.select_thread("any")
            assert not await controller.delete_thread("any")
            assert await controller.send_message("hi") == SendOutcome.REJECTED
            assert completion.calls == []
            assert store.subscriber_count("/tenant/test-app/users") == 0
        finally:
            await controller.close()

    @pytest.mark.asyncio
    async def test_store_connect_failure(self, config, tmp_path):
        # A directory cannot be opened as a database file.
        store = SQLiteDocumentStore(tmp_path)
        controller = ChatController(store, InMemoryIdentityProvider(), FakeCompletionClient(), config=config)

        assert not await controller.start()
        assert not controller.ready


class TestSending:
    """Tests for sending through the controller."""

    @pytest.mark.asyncio
    async def test_send_from_input(self, controller):
        await started(controller)
        controller.set_input("Hello")

        outcome = await controller.send_message()
        await controller.wait_until(lambda: len(controller.state.messages) == 2)

        state = controller.state
        assert outcome == SendOutcome.REPLIED
        assert state.input_text == ""
        assert [(m.role, m.text) for m in state.messages] == [
            (Role.USER, "Hello"),
            (Role.MODEL, "Hi there!"),
        ]
        assert not state.is_loading

    @pytest.mark.asyncio
    async def test_blank_input_is_kept(self, controller):
        await started(controller)
        controller.set_input("   ")

        assert await controller.send_message() == SendOutcome.REJECTED
        assert controller.state.input_text == "   "

    @pytest.mark.asyncio
    async def test_history_sent_with_next_message(self, controller):
        await started(controller)
        await controller.send_message("first")
        await controller.wait_until(lambda: len(controller.state.messages) == 2)

        await controller.send_message("second")

        turns = controller._completion.calls[-1]
        assert [t.text for t in turns] == ["first", "Hi there!", "second"]

    @pytest.mark.asyncio
    async def test_typing_indicator_while_waiting(self, controller):
        await started(controller)
        controller._completion.gate = asyncio.Event()

        task = asyncio.create_task(controller.send_message("hi"))
        await controller.wait_until(lambda: controller.state.show_typing_indicator)

        assert controller.state.is_loading
        assert controller.state.messages[-1].text == "hi"

        controller._completion.gate.set()
        await task
        await controller.wait_until(lambda: len(controller.state.messages) == 2)
        assert not controller.state.show_typing_indicator

    @pytest.mark.asyncio
    async def test_messages_follow_selection(self, controller):
        await started(controller)
        first = controller.state.active_thread_id
        await controller.send_message("in first")
        await controller.wait_until(lambda: len(controller.state.messages) == 2)

        second = await controller.create_thread()
        await controller.wait_until(lambda: controller.state.active_thread_id == second)
        assert controller.state.messages == ()

        assert await controller.select_thread(first)
        await controller.wait_until(lambda: len(controller.state.messages) == 2)
        assert controller.state.messages[0].text == "in first"


class TestThreadMutators:
    """Tests for thread mutators exposed to the UI."""

    @pytest.mark.asyncio
    async def test_create_failure_returns_none(self, controller):
        await started(controller)
        controller._store.add_document = AsyncMock(side_effect=StoreWriteError("offline"))

        assert await controller.create_thread() is None

    @pytest.mark.asyncio
    async def test_sends_blocked_while_creating(self, controller):
        await started(controller)
        gate = asyncio.Event()
        real_add = controller._store.add_document

        async def slow_add(path, fields):
            await gate.wait()
            return await real_add(path, fields)

        controller._store.add_document = slow_add
        creating = asyncio.create_task(controller.create_thread("Slow"))
        await controller.wait_until(lambda: controller.state.is_loading)

        assert await controller.send_message("hi") == SendOutcome.REJECTED
        assert await controller.create_thread() is None

        gate.set()
        thread_id = await creating
        controller._store.add_document = real_add

        assert thread_id is not None
        assert not controller.state.is_loading
        assert controller._completion.calls == []
        assert await controller.send_message("hi") == SendOutcome.REPLIED

    @pytest.mark.asyncio
    async def test_delete_failure_returns_false(self, controller):
        await started(controller)
        thread_id = controller.state.active_thread_id
        controller._store.delete_document = AsyncMock(side_effect=StoreWriteError("offline"))

        assert not await controller.delete_thread(thread_id)
        assert controller.state.active_thread_id == thread_id

    @pytest.mark.asyncio
    async def test_select_unknown_returns_false(self, controller):
        await started(controller)

        assert not await controller.select_thread("missing")

    @pytest.mark.asyncio
    async def test_subscribe_receives_snapshots(self, controller):
        snapshots = []
        unsubscribe = controller.subscribe(snapshots.append)

        await started(controller)
        controller.set_input("draft")
        unsubscribe()
        controller.set_input("ignored")

        assert snapshots
        assert snapshots[-1].input_text == "draft"
        assert any(s.active_thread_id is not None for s in snapshots)


class TestLifecycle:
    """Tests for shutdown."""

    @pytest.mark.asyncio
    async def test_context_manager_closes_clients(self, config):
        completion = FakeCompletionClient()
        store = InMemoryDocumentStore()

        async with ChatController(store, InMemoryIdentityProvider(), completion, config=config) as chat:
            await chat.wait_until(lambda: chat.state.active_thread_id is not None)
            chats = f"/tenant/test-app/users/{chat.identity.uid}/chats"
            assert store.subscriber_count(chats) == 1

        assert completion.closed
        assert store.subscriber_count(chats) == 0

    @pytest.mark.asyncio
    async def test_stop_keeps_completion_client_open(self, controller):
        await started(controller)

        await controller.stop()

        assert not controller._completion.closed
        assert not controller.state.ready

    @pytest.mark.asyncio
    async def test_mutators_rejected_after_stop(self, controller):
        await started(controller)
        thread_id = controller.state.active_thread_id

        await controller.stop()

        assert await controller.send_message("hi") == SendOutcome.REJECTED
        assert await controller.create_thread() is None
        assert not await controller.select_thread(thread_id)
        assert not await controller.delete_thread(thread_id)
        assert controller._completion.calls == []
        assert controller.state.threads == ()
        assert controller.state.active_thread_id is None

    @pytest.mark.asyncio
    async def test_restart_resubscribes_for_same_identity(self, controller):
        await started(controller)
        identity = controller.identity
        chats = f"/tenant/test-app/users/{identity.uid}/chats"
        thread_id = controller.state.active_thread_id
        await controller.stop()
        assert controller._store.subscriber_count(chats) == 0

        assert await controller.start()
        await controller.wait_until(lambda: controller.state.active_thread_id is not None)

        assert controller.identity == identity
        assert controller._store.subscriber_count(chats) == 1
        assert [t.id for t in controller.state.threads] == [thread_id]
        assert await controller.send_message("again") == SendOutcome.REPLIED


class TestBootstrap:
    """Tests for create_chat_controller."""

    def test_builds_configured_clients(self, tmp_path):
        config = ChatConfig(
            app_id="boot",
            store_backend="sqlite",
            identity_backend="memory",
            database_path=str(tmp_path / "chat.db"),
            completion_provider="gemini",
            model="gemini-2.5-flash",
        )

        controller = create_chat_controller(config, StaticSecretSource({"GEMINI_API_KEY": "k"}))

        assert controller._store.backend_type == "sqlite"
        assert controller._identity_provider.backend_type == "memory"
        assert isinstance(controller._completion, GeminiProvider)
        assert controller._completion.model == "gemini-2.5-flash"

    def test_google_api_key_accepted(self):
        controller = create_chat_controller(
            ChatConfig(app_id="boot"), StaticSecretSource({"GOOGLE_API_KEY": "k"})
        )
        assert controller.ready is False

    def test_missing_api_key(self):
        with pytest.raises(ConfigurationError, match="API key required"):
            create_chat_controller(ChatConfig(app_id="boot"), StaticSecretSource())
