"""Chat controller: the state surface a UI binds to.

Wires the identity session, thread sync, message sync and send pipeline
together and exposes their combined state as one immutable snapshot.
The UI changes state only through the mutators defined here.
"""

import logging
from collections.abc import Callable
from typing import Any

from ..clock import MonotonicClock
from ..completion.base import CompletionClient
from ..config import ChatConfig
from ..exceptions import IdentityUnavailableError, StoreError, ThreadNotFoundError
from ..identity.base import IdentityProvider
from ..identity.models import Identity
from ..identity.session import IdentitySession
from ..store.base import DocumentStore
from ..store.paths import StorePaths
from .messages import MessageStoreSync
from .models import ChatViewState, PipelineState, SendOutcome
from .observable import Observable
from .pipeline import SendPipeline
from .threads import ThreadStoreSync

logger = logging.getLogger(__name__)

StateListener = Callable[[ChatViewState], None]


class ChatController(Observable):
    """Orchestrates identity, thread/message sync and sending.

    The controller takes ownership of the clients passed to it: ``start()``
    connects them, ``stop()`` disconnects them and ``close()`` also closes
    the completion client.

    Usage:
        async with ChatController(store, identity_provider, completion) as chat:
            await chat.wait_until(lambda: chat.state.active_thread_id is not None)
            await chat.send_message("Hello")
    """

    def __init__(
        self,
        store: DocumentStore,
        identity_provider: IdentityProvider,
        completion: CompletionClient,
        config: ChatConfig | None = None,
        clock: MonotonicClock | None = None,
    ):
        super().__init__()
        self._store = store
        self._identity_provider = identity_provider
        self._completion = completion
        self._config = config or ChatConfig()
        self._clock = clock or MonotonicClock()
        self._paths = StorePaths(self._config.app_id)
        self._session = IdentitySession(identity_provider)
        self._pipeline = SendPipeline(
            store,
            self._paths,
            completion,
            clock=self._clock,
            fallback_reply=self._config.fallback_reply,
        )
        self._pipeline.add_listener(self._notify)
        self._threads: ThreadStoreSync | None = None
        self._messages: MessageStoreSync | None = None
        self._input_text = ""
        self._creating = False
        self._connected = False

    @property
    def identity(self) -> Identity | None:
        return self._session.identity

    @property
    def ready(self) -> bool:
        return self._threads is not None

    @property
    def state(self) -> ChatViewState:
        identity = self._session.identity
        return ChatViewState(
            identity_label=identity.label if identity else None,
            ready=self.ready,
            threads=self._threads.threads if self._threads else (),
            active_thread_id=self._threads.active_thread_id if self._threads else None,
            messages=self._messages.messages if self._messages else (),
            is_loading=self._creating or self._pipeline.state is PipelineState.SENDING,
            input_text=self._input_text,
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call listener with a fresh snapshot after every change.

        Returns:
            Function that unsubscribes the listener
        """
        return self.add_listener(lambda: listener(self.state))

    async def start(self) -> bool:
        """Connect clients, resolve the identity and start syncing.

        Returns:
            True once syncing has started; False while the identity or store
            is unavailable (call again to retry)
        """
        if self.ready:
            return True

        if not self._connected:
            try:
                await self._store.connect()
                await self._identity_provider.connect()
            except (StoreError, IdentityUnavailableError) as e:
                logger.error("Failed to connect: %s", e)
                return False
            self._connected = True

        identity = await self._session.resolve()
        if identity is None:
            logger.warning("Identity unresolved, chat sync not started")
            self._notify()
            return False

        self._messages = MessageStoreSync(self._store, self._paths, identity)
        self._threads = ThreadStoreSync(
            self._store,
            self._paths,
            identity,
            clock=self._clock,
            default_title=self._config.default_thread_title,
            cascade_delete=self._config.cascade_delete,
        )
        self._threads.add_selection_listener(self._messages.switch)
        self._threads.add_listener(self._notify)
        self._messages.add_listener(self._notify)
        await self._threads.start()
        logger.info("Chat sync started for %s", identity.uid)
        self._notify()
        return True

    async def stop(self) -> None:
        """Stop syncing and disconnect the store and identity provider.

        The resolved identity is kept, so a later ``start()`` resumes syncing
        for the same user. The completion client stays open; see ``close()``.
        """
        threads, messages = self._threads, self._messages
        self._threads = None
        self._messages = None
        if threads is not None:
            await threads.stop()
        if messages is not None:
            await messages.stop()
        if self._connected:
            await self._identity_provider.disconnect()
            await self._store.disconnect()
            self._connected = False
        self._notify()

    async def close(self) -> None:
        """Stop syncing and close every client, including the completion client."""
        await self.stop()
        await self._completion.close()

    async def create_thread(self, title: str | None = None) -> str | None:
        """Create and select a new thread. Returns its id, or None on failure.

        Sends are rejected while the thread is being created.
        """
        if self._threads is None or self.state.is_loading:
            return None
        self._creating = True
        self._notify()
        try:
            return await self._threads.create_thread(title)
        except StoreError as e:
            logger.error("Error creating new chat: %s", e)
            return None
        finally:
            self._creating = False
            self._notify()

    async def delete_thread(self, thread_id: str) -> bool:
        """Delete a thread. Returns False if the delete failed."""
        if self._threads is None:
            return False
        try:
            await self._threads.delete_thread(thread_id)
        except StoreError as e:
            logger.error("Error deleting chat: %s", e)
            return False
        return True

    async def select_thread(self, thread_id: str) -> bool:
        """Select a listed thread. Returns False for unknown ids."""
        if self._threads is None:
            return False
        try:
            await self._threads.select_thread(thread_id)
        except ThreadNotFoundError as e:
            logger.warning("%s", e)
            return False
        return True

    def set_input(self, text: str) -> None:
        """Update the pending input text."""
        self._input_text = text
        self._notify()

    async def send_message(self, text: str | None = None) -> SendOutcome:
        """Send text, or the pending input if text is None.

        The pending input is cleared once the send is accepted.
        """
        from_input = text is None
        content = self._input_text if from_input else text
        thread_id = self._threads.active_thread_id if self._threads else None

        if self._creating or not self._pipeline.can_send(content, self._session.identity, thread_id):
            logger.debug("Ignoring send request")
            return SendOutcome.REJECTED

        if from_input:
            self.set_input("")

        history = self._messages.messages if self._messages else ()
        return await self._pipeline.send(content, self._session.identity, thread_id, history)

    async def __aenter__(self) -> "ChatController":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
