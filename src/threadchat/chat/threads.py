"""Thread list synchronization.

Keeps a local copy of the identity's thread collection (newest first) and
owns the thread selection. Every push replaces the cache in full.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

from ..clock import MonotonicClock
from ..exceptions import StoreSubscriptionError, StoreWriteError, ThreadNotFoundError
from ..identity.models import Identity
from ..store.base import DocumentStore, Subscription
from ..store.models import Document, OrderBy, SortDirection
from ..store.paths import StorePaths
from .models import Thread
from .observable import Observable

logger = logging.getLogger(__name__)

DEFAULT_THREAD_TITLE = "New Chat"

SelectionListener = Callable[[str | None], Awaitable[None]]


class ThreadStoreSync(Observable):
    """Live thread list and selection for one identity.

    Policy applied to every push:
    - an empty list triggers creation of a default thread (one at a time)
    - with no selection, the first (most recent) thread is selected
    - an existing selection is never overridden by a push
    """

    def __init__(
        self,
        store: DocumentStore,
        paths: StorePaths,
        identity: Identity,
        clock: MonotonicClock | None = None,
        default_title: str = DEFAULT_THREAD_TITLE,
        cascade_delete: bool = True,
    ):
        super().__init__()
        self._store = store
        self._paths = paths
        self._identity = identity
        self._clock = clock or MonotonicClock()
        self._default_title = default_title
        self._cascade_delete = cascade_delete
        self._threads: tuple[Thread, ...] = ()
        self._active_thread_id: str | None = None
        self._selection_listeners: list[SelectionListener] = []
        self._subscription: Subscription | None = None
        self._task: asyncio.Task | None = None
        self._default_pending = False

    @property
    def threads(self) -> tuple[Thread, ...]:
        return self._threads

    @property
    def active_thread_id(self) -> str | None:
        return self._active_thread_id

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def add_selection_listener(self, listener: SelectionListener) -> None:
        """Register a coroutine called with the new thread id on every selection change."""
        self._selection_listeners.append(listener)

    async def start(self) -> None:
        """Open the thread list subscription."""
        if self._task is not None:
            return
        subscription = self._store.subscribe_collection(
            self._paths.chats(self._identity.uid),
            OrderBy(field="createdAt", direction=SortDirection.DESCENDING),
        )
        self._subscription = subscription
        self._task = asyncio.create_task(self._consume(subscription))

    async def stop(self) -> None:
        """Close the subscription and wait for the consumer to finish."""
        subscription, task = self._subscription, self._task
        self._subscription = None
        self._task = None
        if subscription is not None:
            subscription.close()
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _consume(self, subscription: Subscription) -> None:
        try:
            async with subscription:
                async for documents in subscription:
                    if subscription is not self._subscription:
                        break
                    await self._apply(documents)
        except StoreSubscriptionError as e:
            logger.error("Thread list subscription ended: %s", e)

    async def _apply(self, documents: list[Document]) -> None:
        self._threads = tuple(_parse_threads(documents))
        self._notify()

        if not self._threads:
            await self._ensure_default_thread()
            return

        self._default_pending = False
        if self._active_thread_id is None:
            await self._select(self._threads[0].id)

    async def _ensure_default_thread(self) -> None:
        if self._default_pending:
            return
        self._default_pending = True
        logger.info("No threads for %s, creating default thread", self._identity.uid)
        try:
            await self.create_thread()
        except StoreWriteError as e:
            self._default_pending = False
            logger.error("Failed to create default thread: %s", e)

    async def create_thread(self, title: str | None = None) -> str:
        """Create a thread and select it.

        Args:
            title: Thread title (the default title if omitted)

        Returns:
            Id of the new thread

        Raises:
            StoreWriteError: If the write fails
        """
        thread_id = await self._store.add_document(
            self._paths.chats(self._identity.uid),
            Thread.new_fields(title or self._default_title, self._clock.now()),
        )
        logger.debug("Created thread %s", thread_id)
        await self._select(thread_id)
        return thread_id

    async def delete_thread(self, thread_id: str) -> None:
        """Delete a thread, reselecting if it was the active one.

        The replacement is the first remaining thread in list order, or none.
        With cascade delete enabled the thread's messages are removed too; a
        failure there is logged and leaves the messages orphaned.

        Raises:
            StoreWriteError: If the thread record cannot be deleted
        """
        uid = self._identity.uid
        await self._store.delete_document(self._paths.chat(uid, thread_id))

        if self._active_thread_id == thread_id:
            remaining = [thread for thread in self._threads if thread.id != thread_id]
            await self._select(remaining[0].id if remaining else None)

        if self._cascade_delete:
            try:
                removed = await self._store.delete_collection(self._paths.messages(uid, thread_id))
                logger.debug("Deleted %d messages of thread %s", removed, thread_id)
            except StoreWriteError as e:
                logger.error("Messages of deleted thread %s left orphaned: %s", thread_id, e)

    async def select_thread(self, thread_id: str) -> None:
        """Select a thread from the cached list.

        Raises:
            ThreadNotFoundError: If the thread is not in the cache
        """
        if not any(thread.id == thread_id for thread in self._threads):
            raise ThreadNotFoundError(thread_id)
        await self._select(thread_id)

    async def _select(self, thread_id: str | None) -> None:
        if thread_id == self._active_thread_id:
            return
        self._active_thread_id = thread_id
        self._notify()
        for listener in list(self._selection_listeners):
            try:
                await listener(thread_id)
            except Exception:
                logger.exception("Selection listener %r failed for thread %s", listener, thread_id)


def _parse_threads(documents: list[Document]) -> list[Thread]:
    threads = []
    for document in documents:
        try:
            threads.append(Thread.from_document(document))
        except (KeyError, ValueError) as e:
            logger.warning("Skipping malformed thread document %s: %s", document.path, e)
    return threads
