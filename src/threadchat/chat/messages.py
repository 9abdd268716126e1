"""Message log synchronization for the selected thread."""

import asyncio
import contextlib
import logging

from ..exceptions import StoreSubscriptionError
from ..identity.models import Identity
from ..store.base import DocumentStore, Subscription
from ..store.models import Document, OrderBy
from ..store.paths import StorePaths
from .models import Message
from .observable import Observable

logger = logging.getLogger(__name__)


class MessageStoreSync(Observable):
    """Live message log of one thread at a time.

    Switching threads closes the previous subscription before the next one
    is opened and clears the cache, so a push for the old thread can never
    land in the new thread's log.
    """

    def __init__(self, store: DocumentStore, paths: StorePaths, identity: Identity):
        super().__init__()
        self._store = store
        self._paths = paths
        self._identity = identity
        self._thread_id: str | None = None
        self._messages: tuple[Message, ...] = ()
        self._subscription: Subscription | None = None
        self._task: asyncio.Task | None = None

    @property
    def thread_id(self) -> str | None:
        return self._thread_id

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._messages

    async def switch(self, thread_id: str | None) -> None:
        """Follow a different thread, or none."""
        if thread_id == self._thread_id:
            return

        previous_subscription, previous_task = self._subscription, self._task
        if previous_subscription is not None:
            previous_subscription.close()

        self._thread_id = thread_id
        self._messages = ()
        self._subscription = None
        self._task = None

        if thread_id is not None:
            subscription = self._store.subscribe_collection(
                self._paths.messages(self._identity.uid, thread_id),
                OrderBy(field="timestamp"),
            )
            self._subscription = subscription
            self._task = asyncio.create_task(self._consume(subscription, thread_id))

        self._notify()
        await _cancel(previous_task)

    async def stop(self) -> None:
        """Detach from the current thread and clear the cache."""
        await self.switch(None)

    async def _consume(self, subscription: Subscription, thread_id: str) -> None:
        try:
            async with subscription:
                async for documents in subscription:
                    if subscription is not self._subscription or thread_id != self._thread_id:
                        logger.debug("Discarding stale push for thread %s", thread_id)
                        break
                    self._messages = tuple(_parse_messages(documents))
                    self._notify()
        except StoreSubscriptionError as e:
            logger.error("Message subscription for thread %s ended: %s", thread_id, e)


async def _cancel(task: asyncio.Task | None) -> None:
    if task is None or task is asyncio.current_task():
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


def _parse_messages(documents: list[Document]) -> list[Message]:
    messages = []
    for document in documents:
        try:
            messages.append(Message.from_document(document))
        except (KeyError, ValueError) as e:
            logger.warning("Skipping malformed message document %s: %s", document.path, e)
    return messages
