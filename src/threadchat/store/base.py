"""Abstract base class for document store backends.

The abstraction hides:
- Persistence mechanism (in-memory, SQLite, hosted service)
- How collection changes are detected and pushed to subscribers
- Connection management
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from ..exceptions import StoreError, StoreSubscriptionError
from .models import Document, OrderBy
from .paths import require_collection_path

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """Live, ordered view of one collection.

    Acts as an async iterator of full snapshots (lists of documents in the
    subscription's order). Snapshots are delivered in the order the store
    produces them. Once closed, buffered snapshots are dropped and iteration
    stops.

    Usage:
        async with store.subscribe_collection(path, order_by) as subscription:
            async for documents in subscription:
                ...
        # Listener released here
    """

    def __init__(self, store: "DocumentStore", path: str, order_by: OrderBy):
        self._store = store
        self._path = path
        self._order_by = order_by
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._refresh_lock = asyncio.Lock()
        self._closed = False

    @property
    def path(self) -> str:
        return self._path

    @property
    def order_by(self) -> OrderBy:
        return self._order_by

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> None:
        """Register with the store and queue the initial snapshot.

        Raises:
            StoreSubscriptionError: If the initial snapshot cannot be read
        """
        if self._closed:
            return
        self._store._register(self)
        try:
            await self._refresh()
        except StoreError as e:
            self.close()
            raise StoreSubscriptionError(str(e), self._path) from e

    def close(self) -> None:
        """Release the listener. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._store._unregister(self)
        self._queue.put_nowait(_CLOSED)

    async def _refresh(self) -> None:
        """Read the collection and queue it as the next snapshot."""
        async with self._refresh_lock:
            if self._closed:
                return
            documents = await self._store.list_documents(self._path, self._order_by)
            if not self._closed:
                self._queue.put_nowait(documents)

    def _fail(self, error: StoreSubscriptionError) -> None:
        if not self._closed:
            self._queue.put_nowait(error)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> list[Document]:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED or self._closed:
            raise StopAsyncIteration
        if isinstance(item, StoreSubscriptionError):
            raise item
        return item

    async def __aenter__(self) -> "Subscription":
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class DocumentStore(ABC):
    """Abstract document store.

    Provides path-partitioned collections of documents, document-level
    writes, and push-based collection subscriptions. Writers publish a fresh
    snapshot to every subscription on the written collection after the write
    has been committed.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = {}

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the store backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the store backend and release all subscriptions."""

    @abstractmethod
    async def add_document(self, path: str, fields: dict[str, Any]) -> str:
        """Add a document with a generated id to a collection.

        Args:
            path: Collection path
            fields: Document fields

        Returns:
            Generated document id

        Raises:
            StoreWriteError: If the write fails
        """

    @abstractmethod
    async def delete_document(self, path: str) -> None:
        """Delete a document. Deleting a missing document is not an error.

        Raises:
            StoreWriteError: If the delete fails
        """

    @abstractmethod
    async def delete_collection(self, path: str) -> int:
        """Delete every document in a collection.

        Returns:
            Number of documents deleted

        Raises:
            StoreWriteError: If the delete fails
        """

    @abstractmethod
    async def list_documents(self, path: str, order_by: OrderBy) -> list[Document]:
        """Read a collection once, ordered.

        Raises:
            StoreError: If the read fails
        """

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    def subscribe_collection(self, path: str, order_by: OrderBy) -> Subscription:
        """Create a live subscription to a collection.

        The subscription is inactive until opened, either explicitly with
        ``await subscription.open()`` or by entering it as an async context
        manager.
        """
        return Subscription(self, require_collection_path(path), order_by)

    def _register(self, subscription: Subscription) -> None:
        self._subscriptions.setdefault(subscription.path, []).append(subscription)

    def _unregister(self, subscription: Subscription) -> None:
        listeners = self._subscriptions.get(subscription.path)
        if not listeners:
            return
        if subscription in listeners:
            listeners.remove(subscription)
        if not listeners:
            del self._subscriptions[subscription.path]

    def subscriber_count(self, path: str) -> int:
        """Number of open subscriptions on a collection."""
        return len(self._subscriptions.get(require_collection_path(path), []))

    async def _publish(self, path: str) -> None:
        """Push a fresh snapshot of a collection to its subscribers."""
        for subscription in list(self._subscriptions.get(path, [])):
            try:
                await subscription._refresh()
            except StoreError as e:
                logger.error("Failed to refresh subscription on %s: %s", path, e)
                subscription._fail(StoreSubscriptionError(str(e), path))

    def _close_subscriptions(self) -> None:
        for listeners in list(self._subscriptions.values()):
            for subscription in list(listeners):
                subscription.close()
        self._subscriptions.clear()

    async def __aenter__(self) -> "DocumentStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()
