"""In-memory document store backend.

Dict-based storage for session-only data and for tests.
Data is lost when the application exits.
"""

from typing import Any
from uuid import uuid4

from .base import DocumentStore
from .models import Document, OrderBy
from .paths import require_collection_path, split_document_path


class InMemoryDocumentStore(DocumentStore):
    """In-memory document store (session-only).

    Collections are dicts keyed by document id, kept in insertion order so
    equal sort keys resolve deterministically.
    """

    def __init__(self) -> None:
        super().__init__()
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    async def connect(self) -> None:
        """Initialize store (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Release subscriptions. Stored documents are kept."""
        self._close_subscriptions()

    async def add_document(self, path: str, fields: dict[str, Any]) -> str:
        collection = require_collection_path(path)
        doc_id = uuid4().hex
        self._collections.setdefault(collection, {})[doc_id] = dict(fields)
        await self._publish(collection)
        return doc_id

    async def delete_document(self, path: str) -> None:
        collection, doc_id = split_document_path(path)
        documents = self._collections.get(collection, {})
        if documents.pop(doc_id, None) is not None:
            await self._publish(collection)

    async def delete_collection(self, path: str) -> int:
        collection = require_collection_path(path)
        removed = len(self._collections.pop(collection, {}))
        if removed:
            await self._publish(collection)
        return removed

    async def list_documents(self, path: str, order_by: OrderBy) -> list[Document]:
        collection = require_collection_path(path)
        documents = [
            Document(id=doc_id, collection=collection, fields=dict(fields))
            for doc_id, fields in self._collections.get(collection, {}).items()
        ]
        return order_by.apply(documents)

    @property
    def backend_type(self) -> str:
        return "memory"
