"""SQLite document store backend.

Provides persistent document storage using a SQLite database file.
Uses aiosqlite for async access. Live subscriptions are served in-process:
every committed write publishes a fresh snapshot to the subscribers of the
written collection.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

import aiosqlite

from ..exceptions import StoreError, StoreWriteError
from .base import DocumentStore
from .models import Document, OrderBy
from .paths import require_collection_path, split_document_path

_DATETIME_KEY = "__datetime__"


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_DATETIME_KEY: value.isoformat()}
    raise TypeError(f"Cannot store value of type {type(value).__name__}")


def _decode_object(obj: dict[str, Any]) -> Any:
    if len(obj) == 1 and _DATETIME_KEY in obj:
        return datetime.fromisoformat(obj[_DATETIME_KEY])
    return obj


def encode_fields(fields: dict[str, Any]) -> str:
    """Serialize document fields to JSON, tagging datetimes."""
    return json.dumps(fields, default=_encode_value)


def decode_fields(raw: str) -> dict[str, Any]:
    """Deserialize document fields written by encode_fields."""
    return json.loads(raw, object_hook=_decode_object)


class SQLiteDocumentStore(DocumentStore):
    """SQLite-backed document store.

    Stores every collection in a single table keyed by collection path and
    document id. Insertion order is kept in an autoincrement column so equal
    sort keys resolve deterministically.
    """

    def __init__(self, path: str | Path = "./threadchat.db"):
        super().__init__()
        self._db_path = Path(path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        if self._db_path != Path(":memory:"):
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._connection = await aiosqlite.connect(self._db_path)
            await self._create_schema()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to open {self._db_path}: {e}") from e

    async def _create_schema(self) -> None:
        """Create database tables."""
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                collection TEXT NOT NULL,
                doc_id TEXT NOT NULL,
                fields TEXT NOT NULL,
                UNIQUE (collection, doc_id)
            )
        """)

        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_documents_collection
            ON documents(collection, seq)
        """)

        await self._connection.commit()

    async def disconnect(self) -> None:
        """Release subscriptions and close the database connection."""
        self._close_subscriptions()
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise StoreError("SQLite document store is not connected")
        return self._connection

    async def add_document(self, path: str, fields: dict[str, Any]) -> str:
        collection = require_collection_path(path)
        doc_id = uuid4().hex
        try:
            connection = self._require_connection()
            await connection.execute(
                "INSERT INTO documents (collection, doc_id, fields) VALUES (?, ?, ?)",
                (collection, doc_id, encode_fields(fields))
            )
            await connection.commit()
        except (StoreError, aiosqlite.Error, TypeError) as e:
            raise StoreWriteError(str(e), collection) from e

        await self._publish(collection)
        return doc_id

    async def delete_document(self, path: str) -> None:
        collection, doc_id = split_document_path(path)
        try:
            connection = self._require_connection()
            cursor = await connection.execute(
                "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id)
            )
            await connection.commit()
        except (StoreError, aiosqlite.Error) as e:
            raise StoreWriteError(str(e), path) from e

        if cursor.rowcount:
            await self._publish(collection)

    async def delete_collection(self, path: str) -> int:
        collection = require_collection_path(path)
        try:
            connection = self._require_connection()
            cursor = await connection.execute(
                "DELETE FROM documents WHERE collection = ?",
                (collection,)
            )
            await connection.commit()
        except (StoreError, aiosqlite.Error) as e:
            raise StoreWriteError(str(e), collection) from e

        removed = cursor.rowcount
        if removed:
            await self._publish(collection)
        return removed

    async def list_documents(self, path: str, order_by: OrderBy) -> list[Document]:
        collection = require_collection_path(path)
        connection = self._require_connection()
        try:
            async with connection.execute(
                "SELECT doc_id, fields FROM documents WHERE collection = ? ORDER BY seq ASC",
                (collection,)
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to read {collection}: {e}") from e

        documents = [
            Document(id=doc_id, collection=collection, fields=decode_fields(raw))
            for doc_id, raw in rows
        ]
        return order_by.apply(documents)

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
