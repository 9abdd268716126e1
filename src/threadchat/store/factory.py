"""Factory for creating document store backends."""

from typing import Any

from .base import DocumentStore


def create_document_store(backend: str = "memory", **config: Any) -> DocumentStore:
    """
    Create a document store instance.

    This factory function hides which backend is being used.

    Args:
        backend: Backend type ("memory" or "sqlite")
        **config: Backend-specific configuration
            For sqlite:
                - path: str | Path (default: './threadchat.db')

    Returns:
        Document store instance (call ``connect()`` before use)

    Raises:
        ValueError: If backend type is not supported

    Example:
        >>> store = create_document_store("sqlite", path="./chats.db")
        >>> await store.connect()
    """
    if backend == "memory":
        from .in_memory import InMemoryDocumentStore
        return InMemoryDocumentStore(**config)

    elif backend == "sqlite":
        from .sqlite import SQLiteDocumentStore
        return SQLiteDocumentStore(**config)

    raise ValueError(
        f"Unsupported store backend: {backend}. "
        f"Supported backends: memory, sqlite"
    )
