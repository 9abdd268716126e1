"""Document store module for threadchat.

Provides path-partitioned document collections with live subscriptions.
"""

from .base import DocumentStore, Subscription
from .factory import create_document_store
from .models import Document, OrderBy, SortDirection
from .paths import StorePaths

__all__ = [
    "Document",
    "DocumentStore",
    "OrderBy",
    "SortDirection",
    "StorePaths",
    "Subscription",
    "create_document_store",
]
