"""Data models for the document store.

These models describe documents and collection ordering independently of
the backend that persists them.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _sort_key(value: Any) -> tuple[int, Any]:
    """Order values of different types by type first: null, bool, number, timestamp, text."""
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, datetime):
        return (3, value)
    if isinstance(value, str):
        return (4, value)
    return (5, repr(value))


class SortDirection(str, Enum):
    """Direction of a collection ordering."""

    ASCENDING = "asc"
    DESCENDING = "desc"


class OrderBy(BaseModel):
    """Ordering applied to a collection query or subscription."""

    model_config = ConfigDict(frozen=True)

    field: str = Field(min_length=1, description="Document field to order by")
    direction: SortDirection = Field(default=SortDirection.ASCENDING)

    def apply(self, documents: list["Document"]) -> list["Document"]:
        """Sort documents by this ordering.

        Documents that lack the field are left out, matching the behaviour
        of ordered queries in hosted document stores. The sort is stable, so
        documents with equal values keep their insertion order.

        Args:
            documents: Documents in insertion order

        Returns:
            New list of ordered documents
        """
        present = [doc for doc in documents if self.field in doc.fields]
        return sorted(
            present,
            key=lambda doc: _sort_key(doc.fields[self.field]),
            reverse=self.direction == SortDirection.DESCENDING,
        )


class Document(BaseModel):
    """A single document in a collection."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Document id, unique within its collection")
    collection: str = Field(description="Path of the owning collection")
    fields: dict[str, Any] = Field(default_factory=dict)

    @property
    def path(self) -> str:
        """Full document path."""
        return f"{self.collection}/{self.id}"
