"""Data models for threads, messages and pipeline state.

Threads and messages are cached copies of store documents; the store owns
the canonical data.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..store.models import Document


class Role(str, Enum):
    """Author of a message."""

    USER = "user"
    MODEL = "model"


class PipelineState(str, Enum):
    """State of the send pipeline."""

    IDLE = "idle"
    SENDING = "sending"


class SendOutcome(str, Enum):
    """How a send_message call ended."""

    REJECTED = "rejected"
    REPLIED = "replied"
    FALLBACK = "fallback"
    ERROR_REPLY = "error_reply"
    USER_WRITE_FAILED = "user_write_failed"


class Thread(BaseModel):
    """A named conversation owned by one identity."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    created_at: datetime

    @classmethod
    def from_document(cls, document: Document) -> "Thread":
        return cls(
            id=document.id,
            title=document.fields.get("title", ""),
            created_at=document.fields["createdAt"],
        )

    @staticmethod
    def new_fields(title: str, created_at: datetime) -> dict[str, Any]:
        """Store fields for a new thread."""
        return {"title": title, "createdAt": created_at}


class Message(BaseModel):
    """One turn in a thread."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    role: Role
    timestamp: datetime

    @classmethod
    def from_document(cls, document: Document) -> "Message":
        return cls(
            id=document.id,
            text=document.fields.get("text", ""),
            role=Role(document.fields["role"]),
            timestamp=document.fields["timestamp"],
        )

    @staticmethod
    def new_fields(text: str, role: Role, timestamp: datetime) -> dict[str, Any]:
        """Store fields for a new message."""
        return {"text": text, "role": role.value, "timestamp": timestamp}


class ChatViewState(BaseModel):
    """Snapshot of everything the UI renders."""

    model_config = ConfigDict(frozen=True)

    identity_label: str | None = None
    ready: bool = False
    threads: tuple[Thread, ...] = Field(default_factory=tuple)
    active_thread_id: str | None = None
    messages: tuple[Message, ...] = Field(default_factory=tuple)
    is_loading: bool = False
    input_text: str = ""

    @property
    def show_typing_indicator(self) -> bool:
        """True while a reply is pending for the last user message."""
        return (
            self.is_loading
            and bool(self.messages)
            and self.messages[-1].role == Role.USER
        )
