"""Data models for identities."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Identity(BaseModel):
    """An authenticated or anonymous principal owning threads."""

    model_config = ConfigDict(frozen=True)

    uid: str = Field(min_length=1, description="Opaque unique identity id")
    is_anonymous: bool = Field(default=True)
    display_name: str | None = Field(default=None, description="Optional display handle")

    @property
    def label(self) -> str:
        """Short label for presenting the identity."""
        if self.is_anonymous:
            return "Anonymous User"
        return self.display_name or self.uid[:8]


class SessionState(str, Enum):
    """Resolution state of an identity session."""

    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"
