"""Application configuration with environment variable loading.

Pydantic-based configuration for threadchat. Every field can be set from
the environment (or a .env file); explicit keyword arguments win.
"""

import logging
import os
import sys

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Load environment variables from .env file
load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class ChatConfig(BaseModel):
    """Configuration for the chat client.

    Attributes:
        app_id: Application partition in the document store.
        store_backend: Document store backend ("memory" or "sqlite").
        identity_backend: Identity provider backend ("memory" or "sqlite").
        database_path: SQLite file shared by the sqlite backends.
        completion_provider: Completion client ("gemini" or "gemini-sdk").
        model: Completion model identifier.
        base_url: Completion API root for the REST client.
        request_timeout: Completion request timeout in seconds.
        default_thread_title: Title given to new threads.
        fallback_reply: Model text stored when a reply has no candidate text.
        cascade_delete: Delete a thread's messages together with the thread.
        log_level: Root log level name.
    """

    model_config = ConfigDict(validate_default=True)

    app_id: str = Field(
        default_factory=lambda: os.getenv("THREADCHAT_APP_ID", "t3-chat-clone"),
        min_length=1,
    )
    store_backend: str = Field(
        default_factory=lambda: os.getenv("THREADCHAT_STORE_BACKEND", "memory"),
    )
    identity_backend: str = Field(
        default_factory=lambda: os.getenv("THREADCHAT_IDENTITY_BACKEND", "memory"),
    )
    database_path: str = Field(
        default_factory=lambda: os.getenv("THREADCHAT_DB_PATH", "./threadchat.db"),
    )
    completion_provider: str = Field(
        default_factory=lambda: os.getenv("THREADCHAT_COMPLETION_PROVIDER", "gemini"),
    )
    model: str = Field(
        default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        ),
    )
    request_timeout: float = Field(
        default_factory=lambda: os.getenv("THREADCHAT_REQUEST_TIMEOUT", "60"),
        gt=0,
    )
    default_thread_title: str = Field(default="New Chat", min_length=1)
    fallback_reply: str = Field(
        default="Sorry, I couldn't generate a response.",
        min_length=1,
    )
    cascade_delete: bool = Field(
        default_factory=lambda: _env_bool("THREADCHAT_CASCADE_DELETE", True),
    )
    log_level: str = Field(
        default_factory=lambda: os.getenv("THREADCHAT_LOG_LEVEL", "INFO"),
    )

    @field_validator("app_id")
    @classmethod
    def validate_app_id(cls, v: str) -> str:
        """App id becomes a path segment, so it cannot contain '/'."""
        if "/" in v:
            raise ValueError("app_id cannot contain '/'")
        return v

    @field_validator("store_backend", "identity_backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        backend = v.strip().lower()
        if backend not in ("memory", "sqlite"):
            raise ValueError(f"Unsupported backend: {v}. Supported backends: memory, sqlite")
        return backend

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


def get_config(**overrides) -> ChatConfig:
    """Create configuration from environment.

    Args:
        **overrides: Field values that take precedence over the environment

    Returns:
        Configured ChatConfig instance.

    Raises:
        ValueError: If a setting is invalid.
    """
    return ChatConfig(**overrides)


def configure_logging(level: str = "INFO") -> None:
    """Install a stdout handler on the root logger."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
