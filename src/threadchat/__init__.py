"""
threadchat: a minimal chat client over a live document store.

Resolves an anonymous identity, keeps thread and message caches in sync
with store subscriptions, and relays user text to a completion endpoint.
Each subpackage hides one design decision behind an abstract interface
and a factory.
"""

__version__ = "0.1.0"

from .bootstrap import create_chat_controller
from .chat import (
    ChatController,
    ChatViewState,
    Message,
    PipelineState,
    Role,
    SendOutcome,
    Thread,
)
from .config import ChatConfig, configure_logging, get_config
from .exceptions import ThreadChatError

__all__ = [
    "ChatConfig",
    "ChatController",
    "ChatViewState",
    "Message",
    "PipelineState",
    "Role",
    "SendOutcome",
    "Thread",
    "ThreadChatError",
    "configure_logging",
    "create_chat_controller",
    "get_config",
]
