"""Chat orchestration module for threadchat.

Module structure (each module hides a design decision):
- models.py: Thread, message and view-state representation
- observable.py: How state changes are announced and awaited
- threads.py: Thread list sync, default thread and selection policy
- messages.py: Message log sync and subscription swapping
- pipeline.py: Send pipeline and error-to-chat conversion
- controller.py: Wiring and the UI-facing state surface
"""

from .controller import ChatController
from .messages import MessageStoreSync
from .models import ChatViewState, Message, PipelineState, Role, SendOutcome, Thread
from .pipeline import DEFAULT_FALLBACK_REPLY, SendPipeline
from .threads import DEFAULT_THREAD_TITLE, ThreadStoreSync

__all__ = [
    "DEFAULT_FALLBACK_REPLY",
    "DEFAULT_THREAD_TITLE",
    "ChatController",
    "ChatViewState",
    "Message",
    "MessageStoreSync",
    "PipelineState",
    "Role",
    "SendOutcome",
    "SendPipeline",
    "Thread",
    "ThreadStoreSync",
]
