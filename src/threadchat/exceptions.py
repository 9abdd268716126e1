"""Exception hierarchy for threadchat.

Every error raised by the identity, store and completion layers derives
from ThreadChatError so callers at the UI seam can catch one type.
"""


class ThreadChatError(Exception):
    """Base class for threadchat errors."""


class ConfigurationError(ThreadChatError):
    """Missing credential or invalid setting."""


class IdentityUnavailableError(ThreadChatError):
    """The identity provider could not be reached."""

    def __init__(self, message: str):
        super().__init__(f"Identity unavailable: {message}")


class StoreError(ThreadChatError):
    """Base class for document store errors."""


class InvalidPathError(StoreError):
    """A store path does not have the expected collection/document shape."""


class StoreWriteError(StoreError):
    """A document write or delete failed."""

    def __init__(self, message: str, path: str | None = None):
        msg = f"Store write failed: {message}"
        if path:
            msg += f" (path: {path})"
        super().__init__(msg)
        self.path = path


class StoreSubscriptionError(StoreError):
    """A collection subscription could not be set up or was interrupted."""

    def __init__(self, message: str, path: str | None = None):
        msg = f"Subscription failed: {message}"
        if path:
            msg += f" (path: {path})"
        super().__init__(msg)
        self.path = path


class CompletionError(ThreadChatError):
    """Base class for completion endpoint errors."""


class CompletionRequestError(CompletionError):
    """Network error or non-success status from the completion endpoint."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedCompletionResponseError(CompletionError):
    """The response parsed but did not contain a candidate text."""


class ThreadNotFoundError(ThreadChatError):
    """The requested thread is not in the local thread cache."""

    def __init__(self, thread_id: str):
        super().__init__(f"Thread not found: {thread_id}")
        self.thread_id = thread_id
