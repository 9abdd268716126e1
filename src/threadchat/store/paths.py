"""Store path construction and validation.

Paths alternate collection and document segments, so collection paths have
an odd number of segments and document paths an even number:

    /tenant/{app_id}/users/{uid}/chats                      collection
    /tenant/{app_id}/users/{uid}/chats/{chat_id}            document
    /tenant/{app_id}/users/{uid}/chats/{chat_id}/messages   collection
"""

from ..exceptions import InvalidPathError

ROOT_COLLECTION = "tenant"


def split_path(path: str) -> list[str]:
    """Split a path into segments, rejecting empty segments."""
    segments = path.strip("/").split("/")
    if not all(segments):
        raise InvalidPathError(f"Path has empty segments: {path!r}")
    return segments


def join_path(*segments: str) -> str:
    """Join segments into an absolute path."""
    for segment in segments:
        if not segment or "/" in segment:
            raise InvalidPathError(f"Invalid path segment: {segment!r}")
    return "/" + "/".join(segments)


def is_collection_path(path: str) -> bool:
    return len(split_path(path)) % 2 == 1


def require_collection_path(path: str) -> str:
    """Return the normalized collection path or raise InvalidPathError."""
    segments = split_path(path)
    if len(segments) % 2 != 1:
        raise InvalidPathError(f"Not a collection path: {path!r}")
    return join_path(*segments)


def split_document_path(path: str) -> tuple[str, str]:
    """Split a document path into (collection path, document id)."""
    segments = split_path(path)
    if len(segments) % 2 != 0:
        raise InvalidPathError(f"Not a document path: {path!r}")
    return join_path(*segments[:-1]), segments[-1]


class StorePaths:
    """Builds the per-identity paths for one application partition."""

    def __init__(self, app_id: str):
        join_path(app_id)
        self._app_id = app_id

    @property
    def app_id(self) -> str:
        return self._app_id

    def chats(self, uid: str) -> str:
        """Collection of threads owned by an identity."""
        return join_path(ROOT_COLLECTION, self._app_id, "users", uid, "chats")

    def chat(self, uid: str, chat_id: str) -> str:
        """Document path of a single thread."""
        return join_path(ROOT_COLLECTION, self._app_id, "users", uid, "chats", chat_id)

    def messages(self, uid: str, chat_id: str) -> str:
        """Collection of messages in a thread."""
        return join_path(
            ROOT_COLLECTION, self._app_id, "users", uid, "chats", chat_id, "messages"
        )
