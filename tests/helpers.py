"""Test doubles and small helpers shared across test modules."""
import asyncio

import httpx

from threadchat.completion import ChatTurn, CompletionClient, CompletionResponse
from threadchat.exceptions import IdentityUnavailableError
from threadchat.identity.in_memory import InMemoryIdentityProvider
from threadchat.store import OrderBy

MESSAGE_ORDER = OrderBy(field="timestamp")


class FakeCompletionClient(CompletionClient):
    """Completion client that replays scripted replies.

    A reply that is an exception instance is raised instead of returned.
    Set ``gate`` to an unset event to hold requests until it is set.
    """

    def __init__(self, replies=None):
        self.calls: list[list[ChatTurn]] = []
        self._replies = list(replies or ["Hello"])
        self.gate: asyncio.Event | None = None
        self.closed = False

    async def generate(self, turns, model=None):
        self.calls.append(list(turns))
        if self.gate is not None:
            await self.gate.wait()
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, Exception):
            raise reply
        return CompletionResponse(text=reply, model=model or "fake-model")

    async def close(self):
        self.closed = True


class UnreachableIdentityProvider(InMemoryIdentityProvider):
    """Identity provider whose service cannot be reached."""

    async def resolve_session(self):
        raise IdentityUnavailableError("connection refused")

    async def create_anonymous_identity(self):
        raise IdentityUnavailableError("connection refused")


def gemini_body(text):
    """Response body with a single candidate."""
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def mock_http_client(handler) -> httpx.AsyncClient:
    """HTTP client whose requests are answered by handler(request)."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
