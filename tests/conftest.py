"""Pytest configuration and shared fixtures."""
import os

import pytest

from threadchat.clock import MonotonicClock
from threadchat.identity import Identity
from threadchat.store import StorePaths
from threadchat.store.in_memory import InMemoryDocumentStore

from tests.helpers import FakeCompletionClient


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "gemini": os.getenv("GEMINI_API_KEY"),
    }


@pytest.fixture
async def store():
    """Connected in-memory document store."""
    store = InMemoryDocumentStore()
    await store.connect()
    yield store
    await store.disconnect()


@pytest.fixture
def identity():
    """A resolved anonymous identity."""
    return Identity(uid="user-1234abcd", is_anonymous=True)


@pytest.fixture
def paths():
    return StorePaths("test-app")


@pytest.fixture
def clock():
    return MonotonicClock()


@pytest.fixture
def completion():
    """Completion client that answers "Hello"."""
    return FakeCompletionClient()
