"""In-memory identity provider.

The session lasts as long as the provider object.
"""

from uuid import uuid4

from .base import IdentityProvider
from .models import Identity


class InMemoryIdentityProvider(IdentityProvider):
    """Process-local identity provider, suitable for single sessions and tests."""

    def __init__(self, identity: Identity | None = None):
        self._identity = identity

    async def connect(self) -> None:
        """Initialize provider (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close provider (no-op for in-memory)."""
        pass

    async def resolve_session(self) -> Identity | None:
        return self._identity

    async def create_anonymous_identity(self) -> Identity:
        self._identity = Identity(uid=uuid4().hex, is_anonymous=True)
        return self._identity

    @property
    def backend_type(self) -> str:
        return "memory"
