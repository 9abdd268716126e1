"""Abstract base class for identity providers.

This module hides the design decision of which identity service is used
and how its session survives restarts.
"""

from abc import ABC, abstractmethod
from typing import Any

from .models import Identity


class IdentityProvider(ABC):
    """Abstract identity provider.

    Supports async context manager protocol for resource cleanup:
        async with provider:
            identity = await provider.resolve_session()
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the provider."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the provider gracefully."""

    @abstractmethod
    async def resolve_session(self) -> Identity | None:
        """Return the identity of the current session, or None if there is none.

        Raises:
            IdentityUnavailableError: If the provider cannot be reached
        """

    @abstractmethod
    async def create_anonymous_identity(self) -> Identity:
        """Create a new anonymous identity and make it the current session.

        Raises:
            IdentityUnavailableError: If the provider cannot be reached
        """

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def __aenter__(self) -> "IdentityProvider":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()
