from abc import ABC, abstractmethod
from typing import Any

from .models import ChatTurn, CompletionResponse


class CompletionClient(ABC):
    """Abstract base class for completion endpoints.

    This module hides the design decision of how the completion endpoint is
    reached. Implementations must handle:
    - Client setup and credential handling
    - Request/response format conversion
    - Mapping transport and status failures onto CompletionRequestError

    A single call makes a single attempt; there is no retry.

    Supports async context manager protocol for proper resource cleanup:
        async with client:
            response = await client.generate(turns)
    """

    @abstractmethod
    async def generate(
        self,
        turns: list[ChatTurn],
        model: str | None = None,
    ) -> CompletionResponse:
        """Generate a reply to a conversation.

        Args:
            turns: Conversation history, oldest first, ending with the new user turn
            model: Model to use (None uses the client's default)

        Returns:
            CompletionResponse with the first candidate's text

        Raises:
            CompletionRequestError: Network error or non-success status
            MalformedCompletionResponseError: Response lacks candidate text
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass

    async def __aenter__(self) -> "CompletionClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
