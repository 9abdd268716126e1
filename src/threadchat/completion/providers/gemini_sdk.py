"""Google Gemini completion client using the official SDK.

Uses the Google GenAI SDK for async completions.
Reference: https://github.com/googleapis/python-genai
"""

from typing import Any

import httpx
from google import genai
from google.genai import errors, types

from ...exceptions import (
    CompletionRequestError,
    ConfigurationError,
    MalformedCompletionResponseError,
)
from ..base import CompletionClient
from ..models import ChatTurn, CompletionResponse


class GeminiSDKProvider(CompletionClient):
    """Gemini completion client backed by google-genai.

    Hidden design decisions:
    - Google GenAI client initialization
    - Turn conversion to SDK content objects
    - SDK error mapping onto CompletionRequestError
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        temperature: float | None = None,
        max_tokens: int | None = None,
        **client_kwargs: Any
    ):
        """Initialize Gemini SDK client.

        Args:
            api_key: Google AI API key, resolved from a secret source
            model: Default model
            temperature: Sampling temperature (None leaves the server default)
            max_tokens: Maximum output tokens (None leaves the server default)
            **client_kwargs: Additional kwargs for Client

        Raises:
            ConfigurationError: If api_key is empty
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError("Gemini provider requires a non-empty api_key")

        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = genai.Client(api_key=api_key.strip(), **client_kwargs)

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    def _convert_turns(self, turns: list[ChatTurn]) -> list[types.Content]:
        return [
            types.Content(role=turn.role, parts=[types.Part(text=turn.text)])
            for turn in turns
        ]

    def _extract_content(self, response: Any) -> str:
        """Extract the first candidate's first part text.

        Raises:
            MalformedCompletionResponseError: If the response has no usable text
        """
        if response.candidates:
            candidate = response.candidates[0]
            if candidate.content and candidate.content.parts:
                text = candidate.content.parts[0].text
                if text and text.strip():
                    return text
        raise MalformedCompletionResponseError("Response has no candidate text")

    async def generate(
        self,
        turns: list[ChatTurn],
        model: str | None = None,
    ) -> CompletionResponse:
        model_to_use = model or self._model
        config = None
        if self._temperature is not None or self._max_tokens is not None:
            config = types.GenerateContentConfig(
                temperature=self._temperature,
                max_output_tokens=self._max_tokens,
            )

        try:
            response = await self._client.aio.models.generate_content(
                model=model_to_use,
                contents=self._convert_turns(turns),
                config=config
            )
        except errors.APIError as e:
            raise CompletionRequestError(
                f"API call failed with status: {e.code}",
                status_code=e.code,
            ) from e
        except httpx.HTTPError as e:
            raise CompletionRequestError(str(e) or type(e).__name__) from e

        usage = None
        if response.usage_metadata:
            usage = {
                "prompt_tokens": response.usage_metadata.prompt_token_count or 0,
                "completion_tokens": response.usage_metadata.candidates_token_count or 0,
                "total_tokens": response.usage_metadata.total_token_count or 0
            }

        return CompletionResponse(
            text=self._extract_content(response),
            model=model_to_use,
            usage=usage
        )

    async def close(self) -> None:
        """Close the Gemini client.

        Note: The Google GenAI client doesn't require explicit closing,
        but we implement this for interface consistency.
        """
        pass
