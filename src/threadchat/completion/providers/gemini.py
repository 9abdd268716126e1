"""Google Gemini completion client over the REST API.

Posts the conversation to the ``generateContent`` endpoint with httpx and
reads the first candidate's text. One attempt per call.
Reference: https://ai.google.dev/api/generate-content
"""

from typing import Any

import httpx

from ...exceptions import CompletionRequestError, ConfigurationError
from ..base import CompletionClient
from ..models import (
    ChatTurn,
    CompletionResponse,
    build_payload,
    extract_candidate_text,
    extract_usage,
)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash"


class GeminiProvider(CompletionClient):
    """Gemini REST completion client.

    Hidden design decisions:
    - HTTP client lifecycle (owned unless one is injected)
    - API key sent as a header, never in the URL
    - Status and JSON failures mapped onto CompletionRequestError
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        temperature: float | None = None,
        max_tokens: int | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize Gemini REST client.

        Args:
            api_key: Google AI API key, resolved from a secret source
            model: Default model
            base_url: API root, without trailing slash
            timeout: Request timeout in seconds
            temperature: Sampling temperature (None leaves the server default)
            max_tokens: Maximum output tokens (None leaves the server default)
            http_client: Optional pre-built client, not closed by this provider

        Raises:
            ConfigurationError: If api_key is empty
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError("Gemini provider requires a non-empty api_key")

        self._api_key = api_key.strip()
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    def endpoint(self, model: str | None = None) -> str:
        return f"{self._base_url}/models/{model or self._model}:generateContent"

    def _generation_config(self) -> dict[str, Any] | None:
        config: dict[str, Any] = {}
        if self._temperature is not None:
            config["temperature"] = self._temperature
        if self._max_tokens is not None:
            config["maxOutputTokens"] = self._max_tokens
        return config or None

    async def generate(
        self,
        turns: list[ChatTurn],
        model: str | None = None,
    ) -> CompletionResponse:
        model_to_use = model or self._model
        payload = build_payload(turns, self._generation_config())

        try:
            response = await self._client.post(
                self.endpoint(model_to_use),
                json=payload,
                headers={"x-goog-api-key": self._api_key},
            )
        except httpx.HTTPError as e:
            raise CompletionRequestError(str(e) or type(e).__name__) from e

        if not response.is_success:
            raise CompletionRequestError(
                f"API call failed with status: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise CompletionRequestError(f"Invalid JSON in response: {e}") from e

        return CompletionResponse(
            text=extract_candidate_text(body),
            model=model_to_use,
            usage=extract_usage(body),
        )

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()
