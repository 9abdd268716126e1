from typing import Any

from .base import CompletionClient


def create_completion_client(provider: str, **config: Any) -> CompletionClient:
    """Create a completion client instance.

    This factory function hides the instantiation logic for different clients.

    Args:
        provider: Client type ('gemini' for REST, 'gemini-sdk' for google-genai)
        **config: Client-specific configuration
            For gemini:
                - api_key: str (required)
                - model: str (default: 'gemini-2.0-flash')
                - base_url: str (default: Generative Language API v1beta)
                - timeout: float (default: 60.0)
            For gemini-sdk:
                - api_key: str (required)
                - model: str (default: 'gemini-2.0-flash')

    Returns:
        Initialized completion client

    Raises:
        ValueError: If provider type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> client = create_completion_client(
        ...     "gemini",
        ...     api_key=resolve_api_key(EnvSecretSource()),
        ...     model="gemini-2.0-flash"
        ... )
    """
    provider_lower = provider.lower()

    if provider_lower == "gemini":
        if "api_key" not in config:
            raise TypeError("Gemini provider requires 'api_key' in config")
        from .providers.gemini import GeminiProvider
        return GeminiProvider(**config)

    if provider_lower in ("gemini-sdk", "genai"):
        if "api_key" not in config:
            raise TypeError("Gemini SDK provider requires 'api_key' in config")
        from .providers.gemini_sdk import GeminiSDKProvider
        return GeminiSDKProvider(**config)

    raise ValueError(
        f"Unsupported provider: {provider}. "
        f"Supported providers: 'gemini', 'gemini-sdk'"
    )
