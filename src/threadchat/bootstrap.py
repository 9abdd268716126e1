"""Builds a ready-to-start chat controller from configuration.

Centralizes creation of the store, identity provider and completion client
so hosts only deal with a ChatController.
"""

import logging

from .chat import ChatController
from .completion import create_completion_client
from .config import ChatConfig, get_config
from .credentials import EnvSecretSource, SecretSource, resolve_api_key
from .identity import create_identity_provider
from .store import create_document_store

logger = logging.getLogger(__name__)


def create_chat_controller(
    config: ChatConfig | None = None,
    secrets: SecretSource | None = None,
) -> ChatController:
    """Create a chat controller with clients chosen by configuration.

    Args:
        config: Configuration (defaults to one read from the environment)
        secrets: Where to resolve the completion API key (defaults to the environment)

    Returns:
        ChatController; call ``start()`` or use it as an async context manager

    Raises:
        ConfigurationError: If no API key can be resolved
        ValueError: If a backend or provider name is not supported
    """
    config = config or get_config()
    secrets = secrets or EnvSecretSource()

    store_config = {"path": config.database_path} if config.store_backend == "sqlite" else {}
    identity_config = {"path": config.database_path} if config.identity_backend == "sqlite" else {}

    completion_config: dict = {"api_key": resolve_api_key(secrets), "model": config.model}
    if config.completion_provider.lower() == "gemini":
        completion_config["base_url"] = config.base_url
        completion_config["timeout"] = config.request_timeout

    logger.debug(
        "Creating controller (store=%s, identity=%s, completion=%s)",
        config.store_backend,
        config.identity_backend,
        config.completion_provider,
    )
    return ChatController(
        store=create_document_store(config.store_backend, **store_config),
        identity_provider=create_identity_provider(config.identity_backend, **identity_config),
        completion=create_completion_client(config.completion_provider, **completion_config),
        config=config,
    )
