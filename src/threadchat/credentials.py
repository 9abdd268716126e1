"""Credential resolution.

Hides where secrets live. Credentials are looked up by name at bootstrap
and passed into the clients that need them; nothing in the package reads
them from module-level globals.
"""

import os
from abc import ABC, abstractmethod

from .exceptions import ConfigurationError

DEFAULT_API_KEY_NAMES = ("GEMINI_API_KEY", "GOOGLE_API_KEY")


class SecretSource(ABC):
    """Abstract secret source."""

    @abstractmethod
    def get(self, name: str) -> str | None:
        """Return the secret value, or None if it is not set."""


class EnvSecretSource(SecretSource):
    """Reads secrets from the process environment (including a loaded .env)."""

    def get(self, name: str) -> str | None:
        return os.getenv(name)


class StaticSecretSource(SecretSource):
    """Secrets from a fixed mapping, for tests and embedding hosts."""

    def __init__(self, secrets: dict[str, str] | None = None):
        self._secrets = dict(secrets or {})

    def get(self, name: str) -> str | None:
        return self._secrets.get(name)


def resolve_api_key(
    source: SecretSource,
    names: tuple[str, ...] = DEFAULT_API_KEY_NAMES,
) -> str:
    """Resolve the completion API key from the first non-blank name.

    Raises:
        ConfigurationError: If none of the names holds a non-blank value
    """
    for name in names:
        value = source.get(name)
        if value and value.strip():
            return value.strip()
    raise ConfigurationError(
        f"API key required. Set one of {', '.join(names)} in the environment or .env"
    )
