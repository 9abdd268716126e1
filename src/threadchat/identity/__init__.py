"""Identity module for threadchat.

Resolves an anonymous or returning identity before any data access.
"""

from .base import IdentityProvider
from .factory import create_identity_provider
from .models import Identity, SessionState
from .session import IdentitySession

__all__ = [
    "Identity",
    "IdentityProvider",
    "IdentitySession",
    "SessionState",
    "create_identity_provider",
]
