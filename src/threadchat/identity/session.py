"""Identity session: resolves who the user is before any data access."""

import logging

from ..exceptions import IdentityUnavailableError, ThreadChatError
from .base import IdentityProvider
from .models import Identity, SessionState

logger = logging.getLogger(__name__)


class IdentitySession:
    """Holds the resolved identity, or nothing while unresolved.

    The only transition is unresolved -> resolved. A provider failure leaves
    the session unresolved; callers must not start syncing or sending until
    ``identity`` is set.
    """

    def __init__(self, provider: IdentityProvider):
        self._provider = provider
        self._identity: Identity | None = None

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def state(self) -> SessionState:
        if self._identity is None:
            return SessionState.UNRESOLVED
        return SessionState.RESOLVED

    @property
    def is_resolved(self) -> bool:
        return self._identity is not None

    async def resolve(self) -> Identity | None:
        """Resolve the current session, creating an anonymous identity if needed.

        Returns:
            The resolved identity, or None if the provider is unavailable
        """
        if self._identity is not None:
            return self._identity

        try:
            identity = await self._provider.resolve_session()
            if identity is None:
                logger.info("No existing session, creating anonymous identity")
                identity = await self._provider.create_anonymous_identity()
        except IdentityUnavailableError as e:
            logger.error("%s", e)
            return None
        except (ThreadChatError, OSError) as e:
            logger.error("%s", IdentityUnavailableError(str(e)))
            return None

        self._identity = identity
        logger.info("Identity resolved: %s", identity.uid)
        return identity
