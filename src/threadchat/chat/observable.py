"""Change notification shared by the sync components and the controller."""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

ChangeListener = Callable[[], None]


class Observable:
    """Holds change listeners and lets callers await a condition.

    Listeners are called synchronously after every change. A failing
    listener is logged and does not stop the others.
    """

    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []
        self._changed = asyncio.Event()

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener.

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self) -> None:
        self._changed.set()
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Change listener %r failed", listener)

    async def wait_until(self, predicate: Callable[[], bool], timeout: float = 5.0) -> None:
        """Wait until predicate() is true, re-checking after every change.

        Raises:
            TimeoutError: If the condition does not hold within timeout seconds
        """
        async def _wait() -> None:
            while not predicate():
                self._changed.clear()
                await self._changed.wait()

        await asyncio.wait_for(_wait(), timeout)
