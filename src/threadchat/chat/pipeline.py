"""Send pipeline: user text in, user and model messages persisted.

Steps of one send:
1. state -> sending
2. persist the user message (committed before any request is made)
3. build the request from the cached history plus the new user turn
4. call the completion endpoint once
5. persist the reply, the fallback text, or an "Error: ..." record
6. state -> idle, whatever happened

Nothing is written to local caches; the new messages arrive through the
message subscription like any other change.
"""

import logging
from collections.abc import Sequence

from ..clock import MonotonicClock
from ..completion.base import CompletionClient
from ..completion.models import ChatTurn
from ..exceptions import InvalidPathError, MalformedCompletionResponseError, StoreError
from ..identity.models import Identity
from ..store.base import DocumentStore
from ..store.paths import StorePaths
from .models import Message, PipelineState, Role, SendOutcome
from .observable import Observable

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_REPLY = "Sorry, I couldn't generate a response."
ERROR_PREFIX = "Error: "
UNKNOWN_ERROR = "An unknown error occurred."


class SendPipeline(Observable):
    """Single-flight message sender for one UI surface."""

    def __init__(
        self,
        store: DocumentStore,
        paths: StorePaths,
        completion: CompletionClient,
        clock: MonotonicClock | None = None,
        fallback_reply: str = DEFAULT_FALLBACK_REPLY,
    ):
        super().__init__()
        self._store = store
        self._paths = paths
        self._completion = completion
        self._clock = clock or MonotonicClock()
        self._fallback_reply = fallback_reply
        self._state = PipelineState.IDLE

    @property
    def state(self) -> PipelineState:
        return self._state

    def can_send(self, text: str, identity: Identity | None, thread_id: str | None) -> bool:
        """Whether send() would accept these arguments right now."""
        return (
            bool(text.strip())
            and identity is not None
            and thread_id is not None
            and self._state is PipelineState.IDLE
        )

    async def send(
        self,
        text: str,
        identity: Identity | None,
        thread_id: str | None,
        history: Sequence[Message] = (),
    ) -> SendOutcome:
        """Send user text to a thread and persist the reply.

        Args:
            text: User input; surrounding whitespace is stripped
            identity: Resolved identity, or None
            thread_id: Selected thread, or None
            history: Cached messages of the thread, oldest first

        Returns:
            How the send ended. Failures are reported here and as chat
            content, never raised.
        """
        if not self.can_send(text, identity, thread_id):
            logger.debug("Send rejected (state=%s, thread=%s)", self._state.value, thread_id)
            return SendOutcome.REJECTED

        try:
            path = self._paths.messages(identity.uid, thread_id)
        except InvalidPathError as e:
            logger.error("Send rejected: %s", e)
            return SendOutcome.REJECTED

        prompt = text.strip()
        prior = list(history)

        self._set_state(PipelineState.SENDING)
        try:
            try:
                await self._append(path, prompt, Role.USER)
            except StoreError as e:
                logger.error("Failed to save user message, request not sent: %s", e)
                return SendOutcome.USER_WRITE_FAILED

            reply, outcome = await self._request_reply(prior, prompt)
            try:
                await self._append(path, reply, Role.MODEL)
            except StoreError as e:
                logger.error("Failed to save model reply: %s", e)
                if outcome is not SendOutcome.ERROR_REPLY:
                    reply, outcome = _error_reply(e)
                    await self._append_quietly(path, reply)
            return outcome
        finally:
            self._set_state(PipelineState.IDLE)

    async def _request_reply(
        self,
        prior: list[Message],
        prompt: str,
    ) -> tuple[str, SendOutcome]:
        try:
            turns = [ChatTurn(role=message.role.value, text=message.text) for message in prior]
            turns.append(ChatTurn(role=Role.USER.value, text=prompt))
            response = await self._completion.generate(turns)
        except MalformedCompletionResponseError as e:
            logger.warning("Completion response unusable, using fallback: %s", e)
            return self._fallback_reply, SendOutcome.FALLBACK
        except Exception as e:
            logger.error("Completion request failed: %s", e)
            return _error_reply(e)
        return response.text, SendOutcome.REPLIED

    async def _append(self, path: str, text: str, role: Role) -> str:
        return await self._store.add_document(
            path, Message.new_fields(text, role, self._clock.now())
        )

    async def _append_quietly(self, path: str, text: str) -> None:
        try:
            await self._append(path, text, Role.MODEL)
        except StoreError as e:
            logger.error("Failed to save error reply: %s", e)

    def _set_state(self, state: PipelineState) -> None:
        self._state = state
        self._notify()


def _error_reply(error: Exception) -> tuple[str, SendOutcome]:
    return f"{ERROR_PREFIX}{str(error) or UNKNOWN_ERROR}", SendOutcome.ERROR_REPLY
