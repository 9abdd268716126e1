"""Request and response models for the completion endpoint.

Wire format (generateContent):

    request:  {"contents": [{"role": "user", "parts": [{"text": "..."}]}, ...]}
    response: {"candidates": [{"content": {"parts": [{"text": "..."}]}}], ...}
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import MalformedCompletionResponseError


class ChatTurn(BaseModel):
    """One turn of conversation history sent to the endpoint."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the turn author: 'user' or 'model'")
    text: str = Field(description="Text of the turn")

    def to_content(self) -> dict[str, Any]:
        return {"role": self.role, "parts": [{"text": self.text}]}


class CompletionResponse(BaseModel):
    """Reply extracted from the completion endpoint."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="Text of the first candidate")
    model: str = Field(description="Model that generated the response")
    usage: dict[str, int] | None = Field(
        default=None,
        description="Token usage information"
    )


def build_payload(
    turns: list[ChatTurn],
    generation_config: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Build the request body for a list of turns, oldest first."""
    payload: dict[str, Any] = {"contents": [turn.to_content() for turn in turns]}
    if generation_config:
        payload["generationConfig"] = generation_config
    return payload


def extract_candidate_text(body: Any) -> str:
    """Return ``candidates[0].content.parts[0].text`` from a response body.

    Raises:
        MalformedCompletionResponseError: If any level is missing or the text is blank
    """
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedCompletionResponseError(
            f"Response has no candidate text: {e!r}"
        ) from e

    if not isinstance(text, str) or not text.strip():
        raise MalformedCompletionResponseError("Candidate text is empty")
    return text


def extract_usage(body: Any) -> dict[str, int] | None:
    """Return token usage from ``usageMetadata`` if present."""
    metadata = body.get("usageMetadata") if isinstance(body, dict) else None
    if not isinstance(metadata, dict):
        return None
    return {
        "prompt_tokens": metadata.get("promptTokenCount") or 0,
        "completion_tokens": metadata.get("candidatesTokenCount") or 0,
        "total_tokens": metadata.get("totalTokenCount") or 0,
    }
