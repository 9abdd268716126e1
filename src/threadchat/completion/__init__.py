from .base import CompletionClient
from .factory import create_completion_client
from .models import ChatTurn, CompletionResponse, build_payload, extract_candidate_text

__all__ = [
    "ChatTurn",
    "CompletionClient",
    "CompletionResponse",
    "build_payload",
    "create_completion_client",
    "extract_candidate_text",
]
