"""Type definitions for the proxy."""

from .chat import (
    ChatCompletionChunk,
    ChatCompletionResponse,
    ChatMessagePayload,
    ChatRequest,
    Choice,
    ContentPart,
    ContentPartPayload,
    Delta,
    ImagePart,
    Message,
    TextPart,
    Usage,
)

__all__ = [
    "ChatCompletionChunk",
    "ChatCompletionResponse",
    "ChatMessagePayload",
    "ChatRequest",
    "Choice",
    "ContentPart",
    "ContentPartPayload",
    "Delta",
    "ImagePart",
    "Message",
    "TextPart",
    "Usage",
]
