"""Types for the OpenAI chat completion wire format and its decoded form.

The TypedDicts describe the JSON bodies exchanged with clients. The frozen
dataclasses are the decoded request messages the translation layer works on:
- Message: one role-tagged message, plain text or multi-part
- TextPart / ImagePart: fragments of a multi-part message
"""

from dataclasses import dataclass, field
from typing import Any, Union

from typing_extensions import TypedDict


# =============================================================================
# Wire types (OpenAI format)
# =============================================================================


class ContentPartPayload(TypedDict, total=False):
    """A content part for multi-modal messages.

    Attributes:
        type: "text" or "image_url".
        text: Text content (for "text" type).
        image_url: Image object with a "url" field holding a
            ``data:<mime>;base64,<payload>`` literal.
    """
    type: str
    text: str | None
    image_url: dict[str, Any] | None


class ChatMessagePayload(TypedDict, total=False):
    """A message in a chat completion request or response."""
    role: str
    content: str | list[ContentPartPayload] | None


class Delta(TypedDict, total=False):
    """A streamed delta of a choice."""
    role: str | None
    content: str | None


class Choice(TypedDict, total=False):
    """A choice in a chat completion response or chunk.

    Attributes:
        index: Zero-based candidate index.
        message: The complete message for non-streaming responses.
        delta: The incremental content for streaming responses.
        finish_reason: "stop", "length", "content_filter" or None.
    """
    index: int
    message: ChatMessagePayload | None
    delta: Delta | None
    finish_reason: str | None


class Usage(TypedDict, total=False):
    """Token usage information from a completion response."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatCompletionResponse(TypedDict, total=False):
    """A complete (non-streaming) chat completion response."""
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage


class ChatCompletionChunk(TypedDict, total=False):
    """A streamed chunk of a chat completion response."""
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]


# =============================================================================
# Decoded request messages
# =============================================================================


@dataclass(frozen=True)
class TextPart:
    """A plain text fragment."""
    text: str


@dataclass(frozen=True)
class ImagePart:
    """An inline image fragment, still in its data URI form."""
    url: str


ContentPart = Union[TextPart, ImagePart]


@dataclass(frozen=True)
class Message:
    """One decoded chat message.

    ``parts`` is populated only for multi-part messages; otherwise
    ``content`` alone carries the text.
    """
    role: str
    content: str = ""
    parts: tuple[ContentPart, ...] = ()

    @property
    def is_multipart(self) -> bool:
        return len(self.parts) > 0


@dataclass
class ChatRequest:
    """A decoded chat completion request.

    Numeric generation controls keep their wire zero values; the parameter
    mapper decides which of them reach the provider.
    """
    model: str
    messages: list[Message]
    temperature: float = 0.0
    top_p: float = 0.0
    max_tokens: int = 0
    stop: list[str] = field(default_factory=list)
    n: int = 1
    stream: bool = False
