"""Decoding and validation of OpenAI chat completion request bodies."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from ..core.exceptions import DecodeError, UnsupportedContentError
from ..types.chat import ChatRequest, ContentPart, ImagePart, Message, TextPart
from .messages import GEMINI_ROLES_BY_OPENAI_ROLES, ROLE_USER

logger = logging.getLogger("gemproxy")


def _decode_part(part: Any) -> ContentPart:
    if not isinstance(part, Mapping):
        raise DecodeError("content parts must be JSON objects", code="invalid_content")

    part_type = part.get("type", "")
    if part_type == "text":
        return TextPart(str(part.get("text") or ""))

    if part_type == "image_url":
        image_url = part.get("image_url")
        if isinstance(image_url, Mapping):
            url = image_url.get("url")
        else:
            url = image_url
        if not isinstance(url, str) or not url:
            raise DecodeError("image_url part is missing its url", code="invalid_image")
        return ImagePart(url)

    raise UnsupportedContentError(str(part_type))


def _decode_message(raw: Any) -> Message:
    if not isinstance(raw, Mapping):
        raise DecodeError("messages must be JSON objects", code="invalid_message")

    role = raw.get("role")
    if not isinstance(role, str):
        raise DecodeError("message role must be a string", code="invalid_message")

    content = raw.get("content")
    if content is None:
        return Message(role=role)
    if isinstance(content, str):
        return Message(role=role, content=content)
    if isinstance(content, list):
        return Message(role=role, parts=tuple(_decode_part(part) for part in content))

    raise DecodeError("message content must be a string or an array", code="invalid_message")


def _number(payload: Mapping[str, Any], key: str, cast: type) -> Any:
    value = payload.get(key)
    if value is None:
        return cast(0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"{key} must be a number", code="invalid_parameter")
    return cast(value)


def _stop_sequences(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise DecodeError("stop must be a string or an array of strings", code="invalid_parameter")


def decode_chat_request(body: bytes) -> ChatRequest:
    """Decode a raw request body into a ChatRequest.

    Guarantees a non-empty message list whose last message maps to the Gemini
    user role. Unknown roles are left for the message merger to reject.

    Raises:
        DecodeError: The body is not a valid chat completion request.
        UnsupportedContentError: A content part has an unsupported type.
    """
    try:
        payload = json.loads(body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeError(f"Invalid JSON payload: {exc}", code="invalid_json") from exc

    if not isinstance(payload, Mapping):
        raise DecodeError("Request body must be a JSON object", code="invalid_json_shape")

    raw_messages = payload.get("messages")
    if not raw_messages or not isinstance(raw_messages, list):
        raise DecodeError("You must provide a messages array", code="missing_parameter")

    messages = [_decode_message(raw) for raw in raw_messages]

    last_role = GEMINI_ROLES_BY_OPENAI_ROLES.get(messages[-1].role)
    if last_role is not None and last_role != ROLE_USER:
        raise DecodeError("last message must be from user", code="invalid_last_message")

    model = payload.get("model")
    max_tokens = payload.get("max_tokens")
    if max_tokens is None:
        max_tokens = payload.get("max_completion_tokens")

    return ChatRequest(
        model=model if isinstance(model, str) else "",
        messages=messages,
        temperature=_number(payload, "temperature", float),
        top_p=_number(payload, "top_p", float),
        max_tokens=_number({"max_tokens": max_tokens}, "max_tokens", int),
        stop=_stop_sequences(payload.get("stop")),
        n=_number(payload, "n", int) or 1,
        stream=bool(payload.get("stream")),
    )
