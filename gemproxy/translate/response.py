"""Gemini response -> OpenAI chat completion translation.

Key mappings:
- candidate.content.role "model" -> "assistant", anything else -> "user"
- candidate text parts -> message content, concatenated in order
- candidate.finish_reason -> finish_reason through FINISH_REASONS
- sum of candidate.token_count -> usage.completion_tokens
"""

from __future__ import annotations

import time
import uuid
from typing import Optional, Sequence

from google.genai import types

from ..core.exceptions import PartNotTextError, UnknownFinishReasonError
from ..types.chat import ChatCompletionChunk, ChatCompletionResponse, Choice
from .messages import to_openai_role
from .parts import is_text_part

FINISH_REASON_STOP = "stop"
FINISH_REASON_LENGTH = "length"
FINISH_REASON_CONTENT_FILTER = "content_filter"

FINISH_REASONS: dict[types.FinishReason, Optional[str]] = {
    types.FinishReason.FINISH_REASON_UNSPECIFIED: None,
    types.FinishReason.STOP: FINISH_REASON_STOP,
    types.FinishReason.MAX_TOKENS: FINISH_REASON_LENGTH,
    types.FinishReason.SAFETY: FINISH_REASON_CONTENT_FILTER,
    types.FinishReason.RECITATION: FINISH_REASON_CONTENT_FILTER,
    types.FinishReason.OTHER: None,
}


def new_completion_id() -> str:
    return f"chatcmpl-{uuid.uuid4()}"


def convert_finish_reason(finish_reason: Optional[types.FinishReason]) -> Optional[str]:
    """Map a Gemini finish reason to its OpenAI name.

    A missing finish reason (intermediate stream increments) maps to None.

    Raises:
        UnknownFinishReasonError: The reason is outside the known table.
    """
    if finish_reason is None:
        return None
    try:
        return FINISH_REASONS[finish_reason]
    except KeyError:
        raise UnknownFinishReasonError(finish_reason) from None


def merge_text(parts: Optional[Sequence[types.Part]]) -> str:
    """Concatenate the text of every part, in order.

    Raises:
        PartNotTextError: A part carries something other than text.
    """
    texts: list[str] = []
    for part in parts or []:
        if not is_text_part(part):
            raise PartNotTextError("part is not text")
        texts.append(part.text)
    return "".join(texts)


def _candidate_fields(candidate: types.Candidate) -> tuple[int, str, str, Optional[str]]:
    content = candidate.content
    role = to_openai_role(content.role if content else None)
    text = merge_text(content.parts if content else None)
    finish_reason = convert_finish_reason(candidate.finish_reason)
    return candidate.index or 0, role, text, finish_reason


def to_chat_completion(
    response: types.GenerateContentResponse,
    model: str,
) -> ChatCompletionResponse:
    """Translate a completed Gemini response into an OpenAI chat completion."""
    choices: list[Choice] = []
    completion_tokens = 0

    for candidate in response.candidates or []:
        index, role, text, finish_reason = _candidate_fields(candidate)
        choices.append({
            "index": index,
            "message": {"role": role, "content": text},
            "finish_reason": finish_reason,
        })
        completion_tokens += candidate.token_count or 0

    prompt_tokens = 0
    if response.usage_metadata is not None:
        prompt_tokens = response.usage_metadata.prompt_token_count or 0

    return {
        "id": new_completion_id(),
        "object": "chat.completion",
        "created": int(time.time()),
        "model": model,
        "choices": choices,
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }


def to_stream_choices(candidates: Optional[Sequence[types.Candidate]]) -> list[Choice]:
    """Translate the candidates of one stream increment into chunk choices."""
    choices: list[Choice] = []
    for candidate in candidates or []:
        index, role, text, finish_reason = _candidate_fields(candidate)
        choices.append({
            "index": index,
            "delta": {"role": role, "content": text},
            "finish_reason": finish_reason,
        })
    return choices


def to_chat_completion_chunk(
    response: types.GenerateContentResponse,
    model: str,
) -> ChatCompletionChunk:
    """Translate one Gemini stream increment into an OpenAI chunk."""
    return {
        "id": new_completion_id(),
        "object": "chat.completion.chunk",
        "created": int(time.time()),
        "model": model,
        "choices": to_stream_choices(response.candidates),
    }
