"""OpenAI <-> Gemini translation helpers.

Provides translation between OpenAI Chat Completions requests/responses and
Gemini chat sessions, enabling the proxy to serve OpenAI-format clients from
Gemini models.
"""

from .messages import (
    SYSTEM_PROMPT,
    build_contents,
    fix_turn_order,
    is_multimodal,
    merge_messages,
    split_history,
    to_gemini_contents,
)
from .params import build_generation_config
from .parts import convert_part, decode_data_uri
from .request import decode_chat_request
from .response import convert_finish_reason, merge_text, to_chat_completion, to_chat_completion_chunk
from .stream_adapter import GeminiChatStream, StreamState

__all__ = [
    "SYSTEM_PROMPT",
    "GeminiChatStream",
    "StreamState",
    "build_contents",
    "build_generation_config",
    "convert_finish_reason",
    "convert_part",
    "decode_chat_request",
    "decode_data_uri",
    "fix_turn_order",
    "is_multimodal",
    "merge_messages",
    "merge_text",
    "split_history",
    "to_chat_completion",
    "to_chat_completion_chunk",
    "to_gemini_contents",
]
