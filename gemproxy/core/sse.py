"""SSE (Server-Sent Events) framing for chat completion chunks."""

import json
from typing import Any, AsyncIterator, Mapping

# Terminal event of every OpenAI-compatible stream
DONE_EVENT = b"data: [DONE]\n\n"


def format_sse_event(data: Mapping[str, Any]) -> bytes:
    """Frame one JSON payload as an SSE ``data:`` event."""
    json_str = json.dumps(data, ensure_ascii=False)
    return f"data: {json_str}\n\n".encode("utf-8")


async def encode_sse_stream(chunks: AsyncIterator[Mapping[str, Any]]) -> AsyncIterator[bytes]:
    """Frame every chunk and close the stream with ``data: [DONE]``."""
    async for chunk in chunks:
        yield format_sse_event(chunk)
    yield DONE_EVENT
