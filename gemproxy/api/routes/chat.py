"""OpenAI-compatible chat completions endpoint backed by Gemini."""

import asyncio
import json
import logging
from typing import Optional

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from ...adapter import GeminiAdapter
from ...core.exceptions import ProxyError
from ...core.sse import encode_sse_stream
from ...logging.recorder import RequestDumpWriter, format_request_dump
from ...translate.request import decode_chat_request

logger = logging.getLogger("gemproxy")

STREAM_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def extract_api_key(authorization: Optional[str]) -> str:
    """Return the bearer credential; the provider rejects an empty one."""
    if not authorization:
        return ""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer":
        return token.strip()
    return authorization.strip()


async def _dump_failure(request: Request, body: bytes, message: str) -> None:
    """Best-effort dump of a failed request; failures are only logged."""
    writer: Optional[RequestDumpWriter] = getattr(request.app.state, "dump_writer", None)
    if writer is None:
        return

    raw_request = format_request_dump(
        request.method,
        request.url.path,
        request.headers,
        body,
        query=request.url.query,
    )
    raw_response = json.dumps({"error": message}, ensure_ascii=False).encode("utf-8")
    try:
        await asyncio.to_thread(writer.record, raw_request, raw_response)
    except OSError as exc:
        logger.error(f"Failed to write request dump: {exc}")


async def chat_completions(request: Request) -> Response:
    """Chat completions endpoint - OpenAI compatible.

    POST /chat/completions
    """
    logger.info(f"Handling {request.method} request to {request.url.path}")
    adapter: GeminiAdapter = request.app.state.adapter

    body = await request.body()
    api_key = extract_api_key(request.headers.get("authorization"))

    try:
        chat_request = decode_chat_request(body)
        logger.info(
            f"Processing request for model {chat_request.model or '<unset>'}, "
            f"stream={chat_request.stream}, messages={len(chat_request.messages)}"
        )

        if chat_request.stream:
            async def on_stream_error(exc: BaseException) -> None:
                await _dump_failure(request, body, f"streaming error: {exc}")

            stream = adapter.chat_completion_stream(
                chat_request,
                api_key,
                disconnect_checker=request.is_disconnected,
                on_error=on_stream_error,
            )
            await stream.start()
            return StreamingResponse(
                encode_sse_stream(stream.chunks()),
                media_type="text/event-stream",
                headers=STREAM_HEADERS,
            )

        result = await adapter.chat_completion(chat_request, api_key)
    except ProxyError as exc:
        logger.error(f"chat completion failed: {exc.message} (type: {exc.__class__.__name__})")
        await _dump_failure(request, body, exc.message)
        raise HTTPException(status_code=exc.status_code, detail=exc.to_detail()) from exc

    usage = result.get("usage", {})
    logger.info(
        f"Request for model {chat_request.model or '<unset>'} completed: "
        f"choices={len(result['choices'])}, completion_tokens={usage.get('completion_tokens', 0)}"
    )
    return JSONResponse(result)
