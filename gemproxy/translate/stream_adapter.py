"""Stream adapter for converting a Gemini response stream to OpenAI chunks.

A producer task pulls the Gemini stream and pushes one OpenAI
``chat.completion.chunk`` per increment onto a bounded queue; the HTTP
response iterates ``chunks()`` and relays them in provider order.

Gemini increments:
    GenerateContentResponse(candidates=[Candidate(content=Content(role="model", parts=[Part(text="Hel")]))])
    GenerateContentResponse(candidates=[Candidate(content=..., finish_reason=STOP)])

OpenAI chunks:
    data: {"id":"chatcmpl-...","object":"chat.completion.chunk","choices":[{"delta":{"role":"assistant","content":"Hel"},...}]}
    data: [DONE]

Lifecycle: IDLE -> STREAMING -> DONE, or FAILED when the provider errors.
A client disconnect cancels the producer immediately; chunks it produced
but that were not yet delivered are dropped.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

import httpx
from google.genai import errors as genai_errors
from google.genai import types

from ..core.exceptions import ProviderError, ProxyError
from ..types.chat import ChatCompletionChunk
from .response import to_chat_completion_chunk

logger = logging.getLogger("gemproxy")

_STREAM_END = object()
_NO_ITEM = object()

StreamOpener = Callable[[], Awaitable[AsyncIterator[types.GenerateContentResponse]]]
DisconnectChecker = Callable[[], Awaitable[bool]]
ErrorHook = Callable[[BaseException], Awaitable[None]]

PROVIDER_ERRORS = (genai_errors.APIError, httpx.HTTPError)


class StreamState(enum.Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


def as_proxy_error(exc: BaseException) -> ProxyError:
    """Wrap a stream failure so routes can answer it uniformly.

    Gemini API and transport errors become ProviderError (422); anything
    else is an internal failure and keeps the base ProxyError status (500).
    """
    if isinstance(exc, ProxyError):
        return exc
    if isinstance(exc, PROVIDER_ERRORS):
        return ProviderError(str(exc))
    return ProxyError(f"internal error: {exc.__class__.__name__}: {exc}")


class GeminiChatStream:
    """Relay a Gemini stream as OpenAI chat completion chunks.

    Args:
        open_stream: Coroutine function returning the Gemini async iterator,
            e.g. ``lambda: chat.send_message_stream(parts)``.
        model: Model name echoed in every chunk.
        disconnect_checker: Optional probe polled before each chunk is read.
        on_error: Optional hook awaited with a mid-stream provider error,
            since the wire protocol has no error frame once streaming began.
        queue_size: Bound of the hand-off queue.
    """

    def __init__(
        self,
        open_stream: StreamOpener,
        model: str,
        *,
        disconnect_checker: Optional[DisconnectChecker] = None,
        on_error: Optional[ErrorHook] = None,
        queue_size: int = 1,
    ) -> None:
        self.model = model
        self.state = StreamState.IDLE
        self.error: Optional[BaseException] = None
        self.chunk_count = 0
        self.cancelled = False
        self._open_stream = open_stream
        self._disconnect_checker = disconnect_checker
        self._on_error = on_error
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=queue_size)
        self._task: Optional[asyncio.Task] = None
        self._pending: Any = _NO_ITEM
        self._produced = 0

    async def start(self) -> None:
        """Launch the producer and wait for the first increment.

        Raises:
            ProxyError: The provider failed before producing anything.
        """
        if self.state is not StreamState.IDLE:
            raise RuntimeError(f"stream already started (state={self.state.value})")

        self.state = StreamState.STREAMING
        self._task = asyncio.create_task(self._produce())
        first = await self._queue.get()
        if first is _STREAM_END and self.error is not None:
            self.state = StreamState.FAILED
            raise as_proxy_error(self.error) from self.error
        self._pending = first

    async def chunks(self) -> AsyncIterator[ChatCompletionChunk]:
        """Yield chunks in provider order until the stream ends."""
        if self.state is StreamState.IDLE:
            await self.start()

        try:
            while True:
                if self._disconnect_checker is not None and await self._disconnect_checker():
                    logger.info(
                        "Client disconnected; aborting Gemini stream after %d chunks",
                        self.chunk_count,
                    )
                    self.cancelled = True
                    return

                item = await self._next_item()
                if item is _STREAM_END:
                    await self._finish()
                    return

                self.chunk_count += 1
                yield item
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Stop the producer if it is still running."""
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        if self.state is StreamState.STREAMING:
            self.state = StreamState.DONE

    async def _next_item(self) -> Any:
        if self._pending is not _NO_ITEM:
            item, self._pending = self._pending, _NO_ITEM
            return item
        return await self._queue.get()

    async def _finish(self) -> None:
        if self.error is None:
            self.state = StreamState.DONE
            logger.debug("Gemini stream completed with %d chunks", self.chunk_count)
            return

        self.state = StreamState.FAILED
        if self._on_error is not None:
            try:
                await self._on_error(self.error)
            except Exception as exc:
                logger.warning(f"Stream error hook failed: {exc}")

    async def _produce(self) -> None:
        try:
            stream = await self._open_stream()
            async with contextlib.aclosing(stream):
                async for response in stream:
                    chunk = to_chat_completion_chunk(response, self.model)
                    self._produced += 1
                    await self._queue.put(chunk)
        except Exception as exc:
            logger.error(
                f"Gemini stream failed after {self._produced} increments: {exc} "
                f"(type: {exc.__class__.__name__})"
            )
            self.error = exc
        await self._queue.put(_STREAM_END)
