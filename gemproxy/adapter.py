"""OpenAI chat completions served by Gemini chat sessions."""

from __future__ import annotations

import logging
from typing import Any, Optional

from google.genai import types

from .client_cache import ClientCache
from .core.exceptions import ProviderError
from .translate.messages import build_contents, is_multimodal, split_history
from .translate.params import build_generation_config
from .translate.response import to_chat_completion
from .translate.stream_adapter import PROVIDER_ERRORS, DisconnectChecker, ErrorHook, GeminiChatStream
from .types.chat import ChatCompletionResponse, ChatRequest

logger = logging.getLogger("gemproxy")

DEFAULT_TEXT_MODEL = "gemini-2.0-flash"
DEFAULT_VISION_MODEL = "gemini-2.0-flash"


class GeminiAdapter:
    """Translate chat completion requests into Gemini chat calls.

    Each call is self-contained: the request's messages become a fresh chat
    session whose history is every turn but the last, and the last turn is
    the message sent.
    """

    def __init__(
        self,
        clients: ClientCache,
        *,
        text_model: str = DEFAULT_TEXT_MODEL,
        vision_model: str = DEFAULT_VISION_MODEL,
    ) -> None:
        self.clients = clients
        self.text_model = text_model
        self.vision_model = vision_model

    def _client(self, api_key: str) -> Any:
        if not api_key.strip():
            raise ProviderError("missing API key: send 'Authorization: Bearer <key>'")
        try:
            return self.clients.get(api_key)
        except ValueError as exc:
            raise ProviderError(f"failed to create gemini client: {exc}") from exc

    def _start_chat(self, request: ChatRequest, api_key: str) -> tuple[Any, types.Content]:
        contents = build_contents(request.messages)
        multimodal = is_multimodal(contents)
        config = build_generation_config(
            max_tokens=request.max_tokens,
            stop=request.stop,
            temperature=request.temperature,
            top_p=request.top_p,
            is_multimodal=multimodal,
        )
        model_name = self.vision_model if multimodal else self.text_model

        client = self._client(api_key)
        history, tail = split_history(contents)

        # Chat messages must have roles alternating between 'user' and 'model'.
        chat = client.aio.chats.create(model=model_name, config=config, history=history)
        logger.info(
            "send_message model=%s history_turns=%d tail_parts=%d",
            model_name,
            len(history),
            len(tail.parts or []),
        )
        return chat, tail

    async def chat_completion(self, request: ChatRequest, api_key: str) -> ChatCompletionResponse:
        """Run a single-shot completion.

        Raises:
            ProxyError: Translation failed or Gemini rejected the call.
        """
        chat, tail = self._start_chat(request, api_key)

        # The send message must be from role `user`.
        try:
            response = await chat.send_message(tail.parts)
        except PROVIDER_ERRORS as exc:
            raise ProviderError(str(exc)) from exc

        return to_chat_completion(response, request.model)

    def chat_completion_stream(
        self,
        request: ChatRequest,
        api_key: str,
        *,
        disconnect_checker: Optional[DisconnectChecker] = None,
        on_error: Optional[ErrorHook] = None,
    ) -> GeminiChatStream:
        """Prepare a streaming completion; call ``start()`` on the result."""
        chat, tail = self._start_chat(request, api_key)

        async def open_stream():
            return await chat.send_message_stream(tail.parts)

        return GeminiChatStream(
            open_stream,
            request.model,
            disconnect_checker=disconnect_checker,
            on_error=on_error,
        )
