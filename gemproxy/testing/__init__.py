"""Test doubles for exercising the proxy without a real Gemini backend."""

from .fake_gemini import (
    ChatCall,
    FakeClientFactory,
    FakeGeminiClient,
    FakeProviderError,
    FakeReply,
    make_api_error,
    make_response,
    make_stream,
)

__all__ = [
    "ChatCall",
    "FakeClientFactory",
    "FakeGeminiClient",
    "FakeProviderError",
    "FakeReply",
    "make_api_error",
    "make_response",
    "make_stream",
]
