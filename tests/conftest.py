"""Shared pytest fixtures for proxy testing.

Provides:
- Fake Gemini client factories and client caches
- Application builders wired to the fakes
- Helpers for building OpenAI request bodies
"""

import json
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from gemproxy import ClientCache, RequestDumpWriter, Settings, create_app
from gemproxy.testing import FakeClientFactory, FakeReply


TEST_API_KEY = "test-key-0123456789"


def user(content: Any) -> dict[str, Any]:
    return {"role": "user", "content": content}


def assistant(content: Any) -> dict[str, Any]:
    return {"role": "assistant", "content": content}


def system(content: Any) -> dict[str, Any]:
    return {"role": "system", "content": content}


def chat_body(messages: list[dict[str, Any]], **params: Any) -> dict[str, Any]:
    """Build an OpenAI chat completion request body."""
    body: dict[str, Any] = {"model": "gpt-4o", "messages": messages}
    body.update(params)
    return body


def encode_body(messages: list[dict[str, Any]], **params: Any) -> bytes:
    return json.dumps(chat_body(messages, **params)).encode("utf-8")


@pytest.fixture
def test_settings() -> Settings:
    """Settings with dumping off and distinct text/vision model names."""
    return Settings(
        text_model="text-model",
        vision_model="vision-model",
        dump_failed_requests=False,
    )


@pytest.fixture
def make_client(
    test_settings: Settings, tmp_path
) -> Callable[..., tuple[TestClient, FakeClientFactory]]:
    """Build a TestClient whose Gemini clients answer with the given replies.

    Usage:
        def test_something(make_client):
            client, factory = make_client(FakeReply(response=make_response("hi")))
            client.post("/v1/chat/completions", json=...)
    """

    def _make(*replies: FakeReply, dump: bool = False) -> tuple[TestClient, FakeClientFactory]:
        factory = FakeClientFactory(replies)
        dump_writer = RequestDumpWriter(tmp_path / "dumps") if dump else None
        app = create_app(
            test_settings,
            client_cache=ClientCache(factory),
            dump_writer=dump_writer,
        )
        return TestClient(app), factory

    return _make


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {TEST_API_KEY}"}
