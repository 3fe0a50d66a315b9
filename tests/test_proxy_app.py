"""End-to-end tests of the HTTP surface with a fake Gemini backend."""

import json

import pytest

from conftest import TEST_API_KEY, assistant, chat_body, system, user
from gemproxy.api.routes.chat import extract_api_key
from gemproxy.testing import FakeReply, make_api_error, make_response, make_stream


def parse_sse(text: str) -> list:
    """Return decoded data payloads; the [DONE] sentinel is kept as a string."""
    events = []
    for block in text.split("\n\n"):
        if not block.startswith("data: "):
            continue
        data = block[len("data: "):]
        events.append(data if data == "[DONE]" else json.loads(data))
    return events


class TestExtractApiKey:
    def test_bearer(self):
        assert extract_api_key("Bearer abc") == "abc"
        assert extract_api_key("bearer  abc ") == "abc"

    def test_missing(self):
        assert extract_api_key(None) == ""
        assert extract_api_key("") == ""

    def test_raw_key(self):
        assert extract_api_key("abc") == "abc"


class TestMiscRoutes:
    def test_health(self, make_client):
        client, _ = make_client()
        response = client.get("/health")
        assert response.status_code == 200
        assert response.text == "OK"

    @pytest.mark.parametrize("method, path", [("GET", "/"), ("GET", "/v1/models"), ("DELETE", "/x/y")])
    def test_not_found(self, make_client, method, path):
        client, _ = make_client()
        response = client.request(method, path)
        assert response.status_code == 404
        assert response.text == "404 - Not Found"

    def test_get_on_chat_route_falls_through(self, make_client):
        client, _ = make_client()
        assert client.get("/v1/chat/completions").status_code == 404


class TestChatCompletions:
    """Non-streaming chat completions."""

    @pytest.mark.parametrize("path", ["/chat/completions", "/v1/chat/completions"])
    def test_completion(self, make_client, auth_headers, path):
        client, factory = make_client(FakeReply(response=make_response("4")))
        body = chat_body([system("be terse"), user("2+2?")])

        response = client.post(path, json=body, headers=auth_headers)

        assert response.status_code == 200
        payload = response.json()
        assert payload["object"] == "chat.completion"
        assert payload["model"] == "gpt-4o"
        assert payload["choices"] == [
            {"index": 0, "message": {"role": "assistant", "content": "4"}, "finish_reason": "stop"}
        ]
        [gemini_client] = factory.created
        assert gemini_client.api_key == TEST_API_KEY
        [call] = gemini_client.calls
        assert call.history == []
        assert call.message[0].text == "be terse\n2+2?"

    def test_invalid_json(self, make_client, auth_headers):
        client, _ = make_client()
        response = client.post(
            "/v1/chat/completions",
            content=b"{oops",
            headers={**auth_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"]["code"] == "invalid_json"

    def test_last_message_from_assistant(self, make_client, auth_headers):
        client, factory = make_client()
        body = chat_body([user("hi"), assistant("hello")])
        response = client.post("/v1/chat/completions", json=body, headers=auth_headers)
        assert response.status_code == 400
        assert factory.created == []

    def test_unknown_role(self, make_client, auth_headers):
        client, _ = make_client()
        body = chat_body([{"role": "tool", "content": "42"}, user("and?")])
        response = client.post("/v1/chat/completions", json=body, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["error"]["code"] == "invalid_parameters"

    def test_bad_image(self, make_client, auth_headers):
        client, _ = make_client()
        content = [{"type": "image_url", "image_url": {"url": "https://example.com/cat.png"}}]
        response = client.post(
            "/v1/chat/completions", json=chat_body([user(content)]), headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"]["code"] == "invalid_image"

    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer "}])
    def test_missing_credential(self, make_client, headers):
        """Requests without a key never reach a Gemini client."""
        client, factory = make_client(FakeReply(response=make_response("never")))
        for stream in (False, True):
            body = chat_body([user("hi")], stream=stream)
            response = client.post("/v1/chat/completions", json=body, headers=headers)
            assert response.status_code == 422
            assert "missing API key" in response.json()["detail"]["error"]["message"]
        assert factory.created == []

    def test_provider_error(self, make_client, auth_headers):
        client, _ = make_client(FakeReply(error=make_api_error(400, "API key not valid.")))
        response = client.post(
            "/v1/chat/completions", json=chat_body([user("hi")]), headers=auth_headers
        )
        assert response.status_code == 422
        error = response.json()["detail"]["error"]
        assert error["type"] == "provider_error"
        assert "API key not valid." in error["message"]

    def test_failure_is_dumped(self, make_client, auth_headers, tmp_path):
        client, _ = make_client(FakeReply(error=make_api_error(400)), dump=True)
        response = client.post(
            "/v1/chat/completions", json=chat_body([user("hi")]), headers=auth_headers
        )
        assert response.status_code == 422

        [dump] = list((tmp_path / "dumps").iterdir())
        content = dump.read_bytes()
        assert content.startswith(b"POST /v1/chat/completions HTTP/1.1")
        assert TEST_API_KEY.encode() not in content
        assert b'"error"' in content

    def test_success_is_not_dumped(self, make_client, auth_headers, tmp_path):
        client, _ = make_client(FakeReply(response=make_response("ok")), dump=True)
        client.post("/v1/chat/completions", json=chat_body([user("hi")]), headers=auth_headers)
        assert not (tmp_path / "dumps").exists()


class TestStreamingChatCompletions:
    """Streaming chat completions over SSE."""

    def test_stream(self, make_client, auth_headers):
        client, _ = make_client(FakeReply(stream=make_stream("Hel", "lo")))
        body = chat_body([user("hi")], stream=True)

        response = client.post("/v1/chat/completions", json=body, headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        events = parse_sse(response.text)
        assert events[-1] == "[DONE]"
        chunks = events[:-1]
        assert len(chunks) == 2
        assert all(chunk["object"] == "chat.completion.chunk" for chunk in chunks)
        assert [chunk["choices"][0]["delta"]["content"] for chunk in chunks] == ["Hel", "lo"]
        assert [chunk["choices"][0]["finish_reason"] for chunk in chunks] == [None, "stop"]

    def test_stream_error_before_first_chunk(self, make_client, auth_headers):
        client, _ = make_client(FakeReply(error=make_api_error(429, "quota", "RESOURCE_EXHAUSTED")))
        body = chat_body([user("hi")], stream=True)

        response = client.post("/v1/chat/completions", json=body, headers=auth_headers)

        assert response.status_code == 422
        assert response.json()["detail"]["error"]["code"] == "provider_error"

    def test_mid_stream_error_closes_stream_and_dumps(self, make_client, auth_headers, tmp_path):
        reply = FakeReply(
            stream=make_stream("a", "b", "c"),
            error=make_api_error(500, "backend exploded", "INTERNAL"),
            error_after=1,
        )
        client, _ = make_client(reply, dump=True)
        body = chat_body([user("hi")], stream=True)

        response = client.post("/v1/chat/completions", json=body, headers=auth_headers)

        assert response.status_code == 200
        events = parse_sse(response.text)
        assert events[-1] == "[DONE]"
        assert [chunk["choices"][0]["delta"]["content"] for chunk in events[:-1]] == ["a"]

        [dump] = list((tmp_path / "dumps").iterdir())
        assert b"streaming error" in dump.read_bytes()
