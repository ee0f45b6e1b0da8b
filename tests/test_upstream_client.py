import json

import httpx
import pytest

from conftest import DummyStream
from nihongo_lens.errors import InternalError, UpstreamError
from nihongo_lens.upstream_client import UpstreamClient, bearer_headers, extract_error

URL = "https://llm.example.com/v1/chat/completions"


@pytest.mark.asyncio
async def test_post_json_sends_payload_with_bearer_auth():
    captured: dict[str, object] = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["headers"] = dict(request.headers)
        captured["payload"] = json.loads(request.content.decode())
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    client = UpstreamClient(transport=httpx.MockTransport(handler))

    data = await client.post_json(
        URL,
        {"model": "m", "messages": []},
        bearer_headers("secret"),
        endpoint="chat",
        fallback_error="failed",
    )

    assert data == {"choices": [{"message": {"content": "ok"}}]}
    assert captured["url"] == URL
    assert captured["headers"]["authorization"] == "Bearer secret"
    assert captured["headers"]["content-type"] == "application/json"
    assert captured["payload"] == {"model": "m", "messages": []}


@pytest.mark.asyncio
async def test_open_stream_yields_raw_chunks():
    chunks = [b"data: one\n\n", b"data: two\n\n", b"data: [DONE]\n\n"]

    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, headers={"Content-Type": "text/event-stream"}, stream=DummyStream(chunks)
        )

    client = UpstreamClient(transport=httpx.MockTransport(handler))

    stream = await client.open_stream(
        URL, {"stream": True}, bearer_headers("k"), endpoint="chat", fallback_error="failed"
    )

    received = [chunk async for chunk in stream.aiter_bytes()]

    assert stream.status_code == 200
    assert b"".join(received) == b"".join(chunks)


@pytest.mark.asyncio
async def test_open_stream_raises_upstream_error_on_rejection():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": {"message": "forbidden"}})

    client = UpstreamClient(transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError) as excinfo:
        await client.open_stream(URL, {}, bearer_headers("k"), endpoint="chat", fallback_error="failed")

    assert excinfo.value.status_code == 403
    assert excinfo.value.to_body() == {"error": {"message": "forbidden"}}


@pytest.mark.asyncio
async def test_request_is_not_retried():
    attempts: list[int] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        return httpx.Response(429, json={"error": {"message": "slow down"}})

    client = UpstreamClient(transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError):
        await client.post_json(URL, {}, bearer_headers("k"), endpoint="chat", fallback_error="failed")

    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_connection_failure_becomes_internal_error():
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    client = UpstreamClient(transport=httpx.MockTransport(handler))

    with pytest.raises(InternalError) as excinfo:
        await client.post_bytes(URL, {}, {}, endpoint="tts", fallback_error="failed")

    assert excinfo.value.message == "Failed to reach the AI provider"
    assert excinfo.value.status_code == 500


def test_extract_error_handles_plain_text_bodies():
    response = httpx.Response(502, text="Bad gateway")
    assert extract_error(response, "fallback") == {"message": "Bad gateway"}


def test_extract_error_uses_fallback_for_empty_bodies():
    response = httpx.Response(500, content=b"")
    assert extract_error(response, "fallback") == {"message": "fallback"}


def test_extract_error_keeps_provider_error_object():
    error = {"code": 400, "message": "bad", "status": "INVALID_ARGUMENT"}
    response = httpx.Response(400, json={"error": error})
    assert extract_error(response, "fallback") == error
