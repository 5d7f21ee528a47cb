from __future__ import annotations

import json

import httpx
import pytest

from core.errors import CompletionFailure
from services.completion_service import CompletionService

from helpers import make_settings


def _service(handler) -> CompletionService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CompletionService(make_settings(CLAUDE_MODEL="claude-test", CLAUDE_MAX_TOKENS=42), client=client)


@pytest.mark.asyncio
async def test_generate_sends_one_messages_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "content": [{"type": "text", "text": "สวัสดีครับ"}, {"type": "text", "text": "ignored"}],
                "usage": {"output_tokens": 5},
            },
        )

    service = _service(handler)

    assert await service.generate("hi") == "สวัสดีครับ"
    assert len(seen) == 1
    request = seen[0]
    assert str(request.url) == "https://anthropic.test/v1/messages"
    assert request.headers["x-api-key"] == "test-anthropic-key"
    assert request.headers["anthropic-version"] == "2023-06-01"
    body = json.loads(request.content)
    assert body["model"] == "claude-test"
    assert body["max_tokens"] == 42
    assert body["system"] == service.system_prompt
    assert body["messages"] == [{"role": "user", "content": "hi"}]


@pytest.mark.asyncio
async def test_error_status_raises_completion_failure() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(529, json={"type": "error", "error": {"type": "overloaded_error"}})

    with pytest.raises(CompletionFailure, match="529"):
        await _service(handler).generate("hi")
    assert calls == 1


@pytest.mark.asyncio
async def test_transport_error_raises_completion_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(CompletionFailure) as excinfo:
        await _service(handler).generate("hi")
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"content": []},
        {"content": [{"type": "tool_use", "id": "x", "name": "t", "input": {}}]},
        {"stop_reason": "max_tokens"},
        ["not", "an", "object"],
    ],
)
async def test_response_without_text_raises_completion_failure(payload) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    with pytest.raises(CompletionFailure):
        await _service(handler).generate("hi")


@pytest.mark.asyncio
async def test_undecodable_body_raises_completion_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>gateway</html>")

    with pytest.raises(CompletionFailure):
        await _service(handler).generate("hi")
