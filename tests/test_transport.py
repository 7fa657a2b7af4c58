from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from webauth_request.exceptions import TransportFailure, TransportTimeoutError
from webauth_request.models import RequestDescriptor, Success
from webauth_request.request import WebAuthRequest
from webauth_request.request_options import RequestConfig
from webauth_request.transport import HttpxTransport


def _transport(handler) -> HttpxTransport:
    return HttpxTransport(httpx_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_send_returns_status_headers_and_raw_body() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["url"] = str(request.url)
        captured["content_type"] = request.headers.get("content-type")
        captured["body"] = json.loads(request.content.decode())
        return httpx.Response(200, json={"ok": True}, headers={"x-ms-request-id": "r1"})

    async def scenario():
        async with _transport(handler) as transport:
            return await transport.send(
                RequestDescriptor(
                    method="POST",
                    url="https://login.example.com/token",
                    headers={"Content-Type": "application/json"},
                    body=b'{"a": "b"}',
                )
            )

    response = asyncio.run(scenario())

    assert response.status_code == 200
    assert response.header("X-MS-Request-Id") == "r1"
    assert json.loads(response.body) == {"ok": True}
    assert captured == {
        "method": "POST",
        "url": "https://login.example.com/token",
        "content_type": "application/json",
        "body": {"a": "b"},
    }


@pytest.mark.parametrize(
    ("raised", "expected"),
    [
        (httpx.ConnectTimeout("slow"), TransportTimeoutError),
        (httpx.ReadTimeout("slow"), TransportTimeoutError),
        (httpx.ConnectError("refused"), TransportFailure),
        (httpx.RemoteProtocolError("garbled"), TransportFailure),
    ],
)
def test_httpx_errors_map_to_transport_failures(raised: Exception, expected: type) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise raised

    async def scenario():
        async with _transport(handler) as transport:
            await transport.send(RequestDescriptor(method="GET", url="https://login.example.com/token"))

    with pytest.raises(expected) as exc_info:
        asyncio.run(scenario())
    assert exc_info.value.cause is raised
    assert exc_info.value.status_code is None


def test_timeout_resolves_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("WEBAUTH_REQUEST_TIMEOUT", "7.5")
    assert HttpxTransport(httpx_client=httpx.AsyncClient()).timeout == 7.5
    assert HttpxTransport(timeout=2, httpx_client=httpx.AsyncClient()).timeout == 2.0
    with pytest.raises(ValueError):
        HttpxTransport(timeout=0, httpx_client=httpx.AsyncClient())


def test_request_over_httpx_retries_server_error() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        if len(calls) == 1:
            return httpx.Response(503, text="busy")
        return httpx.Response(200, json={"a": "b"})

    async def scenario():
        async with _transport(handler) as transport:
            request = WebAuthRequest(
                "https://login.example.com/token",
                transport=transport,
                parameters={"q": "1"},
                config=RequestConfig(retry_if_server_error=True),
            )
            return await request.execute()

    outcome = asyncio.run(scenario())

    assert isinstance(outcome, Success)
    assert outcome.envelope.body == {"a": "b"}
    assert calls == ["https://login.example.com/token?q=1"] * 2
