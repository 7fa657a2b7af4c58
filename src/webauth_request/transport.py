"""Transport adapters: the only place network I/O happens."""

from __future__ import annotations

import os
from typing import Protocol

import httpx

from .exceptions import TransportFailure, TransportTimeoutError
from .models import RequestDescriptor, TransportResponse


class TransportAdapter(Protocol):
    """Performs one network exchange.

    Implementations return the status, headers and raw body of the response,
    or raise ``TransportFailure`` when no status code was obtained. They must
    not retry on their own.
    """

    async def send(self, request: RequestDescriptor) -> TransportResponse: ...


class HttpxTransport:
    """Transport adapter backed by ``httpx.AsyncClient``."""

    default_timeout = 30.0

    def __init__(
        self,
        *,
        timeout: float | None = None,
        follow_redirects: bool = True,
        httpx_client: httpx.AsyncClient | None = None,
        timeout_env_var: str = "WEBAUTH_REQUEST_TIMEOUT",
    ) -> None:
        if timeout is None:
            env_timeout = os.getenv(timeout_env_var)
            timeout = float(env_timeout) if env_timeout else self.default_timeout
        if timeout <= 0:
            raise ValueError("timeout must be greater than 0")
        self.timeout = float(timeout)
        self._httpx = httpx_client or httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=follow_redirects,
            trust_env=False,
        )

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._httpx.aclose()

    async def send(self, request: RequestDescriptor) -> TransportResponse:
        try:
            response = await self._httpx.request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                content=request.body,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as exc:
            raise TransportTimeoutError("Request timed out", timeout=self.timeout, cause=exc) from exc
        except httpx.TransportError as exc:
            raise TransportFailure(f"Network error: {exc}", cause=exc) from exc

        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )
