"""Errors delivered by the request engine."""

from __future__ import annotations

from typing import Mapping


class WebAuthError(Exception):
    """Base exception for every failure a send can produce."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers) if headers is not None else {}
        self.cause = cause

    def __str__(self) -> str:
        if self.status_code is None:
            return str(self.args[0])
        return f"{self.status_code}: {self.args[0]}"


class EncodingError(WebAuthError):
    """Raised when a parameter cannot be serialized into the request."""


class TransportFailure(WebAuthError):
    """Raised when no status code was obtained (DNS, TCP, TLS failures)."""


class TransportTimeoutError(TransportFailure):
    """Raised when the transport gave up waiting for a response."""

    def __init__(self, message: str, *, timeout: float | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message, cause=cause)
        self.timeout = timeout


class UnexpectedStatusError(WebAuthError):
    """Raised for a status the request policy does not accept."""


class ParseError(WebAuthError):
    """Raised when a response body is not the expected JSON object."""


class RequestStateError(WebAuthError):
    """Raised when a request is used outside its single-send lifecycle."""
