"""Keep credentials out of logs and plain-http endpoints out of requests."""

from __future__ import annotations

from typing import Mapping
from urllib.parse import unquote, urlsplit

REDACTED = "[REDACTED]"

SENSITIVE_HEADERS = frozenset({"authorization", "proxy-authorization", "cookie", "x-api-key"})

# OAuth values that may travel in a GET query string
SENSITIVE_PARAMETERS = frozenset(
    {
        "access_token",
        "assertion",
        "client_assertion",
        "client_secret",
        "code",
        "id_token",
        "password",
        "refresh_token",
    }
)

_LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


def sanitize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {key: REDACTED if key.lower() in SENSITIVE_HEADERS else value for key, value in headers.items()}


def sanitize_url(url: str) -> str:
    """Return ``url`` with the values of credential-bearing query parameters replaced."""
    base, sep, query = url.partition("?")
    if not sep:
        return url
    pairs = []
    for pair in query.split("&"):
        name, eq, _ = pair.partition("=")
        if eq and unquote(name).lower() in SENSITIVE_PARAMETERS:
            pairs.append(f"{name}={REDACTED}")
        else:
            pairs.append(pair)
    return f"{base}?{'&'.join(pairs)}"


def validate_endpoint_url(url: str, *, allow_http: bool = False) -> None:
    """Raise ``ValueError`` unless ``url`` is an absolute https endpoint.

    Plain http is tolerated for loopback hosts, or anywhere with ``allow_http``.
    """
    if "\x00" in url:
        raise ValueError("Invalid url")
    parts = urlsplit(url)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise ValueError(f"Endpoint must be an absolute http(s) url: {sanitize_url(url)!r}")
    if parts.scheme == "https" or allow_http:
        return
    if (parts.hostname or "").lower() not in _LOOPBACK_HOSTS:
        raise ValueError("Non-HTTPS url is not allowed without allow_http=True")
