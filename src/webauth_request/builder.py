"""Serialize request parameters into a transport-ready descriptor."""

from __future__ import annotations

import json
from typing import Mapping
from urllib.parse import quote

from .exceptions import EncodingError
from .models import RequestDescriptor

SUPPORTED_METHODS = frozenset({"GET", "POST"})

_DEFAULT_HEADERS = {"Accept": "application/json"}


def _check_parameters(parameters: Mapping[str, str]) -> None:
    for key, value in parameters.items():
        if not isinstance(key, str):
            raise EncodingError(f"Parameter name must be a string, got {type(key).__name__}")
        if not isinstance(value, str):
            raise EncodingError(f"Parameter {key!r} must be a string, got {type(value).__name__}")


def _percent_encode(text: str) -> str:
    try:
        return quote(text, safe="", encoding="utf-8", errors="strict")
    except UnicodeEncodeError as exc:
        raise EncodingError(f"Cannot percent-encode {text!r}", cause=exc) from exc


def encode_query(parameters: Mapping[str, str]) -> str:
    """Return ``k=v`` pairs joined by ``&`` with RFC 3986 percent-encoding."""
    _check_parameters(parameters)
    return "&".join(f"{_percent_encode(key)}={_percent_encode(value)}" for key, value in parameters.items())


def encode_json_body(parameters: Mapping[str, str]) -> bytes:
    _check_parameters(parameters)
    try:
        return json.dumps(dict(parameters), ensure_ascii=False).encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodingError("Cannot encode parameters as UTF-8 JSON", cause=exc) from exc


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    """Set ``name``, dropping any existing spelling of it (header names are case-insensitive)."""
    for existing in [key for key in headers if key.lower() == name.lower()]:
        del headers[existing]
    headers[name] = value


def _merge_headers(extra: Mapping[str, str] | None) -> dict[str, str]:
    merged = dict(_DEFAULT_HEADERS)
    if extra:
        for key, value in extra.items():
            _set_header(merged, str(key), str(value))
    return merged


def build_request(
    method: str,
    url: str,
    parameters: Mapping[str, str],
    *,
    headers: Mapping[str, str] | None = None,
) -> RequestDescriptor:
    """Build the descriptor for ``method``.

    GET appends the parameters to ``url`` as a query string; POST sends them
    as a JSON object. Raises ``EncodingError`` when a parameter cannot be
    serialized.
    """
    method = method.upper()
    if method not in SUPPORTED_METHODS:
        raise ValueError(f"Unsupported method: {method}")

    merged = _merge_headers(headers)
    if method == "GET":
        query = encode_query(parameters)
        if query:
            url = f"{url}{'&' if '?' in url else '?'}{query}"
        return RequestDescriptor(method=method, url=url, headers=merged)

    body = encode_json_body(parameters)
    _set_header(merged, "Content-Type", "application/json")
    return RequestDescriptor(method=method, url=url, headers=merged, body=body)
