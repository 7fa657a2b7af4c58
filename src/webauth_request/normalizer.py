"""Turn an accepted transport response into a ResponseEnvelope."""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter, ValidationError

from .exceptions import ParseError
from .models import ResponseEnvelope, TransportResponse
from .request_options import RequestConfig

_JSON_OBJECT = TypeAdapter(dict[str, Any])


def parse_json_object(body: bytes) -> dict[str, Any]:
    """Parse ``body`` as a JSON object; arrays, scalars and bad JSON are rejected."""
    return _JSON_OBJECT.validate_json(body)


def normalize(response: TransportResponse, config: RequestConfig) -> ResponseEnvelope:
    if config.return_raw_response:
        return ResponseEnvelope(status_code=response.status_code, headers=response.headers, body=response.body)

    try:
        payload = parse_json_object(response.body)
    except ValidationError as exc:
        raise ParseError(
            "Response body is not a JSON object",
            status_code=response.status_code,
            body=response.body,
            headers=response.headers,
            cause=exc,
        ) from exc
    return ResponseEnvelope(status_code=response.status_code, headers=response.headers, body=payload)
