from __future__ import annotations

import json
from typing import Any

from webauth_request.exceptions import TransportFailure
from webauth_request.models import RequestDescriptor, TransportResponse


def json_response(status_code: int, payload: Any, headers: dict[str, str] | None = None) -> TransportResponse:
    return TransportResponse(
        status_code=status_code,
        headers={"Content-Type": "application/json", **(headers or {})},
        body=json.dumps(payload).encode(),
    )


class ScriptedTransport:
    """Replays queued responses (or raises queued failures) and records each request."""

    def __init__(self, *results: TransportResponse | TransportFailure) -> None:
        self._results = list(results)
        self.requests: list[RequestDescriptor] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def send(self, request: RequestDescriptor) -> TransportResponse:
        self.requests.append(request)
        if not self._results:
            raise AssertionError("ScriptedTransport ran out of responses")
        result = self._results.pop(0)
        if isinstance(result, TransportFailure):
            raise result
        return result
