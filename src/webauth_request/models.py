"""Typed values passed between the stages of a send."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, NoReturn, Union

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import WebAuthError


class WebAuthModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


def _header(headers: dict[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


class RequestDescriptor(WebAuthModel):
    """A fully formed request, ready for the transport."""

    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes | None = None

    def header(self, name: str) -> str | None:
        return _header(self.headers, name)


class TransportResponse(WebAuthModel):
    status_code: int
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str) -> str | None:
        return _header(self.headers, name)


class ResponseEnvelope(WebAuthModel):
    """Normalized response: raw bytes in raw mode, else the parsed JSON object."""

    status_code: int
    headers: dict[str, str] = Field(default_factory=dict)
    body: Union[bytes, dict[str, Any]]

    @property
    def is_raw(self) -> bool:
        return isinstance(self.body, bytes)

    def header(self, name: str) -> str | None:
        return _header(self.headers, name)


class RequestState(str, enum.Enum):
    NOT_SENT = "not_sent"
    SENT = "sent"
    RETRYING = "retrying"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Success:
    envelope: ResponseEnvelope
    attempts: int = 1
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    error: WebAuthError
    attempts: int = 0
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return False

    def raise_error(self) -> NoReturn:
        raise self.error


Outcome = Union[Success, Failure]
