"""Response policy switches for a single request."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestConfig:
    return_raw_response: bool = False
    retry_if_server_error: bool = True
    accept_only_ok_response: bool = False
    retry_delay: float = 0.0
    honor_retry_after: bool = False

    def __post_init__(self) -> None:
        if self.retry_delay < 0:
            raise ValueError("retry_delay must be non-negative")
