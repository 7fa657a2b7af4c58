"""Decide what to do with a transport result."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from .request_options import RequestConfig

if TYPE_CHECKING:
    from .retry import RetryBudget


class Classification(str, enum.Enum):
    ACCEPT = "accept"
    REJECT_UNEXPECTED_STATUS = "reject_unexpected_status"
    RETRY_SERVER_ERROR = "retry_server_error"
    REJECT_TRANSPORT_FAILURE = "reject_transport_failure"


HTTP_OK = 200


def is_server_error(status_code: int) -> bool:
    return 500 <= status_code < 600


def classify(status_code: int | None, config: RequestConfig, budget: "RetryBudget") -> Classification:
    """Classify one attempt. Rules are checked in order; the first match wins."""
    if status_code is None:
        return Classification.REJECT_TRANSPORT_FAILURE
    if is_server_error(status_code):
        if config.retry_if_server_error and not budget.exhausted:
            return Classification.RETRY_SERVER_ERROR
        # server errors are never passed through as a usable response
        return Classification.REJECT_UNEXPECTED_STATUS
    if config.accept_only_ok_response and status_code != HTTP_OK:
        return Classification.REJECT_UNEXPECTED_STATUS
    return Classification.ACCEPT
